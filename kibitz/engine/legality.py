from __future__ import annotations

from enum import Enum
from typing import List, Optional

from .attacks import find_king, in_check, is_attacked
from .move import Move
from .movegen import pseudo_moves, pseudo_moves_from
from .pieces import Color, Square
from .position import Position


FIFTY_MOVE_PLIES = 100


class GameStatus(str, Enum):
    NORMAL = "normal"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_FIFTY = "draw-by-fifty"

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.CHECKMATE, GameStatus.STALEMATE, GameStatus.DRAW_FIFTY)


def is_legal(position: Position, move: Move) -> bool:
    """Whether a pseudo-legal ``move`` keeps the mover's king safe.

    The move is tried on the live position and undone before returning.
    Castling is also refused when the king starts in check or crosses an
    attacked square.
    """
    color = move.piece.color
    enemy = color.opponent
    if move.castle is not None:
        if is_attacked(position, move.from_sq, enemy):
            return False
        passed = Square(move.from_sq.rank, (move.from_sq.file + move.to_sq.file) // 2)
        if is_attacked(position, passed, enemy):
            return False
    with position.trial(move) as after:
        return not is_attacked(after, find_king(after, color), enemy)


def legal_moves(position: Position, color: Optional[Color] = None) -> List[Move]:
    """Legal moves for ``color`` (default: the side to move)."""
    color = color or position.side_to_move
    return [m for m in pseudo_moves(position, color) if is_legal(position, m)]


def legal_moves_from(position: Position, square: Square) -> List[Move]:
    """Legal moves of the piece on ``square``; empty if the square is empty."""
    return [m for m in pseudo_moves_from(position, square) if is_legal(position, m)]


def has_legal_moves(position: Position, color: Optional[Color] = None) -> bool:
    color = color or position.side_to_move
    return any(is_legal(position, m) for m in pseudo_moves(position, color))


def game_status(position: Position) -> GameStatus:
    """Classify the position for the side to move.

    Checkmate and stalemate come first; a plain check is reported before
    the fifty-move draw is considered.
    """
    color = position.side_to_move
    checked = in_check(position, color)
    if not has_legal_moves(position, color):
        return GameStatus.CHECKMATE if checked else GameStatus.STALEMATE
    if checked:
        return GameStatus.CHECK
    if position.halfmove_clock >= FIFTY_MOVE_PLIES:
        return GameStatus.DRAW_FIFTY
    return GameStatus.NORMAL
