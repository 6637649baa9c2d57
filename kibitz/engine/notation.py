"""Short algebraic labels for the move list.

Simplified SAN: no disambiguation between identical pieces.
"""

from __future__ import annotations

from .legality import GameStatus, game_status
from .move import CastleSide, Move
from .pieces import FILES, PieceKind, square_to_str
from .position import Position


def move_to_san(move: Move, after: Position) -> str:
    """Label ``move`` given the position reached after playing it.

    Args:
        move (Move): A fully resolved move.
        after (Position): Position after the move, used for the check and
            mate suffixes.

    Returns:
        str: Label such as ``"e4"``, ``"exd5"``, ``"e8=Q"``, ``"Nxf3+"`` or
            ``"O-O"``.
    """
    if move.castle is CastleSide.KINGSIDE:
        label = "O-O"
    elif move.castle is CastleSide.QUEENSIDE:
        label = "O-O-O"
    else:
        dest = square_to_str(move.to_sq)
        if move.piece.kind is PieceKind.PAWN:
            label = f"{FILES[move.from_sq.file]}x{dest}" if move.is_capture else dest
            if move.promotion_kind is not None:
                label += "=" + move.promotion_kind.value.upper()
        else:
            cap = "x" if move.is_capture else ""
            label = f"{move.piece.kind.value.upper()}{cap}{dest}"

    status = game_status(after)
    if status is GameStatus.CHECKMATE:
        label += "#"
    elif status is GameStatus.CHECK:
        label += "+"
    return label
