from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from .attacks import in_check
from .legality import GameStatus, game_status, legal_moves, legal_moves_from
from .move import Move, MoveIntent, parse_uci
from .notation import move_to_san
from .pieces import Color, PieceKind, Square
from .position import STARTPOS_FEN, Position, PositionSnapshot


class IllegalMoveError(ValueError):
    """The requested move is not legal in the current position."""


class GameOverError(ValueError):
    """A move was requested after the game reached a terminal status."""


class PromotionPendingError(ValueError):
    """Another move was requested while a promotion choice is outstanding."""


def validate_position(position: Position) -> Position:
    """Reject placements the move generator cannot play from.

    Each side needs exactly one king, and the side that just moved must
    not be left in check.

    Raises:
        ValueError: If either condition fails.
    """
    for color in Color:
        kings = sum(1 for _, p in position.pieces(color) if p.kind is PieceKind.KING)
        if kings != 1:
            raise ValueError(f"{color.name.lower()} must have exactly one king")
    if in_check(position, position.side_to_move.opponent):
        raise ValueError("side not to move is in check")
    return position


@dataclass
class HistoryEntry:
    """One committed move and the exact position it was played from."""

    move: Move
    before: PositionSnapshot
    san: str


@dataclass(frozen=True)
class PendingPromotion:
    """Phase-one result of a promotion move whose piece is not chosen yet."""

    token: str
    move: Move


@dataclass
class Game:
    """Game wrapper around a position with helper operations.

    Responsibility: own the position, validate and commit moves, keep the
    undo history, and re-evaluate the game status after every change.
    """

    position: Position
    history: List[HistoryEntry] = field(default_factory=list)
    start_fen: str = STARTPOS_FEN
    pending: Optional[PendingPromotion] = None
    status: GameStatus = field(init=False, default=GameStatus.NORMAL)

    def __post_init__(self) -> None:
        self.status = game_status(self.position)

    @classmethod
    def new(cls) -> "Game":
        return cls(position=Position.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        """Start a game from a FEN position.

        Raises:
            ValueError: If the FEN is malformed or the position could not
                arise in play (see ``validate_position``).
        """
        position = validate_position(Position.from_fen(fen))
        return cls(position=position, start_fen=position.to_fen())

    def to_fen(self) -> str:
        return self.position.to_fen()

    @property
    def started_from_startpos(self) -> bool:
        return self.start_fen == STARTPOS_FEN

    @property
    def is_over(self) -> bool:
        return self.status.is_terminal

    def legal_moves(self) -> List[Move]:
        return legal_moves(self.position)

    def legal_moves_from(self, square: Square) -> List[Move]:
        """Legal moves of the piece on ``square`` if it belongs to the side to move."""
        piece = self.position.piece_at(square)
        if piece is None or piece.color is not self.position.side_to_move:
            return []
        return legal_moves_from(self.position, square)

    # --- Move requests ---
    def request_move(
        self, from_sq: Square, to_sq: Square, promotion: Optional[PieceKind] = None
    ) -> Union[Move, PendingPromotion]:
        """Validate and commit a move, or park it awaiting a promotion piece.

        Returns:
            Union[Move, PendingPromotion]: The committed move, or a pending
                token when the move promotes and ``promotion`` is None.

        Raises:
            IllegalMoveError: If no legal move matches; nothing changes.
            GameOverError: If the game already ended.
            PromotionPendingError: If an earlier promotion is unresolved.
        """
        self._ensure_can_move()
        intent = MoveIntent(from_sq, to_sq, promotion)
        match = next((m for m in self.legal_moves_from(from_sq) if intent.matches(m)), None)
        if match is None:
            raise IllegalMoveError("illegal move")
        if match.promotion:
            if promotion is None:
                self.pending = PendingPromotion(token=uuid.uuid4().hex, move=match)
                return self.pending
            match = match.with_promotion(promotion)
        elif promotion is not None:
            raise IllegalMoveError("illegal move")
        self._commit(match)
        return match

    def request_uci(self, uci: str) -> Union[Move, PendingPromotion]:
        intent = parse_uci(uci)
        return self.request_move(intent.from_sq, intent.to_sq, intent.promotion)

    def resolve_promotion(self, token: str, kind: Optional[PieceKind]) -> Optional[Move]:
        """Finish (or abandon, when ``kind`` is None) a pending promotion.

        Raises:
            IllegalMoveError: If ``token`` does not name the pending move.
        """
        pending = self.pending
        if pending is None or pending.token != token:
            raise IllegalMoveError("no such pending promotion")
        self.pending = None
        if kind is None:
            return None
        move = pending.move.with_promotion(kind)
        self._commit(move)
        return move

    def commit(self, move: Move) -> Move:
        """Commit a fully resolved move such as the engine's choice.

        Raises:
            IllegalMoveError: If the move is not legal or still needs a
                promotion piece.
        """
        self._ensure_can_move()
        generated = replace(move, promotion_kind=None) if move.promotion else move
        if move.needs_promotion_choice or generated not in self.legal_moves_from(move.from_sq):
            raise IllegalMoveError("illegal move")
        self._commit(move)
        return move

    def _ensure_can_move(self) -> None:
        if self.pending is not None:
            raise PromotionPendingError("promotion choice pending")
        if self.is_over:
            raise GameOverError("game is over")

    def _commit(self, move: Move) -> None:
        before = self.position.snapshot()
        self.position.apply_move(move)
        self.history.append(HistoryEntry(move=move, before=before, san=move_to_san(move, self.position)))
        self.status = game_status(self.position)

    # --- Undo / reset ---
    def undo_move(self) -> Move:
        if not self.history:
            raise ValueError("no moves to undo")
        entry = self.history.pop()
        self.position.restore(entry.before)
        self.pending = None
        self.status = game_status(self.position)
        return entry.move

    def reset(self) -> None:
        self.position = Position.from_fen(self.start_fen)
        self.history.clear()
        self.pending = None
        self.status = game_status(self.position)

    def move_history_uci(self) -> List[str]:
        return [h.move.to_uci() for h in self.history]

    def san_history(self) -> List[str]:
        return [h.san for h in self.history]
