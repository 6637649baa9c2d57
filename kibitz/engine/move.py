from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .pieces import Piece, PieceKind, PROMOTION_KINDS, Square, square_to_str, str_to_square


PROMOTION_LETTERS = {k.value: k for k in PROMOTION_KINDS}


class CastleSide(str, Enum):
    KINGSIDE = "K"
    QUEENSIDE = "Q"


@dataclass(frozen=True)
class Move:
    """Engine move record.

    Carries enough information to describe the move without looking at the
    board again: what moved, what it took, and which special rule applies.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
        piece (Piece): Snapshot of the moving piece.
        captured (Optional[Piece]): Snapshot of the captured piece, if any.
            For en passant this is the pawn beside the origin square.
        promotion (bool): True when a pawn reaches the far rank.
        promotion_kind (Optional[PieceKind]): Chosen promotion piece; ``None``
            while the choice is still open.
        en_passant (bool): True for en-passant captures.
        double_push (bool): True for two-square pawn advances.
        castle (Optional[CastleSide]): Castling side for castling moves.
    """

    from_sq: Square
    to_sq: Square
    piece: Piece
    captured: Optional[Piece] = None
    promotion: bool = False
    promotion_kind: Optional[PieceKind] = None
    en_passant: bool = False
    double_push: bool = False
    castle: Optional[CastleSide] = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def needs_promotion_choice(self) -> bool:
        return self.promotion and self.promotion_kind is None

    def with_promotion(self, kind: PieceKind) -> "Move":
        """Return a copy with the promotion piece resolved.

        Raises:
            ValueError: If this is not a promotion or ``kind`` cannot be
                promoted to.
        """
        if not self.promotion:
            raise ValueError("not a promotion move")
        if kind not in PROMOTION_KINDS:
            raise ValueError(f"invalid promotion piece: {kind!r}")
        return replace(self, promotion_kind=kind)

    def to_uci(self) -> str:
        """Serialize the move into coordinate notation.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``; an unresolved
                promotion has no suffix.
        """
        suffix = self.promotion_kind.value if self.promotion_kind else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + suffix

    def __str__(self) -> str:
        return self.to_uci()


@dataclass(frozen=True)
class MoveIntent:
    """A requested move before it is matched against the legal moves."""

    from_sq: Square
    to_sq: Square
    promotion: Optional[PieceKind] = None

    def matches(self, move: Move) -> bool:
        return move.from_sq == self.from_sq and move.to_sq == self.to_sq


def parse_promotion(letter: str) -> PieceKind:
    """Parse a promotion letter (``q``, ``r``, ``b`` or ``n``, any case).

    Raises:
        ValueError: For any other letter.
    """
    kind = PROMOTION_LETTERS.get(letter.lower())
    if kind is None:
        raise ValueError(f"invalid promotion piece: {letter!r}")
    return kind


def parse_uci(uci: str) -> MoveIntent:
    """Parse a coordinate-notation move string.

    Args:
        uci (str): Move such as ``"e2e4"`` or ``"e7e8q"``.

    Returns:
        MoveIntent: Parsed squares and optional promotion piece.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[PieceKind] = None
    if len(uci) == 5:
        promo = parse_promotion(uci[4])
    return MoveIntent(from_sq, to_sq, promo)
