from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


FILES = "abcdefgh"


class Color(str, Enum):
    """Side of a piece; the value is the FEN side-to-move letter."""

    WHITE = "w"
    BLACK = "b"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def pawn_direction(self) -> int:
        # Ranks are counted from the top, so white pawns move toward rank 0.
        return -1 if self is Color.WHITE else 1

    @property
    def home_rank(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def promotion_rank(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceKind(str, Enum):
    """Piece kind; the value is the lowercase FEN letter."""

    PAWN = "p"
    KNIGHT = "n"
    BISHOP = "b"
    ROOK = "r"
    QUEEN = "q"
    KING = "k"


PROMOTION_KINDS = (PieceKind.QUEEN, PieceKind.ROOK, PieceKind.BISHOP, PieceKind.KNIGHT)


@dataclass(frozen=True)
class Piece:
    """Immutable piece value.

    Attributes:
        kind (PieceKind): What the piece is.
        color (Color): Which side owns it.
    """

    kind: PieceKind
    color: Color

    @property
    def symbol(self) -> str:
        """FEN character, uppercase for white."""
        return self.kind.value.upper() if self.color is Color.WHITE else self.kind.value

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        """Create a piece from its FEN character.

        Raises:
            ValueError: If ``ch`` is not one of ``PNBRQKpnbrqk``.
        """
        try:
            kind = PieceKind(ch.lower())
        except ValueError:
            raise ValueError(f"invalid piece in FEN: {ch!r}") from None
        return cls(kind, Color.WHITE if ch.isupper() else Color.BLACK)

    def promoted(self, kind: PieceKind) -> "Piece":
        return Piece(kind, self.color)


class Square(NamedTuple):
    """Board coordinate; rank 0 is the eighth rank, file 0 is the a-file."""

    rank: int
    file: int

    @property
    def name(self) -> str:
        return square_to_str(self)

    def offset(self, d_rank: int, d_file: int) -> "Square | None":
        r = self.rank + d_rank
        f = self.file + d_file
        if 0 <= r < 8 and 0 <= f < 8:
            return Square(r, f)
        return None


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a square.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: The corresponding (rank, file) pair.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return Square(8 - int(s[1]), FILES.index(s[0]))


def square_to_str(sq: Square) -> str:
    """Convert a square into algebraic notation.

    Raises:
        ValueError: If ``sq`` lies off the board.
    """
    rank, file = sq
    if not (0 <= rank < 8 and 0 <= file < 8):
        raise ValueError(f"invalid square: {sq!r}")
    return FILES[file] + str(8 - rank)
