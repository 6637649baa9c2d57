from __future__ import annotations

from typing import Set, Tuple

from .pieces import Color, Piece, PieceKind, Square
from .position import Position


KNIGHT_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1),
)
KING_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1),
)
DIAGONALS: Tuple[Tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ORTHOGONALS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))

SLIDER_DIRECTIONS = {
    PieceKind.BISHOP: DIAGONALS,
    PieceKind.ROOK: ORTHOGONALS,
    PieceKind.QUEEN: DIAGONALS + ORTHOGONALS,
}


class MissingKingError(RuntimeError):
    """A side has no king on the board; positions reached by play never do this."""


def attacks_from(position: Position, square: Square, piece: Piece) -> Set[Square]:
    """Squares ``piece`` standing on ``square`` could capture on right now.

    Pawns attack diagonally forward only. Sliders stop at the first occupied
    square, which is included whatever its color.
    """
    board = position.board
    r, f = square
    out: Set[Square] = set()
    kind = piece.kind
    if kind is PieceKind.PAWN:
        tr = r + piece.color.pawn_direction
        if 0 <= tr < 8:
            for df in (-1, 1):
                if 0 <= f + df < 8:
                    out.add(Square(tr, f + df))
    elif kind is PieceKind.KNIGHT or kind is PieceKind.KING:
        offsets = KNIGHT_OFFSETS if kind is PieceKind.KNIGHT else KING_OFFSETS
        for dr, df in offsets:
            tr, tf = r + dr, f + df
            if 0 <= tr < 8 and 0 <= tf < 8:
                out.add(Square(tr, tf))
    else:
        for dr, df in SLIDER_DIRECTIONS[kind]:
            tr, tf = r + dr, f + df
            while 0 <= tr < 8 and 0 <= tf < 8:
                out.add(Square(tr, tf))
                if board[tr][tf] is not None:
                    break
                tr += dr
                tf += df
    return out


def is_attacked(position: Position, square: Square, by_color: Color) -> bool:
    """Whether any piece of ``by_color`` attacks ``square``.

    Looks outward from the target square instead of building every attack
    set, which gives the same answer as scanning ``attacks_from`` for each
    piece of ``by_color``.
    """
    board = position.board
    r, f = square

    # Pawns: an attacking pawn stands one rank "behind" the square from its
    # own point of view.
    pr = r - by_color.pawn_direction
    if 0 <= pr < 8:
        for df in (-1, 1):
            pf = f + df
            if 0 <= pf < 8:
                p = board[pr][pf]
                if p is not None and p.color is by_color and p.kind is PieceKind.PAWN:
                    return True

    for dr, df in KNIGHT_OFFSETS:
        tr, tf = r + dr, f + df
        if 0 <= tr < 8 and 0 <= tf < 8:
            p = board[tr][tf]
            if p is not None and p.color is by_color and p.kind is PieceKind.KNIGHT:
                return True

    for dr, df in KING_OFFSETS:
        tr, tf = r + dr, f + df
        if 0 <= tr < 8 and 0 <= tf < 8:
            p = board[tr][tf]
            if p is not None and p.color is by_color and p.kind is PieceKind.KING:
                return True

    for dirs, kinds in (
        (DIAGONALS, (PieceKind.BISHOP, PieceKind.QUEEN)),
        (ORTHOGONALS, (PieceKind.ROOK, PieceKind.QUEEN)),
    ):
        for dr, df in dirs:
            tr, tf = r + dr, f + df
            while 0 <= tr < 8 and 0 <= tf < 8:
                p = board[tr][tf]
                if p is not None:
                    if p.color is by_color and p.kind in kinds:
                        return True
                    break
                tr += dr
                tf += df
    return False


def find_king(position: Position, color: Color) -> Square:
    """Locate ``color``'s king.

    Raises:
        MissingKingError: If the king is not on the board.
    """
    for r, row in enumerate(position.board):
        for f, p in enumerate(row):
            if p is not None and p.kind is PieceKind.KING and p.color is color:
                return Square(r, f)
    raise MissingKingError(f"no {color.name.lower()} king on board")


def in_check(position: Position, color: Color) -> bool:
    return is_attacked(position, find_king(position, color), color.opponent)
