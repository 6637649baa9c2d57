"""Evaluation heuristics.

Pure and deterministic: the position is tried and restored while counting
mobility but is never left changed.
"""

from __future__ import annotations

from typing import Dict, Final, Tuple

from kibitz.engine.legality import is_legal
from kibitz.engine.movegen import pseudo_moves
from kibitz.engine.pieces import Color, PieceKind
from kibitz.engine.position import Position


# Material values in centipawns
PIECE_VALUES: Final[Dict[PieceKind, int]] = {
    PieceKind.PAWN: 100,
    PieceKind.KNIGHT: 320,
    PieceKind.BISHOP: 330,
    PieceKind.ROOK: 500,
    PieceKind.QUEEN: 900,
    PieceKind.KING: 20000,
}

MOBILITY_WEIGHT: Final = 2

# Piece-square tables from white's point of view, eighth rank first, so
# index ``rank * 8 + file`` matches the board grid directly. Black reads
# the vertically mirrored entry. The rook and queen tables have no
# eighth-rank row and score 0 there.
PST: Final[Dict[PieceKind, Tuple[int, ...]]] = {
    PieceKind.PAWN: (
        0, 0, 0, 0, 0, 0, 0, 0,
        50, 50, 50, 50, 50, 50, 50, 50,
        10, 10, 20, 30, 30, 20, 10, 10,
        5, 5, 10, 25, 25, 10, 5, 5,
        0, 0, 0, 20, 20, 0, 0, 0,
        5, -5, -10, 0, 0, -10, -5, 5,
        5, 10, 10, -20, -20, 10, 10, 5,
        0, 0, 0, 0, 0, 0, 0, 0,
    ),
    PieceKind.KNIGHT: (
        -50, -40, -30, -30, -30, -30, -40, -50,
        -40, -20, 0, 0, 0, 0, -20, -40,
        -30, 0, 10, 15, 15, 10, 0, -30,
        -30, 5, 15, 20, 20, 15, 5, -30,
        -30, 0, 15, 20, 20, 15, 0, -30,
        -30, 5, 10, 15, 15, 10, 5, -30,
        -40, -20, 0, 5, 5, 0, -20, -40,
        -50, -40, -30, -30, -30, -30, -40, -50,
    ),
    PieceKind.BISHOP: (
        -20, -10, -10, -10, -10, -10, -10, -20,
        -10, 0, 0, 0, 0, 0, 0, -10,
        -10, 0, 5, 10, 10, 5, 0, -10,
        -10, 5, 5, 10, 10, 5, 5, -10,
        -10, 0, 10, 10, 10, 10, 0, -10,
        -10, 10, 10, 10, 10, 10, 10, -10,
        -10, 5, 0, 0, 0, 0, 5, -10,
        -20, -10, -10, -10, -10, -10, -10, -20,
    ),
    PieceKind.ROOK: (
        0, 0, 0, 0, 0, 0, 0, 0,
        0, 0, 0, 0, 0, 0, 0, 0,
        5, 10, 10, 10, 10, 10, 10, 5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        -5, 0, 0, 0, 0, 0, 0, -5,
        0, 0, 5, 10, 10, 5, 0, 0,
    ),
    PieceKind.QUEEN: (
        0, 0, 0, 0, 0, 0, 0, 0,
        -20, -10, -10, -5, -5, -10, -10, -20,
        -10, 5, 5, 5, 5, 5, 0, -10,
        0, 0, 5, 5, 5, 5, 0, -5,
        -5, 0, 5, 5, 5, 5, 0, -5,
        -10, 0, 5, 5, 5, 5, 0, -10,
        -10, 0, 0, 0, 0, 0, 0, -10,
        -20, -10, -10, -5, -5, -10, -10, -20,
    ),
    PieceKind.KING: (
        -30, -40, -40, -50, -50, -40, -40, -30,
        -30, -40, -40, -50, -50, -40, -40, -30,
        -30, -40, -40, -50, -50, -40, -40, -30,
        -30, -40, -40, -50, -50, -40, -40, -30,
        -20, -30, -30, -40, -40, -30, -30, -20,
        -10, -20, -20, -20, -20, -20, -20, -10,
        20, 20, 0, 0, 0, 0, 20, 20,
        20, 30, 10, 0, 0, 10, 30, 20,
    ),
}


def material_and_placement(position: Position) -> int:
    """Material plus piece-square score, white-positive."""
    score = 0
    for r, row in enumerate(position.board):
        for f, p in enumerate(row):
            if p is None:
                continue
            if p.color is Color.WHITE:
                score += PIECE_VALUES[p.kind] + PST[p.kind][r * 8 + f]
            else:
                score -= PIECE_VALUES[p.kind] + PST[p.kind][(7 - r) * 8 + f]
    return score


def mobility(position: Position, color: Color) -> int:
    """Number of legal moves ``color`` would have in this placement."""
    return sum(1 for m in pseudo_moves(position, color) if is_legal(position, m))


def evaluate(position: Position) -> int:
    """Static evaluation in centipawns; positive favours white.

    The mobility term is black's move count minus white's.
    """
    score = material_and_placement(position)
    score += (mobility(position, Color.BLACK) - mobility(position, Color.WHITE)) * MOBILITY_WEIGHT
    return score
