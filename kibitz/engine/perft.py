from __future__ import annotations

from typing import Dict

from .legality import legal_moves
from .movegen import expand_promotions
from .position import Position


def perft(position: Position, depth: int) -> int:
    """Compute perft node count for ``position`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Each promotion counts as four moves. The position is left unchanged.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = expand_promotions(legal_moves(position))
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        with position.trial(m):
            nodes += perft(position, depth - 1)
    return nodes


def divide(position: Position, depth: int) -> Dict[str, int]:
    """Per-root-move perft counts, keyed by coordinate notation."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: Dict[str, int] = {}
    for m in expand_promotions(legal_moves(position)):
        with position.trial(m):
            out[m.to_uci()] = perft(position, depth - 1)
    return out
