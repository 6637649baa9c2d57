from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

from kibitz.engine.attacks import in_check
from kibitz.engine.legality import FIFTY_MOVE_PLIES, legal_moves
from kibitz.engine.move import Move
from kibitz.engine.movegen import expand_promotions
from kibitz.engine.pieces import Color
from kibitz.engine.position import Position
from kibitz.eval import PIECE_VALUES, evaluate


logger = logging.getLogger(__name__)

INF = 10_000_000
MATE_SCORE = 1_000_000  # mate scores are within +/- MATE_SCORE window

DIFFICULTY_DEPTHS = {"easy": 2, "medium": 4, "hard": 5}
DEFAULT_DEPTH = 3
DEFAULT_TIME_BUDGET_MS = 1500


@dataclass
class SearchConfig:
    """Knobs for one engine decision.

    Attributes:
        max_depth (int): Deepest iterative-deepening iteration.
        time_budget_ms (Optional[int]): Wall-clock budget; None searches
            every depth to completion.
        use_book (bool): Consult the opening book before searching.
        quiescence_max_depth (int): Cap on capture-only plies past the horizon.
        seed (Optional[int]): Seed for the random-move fallback.
    """

    max_depth: int = DEFAULT_DEPTH
    time_budget_ms: Optional[int] = DEFAULT_TIME_BUDGET_MS
    use_book: bool = True
    quiescence_max_depth: int = 8
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        if self.time_budget_ms is not None and self.time_budget_ms <= 0:
            raise ValueError("time_budget_ms must be positive")
        if self.quiescence_max_depth < 0:
            raise ValueError("quiescence_max_depth must be >= 0")

    @classmethod
    def for_difficulty(cls, difficulty: str, **overrides) -> "SearchConfig":
        """Config for an ``easy``/``medium``/``hard`` tier; unknown tiers get depth 3."""
        depth = DIFFICULTY_DEPTHS.get(difficulty, DEFAULT_DEPTH)
        return cls(max_depth=depth, **overrides)


@dataclass
class IterationInfo:
    depth: int
    completed: bool
    best_move: Optional[Move]
    score: Optional[int]  # white-positive; None when the iteration was aborted
    nodes: int
    qnodes: int
    time_ms: int


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: Optional[int]
    depth: int
    nodes: int
    qnodes: int
    time_ms: int
    stopped: bool
    partial_move: Optional[Move] = None
    iters: List[IterationInfo] = field(default_factory=list)


def move_order_key(move: Move) -> int:
    """Ordering score: captures by victim value, then promotions (queen first)."""
    score = 0
    if move.captured is not None:
        score += 1000 + PIECE_VALUES[move.captured.kind]
    if move.promotion:
        score += 800
        if move.promotion_kind is not None:
            score += PIECE_VALUES[move.promotion_kind] // 10
    return score


def order_moves(moves: List[Move], first: Optional[Move] = None) -> List[Move]:
    ordered = sorted(moves, key=move_order_key, reverse=True)
    if first is not None and first in ordered:
        ordered.remove(first)
        ordered.insert(0, first)
    return ordered


class SearchRun:
    """One iterative-deepening search over a borrowed position.

    Iterating the run performs depth 1, 2, ... and yields an
    ``IterationInfo`` after each; the caller regains control between depths.
    The position is restored after every trial move, so it is unchanged
    whenever control is handed back.
    """

    def __init__(self, position: Position, config: SearchConfig) -> None:
        self.position = position
        self.config = config
        self.nodes = 0
        self.qnodes = 0
        self.stopped = False
        self._start = time.perf_counter()
        self._deadline: Optional[float] = (
            self._start + config.time_budget_ms / 1000 if config.time_budget_ms else None
        )
        self._sign = 1 if position.side_to_move is Color.WHITE else -1
        self._root_moves = expand_promotions(legal_moves(position))
        self.completed_depth = 0
        self.best_move: Optional[Move] = None
        self.best_score: Optional[int] = None
        self.partial_move: Optional[Move] = None
        self.iters: List[IterationInfo] = []

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._start) * 1000)

    def out_of_time(self) -> bool:
        if self._deadline is None or self.stopped:
            return self.stopped
        if time.perf_counter() >= self._deadline:
            self.stopped = True
        return self.stopped

    def __iter__(self) -> Iterator[IterationInfo]:
        if not self._root_moves:
            self.best_score = self._sign * self._terminal_score(0)
            return
        for depth in range(1, self.config.max_depth + 1):
            if self.out_of_time():
                break
            nodes_before, qnodes_before = self.nodes, self.qnodes
            iter_start = time.perf_counter()
            score, move = self._search_root(depth)
            info = IterationInfo(
                depth=depth,
                completed=score is not None,
                best_move=move,
                score=None if score is None else self._sign * score,
                nodes=self.nodes - nodes_before,
                qnodes=self.qnodes - qnodes_before,
                time_ms=int((time.perf_counter() - iter_start) * 1000),
            )
            self.iters.append(info)
            if score is None:
                # Discard the aborted depth; keep its best root move only as a
                # last resort when nothing completed.
                if self.completed_depth == 0 and self.partial_move is None:
                    self.partial_move = move
                yield info
                break
            self.completed_depth = depth
            self.best_move = move
            self.best_score = info.score
            logger.debug(
                "search depth complete",
                extra={
                    "depth": depth,
                    "move": move.to_uci() if move else None,
                    "score": info.score,
                    "nodes": info.nodes,
                },
            )
            yield info

    def result(self) -> SearchResult:
        return SearchResult(
            best_move=self.best_move,
            score=self.best_score,
            depth=self.completed_depth,
            nodes=self.nodes,
            qnodes=self.qnodes,
            time_ms=self.elapsed_ms(),
            stopped=self.stopped,
            partial_move=self.partial_move,
            iters=list(self.iters),
        )

    # --- Tree search; scores are from the side to move's point of view and
    # None means the deadline passed. ---
    def _search_root(self, depth: int) -> Tuple[Optional[int], Optional[Move]]:
        pos = self.position
        alpha, beta = -INF, INF
        best_score = -INF
        best_move: Optional[Move] = None
        for m in order_moves(self._root_moves, first=self.best_move):
            with pos.trial(m):
                child = self._negamax(depth - 1, -beta, -alpha, 1)
            if child is None:
                return None, best_move
            score = -child
            if score > best_score:
                best_score, best_move = score, m
            if score > alpha:
                alpha = score
        return best_score, best_move

    def _negamax(self, depth: int, alpha: int, beta: int, ply: int) -> Optional[int]:
        if self.out_of_time():
            return None
        self.nodes += 1
        pos = self.position
        moves = legal_moves(pos)
        if moves and pos.halfmove_clock >= FIFTY_MOVE_PLIES:
            return 0
        if depth <= 0 or not moves:
            return self._quiesce(alpha, beta, ply, 0, moves)

        best = -INF
        for m in order_moves(expand_promotions(moves)):
            with pos.trial(m):
                child = self._negamax(depth - 1, -beta, -alpha, ply + 1)
            if child is None:
                return None
            score = -child
            if score > best:
                best = score
            if score > alpha:
                alpha = score
            if alpha >= beta:
                break
        return best

    def _quiesce(
        self, alpha: int, beta: int, ply: int, qdepth: int, moves: Optional[List[Move]] = None
    ) -> Optional[int]:
        if self.out_of_time():
            return None
        self.nodes += 1
        self.qnodes += 1
        pos = self.position
        if moves is None:
            moves = legal_moves(pos)
        if not moves:
            return self._terminal_score(ply)

        stand_pat = evaluate(pos) * (1 if pos.side_to_move is Color.WHITE else -1)
        if stand_pat >= beta:
            return stand_pat
        if stand_pat > alpha:
            alpha = stand_pat
        if qdepth >= self.config.quiescence_max_depth:
            return alpha

        captures = order_moves(expand_promotions([m for m in moves if m.is_capture]))
        for m in captures:
            with pos.trial(m):
                child = self._quiesce(-beta, -alpha, ply + 1, qdepth + 1)
            if child is None:
                return None
            score = -child
            if score >= beta:
                return score
            if score > alpha:
                alpha = score
        return alpha

    def _terminal_score(self, ply: int) -> int:
        # Side to move has no legal moves: mated (quicker mates score higher
        # for the winner) or stalemated.
        if in_check(self.position, self.position.side_to_move):
            return -MATE_SCORE + ply
        return 0


class SearchService:
    """Time-bounded iterative-deepening alpha-beta search with quiescence."""

    def iterate(self, position: Position, config: Optional[SearchConfig] = None) -> SearchRun:
        """Start a search driven by the caller, one depth per step.

        Iterating the returned run yields an ``IterationInfo`` per depth;
        ``run.result()`` summarises whatever has been searched so far.
        """
        return SearchRun(position, config or SearchConfig())

    def search(
        self,
        position: Position,
        config: Optional[SearchConfig] = None,
        *,
        on_iter: Optional[Callable[[IterationInfo], None]] = None,
    ) -> SearchResult:
        """Search ``position`` for the side to move.

        Args:
            position (Position): Borrowed position; it is identical to its
                original state when this returns.
            config (Optional[SearchConfig]): Depth and time limits.
            on_iter (Optional[Callable]): Called after every iteration.

        Returns:
            SearchResult: Deepest completed result plus statistics.
        """
        run = self.iterate(position, config)
        for info in run:
            if on_iter is not None:
                on_iter(info)
        return run.result()

    async def search_async(
        self,
        position: Position,
        config: Optional[SearchConfig] = None,
        *,
        on_iter: Optional[Callable[[IterationInfo], None]] = None,
    ) -> SearchResult:
        """Like ``search`` but yields to the event loop between depths."""
        run = self.iterate(position, config)
        await asyncio.sleep(0)
        for info in run:
            if on_iter is not None:
                on_iter(info)
            await asyncio.sleep(0)
        return run.result()

    def best_move(self, position: Position, config: Optional[SearchConfig] = None) -> Optional[Move]:
        res = self.search(position, config)
        return res.best_move or res.partial_move
