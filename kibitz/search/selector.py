from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from kibitz.book import OpeningBook
from kibitz.engine.game import Game
from kibitz.engine.legality import legal_moves
from kibitz.engine.move import Move
from kibitz.engine.movegen import expand_promotions
from kibitz.engine.pieces import Color
from kibitz.engine.position import Position
from kibitz.eval import evaluate

from .service import SearchConfig, SearchResult, SearchService


logger = logging.getLogger(__name__)


@dataclass
class MoveChoice:
    """The engine's decision and where it came from.

    ``source`` is one of ``book``, ``search``, ``partial``, ``random`` or
    ``none`` (no legal move exists).
    """

    move: Optional[Move]
    source: str
    result: Optional[SearchResult] = None


class MoveSelector:
    """Picks the engine's move for the side to move of a game.

    Args:
        service (Optional[SearchService]): Search to run when the book is
            silent.
        book (Optional[OpeningBook]): Opening lines; None disables the book.
        rng (Optional[random.Random]): Source for the random fallback; a
            seeded one is created per call when ``config.seed`` is set.
    """

    def __init__(
        self,
        service: Optional[SearchService] = None,
        book: Optional[OpeningBook] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.service = service or SearchService()
        self.book = book
        self.rng = rng or random.Random()

    def choose(self, game: Game, config: Optional[SearchConfig] = None) -> MoveChoice:
        config = config or SearchConfig()
        choice = self._from_book(game, config)
        if choice is not None:
            return choice
        result = self.service.search(game.position, config)
        return self._from_result(game, config, result)

    async def choose_async(self, game: Game, config: Optional[SearchConfig] = None) -> MoveChoice:
        config = config or SearchConfig()
        choice = self._from_book(game, config)
        if choice is not None:
            return choice
        result = await self.service.search_async(game.position, config)
        return self._from_result(game, config, result)

    def _from_book(self, game: Game, config: SearchConfig) -> Optional[MoveChoice]:
        # Book lines are move sequences from the initial position only.
        if not config.use_book or self.book is None or not game.started_from_startpos:
            return None
        move = self.book.book_move(game.move_history_uci(), game.position)
        if move is None:
            return None
        return self._log(MoveChoice(move=move, source="book"))

    def _from_result(self, game: Game, config: SearchConfig, result: SearchResult) -> MoveChoice:
        if result.best_move is not None:
            return self._log(MoveChoice(result.best_move, "search", result))
        if result.partial_move is not None:
            return self._log(MoveChoice(result.partial_move, "partial", result))
        moves = expand_promotions(game.legal_moves())
        if not moves:
            return self._log(MoveChoice(None, "none", result))
        rng = random.Random(config.seed) if config.seed is not None else self.rng
        return self._log(MoveChoice(rng.choice(moves), "random", result))

    @staticmethod
    def _log(choice: MoveChoice) -> MoveChoice:
        res = choice.result
        logger.info(
            "engine move chosen",
            extra={
                "move": choice.move.to_uci() if choice.move else None,
                "source": choice.source,
                "depth": res.depth if res else None,
                "nodes": res.nodes if res else None,
                "time_ms": res.time_ms if res else None,
            },
        )
        return choice


def suggest_hint(position: Position) -> Optional[Move]:
    """One-ply look-ahead: the move with the best static evaluation.

    White maximises and black minimises ``evaluate``; ties keep the first
    move in generation order. Returns None when there is no legal move.
    """
    maximise = position.side_to_move is Color.WHITE
    best: Optional[Move] = None
    best_score = 0
    moves: List[Move] = expand_promotions(legal_moves(position))
    for m in moves:
        with position.trial(m):
            score = evaluate(position)
        if best is None or (score > best_score if maximise else score < best_score):
            best, best_score = m, score
    return best
