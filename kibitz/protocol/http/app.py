from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from starlette.concurrency import run_in_threadpool

from .error import (
    exception_handler,
    game_exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .models import (
    CreateGameRequest,
    EngineReply,
    GameOptions,
    GameState,
    HintResponse,
    MoveRequest,
    PendingPromotionState,
    PerftRequest,
    PromotionRequest,
    SearchRequest,
    SearchResponse,
    SetPositionRequest,
    SquareMoves,
)
from .session import GameSession, InMemorySessionStore
from ...book import open_book
from ...engine.attacks import in_check
from ...engine.game import (
    Game,
    GameOverError,
    IllegalMoveError,
    PromotionPendingError,
    validate_position,
)
from ...engine.move import Move, parse_promotion
from ...engine.movegen import expand_promotions
from ...engine.perft import perft as perft_nodes
from ...engine.pieces import square_to_str, str_to_square
from ...engine.position import Position
from ...search.selector import MoveSelector, suggest_hint
from ...search.service import SearchConfig, SearchService


logger = logging.getLogger(__name__)


def create_app(log_level: str = "INFO", book_path: Optional[str] = None) -> FastAPI:
    """Build the HTTP API.

    Args:
        log_level (str): Root logging level name.
        book_path (Optional[str]): JSON opening book; the built-in lines
            are used when omitted.
    """
    app = FastAPI(title="kibitz", version="0.1.0")

    logging.basicConfig(level=log_level.upper())

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    for exc_type in (IllegalMoveError, GameOverError, PromotionPendingError, ValueError):
        app.add_exception_handler(exc_type, game_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    service = SearchService()
    selector = MoveSelector(service=service, book=open_book(book_path))

    async def engine_turn(session: GameSession) -> Optional[EngineReply]:
        """Let the engine reply when it is its move in a player-vs-engine game."""
        game, options = session.game, session.options
        if options.mode != "pva" or game.is_over or game.pending is not None:
            return None
        if game.position.side_to_move.value != options.ai_color:
            return None
        return await play_engine_move(session)

    async def play_engine_move(session: GameSession) -> EngineReply:
        game = session.game
        choice = await selector.choose_async(game, _search_config(session.options))
        res = choice.result
        reply = EngineReply(
            move=None,
            san=None,
            source=choice.source,
            depth=res.depth if res else None,
            score=res.score if res else None,
            nodes=res.nodes if res else None,
            time_ms=res.time_ms if res else None,
        )
        if choice.move is not None:
            game.commit(choice.move)
            reply.move = choice.move.to_uci()
            reply.san = game.history[-1].san
        return reply

    def require_session(game_id: str) -> GameSession:
        session = store.get(game_id)
        if session is None:
            raise HTTPException(status_code=404, detail="game not found")
        return session

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=GameState)
    async def create_game(req: Optional[CreateGameRequest] = None) -> GameState:
        req = req or CreateGameRequest()
        game = Game.from_fen(req.fen) if req.fen else Game.new()
        game_id = store.create(game, req.options)
        session = require_session(game_id)
        logger.info(
            "game created",
            extra={"game_id": game_id, "mode": req.options.mode, "difficulty": req.options.difficulty},
        )
        async with session.lock:
            reply = await engine_turn(session)
            return _state(game_id, session, reply)

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        require_session(game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        session = require_session(game_id)
        return _state(game_id, session)

    @app.get("/api/games/{game_id}/moves", response_model=SquareMoves)
    async def moves_from(game_id: str, square: str = Query(..., min_length=2, max_length=2)) -> SquareMoves:
        session = require_session(game_id)
        moves = session.game.legal_moves_from(str_to_square(square))
        return SquareMoves(square=square, moves=_uci_list(moves))

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    async def make_move(game_id: str, req: MoveRequest) -> GameState:
        session = require_session(game_id)
        promotion = parse_promotion(req.promotion) if req.promotion else None
        from_sq, to_sq = str_to_square(req.from_square), str_to_square(req.to_square)
        async with session.lock:
            result = session.game.request_move(from_sq, to_sq, promotion)
            reply = None
            if isinstance(result, Move):
                reply = await engine_turn(session)
            return _state(game_id, session, reply)

    @app.post("/api/games/{game_id}/promotion", response_model=GameState)
    async def resolve_promotion(game_id: str, req: PromotionRequest) -> GameState:
        session = require_session(game_id)
        kind = parse_promotion(req.piece) if req.piece else None
        async with session.lock:
            move = session.game.resolve_promotion(req.token, kind)
            reply = await engine_turn(session) if move is not None else None
            return _state(game_id, session, reply)

    @app.post("/api/games/{game_id}/ai-move", response_model=GameState)
    async def ai_move(game_id: str) -> GameState:
        session = require_session(game_id)
        async with session.lock:
            game = session.game
            if game.pending is not None:
                raise PromotionPendingError("promotion choice pending")
            if game.is_over:
                raise GameOverError("game is over")
            reply = await play_engine_move(session)
            return _state(game_id, session, reply)

    @app.post("/api/games/{game_id}/search", response_model=SearchResponse)
    async def search(game_id: str, req: Optional[SearchRequest] = None) -> SearchResponse:
        req = req or SearchRequest()
        session = require_session(game_id)
        config = _search_config(session.options)
        if req.depth is not None:
            config = replace(config, max_depth=req.depth)
        if req.movetime_ms is not None:
            config = replace(config, time_budget_ms=req.movetime_ms)
        async with session.lock:
            res = await service.search_async(session.game.position, config)
        best = res.best_move or res.partial_move
        return SearchResponse(
            best_move=best.to_uci() if best else None,
            score=res.score,
            depth=res.depth,
            nodes=res.nodes,
            qnodes=res.qnodes,
            time_ms=res.time_ms,
            stopped=res.stopped,
            iters=[
                {
                    "depth": it.depth,
                    "completed": it.completed,
                    "best_move": it.best_move.to_uci() if it.best_move else None,
                    "score": it.score,
                    "nodes": it.nodes,
                    "time_ms": it.time_ms,
                }
                for it in res.iters
            ],
        )

    @app.post("/api/games/{game_id}/hint", response_model=HintResponse)
    async def hint(game_id: str) -> HintResponse:
        session = require_session(game_id)
        if not session.options.hints_enabled:
            raise HTTPException(status_code=403, detail="hints are disabled for this game")
        async with session.lock:
            if session.game.is_over:
                return HintResponse(move=None)
            move = suggest_hint(session.game.position)
        return HintResponse(move=move.to_uci() if move else None)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        session = require_session(game_id)
        if not session.options.undo_enabled:
            raise HTTPException(status_code=403, detail="undo is disabled for this game")
        async with session.lock:
            try:
                session.game.undo_move()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _state(game_id, session)

    @app.post("/api/games/{game_id}/reset", response_model=GameState)
    async def reset(game_id: str) -> GameState:
        session = require_session(game_id)
        async with session.lock:
            session.game.reset()
            reply = await engine_turn(session)
            return _state(game_id, session, reply)

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        session = require_session(game_id)
        try:
            game = Game.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        async with session.lock:
            session.game = game
            reply = await engine_turn(session)
            return _state(game_id, session, reply)

    @app.post("/api/perft")
    async def perft(req: PerftRequest) -> Dict[str, int]:
        try:
            position = validate_position(Position.from_fen(req.fen))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        nodes = await run_in_threadpool(perft_nodes, position, req.depth)
        return {"nodes": nodes}

    return app


def _search_config(options: GameOptions) -> SearchConfig:
    return SearchConfig.for_difficulty(
        options.difficulty,
        time_budget_ms=options.time_budget_ms,
        use_book=options.book_enabled,
    )


def _uci_list(moves) -> list[str]:
    return [m.to_uci() for m in expand_promotions(moves)]


def _state(game_id: str, session: GameSession, reply: Optional[EngineReply] = None) -> GameState:
    game = session.game
    history = game.move_history_uci()
    pending = None
    if game.pending is not None:
        pending = PendingPromotionState(
            token=game.pending.token,
            from_square=square_to_str(game.pending.move.from_sq),
            to_square=square_to_str(game.pending.move.to_sq),
        )
    side = game.position.side_to_move
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        side_to_move=side.value,
        status=game.status.value,
        in_check=in_check(game.position, side),
        is_over=game.is_over,
        legal_moves=[] if game.is_over else _uci_list(game.legal_moves()),
        last_move=history[-1] if history else None,
        move_history=history,
        san_history=game.san_history(),
        pending_promotion=pending,
        engine_move=reply,
        options=session.options,
    )


def app_from_env() -> FastAPI:
    """App factory configured from KIBITZ_LOG_LEVEL and KIBITZ_BOOK."""
    return create_app(
        log_level=os.environ.get("KIBITZ_LOG_LEVEL", "INFO"),
        book_path=os.environ.get("KIBITZ_BOOK") or None,
    )


# Default app for non-factory servers
app = app_from_env()
