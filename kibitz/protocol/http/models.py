from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class GameOptions(BaseModel):
    mode: Literal["pva", "pvp"] = "pva"
    ai_color: Literal["w", "b"] = "b"
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    time_budget_ms: int = Field(default=1500, ge=1, le=60_000)
    book_enabled: bool = True
    undo_enabled: bool = True
    hints_enabled: bool = True


class CreateGameRequest(BaseModel):
    options: GameOptions = Field(default_factory=GameOptions)
    fen: Optional[str] = Field(default=None, description="Start position; initial position when omitted")


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    from_square: str = Field(..., min_length=2, max_length=2, description="Origin square, e.g. e2")
    to_square: str = Field(..., min_length=2, max_length=2, description="Destination square, e.g. e4")
    promotion: Optional[str] = Field(default=None, description="q, r, b or n")


class PromotionRequest(BaseModel):
    token: str
    piece: Optional[str] = Field(default=None, description="q, r, b or n; omit to abandon the move")


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=8)
    movetime_ms: Optional[int] = Field(default=None, ge=1)


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0, le=6)


class PendingPromotionState(BaseModel):
    token: str
    from_square: str
    to_square: str


class EngineReply(BaseModel):
    move: Optional[str]
    san: Optional[str]
    source: str
    depth: Optional[int] = None
    score: Optional[int] = None
    nodes: Optional[int] = None
    time_ms: Optional[int] = None


class GameState(BaseModel):
    game_id: str
    fen: str
    side_to_move: str
    status: str
    in_check: bool
    is_over: bool
    legal_moves: list[str]
    last_move: Optional[str]
    move_history: list[str]
    san_history: list[str]
    pending_promotion: Optional[PendingPromotionState] = None
    engine_move: Optional[EngineReply] = None
    options: GameOptions


class SquareMoves(BaseModel):
    square: str
    moves: list[str]


class SearchResponse(BaseModel):
    best_move: Optional[str]
    score: Optional[int]
    depth: int
    nodes: int
    qnodes: int
    time_ms: int
    stopped: bool
    iters: list[Dict[str, Any]]


class HintResponse(BaseModel):
    move: Optional[str]
