from __future__ import annotations

import pytest

from kibitz.engine.game import (
    Game,
    GameOverError,
    IllegalMoveError,
    PendingPromotion,
    PromotionPendingError,
    validate_position,
)
from kibitz.engine.legality import GameStatus
from kibitz.engine.move import Move
from kibitz.engine.pieces import PieceKind, str_to_square
from kibitz.engine.position import STARTPOS_FEN, Position


PROMO_FEN = "k7/4P3/8/8/8/8/8/4K3 w - - 0 1"


def sq(name: str):
    return str_to_square(name)


def test_request_move_commits_legal_move() -> None:
    g = Game.new()
    result = g.request_move(sq("e2"), sq("e4"))
    assert isinstance(result, Move)
    assert g.move_history_uci() == ["e2e4"]
    assert g.status is GameStatus.NORMAL


def test_illegal_move_raises_without_mutation() -> None:
    g = Game.new()
    with pytest.raises(IllegalMoveError):
        g.request_move(sq("e2"), sq("e5"))
    with pytest.raises(IllegalMoveError):
        g.request_move(sq("e7"), sq("e5"))  # not white's piece
    with pytest.raises(IllegalMoveError):
        g.request_move(sq("e4"), sq("e5"))  # empty square
    assert g.to_fen() == STARTPOS_FEN
    assert g.history == []


def test_promotion_letter_on_normal_move_rejected() -> None:
    g = Game.new()
    with pytest.raises(IllegalMoveError):
        g.request_move(sq("e2"), sq("e4"), PieceKind.QUEEN)


def test_two_phase_promotion() -> None:
    g = Game.from_fen(PROMO_FEN)
    pending = g.request_move(sq("e7"), sq("e8"))
    assert isinstance(pending, PendingPromotion)
    # Position untouched until the piece is chosen
    assert g.to_fen() == PROMO_FEN

    with pytest.raises(PromotionPendingError):
        g.request_move(sq("e1"), sq("d1"))

    move = g.resolve_promotion(pending.token, PieceKind.ROOK)
    assert move is not None and move.promotion_kind is PieceKind.ROOK
    assert g.position.piece_at(sq("e8")).kind is PieceKind.ROOK
    assert g.pending is None
    assert g.san_history() == ["e8=R+"]


def test_abandoned_promotion_leaves_position_unchanged() -> None:
    g = Game.from_fen(PROMO_FEN)
    pending = g.request_move(sq("e7"), sq("e8"))
    assert g.resolve_promotion(pending.token, None) is None
    assert g.to_fen() == PROMO_FEN
    assert g.pending is None
    assert g.history == []


def test_stale_promotion_token_rejected() -> None:
    g = Game.from_fen(PROMO_FEN)
    g.request_move(sq("e7"), sq("e8"))
    with pytest.raises(IllegalMoveError):
        g.resolve_promotion("not-the-token", PieceKind.QUEEN)


def test_promotion_in_one_step() -> None:
    g = Game.from_fen(PROMO_FEN)
    g.request_uci("e7e8q")
    assert g.position.piece_at(sq("e8")).kind is PieceKind.QUEEN


def test_undo_restores_exact_position() -> None:
    g = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 3 10")
    before = g.to_fen()
    g.request_uci("e1g1")
    assert g.to_fen() != before
    undone = g.undo_move()
    assert undone.to_uci() == "e1g1"
    assert g.to_fen() == before
    assert g.history == []


def test_undo_on_empty_history_raises() -> None:
    g = Game.new()
    with pytest.raises(ValueError, match="no moves to undo"):
        g.undo_move()


def test_moves_refused_after_checkmate_and_undo_reopens() -> None:
    g = Game.new()
    for uci in ["e2e4", "e7e5", "f1c4", "b8c6", "d1h5", "g8f6", "h5f7"]:
        g.request_uci(uci)
    assert g.status is GameStatus.CHECKMATE
    assert g.is_over
    with pytest.raises(GameOverError):
        g.request_uci("e8e7")
    g.undo_move()
    assert g.status is GameStatus.NORMAL
    assert not g.is_over


def test_commit_validates_engine_moves() -> None:
    g = Game.new()
    legal = next(m for m in g.legal_moves() if m.to_uci() == "g1f3")
    g.commit(legal)
    assert g.move_history_uci() == ["g1f3"]
    with pytest.raises(IllegalMoveError):
        g.commit(legal)  # no longer legal: it is black's turn


def test_commit_rejects_unresolved_promotion() -> None:
    g = Game.from_fen(PROMO_FEN)
    mv = next(m for m in g.legal_moves() if m.promotion)
    with pytest.raises(IllegalMoveError):
        g.commit(mv)
    g.commit(mv.with_promotion(PieceKind.QUEEN))
    assert g.position.piece_at(sq("e8")).kind is PieceKind.QUEEN


def test_legal_moves_from_only_for_side_to_move() -> None:
    g = Game.new()
    assert {m.to_uci() for m in g.legal_moves_from(sq("g1"))} == {"g1f3", "g1h3"}
    assert g.legal_moves_from(sq("g8")) == []
    assert g.legal_moves_from(sq("e4")) == []


def test_reset_returns_to_start_fen() -> None:
    g = Game.from_fen(PROMO_FEN)
    g.request_uci("e1d1")
    g.reset()
    assert g.to_fen() == PROMO_FEN
    assert not g.started_from_startpos
    assert Game.new().started_from_startpos


def test_from_fen_requires_both_kings() -> None:
    with pytest.raises(ValueError):
        Game.from_fen("8/8/8/8/8/8/8/4K3 w - - 0 1")


def test_from_fen_rejects_king_capturable_positions() -> None:
    # White to move could take the black king on e8
    with pytest.raises(ValueError, match="in check"):
        Game.from_fen("4k3/8/8/8/8/8/8/4RK2 w - - 0 1")
    # Same placement with black to move is an ordinary check
    g = Game.from_fen("4k3/8/8/8/8/8/8/4RK2 b - - 0 1")
    assert g.status is GameStatus.CHECK


def test_validate_position_rejects_extra_king() -> None:
    with pytest.raises(ValueError, match="exactly one king"):
        validate_position(Position.from_fen("4k3/8/8/8/8/8/8/K3K3 w - - 0 1"))
    p = Position.startpos()
    assert validate_position(p) is p


def test_stalemate_status_on_load() -> None:
    g = Game.from_fen("k7/P7/1K6/8/8/8/8/8 b - - 0 1")
    assert g.status is GameStatus.STALEMATE
    assert g.legal_moves() == []
