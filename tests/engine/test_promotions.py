from __future__ import annotations

import pytest

from kibitz.engine.legality import legal_moves
from kibitz.engine.movegen import expand_promotions
from kibitz.engine.pieces import Color, PieceKind, str_to_square
from kibitz.engine.position import Position


def _uci_set(moves):
    return set(m.to_uci() for m in moves)


def test_promotion_generated_once_unresolved() -> None:
    p = Position.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    promos = [m for m in legal_moves(p) if m.promotion]
    assert len(promos) == 1
    assert promos[0].needs_promotion_choice
    assert promos[0].to_uci() == "e7e8"


def test_white_pawn_push_promotions() -> None:
    p = Position.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    ms = expand_promotions(legal_moves(p))
    assert _uci_set(ms) >= {"e7e8q", "e7e8r", "e7e8b", "e7e8n"}


def test_white_pawn_capture_promotion() -> None:
    p = Position.from_fen("3rk3/4P3/8/8/8/8/8/4K3 w - - 0 1")
    ms = expand_promotions(legal_moves(p))
    assert _uci_set(ms) >= {"e7d8q", "e7d8r", "e7d8b", "e7d8n"}


def test_black_pawn_push_promotions() -> None:
    p = Position.from_fen("4k3/8/8/8/8/8/3p4/4K3 b - - 0 1")
    ms = expand_promotions(legal_moves(p))
    assert _uci_set(ms) >= {"d2d1q", "d2d1r", "d2d1b", "d2d1n"}


def test_expand_orders_queen_first() -> None:
    p = Position.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    ms = [m for m in expand_promotions(legal_moves(p)) if m.promotion]
    assert ms[0].promotion_kind is PieceKind.QUEEN


def test_apply_unresolved_promotion_raises() -> None:
    p = Position.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    mv = next(m for m in legal_moves(p) if m.promotion)
    before = p.to_fen()
    with pytest.raises(ValueError):
        p.apply_move(mv)
    assert p.to_fen() == before


def test_apply_promotion_places_chosen_piece() -> None:
    p = Position.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    mv = next(m for m in legal_moves(p) if m.promotion).with_promotion(PieceKind.KNIGHT)
    p.apply_move(mv)
    piece = p.piece_at(str_to_square("e8"))
    assert piece.kind is PieceKind.KNIGHT and piece.color is Color.WHITE
    assert p.piece_at(str_to_square("e7")) is None
