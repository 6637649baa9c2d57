from __future__ import annotations

from kibitz.engine.legality import legal_moves
from kibitz.engine.pieces import Color, PieceKind, str_to_square
from kibitz.engine.position import Position


def test_white_en_passant_generation_and_apply() -> None:
    # Black just played e7e5 -> ep target e6; white pawn on d5 can capture e6 ep
    p = Position.from_fen("4k3/8/8/3Pp3/8/8/8/4K3 w - e6 0 1")
    moves = {m.to_uci(): m for m in legal_moves(p)}
    assert "d5e6" in moves
    mv = moves["d5e6"]
    assert mv.en_passant and mv.captured is not None and mv.captured.color is Color.BLACK

    p.apply_move(mv)
    assert p.piece_at(str_to_square("e6")).kind is PieceKind.PAWN
    assert p.piece_at(str_to_square("d5")) is None
    assert p.piece_at(str_to_square("e5")) is None
    assert p.halfmove_clock == 0


def test_black_en_passant_generation_and_apply() -> None:
    # White just played e2e4 -> ep target e3; black pawn on d4 can capture e3 ep
    p = Position.from_fen("4k3/8/8/8/3pP3/8/8/4K3 b - e3 0 1")
    mv = next(m for m in legal_moves(p) if m.to_uci() == "d4e3")
    p.apply_move(mv)
    assert p.piece_at(str_to_square("e3")).color is Color.BLACK
    assert p.piece_at(str_to_square("d4")) is None
    assert p.piece_at(str_to_square("e4")) is None


def test_en_passant_expires_after_one_ply() -> None:
    p = Position.from_fen("4k3/8/8/3Pp3/8/8/8/4K3 w - e6 0 1")
    p.apply_move(next(m for m in legal_moves(p) if m.to_uci() == "e1d1"))
    p.apply_move(next(m for m in legal_moves(p) if m.to_uci() == "e8d8"))
    assert "d5e6" not in {m.to_uci() for m in legal_moves(p)}


def test_en_passant_refused_when_it_exposes_king() -> None:
    # Removing both pawns from the fifth rank would open the rook's line to the king
    p = Position.from_fen("8/8/8/KPp4r/8/8/8/7k w - c6 0 1")
    assert "b5c6" not in {m.to_uci() for m in legal_moves(p)}


def test_double_push_sets_ep_square() -> None:
    p = Position.startpos()
    p.apply_move(next(m for m in legal_moves(p) if m.to_uci() == "e2e4"))
    assert p.ep_square == str_to_square("e3")
