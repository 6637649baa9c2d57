from __future__ import annotations

from kibitz.engine.legality import legal_moves
from kibitz.engine.move import Move
from kibitz.engine.pieces import Color
from kibitz.engine.position import Position


def _find(p: Position, uci: str) -> Move:
    return next(m for m in legal_moves(p) if m.to_uci() == uci)


def test_halfmove_and_fullmove_counters_and_ep_clearing() -> None:
    p = Position.startpos()
    assert p.halfmove_clock == 0 and p.fullmove_number == 1

    # e2e4: pawn move resets halfmove, sets ep to e3, side -> black
    p.apply_move(_find(p, "e2e4"))
    assert p.halfmove_clock == 0
    assert p.side_to_move is Color.BLACK
    assert " e3 " in p.to_fen()
    assert p.fullmove_number == 1  # increments after black moves

    # g8f6: knight move increments halfmove, clears ep, side -> white, fullmove -> 2
    p.apply_move(_find(p, "g8f6"))
    assert p.halfmove_clock == 1
    assert p.side_to_move is Color.WHITE
    assert " - " in p.to_fen()
    assert p.fullmove_number == 2

    # e4e5: pawn move resets halfmove
    p.apply_move(_find(p, "e4e5"))
    assert p.halfmove_clock == 0


def test_capture_resets_halfmove_clock() -> None:
    p = Position.from_fen("4k3/8/8/3n4/8/2N5/8/4K3 w - - 17 30")
    p.apply_move(_find(p, "c3d5"))
    assert p.halfmove_clock == 0


def test_castling_rights_update_on_king_and_rook_moves_and_captures() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")

    # White rook moves h1h2: remove white 'K' right only
    p.apply_move(_find(p, "h1h2"))
    assert p.castling.to_fen() == "Qkq"

    # Black rook captures a1: removes black 'q' (moved from a8) and white 'Q' (captured on a1)
    p.apply_move(_find(p, "a8a1"))
    assert p.castling.to_fen() == "k"

    # Move white king: nothing left for white
    p.apply_move(_find(p, "e1e2"))
    assert p.castling.to_fen() == "k"

    # Black king move drops the last right
    p.apply_move(_find(p, "e8d8"))
    assert p.castling.to_fen() == "-"
