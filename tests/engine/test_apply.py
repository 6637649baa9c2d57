from __future__ import annotations

import pytest

from kibitz.engine.legality import legal_moves
from kibitz.engine.pieces import Color
from kibitz.engine.position import STARTPOS_FEN, Position


def test_apply_mutates_in_place() -> None:
    p = Position.from_fen(STARTPOS_FEN)
    mv = next(m for m in legal_moves(p) if m.to_uci() == "e2e4")
    p.apply_move(mv)
    assert p.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_trial_restores_position() -> None:
    fen = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
    p = Position.from_fen(fen)
    board_before = p.board
    for mv in legal_moves(p):
        with p.trial(mv) as after:
            assert after.side_to_move is Color.BLACK
        assert p.to_fen() == fen
    # Rows are restored in place
    assert p.board is board_before


def test_trial_restores_on_exception() -> None:
    p = Position.startpos()
    mv = next(m for m in legal_moves(p) if m.to_uci() == "g1f3")
    with pytest.raises(RuntimeError):
        with p.trial(mv):
            raise RuntimeError("boom")
    assert p.to_fen() == STARTPOS_FEN


def test_snapshot_restore_round_trip() -> None:
    p = Position.from_fen("4k3/8/8/3Pp3/8/8/8/4K3 w - e6 4 9")
    snap = p.snapshot()
    for uci in ("d5e6", "e8d8"):
        p.apply_move(next(m for m in legal_moves(p) if m.to_uci() == uci))
    p.restore(snap)
    assert p.to_fen() == "4k3/8/8/3Pp3/8/8/8/4K3 w - e6 4 9"


def test_copy_is_independent() -> None:
    p = Position.startpos()
    q = p.copy()
    q.apply_move(next(m for m in legal_moves(q) if m.to_uci() == "e2e4"))
    assert p.to_fen() == STARTPOS_FEN
