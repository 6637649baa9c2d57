from __future__ import annotations

from kibitz.engine.legality import legal_moves
from kibitz.engine.pieces import PieceKind, str_to_square
from kibitz.engine.position import Position


def moves_set(p: Position) -> set[str]:
    return {m.to_uci() for m in legal_moves(p)}


def test_white_castling_available_when_clear_and_not_in_check() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    ms = moves_set(p)
    assert "e1g1" in ms
    assert "e1c1" in ms


def test_black_castling_available() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    ms = moves_set(p)
    assert {"e8g8", "e8c8"} <= ms


def test_white_castling_blocked_when_in_check() -> None:
    # A black rook on e8 gives check on e1
    p = Position.from_fen("4r2r/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    ms = moves_set(p)
    assert "e1g1" not in ms
    assert "e1c1" not in ms


def test_castling_through_attacked_square_refused() -> None:
    # f1 is covered by the rook on f8; the queenside path is safe
    p = Position.from_fen("r3kr2/8/8/8/8/8/8/R3K2R w KQq - 0 1")
    ms = moves_set(p)
    assert "e1g1" not in ms
    assert "e1c1" in ms


def test_castling_into_check_refused() -> None:
    p = Position.from_fen("r3k1r1/8/8/8/8/8/8/R3K2R w KQq - 0 1")
    assert "e1g1" not in moves_set(p)


def test_queenside_allowed_when_only_b_file_attacked() -> None:
    # The king never crosses b1, only the rook does
    p = Position.from_fen("1r2k3/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    assert "e1c1" in moves_set(p)


def test_castling_blocked_by_piece_in_path() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/RN2K1NR w KQkq - 0 1")
    ms = moves_set(p)
    assert "e1g1" not in ms
    assert "e1c1" not in ms


def test_castling_requires_rights() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w kq - 0 1")
    ms = moves_set(p)
    assert "e1g1" not in ms and "e1c1" not in ms


def test_castling_moves_rook_correctly() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    mv = next(m for m in legal_moves(p) if m.to_uci() == "e1g1")
    p.apply_move(mv)
    assert p.piece_at(str_to_square("g1")).kind is PieceKind.KING
    assert p.piece_at(str_to_square("f1")).kind is PieceKind.ROOK
    assert p.piece_at(str_to_square("h1")) is None
    assert p.piece_at(str_to_square("e1")) is None
    assert p.castling.to_fen() == "kq"


def test_queenside_castle_moves_rook_to_d_file() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    mv = next(m for m in legal_moves(p) if m.to_uci() == "e8c8")
    p.apply_move(mv)
    assert p.piece_at(str_to_square("c8")).kind is PieceKind.KING
    assert p.piece_at(str_to_square("d8")).kind is PieceKind.ROOK
    assert p.piece_at(str_to_square("a8")) is None
    assert p.castling.to_fen() == "KQ"
