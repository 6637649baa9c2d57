from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, List, NamedTuple, Optional, Tuple

from .move import CastleSide, Move
from .pieces import Color, Piece, PieceKind, Square, square_to_str, str_to_square


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

Grid = List[List[Optional[Piece]]]

# Rook home squares per (color, side); the king always starts on the e-file.
ROOK_HOMES = {
    (Color.WHITE, CastleSide.KINGSIDE): Square(7, 7),
    (Color.WHITE, CastleSide.QUEENSIDE): Square(7, 0),
    (Color.BLACK, CastleSide.KINGSIDE): Square(0, 7),
    (Color.BLACK, CastleSide.QUEENSIDE): Square(0, 0),
}
KING_FILE = 4


@dataclass(frozen=True)
class CastlingRights:
    """Four independent castling flags.

    Rights are only ever dropped during a game; ``without`` returns a new
    value rather than mutating in place.
    """

    white_kingside: bool = True
    white_queenside: bool = True
    black_kingside: bool = True
    black_queenside: bool = True

    @classmethod
    def none(cls) -> "CastlingRights":
        return cls(False, False, False, False)

    def has(self, color: Color, side: CastleSide) -> bool:
        return getattr(self, _RIGHT_FIELDS[(color, side)])

    def without(self, color: Color, side: Optional[CastleSide] = None) -> "CastlingRights":
        """Drop one right, or both rights of ``color`` when ``side`` is None."""
        sides = (side,) if side is not None else (CastleSide.KINGSIDE, CastleSide.QUEENSIDE)
        return replace(self, **{_RIGHT_FIELDS[(color, s)]: False for s in sides})

    def to_fen(self) -> str:
        s = ""
        if self.white_kingside:
            s += "K"
        if self.white_queenside:
            s += "Q"
        if self.black_kingside:
            s += "k"
        if self.black_queenside:
            s += "q"
        return s or "-"

    @classmethod
    def from_fen(cls, field: str) -> "CastlingRights":
        if field == "-":
            return cls.none()
        if not field or any(ch not in "KQkq" for ch in field) or len(set(field)) != len(field):
            raise ValueError("invalid castling rights")
        return cls("K" in field, "Q" in field, "k" in field, "q" in field)


_RIGHT_FIELDS = {
    (Color.WHITE, CastleSide.KINGSIDE): "white_kingside",
    (Color.WHITE, CastleSide.QUEENSIDE): "white_queenside",
    (Color.BLACK, CastleSide.KINGSIDE): "black_kingside",
    (Color.BLACK, CastleSide.QUEENSIDE): "black_queenside",
}


class PositionSnapshot(NamedTuple):
    """Frozen copy of every field of a Position."""

    rows: Tuple[Tuple[Optional[Piece], ...], ...]
    side_to_move: Color
    castling: CastlingRights
    ep_square: Optional[Square]
    halfmove_clock: int
    fullmove_number: int


def _empty_grid() -> Grid:
    return [[None] * 8 for _ in range(8)]


@dataclass
class Position:
    """Mutable chess position.

    Notes:
    - ``board[rank][file]`` with rank 0 being the eighth rank.
    - Pieces are immutable values; squares are overwritten, never edited.
    - ``apply_move`` mutates in place; use ``snapshot``/``restore`` or
      ``trial`` to undo.
    """

    board: Grid
    side_to_move: Color = Color.WHITE
    castling: CastlingRights = CastlingRights()
    ep_square: Optional[Square] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1

    @classmethod
    def startpos(cls) -> "Position":
        """Create the standard chess starting position."""
        return cls.from_fen(STARTPOS_FEN)

    # --- Element access ---
    def piece_at(self, sq: Square) -> Optional[Piece]:
        return self.board[sq[0]][sq[1]]

    def set_piece(self, sq: Square, piece: Optional[Piece]) -> None:
        self.board[sq[0]][sq[1]] = piece

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` for occupied squares, optionally by color."""
        for r, row in enumerate(self.board):
            for f, p in enumerate(row):
                if p is not None and (color is None or p.color is color):
                    yield Square(r, f), p

    # --- Save / restore ---
    def snapshot(self) -> PositionSnapshot:
        return PositionSnapshot(
            tuple(tuple(row) for row in self.board),
            self.side_to_move,
            self.castling,
            self.ep_square,
            self.halfmove_clock,
            self.fullmove_number,
        )

    def restore(self, snap: PositionSnapshot) -> None:
        """Restore every field from ``snap``, reusing the existing rows."""
        for row, saved in zip(self.board, snap.rows):
            row[:] = saved
        self.side_to_move = snap.side_to_move
        self.castling = snap.castling
        self.ep_square = snap.ep_square
        self.halfmove_clock = snap.halfmove_clock
        self.fullmove_number = snap.fullmove_number

    @contextmanager
    def trial(self, move: Move) -> Iterator["Position"]:
        """Apply ``move`` for the duration of the ``with`` block.

        The position is restored on every exit path, including exceptions.
        """
        snap = self.snapshot()
        self.apply_move(move)
        try:
            yield self
        finally:
            self.restore(snap)

    def copy(self) -> "Position":
        return Position(
            board=[list(row) for row in self.board],
            side_to_move=self.side_to_move,
            castling=self.castling,
            ep_square=self.ep_square,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        )

    # --- Move application ---
    def apply_move(self, move: Move) -> None:
        """Apply ``move`` in place.

        Handles en passant, promotion and castling, then updates castling
        rights, the en-passant target, the move counters and the side to move.
        The move is not checked for legality here.

        Raises:
            ValueError: If the move is a promotion whose piece has not been
                chosen yet.
        """
        if move.needs_promotion_choice:
            raise ValueError("promotion piece required")
        fr, to = move.from_sq, move.to_sq
        piece = move.piece
        color = piece.color
        target = self.piece_at(to)

        if move.en_passant:
            # The captured pawn sits beside the origin, not on the target square.
            self.set_piece(Square(fr.rank, to.file), None)

        placed = piece.promoted(move.promotion_kind) if move.promotion_kind else piece
        self.set_piece(to, placed)
        self.set_piece(fr, None)

        if move.castle is not None:
            rook_from = ROOK_HOMES[(color, move.castle)]
            rook_to = Square(fr.rank, (fr.file + to.file) // 2)
            self.set_piece(rook_to, self.piece_at(rook_from))
            self.set_piece(rook_from, None)

        self._update_castling_rights(piece, fr, to, target)

        if move.double_push:
            self.ep_square = Square((fr.rank + to.rank) // 2, fr.file)
        else:
            self.ep_square = None

        if piece.kind is PieceKind.PAWN or target is not None or move.en_passant:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1
        if color is Color.BLACK:
            self.fullmove_number += 1
        self.side_to_move = color.opponent

    def _update_castling_rights(
        self, piece: Piece, fr: Square, to: Square, captured: Optional[Piece]
    ) -> None:
        rights = self.castling
        if piece.kind is PieceKind.KING:
            rights = rights.without(piece.color)
        elif piece.kind is PieceKind.ROOK:
            for side in CastleSide:
                if fr == ROOK_HOMES[(piece.color, side)]:
                    rights = rights.without(piece.color, side)
        if captured is not None and captured.kind is PieceKind.ROOK:
            for side in CastleSide:
                if to == ROOK_HOMES[(captured.color, side)]:
                    rights = rights.without(captured.color, side)
        self.castling = rights

    # --- FEN I/O ---
    @classmethod
    def from_fen(cls, fen: str) -> "Position":
        """Create a position from a Forsyth-Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Position: Position initialized with the state encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square, or move counters.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        board = _empty_grid()
        for rank_idx, rank in enumerate(ranks):
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if file_idx >= 8:
                        raise ValueError("too many squares in FEN rank")
                    board[rank_idx][file_idx] = Piece.from_symbol(ch)
                    file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")

        ep_square: Optional[Square]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # ep target must be on the third or sixth rank
            if ep_square.rank not in (2, 5):
                raise ValueError("invalid en passant square rank")

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")

        return cls(
            board=board,
            side_to_move=Color(stm),
            castling=CastlingRights.from_fen(castling),
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )

    def to_fen(self) -> str:
        """Serialize the position into a FEN string."""
        ranks_str: List[str] = []
        for row in self.board:
            run = 0
            out = []
            for p in row:
                if p is None:
                    run += 1
                    continue
                if run > 0:
                    out.append(str(run))
                    run = 0
                out.append(p.symbol)
            if run > 0:
                out.append(str(run))
            ranks_str.append("".join(out))
        placement = "/".join(ranks_str)
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{placement} {self.side_to_move.value} {self.castling.to_fen()} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    def __str__(self) -> str:
        rows = []
        for r, row in enumerate(self.board):
            rows.append(f"{8 - r} " + " ".join(p.symbol if p else "." for p in row))
        rows.append("  a b c d e f g h")
        return "\n".join(rows)
