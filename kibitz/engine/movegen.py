from __future__ import annotations

from typing import Iterable, List

from .attacks import KING_OFFSETS, KNIGHT_OFFSETS, SLIDER_DIRECTIONS
from .move import CastleSide, Move
from .pieces import PROMOTION_KINDS, Color, PieceKind, Square
from .position import KING_FILE, ROOK_HOMES, Position


def pseudo_moves_from(position: Position, square: Square) -> List[Move]:
    """Generate geometry-only moves for the piece on ``square``.

    Returns:
        List[Move]: Moves that follow the piece's movement rules; they may
            still leave the mover's own king in check. Empty if the square
            is empty.

    Notes:
        Promotions are produced once per destination with the piece left
        unresolved; see ``expand_promotions``. Castling is only pre-checked
        here (rights held, path empty).
    """
    piece = position.piece_at(square)
    if piece is None:
        return []
    board = position.board
    r, f = square
    color = piece.color
    moves: List[Move] = []

    if piece.kind is PieceKind.PAWN:
        d = color.pawn_direction
        r1 = r + d
        if not 0 <= r1 < 8:
            return moves
        promo = r1 == color.promotion_rank
        if board[r1][f] is None:
            moves.append(Move(square, Square(r1, f), piece, promotion=promo))
            start_rank = color.home_rank + d
            r2 = r + 2 * d
            if r == start_rank and board[r2][f] is None:
                moves.append(Move(square, Square(r2, f), piece, double_push=True))
        for df in (-1, 1):
            cf = f + df
            if not 0 <= cf < 8:
                continue
            target = board[r1][cf]
            if target is not None and target.color is not color:
                moves.append(Move(square, Square(r1, cf), piece, captured=target, promotion=promo))
        ep = position.ep_square
        if ep is not None and ep.rank == r1 and abs(ep.file - f) == 1:
            victim = board[r][ep.file]
            if victim is not None and victim.color is not color and victim.kind is PieceKind.PAWN:
                moves.append(Move(square, ep, piece, captured=victim, en_passant=True))
        return moves

    if piece.kind is PieceKind.KNIGHT or piece.kind is PieceKind.KING:
        offsets = KNIGHT_OFFSETS if piece.kind is PieceKind.KNIGHT else KING_OFFSETS
        for dr, df in offsets:
            tr, tf = r + dr, f + df
            if 0 <= tr < 8 and 0 <= tf < 8:
                target = board[tr][tf]
                if target is None or target.color is not color:
                    moves.append(Move(square, Square(tr, tf), piece, captured=target))
        if piece.kind is PieceKind.KING:
            moves.extend(_castling_candidates(position, square, color))
        return moves

    for dr, df in SLIDER_DIRECTIONS[piece.kind]:
        tr, tf = r + dr, f + df
        while 0 <= tr < 8 and 0 <= tf < 8:
            target = board[tr][tf]
            if target is None:
                moves.append(Move(square, Square(tr, tf), piece))
            else:
                if target.color is not color:
                    moves.append(Move(square, Square(tr, tf), piece, captured=target))
                break
            tr += dr
            tf += df
    return moves


def _castling_candidates(position: Position, square: Square, color: Color) -> List[Move]:
    if square != Square(color.home_rank, KING_FILE):
        return []
    king = position.piece_at(square)
    out: List[Move] = []
    for side in CastleSide:
        if not position.castling.has(color, side):
            continue
        rook_sq = ROOK_HOMES[(color, side)]
        rook = position.piece_at(rook_sq)
        if rook is None or rook.kind is not PieceKind.ROOK or rook.color is not color:
            continue
        lo, hi = sorted((square.file, rook_sq.file))
        if any(position.board[square.rank][f] is not None for f in range(lo + 1, hi)):
            continue
        step = 2 if side is CastleSide.KINGSIDE else -2
        out.append(Move(square, Square(square.rank, square.file + step), king, castle=side))
    return out


def pseudo_moves(position: Position, color: Color) -> List[Move]:
    """All pseudo-legal moves for ``color``'s pieces."""
    moves: List[Move] = []
    for sq, _ in position.pieces(color):
        moves.extend(pseudo_moves_from(position, sq))
    return moves


def expand_promotions(moves: Iterable[Move]) -> List[Move]:
    """Replace each unresolved promotion with its four resolved variants."""
    out: List[Move] = []
    for m in moves:
        if m.needs_promotion_choice:
            out.extend(m.with_promotion(k) for k in PROMOTION_KINDS)
        else:
            out.append(m)
    return out
