from __future__ import annotations

import json
import os
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from ..engine.legality import legal_moves
from ..engine.move import Move, parse_uci
from ..engine.position import Position


Line = Tuple[str, ...]

DEFAULT_LINES: Tuple[Line, ...] = (
    ("e2e4", "e7e5", "g1f3", "b8c6", "f1c4", "g8f6"),  # Italian
    ("e2e4", "e7e5", "g1f3", "b8c6", "f1b5"),  # Ruy Lopez
    ("d2d4", "d7d5", "c2c4", "e7e6"),  # Queen's Gambit Declined
    ("e2e4", "c7c5"),  # Sicilian
    ("e2e4", "c7c6"),  # Caro-Kann
)


class OpeningBook:
    """Fixed opening lines looked up by prefix match.

    Notes:
    - Lines are tried in declaration order; the first line that extends the
      moves played so far decides.
    - The suggested move is only returned if it is legal in the given
      position.
    """

    def __init__(self, lines: Sequence[Sequence[str]] = DEFAULT_LINES) -> None:
        self.lines: List[Line] = [tuple(line) for line in lines]

    @classmethod
    def from_json(cls, path: str) -> "OpeningBook":
        """Load lines from JSON.

        Format examples:
        - ``{"lines": [["e2e4", "e7e5"], ["d2d4"]]}``
        - or a bare list of lists of coordinate moves.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ValueError: If the document has another shape or a move is not
                valid coordinate notation.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        with open(path, "r", encoding="utf-8") as f:
            data: Any = json.load(f)
        if isinstance(data, dict) and "lines" in data:
            data = data["lines"]
        if not isinstance(data, list) or not all(isinstance(line, list) for line in data):
            raise ValueError("invalid book format")
        lines: List[Line] = []
        for line in data:
            for u in line:
                if not isinstance(u, str):
                    raise ValueError(f"invalid book move: {u!r}")
                parse_uci(u)
            lines.append(tuple(line))
        return cls(lines)

    def suggestions(self, history: Sequence[str]) -> Iterator[str]:
        """Next coordinate moves of every line extending ``history``, in order."""
        played = tuple(history)
        n = len(played)
        for line in self.lines:
            if line[:n] == played and n < len(line):
                yield line[n]

    def next_uci(self, history: Sequence[str]) -> Optional[str]:
        return next(self.suggestions(history), None)

    def book_move(self, history: Sequence[str], position: Position) -> Optional[Move]:
        """Book move for ``position`` after the coordinate moves in ``history``.

        Returns:
            Optional[Move]: The first suggestion that is legal here, or None
                when no line applies.
        """
        legal = None
        for uci in self.suggestions(history):
            if legal is None:
                legal = legal_moves(position)
            intent = parse_uci(uci)
            for m in legal:
                if not intent.matches(m) or bool(m.promotion) != (intent.promotion is not None):
                    continue
                return m.with_promotion(intent.promotion) if m.promotion else m
        return None
