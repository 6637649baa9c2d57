from __future__ import annotations

import logging
from typing import Optional

from .lines import DEFAULT_LINES, OpeningBook


logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_LINES", "OpeningBook", "open_book"]


def open_book(path: Optional[str]) -> OpeningBook:
    """Load a book from a JSON file, or the built-in lines when ``path`` is empty."""
    if not path:
        return OpeningBook()
    book = OpeningBook.from_json(path)
    logger.info("opening book loaded", extra={"path": path, "lines": len(book.lines)})
    return book
