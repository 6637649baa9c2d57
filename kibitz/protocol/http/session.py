from __future__ import annotations

import asyncio
import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...engine.game import Game
from .models import GameOptions


@dataclass
class GameSession:
    """One game plus its options.

    ``lock`` serialises requests for this game so at most one search runs
    against its position at a time.
    """

    game: Game
    options: GameOptions
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}

    def create(self, game: Optional[Game] = None, options: Optional[GameOptions] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        session = GameSession(game=game or Game.new(), options=options or GameOptions())
        with self._lock:
            self._sessions[gid] = session
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._sessions.pop(game_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
