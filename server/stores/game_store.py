"""
Game store interface and in-memory implementation.

A store keeps one record per game plus the game's event log. Writes are
compare-and-swap on the game's version:

    game, read at version N  ->  commit(new_game, expected_version=N)

commit() succeeds only if the stored record is still at version N, and writes
the new state and its event atomically. Otherwise it raises ConcurrencyError
and the caller starts over from a fresh read.
"""

import asyncio
import logging
from typing import Optional

from game import Game
from models.events import GameEvent

logger = logging.getLogger(__name__)


class ConcurrencyError(Exception):
    """Raised when the stored game changed since it was read."""
    pass


class GameExistsError(Exception):
    """Raised when creating a game under an id that is already taken."""
    pass


class GameStore:
    """
    Base class for game stores.

    Subclasses implement the storage technology; callers depend only on
    these methods.
    """

    async def create(self, game: Game, event: Optional[GameEvent] = None) -> None:
        """
        Store a new game.

        Raises:
            GameExistsError: If a game with this id already exists.
        """
        raise NotImplementedError

    async def load(self, game_id: str) -> Optional[Game]:
        """Load a game, or None if it does not exist."""
        raise NotImplementedError

    async def commit(
        self,
        game: Game,
        expected_version: int,
        event: Optional[GameEvent] = None,
    ) -> None:
        """
        Replace a game if it is still at the expected version.

        Args:
            game: New game state (its version is the new version).
            expected_version: Version the new state was computed from.
            event: Event to append in the same write.

        Raises:
            ConcurrencyError: If the stored version differs or the game is gone.
        """
        raise NotImplementedError

    async def get_events(self, game_id: str, from_sequence: int = 0) -> list[GameEvent]:
        """Get a game's events in sequence order."""
        raise NotImplementedError

    async def delete(self, game_id: str) -> None:
        raise NotImplementedError

    async def ping(self) -> bool:
        """Check the backend is reachable."""
        return True

    async def close(self) -> None:
        pass


class MemoryGameStore(GameStore):
    """
    Process-local store.

    Used when no Redis or PostgreSQL backend is configured, and in tests.
    Records are kept serialized so that callers never share mutable state
    with the store.
    """

    def __init__(self) -> None:
        self._games: dict[str, dict] = {}
        self._events: dict[str, list[GameEvent]] = {}
        self._lock = asyncio.Lock()

    async def create(self, game: Game, event: Optional[GameEvent] = None) -> None:
        async with self._lock:
            if game.game_id in self._games:
                raise GameExistsError(f"Game {game.game_id} already exists")
            self._games[game.game_id] = game.to_dict()
            self._events[game.game_id] = [event] if event else []
        logger.debug(f"Created game {game.game_id}")

    async def load(self, game_id: str) -> Optional[Game]:
        async with self._lock:
            data = self._games.get(game_id)
        if data is None:
            return None
        return Game.from_dict(data)

    async def commit(
        self,
        game: Game,
        expected_version: int,
        event: Optional[GameEvent] = None,
    ) -> None:
        async with self._lock:
            current = self._games.get(game.game_id)
            if current is None or current["version"] != expected_version:
                raise ConcurrencyError(
                    f"Game {game.game_id} is no longer at version {expected_version}"
                )
            self._games[game.game_id] = game.to_dict()
            if event:
                self._events.setdefault(game.game_id, []).append(event)

    async def get_events(self, game_id: str, from_sequence: int = 0) -> list[GameEvent]:
        async with self._lock:
            events = list(self._events.get(game_id, []))
        return [e for e in events if e.sequence_num >= from_sequence]

    async def delete(self, game_id: str) -> None:
        async with self._lock:
            self._games.pop(game_id, None)
            self._events.pop(game_id, None)
