"""
PostgreSQL-backed game store.

Games are stored one row per game with the full record in a JSONB column and
its version in its own column. A commit is a conditional update:

    UPDATE games SET ... WHERE id = $1 AND version = $expected

and in the same transaction the move's event is appended to the
append-only game_events log. UNIQUE(game_id, sequence_num) on the log makes a
second commit of the same version impossible even without the version check.
"""

import json
import logging
from typing import Optional

import asyncpg

from game import Game
from models.events import EventType, GameEvent
from stores.game_store import ConcurrencyError, GameExistsError, GameStore

logger = logging.getLogger(__name__)


# SQL schema for the game store
SCHEMA_SQL = """
-- Current state of every game
CREATE TABLE IF NOT EXISTS games (
    id VARCHAR(16) PRIMARY KEY,
    version INT NOT NULL,
    status VARCHAR(20) NOT NULL,
    state JSONB NOT NULL,
    winner_id VARCHAR(64),
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

-- Event log (append-only)
CREATE TABLE IF NOT EXISTS game_events (
    id BIGSERIAL PRIMARY KEY,
    game_id VARCHAR(16) NOT NULL REFERENCES games(id) ON DELETE CASCADE,
    sequence_num INT NOT NULL,
    event_type VARCHAR(50) NOT NULL,
    player_id VARCHAR(64),
    event_data JSONB NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW(),

    -- One event per game version
    UNIQUE(game_id, sequence_num)
);

CREATE INDEX IF NOT EXISTS idx_games_status ON games(status);
CREATE INDEX IF NOT EXISTS idx_game_events_game_seq ON game_events(game_id, sequence_num);
"""

INSERT_EVENT_SQL = """
    INSERT INTO game_events (game_id, sequence_num, event_type, player_id, event_data)
    VALUES ($1, $2, $3, $4, $5)
"""


class PostgresGameStore(GameStore):
    """
    PostgreSQL-backed game store.

    Uses asyncpg for async database access.
    """

    def __init__(self, pool: asyncpg.Pool):
        """
        Initialize the store with a connection pool.

        Args:
            pool: asyncpg connection pool.
        """
        self.pool = pool

    @classmethod
    async def create_from_url(cls, postgres_url: str) -> "PostgresGameStore":
        """
        Create a store with a new connection pool and ensure the schema.

        Args:
            postgres_url: PostgreSQL connection URL.
        """
        pool = await asyncpg.create_pool(postgres_url, min_size=2, max_size=10)
        store = cls(pool)
        await store.initialize_schema()
        return store

    async def initialize_schema(self) -> None:
        """Create database tables if they don't exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("Game store schema initialized")

    async def close(self) -> None:
        await self.pool.close()

    async def ping(self) -> bool:
        async with self.pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, game: Game, event: Optional[GameEvent] = None) -> None:
        """
        Insert a new game row.

        Raises:
            GameExistsError: If the id is already taken.
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                try:
                    await conn.execute(
                        """
                        INSERT INTO games (id, version, status, state, winner_id)
                        VALUES ($1, $2, $3, $4, $5)
                        """,
                        game.game_id,
                        game.version,
                        game.status.value,
                        json.dumps(game.to_dict()),
                        game.winner,
                    )
                except asyncpg.UniqueViolationError:
                    raise GameExistsError(f"Game {game.game_id} already exists")
                if event:
                    await self._insert_event(conn, event)

    async def commit(
        self,
        game: Game,
        expected_version: int,
        event: Optional[GameEvent] = None,
    ) -> None:
        """
        Update the game row if it is still at expected_version.

        Raises:
            ConcurrencyError: If no row matched or the event already exists.
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                result = await conn.execute(
                    """
                    UPDATE games
                    SET version = $2, status = $3, state = $4, winner_id = $5, updated_at = NOW()
                    WHERE id = $1 AND version = $6
                    """,
                    game.game_id,
                    game.version,
                    game.status.value,
                    json.dumps(game.to_dict()),
                    game.winner,
                    expected_version,
                )
                # asyncpg returns the command tag, e.g. "UPDATE 1"
                if result.split()[-1] != "1":
                    raise ConcurrencyError(
                        f"Game {game.game_id} is no longer at version {expected_version}"
                    )
                if event:
                    await self._insert_event(conn, event)

    async def _insert_event(self, conn: asyncpg.Connection, event: GameEvent) -> None:
        try:
            await conn.execute(
                INSERT_EVENT_SQL,
                event.game_id,
                event.sequence_num,
                event.event_type.value,
                event.player_id,
                json.dumps(event.data),
            )
        except asyncpg.UniqueViolationError:
            raise ConcurrencyError(
                f"Event {event.sequence_num} already exists for game {event.game_id}"
            )

    async def delete(self, game_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM games WHERE id = $1", game_id)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def load(self, game_id: str) -> Optional[Game]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT state FROM games WHERE id = $1", game_id)
        if not row:
            return None
        state = row["state"]
        if isinstance(state, str):
            state = json.loads(state)
        return Game.from_dict(state)

    async def get_events(self, game_id: str, from_sequence: int = 0) -> list[GameEvent]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT event_type, game_id, sequence_num, player_id, event_data, created_at
                FROM game_events
                WHERE game_id = $1 AND sequence_num >= $2
                ORDER BY sequence_num
                """,
                game_id,
                from_sequence,
            )
        return [self._row_to_event(row) for row in rows]

    def _row_to_event(self, row: asyncpg.Record) -> GameEvent:
        """Convert a database row to a GameEvent."""
        data = row["event_data"]
        if isinstance(data, str):
            data = json.loads(data)
        return GameEvent(
            event_type=EventType(row["event_type"]),
            game_id=row["game_id"],
            sequence_num=row["sequence_num"],
            timestamp=row["created_at"],
            player_id=row["player_id"],
            data=data,
        )
