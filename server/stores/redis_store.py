"""
Redis-backed game store.

Each game is one JSON document; its event log is a Redis list. Commits use
WATCH/MULTI on the game key, so a write that races another writer fails with
WatchError and surfaces as ConcurrencyError.

Key patterns:
- deal:game:{game_id}          -> JSON (full game record)
- deal:game:{game_id}:events   -> List (event JSON, oldest first)
- deal:games:active            -> Set (ids of games not yet finished; expired ids
                                  are pruned on read)
"""

import json
import logging
from datetime import timedelta
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import WatchError

from game import Game, GameStatus
from models.events import GameEvent
from stores.game_store import ConcurrencyError, GameExistsError, GameStore

logger = logging.getLogger(__name__)


class RedisGameStore(GameStore):
    """Redis-backed game store with optimistic concurrency."""

    # Key patterns
    GAME_KEY = "deal:game:{game_id}"
    EVENTS_KEY = "deal:game:{game_id}:events"
    ACTIVE_GAMES_KEY = "deal:games:active"

    def __init__(self, redis_client: redis.Redis, ttl: timedelta = timedelta(hours=24)):
        """
        Initialize the store with a Redis client.

        Args:
            redis_client: Async Redis client.
            ttl: Expiry for game records, refreshed on every write.
        """
        self.redis = redis_client
        self.ttl = ttl

    @classmethod
    async def create_from_url(cls, redis_url: str, ttl_hours: int = 24) -> "RedisGameStore":
        """
        Create a store with a new Redis connection.

        Args:
            redis_url: Redis connection URL.
            ttl_hours: Record expiry in hours.
        """
        client = redis.from_url(redis_url, decode_responses=False)
        await client.ping()
        logger.info("RedisGameStore connected to Redis")
        return cls(client, ttl=timedelta(hours=ttl_hours))

    async def close(self) -> None:
        await self.redis.close()

    async def ping(self) -> bool:
        return bool(await self.redis.ping())

    def _ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    # -------------------------------------------------------------------------
    # Game Operations
    # -------------------------------------------------------------------------

    async def create(self, game: Game, event: Optional[GameEvent] = None) -> None:
        """
        Store a new game.

        Raises:
            GameExistsError: If the id is already taken.
        """
        key = self.GAME_KEY.format(game_id=game.game_id)
        created = await self.redis.set(
            key,
            json.dumps(game.to_dict()),
            ex=self._ttl_seconds(),
            nx=True,
        )
        if not created:
            raise GameExistsError(f"Game {game.game_id} already exists")

        pipe = self.redis.pipeline()
        pipe.sadd(self.ACTIVE_GAMES_KEY, game.game_id)
        if event:
            events_key = self.EVENTS_KEY.format(game_id=game.game_id)
            pipe.rpush(events_key, event.to_json())
            pipe.expire(events_key, self._ttl_seconds())
        await pipe.execute()
        logger.debug(f"Created game {game.game_id}")

    async def load(self, game_id: str) -> Optional[Game]:
        data = await self.redis.get(self.GAME_KEY.format(game_id=game_id))
        if not data:
            return None
        if isinstance(data, bytes):
            data = data.decode()
        return Game.from_dict(json.loads(data))

    async def commit(
        self,
        game: Game,
        expected_version: int,
        event: Optional[GameEvent] = None,
    ) -> None:
        """
        Replace the game if it is still at expected_version.

        Raises:
            ConcurrencyError: If the record changed or vanished since it was read.
        """
        key = self.GAME_KEY.format(game_id=game.game_id)
        events_key = self.EVENTS_KEY.format(game_id=game.game_id)

        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if not raw:
                    raise ConcurrencyError(f"Game {game.game_id} no longer exists")
                if isinstance(raw, bytes):
                    raw = raw.decode()
                stored_version = json.loads(raw).get("version")
                if stored_version != expected_version:
                    raise ConcurrencyError(
                        f"Game {game.game_id} is at version {stored_version}, "
                        f"expected {expected_version}"
                    )

                pipe.multi()
                pipe.set(key, json.dumps(game.to_dict()), ex=self._ttl_seconds())
                if event:
                    pipe.rpush(events_key, event.to_json())
                    pipe.expire(events_key, self._ttl_seconds())
                if game.status == GameStatus.FINISHED:
                    pipe.srem(self.ACTIVE_GAMES_KEY, game.game_id)
                await pipe.execute()
            except WatchError:
                raise ConcurrencyError(
                    f"Game {game.game_id} was modified during commit"
                )

    async def get_events(self, game_id: str, from_sequence: int = 0) -> list[GameEvent]:
        items = await self.redis.lrange(self.EVENTS_KEY.format(game_id=game_id), 0, -1)
        events = []
        for item in items:
            if isinstance(item, bytes):
                item = item.decode()
            event = GameEvent.from_json(item)
            if event.sequence_num >= from_sequence:
                events.append(event)
        return events

    async def delete(self, game_id: str) -> None:
        pipe = self.redis.pipeline()
        pipe.delete(self.GAME_KEY.format(game_id=game_id))
        pipe.delete(self.EVENTS_KEY.format(game_id=game_id))
        pipe.srem(self.ACTIVE_GAMES_KEY, game_id)
        await pipe.execute()

    async def get_active_games(self) -> set[str]:
        """
        Ids of games that have not finished.

        Game records expire on their TTL but set members do not, so ids whose
        record is gone are removed from the set here.
        """
        members = await self.redis.smembers(self.ACTIVE_GAMES_KEY)
        active = set()
        stale = []
        for member in members:
            game_id = member.decode() if isinstance(member, bytes) else member
            if await self.redis.exists(self.GAME_KEY.format(game_id=game_id)) > 0:
                active.add(game_id)
            else:
                stale.append(game_id)

        if stale:
            await self.redis.srem(self.ACTIVE_GAMES_KEY, *stale)
            logger.debug(f"Pruned {len(stale)} expired games from the active set")
        return active
