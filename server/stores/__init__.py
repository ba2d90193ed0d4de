"""Stores package for Monopoly Deal game persistence."""

from .game_store import ConcurrencyError, GameExistsError, GameStore, MemoryGameStore
from .redis_store import RedisGameStore
from .postgres_store import PostgresGameStore

__all__ = [
    "ConcurrencyError",
    "GameExistsError",
    "GameStore",
    "MemoryGameStore",
    "RedisGameStore",
    "PostgresGameStore",
]
