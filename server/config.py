"""
Centralized configuration for the Monopoly Deal game server.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.PORT)
    print(config.rules.MAX_PLAYS_PER_TURN)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class GameRules:
    """
    Turn and scoring policy for a game.

    STRICT_TURN_PHASES rejects plays and end-of-turn before the player has
    drawn, and a second draw in the same turn. RESHUFFLE_DISCARD refills the
    draw pile from the discard pile when fewer cards remain than a turn draws.
    WILD_ONLY_SETS_INCOMPLETE is a house rule: a set made only of ten-color
    wilds does not count toward a win.
    """
    MAX_PLAYS_PER_TURN: int = 3
    HAND_LIMIT: int = 7
    DRAW_PER_TURN: int = 2
    STARTING_HAND_SIZE: int = 5
    SETS_TO_WIN: int = 3
    MIN_PLAYERS: int = 2
    MAX_PLAYERS: int = 5
    STRICT_TURN_PHASES: bool = True
    RESHUFFLE_DISCARD: bool = True
    WILD_ONLY_SETS_INCOMPLETE: bool = False

    @classmethod
    def from_env(cls) -> "GameRules":
        return cls(
            MAX_PLAYS_PER_TURN=get_env_int("MAX_PLAYS_PER_TURN", 3),
            HAND_LIMIT=get_env_int("HAND_LIMIT", 7),
            DRAW_PER_TURN=get_env_int("DRAW_PER_TURN", 2),
            STARTING_HAND_SIZE=get_env_int("STARTING_HAND_SIZE", 5),
            SETS_TO_WIN=get_env_int("SETS_TO_WIN", 3),
            MIN_PLAYERS=get_env_int("MIN_PLAYERS", 2),
            MAX_PLAYERS=get_env_int("MAX_PLAYERS", 5),
            STRICT_TURN_PHASES=get_env_bool("STRICT_TURN_PHASES", True),
            RESHUFFLE_DISCARD=get_env_bool("RESHUFFLE_DISCARD", True),
            WILD_ONLY_SETS_INCOMPLETE=get_env_bool("WILD_ONLY_SETS_INCOMPLETE", False),
        )


@dataclass
class ServerConfig:
    """Server configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Storage backends (empty = in-memory store)
    REDIS_URL: str = ""
    POSTGRES_URL: str = ""

    # Game records
    GAME_ID_LENGTH: int = 6
    GAME_TTL_HOURS: int = 24

    # Optimistic concurrency
    MOVE_MAX_RETRIES: int = 5
    MOVE_RETRY_DELAY_MS: int = 10

    rules: GameRules = field(default_factory=GameRules)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        return cls(
            HOST=get_env("HOST", "0.0.0.0"),
            PORT=get_env_int("PORT", 8000),
            DEBUG=get_env_bool("DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            REDIS_URL=get_env("REDIS_URL", ""),
            POSTGRES_URL=get_env("POSTGRES_URL", ""),
            GAME_ID_LENGTH=get_env_int("GAME_ID_LENGTH", 6),
            GAME_TTL_HOURS=get_env_int("GAME_TTL_HOURS", 24),
            MOVE_MAX_RETRIES=get_env_int("MOVE_MAX_RETRIES", 5),
            MOVE_RETRY_DELAY_MS=get_env_int("MOVE_RETRY_DELAY_MS", 10),
            rules=GameRules.from_env(),
        )


# Global config instance - loaded once at module import
config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ServerConfig.from_env()
    return config
