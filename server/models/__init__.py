"""Models package for the Monopoly Deal server."""

from .events import EventType, GameEvent, game_created, game_started, move_applied

__all__ = [
    "EventType",
    "GameEvent",
    "game_created",
    "game_started",
    "move_applied",
]
