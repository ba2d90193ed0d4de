"""
Event records for the game history.

Every committed change to a game is logged as one immutable event whose
sequence number is the game version it produced. Stores append the event in
the same atomic write as the new game state, so the log and the state can
never disagree, and a duplicate sequence number is a concurrency conflict.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import json

from game import Game
from moves import ActionType, Move, move_to_dict


class EventType(str, Enum):
    """All event types in a Monopoly Deal game."""

    # Lifecycle events
    GAME_CREATED = "game_created"
    GAME_STARTED = "game_started"
    GAME_WON = "game_won"

    # Gameplay events
    TURN_BEGAN = "turn_began"
    CARD_PLAYED = "card_played"
    TURN_ENDED = "turn_ended"


_MOVE_EVENT_TYPES = {
    ActionType.BEGIN_TURN.value: EventType.TURN_BEGAN,
    ActionType.PLAY_CARD.value: EventType.CARD_PLAYED,
    ActionType.END_TURN.value: EventType.TURN_ENDED,
}


@dataclass
class GameEvent:
    """
    An immutable record of one committed change.

    Attributes:
        event_type: The type of event.
        game_id: Game this event belongs to.
        sequence_num: Game version after the change.
        timestamp: When the change was committed (UTC).
        player_id: Player who caused it, if any.
        data: Event-specific payload.
    """

    event_type: EventType
    game_id: str
    sequence_num: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    player_id: Optional[str] = None
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize event to dictionary for JSON storage."""
        return {
            "event_type": self.event_type.value,
            "game_id": self.game_id,
            "sequence_num": self.sequence_num,
            "timestamp": self.timestamp.isoformat(),
            "player_id": self.player_id,
            "data": self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, d: dict) -> "GameEvent":
        """Deserialize event from dictionary."""
        timestamp = d["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            event_type=EventType(d["event_type"]),
            game_id=d["game_id"],
            sequence_num=d["sequence_num"],
            timestamp=timestamp,
            player_id=d.get("player_id"),
            data=d.get("data", {}),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "GameEvent":
        return cls.from_dict(json.loads(json_str))


# =============================================================================
# Event Factory Functions
# =============================================================================


def game_created(game: Game) -> GameEvent:
    """Event for a game entering the lobby."""
    return GameEvent(
        event_type=EventType.GAME_CREATED,
        game_id=game.game_id,
        sequence_num=game.version,
        player_id=game.host_id,
        data={"players": list(game.players)},
    )


def game_started(game: Game) -> GameEvent:
    """Event for the opening deal. The shuffle seed stays private to the store."""
    return GameEvent(
        event_type=EventType.GAME_STARTED,
        game_id=game.game_id,
        sequence_num=game.version,
        player_id=game.host_id,
        data={
            "players": list(game.players),
            "draw_pile_size": len(game.draw_pile),
        },
    )


def move_applied(game: Game, move: Move) -> GameEvent:
    """
    Event for an accepted move.

    Args:
        game: The game state the move produced.
        move: The move that produced it.
    """
    event_type = _MOVE_EVENT_TYPES[move.action_type]
    data = {"move": move_to_dict(move)}
    if game.winner is not None:
        event_type = EventType.GAME_WON
        data["winner"] = game.winner

    return GameEvent(
        event_type=event_type,
        game_id=game.game_id,
        sequence_num=game.version,
        player_id=move.player_id,
        data=data,
    )
