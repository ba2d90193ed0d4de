"""
Moves, move errors and move results.

A Move is a tagged union discriminated by `action_type`. Each variant carries
exactly the payload its action needs. Anything a client sends with an
unrecognised action type becomes an UnknownMove so that turn ownership is
still checked before the action itself is rejected.

Wire format (camelCase, as submitted by clients):
    {"playerId": "alice", "actionType": "BeginTurn"}
    {"playerId": "alice", "actionType": "PlayCard",
     "card": {"id": "p-red-1"}, "placeAs": "property", "color": "red"}
    {"playerId": "alice", "actionType": "EndTurn", "discards": ["m-1-2"]}
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union

from game import Game


class ActionType(str, Enum):
    """Recognised move types."""

    BEGIN_TURN = "BeginTurn"
    PLAY_CARD = "PlayCard"
    END_TURN = "EndTurn"


class Placement(str, Enum):
    """Where a played card goes."""

    BANK = "bank"
    PROPERTY = "property"
    ACTION = "action"


class MoveError(str, Enum):
    """Why a move was rejected. Values are sent to clients verbatim."""

    NOT_IN_PROGRESS = "NotInProgress"
    NOT_YOUR_TURN = "NotYourTurn"
    UNKNOWN_ACTION = "UnknownAction"
    TURN_NOT_BEGUN = "TurnNotBegun"
    TURN_ALREADY_BEGUN = "TurnAlreadyBegun"
    PLAY_LIMIT_EXCEEDED = "PlayLimitExceeded"
    CARD_NOT_IN_HAND = "CardNotInHand"
    PROPERTIES_CANNOT_BE_BANKED = "PropertiesCannotBeBanked"
    NOT_A_PROPERTY = "NotAProperty"
    NON_PROPERTY_ACTION_ONLY = "NonPropertyActionOnly"
    INVALID_PLACEMENT = "InvalidPlacement"
    INVALID_COLOR = "InvalidColor"
    DECK_EXHAUSTED = "DeckExhausted"


@dataclass(frozen=True)
class BeginTurn:
    """Draw the turn's cards."""
    player_id: str
    action_type: ClassVar[str] = ActionType.BEGIN_TURN.value


@dataclass(frozen=True)
class PlayCard:
    """
    Play a card from hand.

    Attributes:
        player_id: Acting player.
        card_id: Id of the card in the player's hand.
        place_as: "bank", "property" or "action". Kept as the raw string so
            unknown placements can be rejected with a specific error.
        color: Chosen set color, required for wild properties.
    """
    player_id: str
    card_id: str
    place_as: str
    color: Optional[str] = None
    action_type: ClassVar[str] = ActionType.PLAY_CARD.value


@dataclass(frozen=True)
class EndTurn:
    """
    Finish the turn.

    Attributes:
        player_id: Acting player.
        discards: Cards the player chooses to discard when over the hand
            limit. Any excess left after these is discarded from the end of
            the hand.
    """
    player_id: str
    discards: tuple[str, ...] = ()
    action_type: ClassVar[str] = ActionType.END_TURN.value


@dataclass(frozen=True)
class UnknownMove:
    """A submission whose action type is not recognised."""
    player_id: str
    action_type: str = ""


Move = Union[BeginTurn, PlayCard, EndTurn, UnknownMove]


@dataclass(frozen=True)
class MoveResult:
    """
    Outcome of applying a move: exactly one of game or error is set.

    Attributes:
        game: The new game state, if the move was accepted.
        error: Why the move was rejected.
    """
    game: Optional[Game] = None
    error: Optional[MoveError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def accepted(cls, game: Game) -> "MoveResult":
        return cls(game=game)

    @classmethod
    def rejected(cls, error: MoveError) -> "MoveResult":
        return cls(error=error)


def _card_id(data: dict) -> str:
    """Card reference from either `card` (object or bare id) or `cardId`."""
    card = data.get("card")
    if isinstance(card, dict):
        return str(card.get("id") or "")
    if card is not None:
        return str(card)
    return str(data.get("cardId") or "")


def parse_move(data: dict) -> Move:
    """
    Build a Move from a client payload.

    Args:
        data: Dict with playerId, actionType and the action's payload.

    Returns:
        The matching Move variant; UnknownMove for unrecognised action types.
    """
    player_id = str(data.get("playerId") or "")
    action_type = data.get("actionType") or ""

    if action_type == ActionType.BEGIN_TURN.value:
        return BeginTurn(player_id=player_id)

    if action_type == ActionType.PLAY_CARD.value:
        return PlayCard(
            player_id=player_id,
            card_id=_card_id(data),
            place_as=str(data.get("placeAs") or ""),
            color=data.get("color"),
        )

    if action_type == ActionType.END_TURN.value:
        return EndTurn(
            player_id=player_id,
            discards=tuple(str(c) for c in data.get("discards") or ()),
        )

    return UnknownMove(player_id=player_id, action_type=str(action_type))


def move_to_dict(move: Move) -> dict:
    """Serialize a move back to its wire form (used for the event log)."""
    data = {"playerId": move.player_id, "actionType": move.action_type}
    if isinstance(move, PlayCard):
        data.update(cardId=move.card_id, placeAs=move.place_as, color=move.color)
    elif isinstance(move, EndTurn) and move.discards:
        data["discards"] = list(move.discards)
    return data
