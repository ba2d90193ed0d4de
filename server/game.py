"""
Game aggregate for Monopoly Deal.

A Game is the single unit of persistence and atomic mutation. It holds every
card of the deck in exactly one location:

    draw_pile      shared, top card at index 0
    discard_pile   shared
    hands          player_id -> cards
    bank           player_id -> money/action/rent cards banked for value
    properties     player_id -> color -> property cards

Moves never mutate a Game in place. The state machine copies the aggregate,
changes the copy, and bumps `version`; stores use `version` for
compare-and-swap.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from cards import Card, PROPERTY_KINDS


class GameStatus(str, Enum):
    """
    Lifecycle of a game.

    Flow: LOBBY -> IN_PROGRESS -> FINISHED, never backward.
    """

    LOBBY = "lobby"
    IN_PROGRESS = "inProgress"
    FINISHED = "finished"


class TurnPhase(str, Enum):
    """Where the current player is within their turn."""

    DRAW = "draw"    # Turn not begun, player must draw
    PLAY = "play"    # Cards drawn, playing up to the per-turn limit


class InvariantViolation(Exception):
    """Raised when a stored game is internally inconsistent (a server bug)."""
    pass


@dataclass
class Game:
    """
    Authoritative state of one game.

    Attributes:
        game_id: Short identifier the record is stored under.
        players: Player ids in turn order, fixed once the game starts.
        draw_pile: Cards to draw, top first.
        discard_pile: Discarded and resolved cards.
        hands: Cards each player holds.
        bank: Cards each player banked for value.
        properties: Each player's property sets keyed by declared color.
        turn_index: Index into players of whose turn it is.
        plays_this_turn: Cards played by the current player this turn.
        turn_phase: Whether the current player has drawn yet.
        status: Lifecycle status.
        winner: Winning player id, set only once finished.
        version: Revision counter, bumped by every accepted move.
        seed: Seed for the deal and for reshuffles during play.
        host_id: Player who created the game.
    """

    game_id: str
    players: list[str] = field(default_factory=list)
    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    hands: dict[str, list[Card]] = field(default_factory=dict)
    bank: dict[str, list[Card]] = field(default_factory=dict)
    properties: dict[str, dict[str, list[Card]]] = field(default_factory=dict)
    turn_index: int = 0
    plays_this_turn: int = 0
    turn_phase: TurnPhase = TurnPhase.DRAW
    status: GameStatus = GameStatus.LOBBY
    winner: Optional[str] = None
    version: int = 0
    seed: int = 0
    host_id: Optional[str] = None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def current_player_id(self) -> Optional[str]:
        """Get the id of the player whose turn it is."""
        if self.players and 0 <= self.turn_index < len(self.players):
            return self.players[self.turn_index]
        return None

    def hand(self, player_id: str) -> list[Card]:
        return self.hands.get(player_id, [])

    def player_bank(self, player_id: str) -> list[Card]:
        return self.bank.get(player_id, [])

    def player_properties(self, player_id: str) -> dict[str, list[Card]]:
        return self.properties.get(player_id, {})

    def iter_locations(self) -> Iterator[tuple[str, list[Card]]]:
        """
        Yield (location name, cards) for every place a card can be.

        Location names look like "drawPile", "hand:alice",
        "properties:alice:red".
        """
        yield "drawPile", self.draw_pile
        yield "discardPile", self.discard_pile
        for player_id, cards in self.hands.items():
            yield f"hand:{player_id}", cards
        for player_id, cards in self.bank.items():
            yield f"bank:{player_id}", cards
        for player_id, sets in self.properties.items():
            for color, cards in sets.items():
                yield f"properties:{player_id}:{color}", cards

    def all_card_ids(self) -> list[str]:
        """Every card id in the game, across all locations."""
        return [card.id for _, cards in self.iter_locations() for card in cards]

    # -------------------------------------------------------------------------
    # Copying
    # -------------------------------------------------------------------------

    def copy(self) -> "Game":
        """
        Copy the aggregate so the copy can be changed independently.

        Containers are duplicated; Card values are shared since they are
        immutable.
        """
        return Game(
            game_id=self.game_id,
            players=list(self.players),
            draw_pile=list(self.draw_pile),
            discard_pile=list(self.discard_pile),
            hands={pid: list(cards) for pid, cards in self.hands.items()},
            bank={pid: list(cards) for pid, cards in self.bank.items()},
            properties={
                pid: {color: list(cards) for color, cards in sets.items()}
                for pid, sets in self.properties.items()
            },
            turn_index=self.turn_index,
            plays_this_turn=self.plays_this_turn,
            turn_phase=self.turn_phase,
            status=self.status,
            winner=self.winner,
            version=self.version,
            seed=self.seed,
            host_id=self.host_id,
        )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        """
        Serialize the full aggregate for storage.

        Returns:
            JSON-compatible dict with camelCase keys.
        """
        return {
            "gameId": self.game_id,
            "hostId": self.host_id,
            "players": list(self.players),
            "drawPile": [c.to_dict() for c in self.draw_pile],
            "discardPile": [c.to_dict() for c in self.discard_pile],
            "hands": {pid: [c.to_dict() for c in cards] for pid, cards in self.hands.items()},
            "bank": {pid: [c.to_dict() for c in cards] for pid, cards in self.bank.items()},
            "properties": {
                pid: {color: [c.to_dict() for c in cards] for color, cards in sets.items()}
                for pid, sets in self.properties.items()
            },
            "turnIndex": self.turn_index,
            "playsThisTurn": self.plays_this_turn,
            "turnPhase": self.turn_phase.value,
            "status": self.status.value,
            "winner": self.winner,
            "version": self.version,
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Game":
        """Rebuild a Game from its stored dict."""
        def cards(items) -> list[Card]:
            return [Card.from_dict(c) for c in items or []]

        return cls(
            game_id=d["gameId"],
            host_id=d.get("hostId"),
            players=list(d.get("players", [])),
            draw_pile=cards(d.get("drawPile")),
            discard_pile=cards(d.get("discardPile")),
            hands={pid: cards(items) for pid, items in (d.get("hands") or {}).items()},
            bank={pid: cards(items) for pid, items in (d.get("bank") or {}).items()},
            properties={
                pid: {color: cards(items) for color, items in sets.items()}
                for pid, sets in (d.get("properties") or {}).items()
            },
            turn_index=d.get("turnIndex", 0),
            plays_this_turn=d.get("playsThisTurn", 0),
            turn_phase=TurnPhase(d.get("turnPhase", TurnPhase.DRAW.value)),
            status=GameStatus(d.get("status", GameStatus.LOBBY.value)),
            winner=d.get("winner"),
            version=d.get("version", 0),
            seed=d.get("seed", 0),
        )

    def to_client_dict(self, viewer_id: Optional[str] = None) -> dict:
        """
        Serialize the game for a player's view.

        The viewer sees their own hand; other hands are reduced to a count and
        the draw pile to its size. Banks and property sets are public.

        Args:
            viewer_id: Player requesting the view, or None to hide every hand.
        """
        data = self.to_dict()
        del data["seed"]
        data["drawPile"] = len(self.draw_pile)
        data["hands"] = {
            pid: (
                [c.to_dict() for c in cards]
                if pid == viewer_id
                else len(cards)
            )
            for pid, cards in self.hands.items()
        }
        data["currentPlayer"] = self.current_player_id()
        return data


def check_invariants(game: Game, max_plays_per_turn: int) -> None:
    """
    Verify the structural invariants of a game.

    A failure here means stored state was corrupted outside the state
    machine; it is not a move validation error.

    Args:
        game: Game to check.
        max_plays_per_turn: Upper bound for plays_this_turn.

    Raises:
        InvariantViolation: On the first inconsistency found.
    """
    counts = Counter(game.all_card_ids())
    duplicated = sorted(card_id for card_id, n in counts.items() if n > 1)
    if duplicated:
        raise InvariantViolation(f"Cards in more than one location: {duplicated}")

    if game.status != GameStatus.LOBBY:
        if not game.players:
            raise InvariantViolation("Started game has no players")
        if not 0 <= game.turn_index < len(game.players):
            raise InvariantViolation(
                f"turn_index {game.turn_index} out of range for {len(game.players)} players"
            )

    if not 0 <= game.plays_this_turn <= max_plays_per_turn:
        raise InvariantViolation(f"plays_this_turn {game.plays_this_turn} out of range")

    for player_id, sets in game.properties.items():
        for color, cards in sets.items():
            for card in cards:
                if card.kind not in PROPERTY_KINDS:
                    raise InvariantViolation(
                        f"{card.kind.value} card {card.id} in {player_id}'s {color} set"
                    )

    for player_id, cards in game.bank.items():
        for card in cards:
            if card.kind in PROPERTY_KINDS:
                raise InvariantViolation(f"Property card {card.id} in {player_id}'s bank")

    if (game.winner is not None) != (game.status == GameStatus.FINISHED):
        raise InvariantViolation(
            f"winner={game.winner!r} inconsistent with status={game.status.value}"
        )
