"""
Game creation and dealing.

Creating a game allocates a short id and records the seated players; the
game stays in LOBBY until it is started. Starting builds and shuffles a fresh
deck, deals each player their opening hand and hands the game over to the
state machine in IN_PROGRESS.
"""

import random
from typing import Optional

from config import GameRules, config
from constants import GAME_ID_ALPHABET
from deck import build_deck, new_seed, shuffle_cards
from game import Game, GameStatus, TurnPhase


class LobbyError(Exception):
    """Raised when a game cannot be created or started as requested."""
    pass


def generate_game_id(length: Optional[int] = None) -> str:
    """Generate a short, human-friendly game id (uniqueness is up to the store)."""
    length = length or config.GAME_ID_LENGTH
    return "".join(random.choices(GAME_ID_ALPHABET, k=length))


def new_game(
    game_id: str,
    host_id: str,
    player_ids: list[str],
    rules: Optional[GameRules] = None,
) -> Game:
    """
    Create a game in the lobby.

    Args:
        game_id: Id to store the game under.
        host_id: Player creating the game.
        player_ids: Seated players, in turn order.
        rules: Rules providing the player-count limits.

    Returns:
        A LOBBY game with no cards dealt.

    Raises:
        LobbyError: If the player list is invalid.
    """
    rules = rules or config.rules

    if not host_id:
        raise LobbyError("hostId is required")
    if any(not pid for pid in player_ids):
        raise LobbyError("Player ids must be non-empty")
    if len(set(player_ids)) != len(player_ids):
        raise LobbyError("Player ids must be unique")
    if not rules.MIN_PLAYERS <= len(player_ids) <= rules.MAX_PLAYERS:
        raise LobbyError(
            f"A game needs {rules.MIN_PLAYERS}-{rules.MAX_PLAYERS} players, got {len(player_ids)}"
        )

    return Game(
        game_id=game_id,
        host_id=host_id,
        players=list(player_ids),
        status=GameStatus.LOBBY,
    )


def deal_game(game: Game, rules: Optional[GameRules] = None, seed: Optional[int] = None) -> Game:
    """
    Start a lobby game: shuffle a full deck and deal the opening hands.

    Each player receives STARTING_HAND_SIZE cards from the top of the
    shuffled deck, in seat order; the first seat takes the first turn.

    Args:
        game: Game in LOBBY status. Not modified.
        rules: Rules providing the opening hand size.
        seed: Optional shuffle seed (random if omitted).

    Returns:
        A new IN_PROGRESS game with version bumped.

    Raises:
        LobbyError: If the game is not in the lobby.
    """
    rules = rules or config.rules

    if game.status != GameStatus.LOBBY:
        raise LobbyError(f"Game {game.game_id} has already started")

    seed = seed if seed is not None else new_seed()
    deck = shuffle_cards(build_deck(), seed=seed)

    hand_size = rules.STARTING_HAND_SIZE
    if hand_size * len(game.players) > len(deck):
        raise LobbyError("Not enough cards to deal every player")

    started = game.copy()
    started.hands = {}
    for seat, player_id in enumerate(game.players):
        started.hands[player_id] = deck[seat * hand_size:(seat + 1) * hand_size]
    started.draw_pile = deck[hand_size * len(game.players):]
    started.discard_pile = []
    started.bank = {player_id: [] for player_id in game.players}
    started.properties = {player_id: {} for player_id in game.players}
    started.turn_index = 0
    started.plays_this_turn = 0
    started.turn_phase = TurnPhase.DRAW
    started.status = GameStatus.IN_PROGRESS
    started.seed = seed
    started.version = game.version + 1
    return started
