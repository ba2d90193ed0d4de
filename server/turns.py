"""
Turn controller for Monopoly Deal.

A turn runs:  BeginTurn (draw) -> up to N PlayCard -> EndTurn (discard down,
pass to the next player).

Functions here change the Game they are given. The state machine only ever
hands them a private copy, so a rejected move leaves no trace.
"""

from typing import Optional

from config import GameRules
from deck import shuffle_cards
from game import Game, TurnPhase
from moves import BeginTurn, EndTurn, Move, MoveError, PlayCard


def check_phase(game: Game, move: Move, rules: GameRules) -> Optional[MoveError]:
    """
    Enforce the draw-before-play ordering when strict phases are on.

    Returns:
        The rejection reason, or None if the move fits the current phase.
    """
    if not rules.STRICT_TURN_PHASES:
        return None

    if isinstance(move, BeginTurn):
        if game.turn_phase != TurnPhase.DRAW:
            return MoveError.TURN_ALREADY_BEGUN
    elif isinstance(move, (PlayCard, EndTurn)):
        if game.turn_phase != TurnPhase.PLAY:
            return MoveError.TURN_NOT_BEGUN

    return None


def reshuffle_seed(game: Game) -> int:
    """Seed for a reshuffle at the game's current version."""
    return game.seed * 1_000_003 + game.version


def refill_draw_pile(game: Game) -> None:
    """
    Shuffle the discard pile under the remaining draw pile.

    The shuffle is seeded from the game's seed and version so that replaying
    the same move against the same stored game gives the same order.
    """
    if not game.discard_pile:
        return
    game.draw_pile = game.draw_pile + shuffle_cards(game.discard_pile, seed=reshuffle_seed(game))
    game.discard_pile = []


def begin_turn(game: Game, player_id: str, rules: GameRules) -> Optional[MoveError]:
    """
    Draw the turn's cards from the top of the draw pile.

    Args:
        game: Game copy to change.
        player_id: Player whose turn is beginning.
        rules: Active rules.

    Returns:
        DECK_EXHAUSTED if not enough cards can be drawn, otherwise None.
    """
    needed = rules.DRAW_PER_TURN
    if len(game.draw_pile) < needed and rules.RESHUFFLE_DISCARD:
        refill_draw_pile(game)
    if len(game.draw_pile) < needed:
        return MoveError.DECK_EXHAUSTED

    drawn = game.draw_pile[:needed]
    game.draw_pile = game.draw_pile[needed:]
    game.hands.setdefault(player_id, []).extend(drawn)

    game.plays_this_turn = 0
    game.turn_phase = TurnPhase.PLAY
    return None


def discard_down(
    game: Game,
    player_id: str,
    chosen: tuple[str, ...],
    hand_limit: int,
) -> Optional[MoveError]:
    """
    Discard from a hand until it is within the hand limit.

    Cards the player chose go first, in the order given; if the hand is still
    too large, the most recently added cards (end of the hand) follow.

    Returns:
        CARD_NOT_IN_HAND if a chosen card is not held, otherwise None.
    """
    hand = game.hands.setdefault(player_id, [])
    held = {card.id for card in hand}
    if any(card_id not in held for card_id in chosen):
        return MoveError.CARD_NOT_IN_HAND

    for card_id in dict.fromkeys(chosen):
        if len(hand) <= hand_limit:
            break
        index = next(i for i, card in enumerate(hand) if card.id == card_id)
        game.discard_pile.append(hand.pop(index))

    while len(hand) > hand_limit:
        game.discard_pile.append(hand.pop())

    return None


def advance_turn(game: Game) -> None:
    """Pass the turn to the next player and reset per-turn counters."""
    game.turn_index = (game.turn_index + 1) % len(game.players)
    game.plays_this_turn = 0
    game.turn_phase = TurnPhase.DRAW


def end_turn(game: Game, move: EndTurn, rules: GameRules) -> Optional[MoveError]:
    """
    Discard down to the hand limit and rotate to the next player.

    Returns:
        The rejection reason, or None on success.
    """
    error = discard_down(game, move.player_id, move.discards, rules.HAND_LIMIT)
    if error:
        return error
    advance_turn(game)
    return None
