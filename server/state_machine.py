"""
Move validation and application for Monopoly Deal.

apply_move() is the only way a game changes once started. It is a pure
function of (game, move): the game passed in is never modified, and the
result holds either a new game with `version` bumped or the specific reason
the move was rejected.

Preconditions, first failure wins:
    1. game is in progress            -> NotInProgress
    2. mover owns the current turn    -> NotYourTurn
    3. action type is recognised      -> UnknownAction
    4. move fits the turn phase       -> TurnNotBegun / TurnAlreadyBegun
"""

from typing import Callable, Optional

from cards import Card, CardKind
from config import GameRules, config
from game import Game, GameStatus, check_invariants
from moves import (
    BeginTurn,
    EndTurn,
    Move,
    MoveError,
    MoveResult,
    Placement,
    PlayCard,
    UnknownMove,
)
from scoring import is_winner
from turns import begin_turn, check_phase, end_turn


def apply_move(game: Game, move: Move, rules: Optional[GameRules] = None) -> MoveResult:
    """
    Validate a move and apply it to a copy of the game.

    Args:
        game: Current game state. Never modified.
        move: Move to apply.
        rules: Rules to play by (defaults to config.rules).

    Returns:
        MoveResult with the new game, or with the rejection reason.

    Raises:
        InvariantViolation: If `game` is already inconsistent.
    """
    rules = rules or config.rules
    check_invariants(game, rules.MAX_PLAYS_PER_TURN)

    error = _check_preconditions(game, move, rules)
    if error:
        return MoveResult.rejected(error)

    new_game = game.copy()
    handler = _HANDLERS[type(move)]
    error = handler(new_game, move, rules)
    if error:
        return MoveResult.rejected(error)

    new_game.version += 1
    return MoveResult.accepted(new_game)


def _check_preconditions(game: Game, move: Move, rules: GameRules) -> Optional[MoveError]:
    if game.status != GameStatus.IN_PROGRESS:
        return MoveError.NOT_IN_PROGRESS
    if move.player_id != game.current_player_id():
        return MoveError.NOT_YOUR_TURN
    if isinstance(move, UnknownMove):
        return MoveError.UNKNOWN_ACTION
    return check_phase(game, move, rules)


# -------------------------------------------------------------------------
# Action handlers (operate on the private copy)
# -------------------------------------------------------------------------

def _begin_turn(game: Game, move: BeginTurn, rules: GameRules) -> Optional[MoveError]:
    return begin_turn(game, move.player_id, rules)


def _play_card(game: Game, move: PlayCard, rules: GameRules) -> Optional[MoveError]:
    if game.plays_this_turn >= rules.MAX_PLAYS_PER_TURN:
        return MoveError.PLAY_LIMIT_EXCEEDED

    hand = game.hands.setdefault(move.player_id, [])
    index = next((i for i, card in enumerate(hand) if card.id == move.card_id), None)
    if index is None:
        return MoveError.CARD_NOT_IN_HAND
    card = hand.pop(index)

    if move.place_as == Placement.BANK.value:
        error = _place_in_bank(game, move.player_id, card)
    elif move.place_as == Placement.PROPERTY.value:
        error = _place_as_property(game, move.player_id, card, move.color)
    elif move.place_as == Placement.ACTION.value:
        error = _resolve_action(game, card)
    else:
        error = MoveError.INVALID_PLACEMENT

    if error:
        return error

    game.plays_this_turn += 1
    return None


def _place_in_bank(game: Game, player_id: str, card: Card) -> Optional[MoveError]:
    if card.is_property:
        return MoveError.PROPERTIES_CANNOT_BE_BANKED
    game.bank.setdefault(player_id, []).append(card)
    return None


def _place_as_property(
    game: Game,
    player_id: str,
    card: Card,
    color: Optional[str],
) -> Optional[MoveError]:
    if not card.is_property:
        return MoveError.NOT_A_PROPERTY

    if card.is_wild:
        if not card.can_be_color(color):
            return MoveError.INVALID_COLOR
        target = color
    else:
        target = card.color

    game.properties.setdefault(player_id, {}).setdefault(target, []).append(card)
    return None


def _resolve_action(game: Game, card: Card) -> Optional[MoveError]:
    """
    Resolve an action or rent card.

    Effects (rent, stealing, Just Say No) are not modelled; a resolved card
    goes straight to the discard pile.
    """
    if card.is_property:
        return MoveError.NON_PROPERTY_ACTION_ONLY
    if card.kind not in (CardKind.ACTION, CardKind.RENT):
        return MoveError.INVALID_PLACEMENT
    game.discard_pile.append(card)
    return None


def _end_turn(game: Game, move: EndTurn, rules: GameRules) -> Optional[MoveError]:
    error = end_turn(game, move, rules)
    if error:
        return error

    properties = game.player_properties(move.player_id)
    if is_winner(
        properties,
        rules.SETS_TO_WIN,
        require_real_property=rules.WILD_ONLY_SETS_INCOMPLETE,
    ):
        game.status = GameStatus.FINISHED
        game.winner = move.player_id
    return None


_HANDLERS: dict[type, Callable[[Game, Move, GameRules], Optional[MoveError]]] = {
    BeginTurn: _begin_turn,
    PlayCard: _play_card,
    EndTurn: _end_turn,
}
