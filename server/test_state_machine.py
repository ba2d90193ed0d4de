"""
Test suite for move validation and application.

Covers:
- Precondition ordering (status, turn ownership, action type, turn phase)
- BeginTurn draws, reshuffles and deck exhaustion
- PlayCard placement rules and the per-turn play limit
- EndTurn hand limit and rotation
- Win detection
- Purity: rejected moves and the input game are never changed

Run with: pytest test_state_machine.py -v
"""

from collections import Counter

import pytest

from cards import Card, CardKind, ALL_COLORS
from config import GameRules
from game import Game, GameStatus, TurnPhase, InvariantViolation, check_invariants
from lobby import deal_game, new_game
from moves import BeginTurn, EndTurn, MoveError, PlayCard, UnknownMove, parse_move
from state_machine import apply_move
from turns import reshuffle_seed
from deck import shuffle_cards


RULES = GameRules()
LOOSE_RULES = GameRules(STRICT_TURN_PHASES=False)


def prop(color: str, n: int = 1) -> Card:
    return Card(id=f"p-{color}-{n}", kind=CardKind.PROPERTY, value=1, color=color)


def wild(colors: tuple, n: int = 1) -> Card:
    return Card(id=f"w-{'-'.join(colors)}-{n}", kind=CardKind.PROPERTY_WILD, value=2, colors=colors)


def money(value: int, n: int = 1) -> Card:
    return Card(id=f"m-{value}-{n}", kind=CardKind.MONEY, value=value)


def action(kind: str = "pass-go", n: int = 1) -> Card:
    return Card(id=f"a-{kind}-{n}", kind=CardKind.ACTION, value=1, action_kind=kind)


def rent(n: int = 1) -> Card:
    return Card(id=f"r-any-{n}", kind=CardKind.RENT, value=3, colors=ALL_COLORS)


def make_game(hand_a=None, hand_b=None, draw_pile=None, **overrides) -> Game:
    """Two-player game with A to move, already past the draw."""
    defaults = dict(
        game_id="TEST01",
        players=["A", "B"],
        draw_pile=draw_pile if draw_pile is not None else [money(1, n) for n in range(1, 11)],
        hands={"A": list(hand_a or []), "B": list(hand_b or [])},
        bank={"A": [], "B": []},
        properties={"A": {}, "B": {}},
        status=GameStatus.IN_PROGRESS,
        turn_phase=TurnPhase.PLAY,
        seed=1234,
        version=1,
    )
    defaults.update(overrides)
    return Game(**defaults)


def play(player_id: str, card: Card, place_as: str, color=None) -> PlayCard:
    return PlayCard(player_id=player_id, card_id=card.id, place_as=place_as, color=color)


def apply_ok(game: Game, move, rules: GameRules = RULES) -> Game:
    result = apply_move(game, move, rules)
    assert result.ok, f"expected success, got {result.error}"
    return result.game


def apply_err(game: Game, move, rules: GameRules = RULES) -> MoveError:
    before = game.to_dict()
    result = apply_move(game, move, rules)
    assert not result.ok
    assert result.game is None
    assert game.to_dict() == before
    return result.error


# =============================================================================
# Scenario Tests
# =============================================================================

class TestScenarios:
    """A full turn, and a move out of turn."""

    def test_begin_play_end(self):
        pile = [prop("red", 1), money(1, 1)] + [money(2, n) for n in range(1, 9)]
        game = make_game(draw_pile=pile, turn_phase=TurnPhase.DRAW)

        game = apply_ok(game, parse_move({"playerId": "A", "actionType": "BeginTurn"}))
        assert [c.id for c in game.hands["A"]] == ["p-red-1", "m-1-1"]
        assert len(game.draw_pile) == 8
        assert game.plays_this_turn == 0

        game = apply_ok(game, parse_move({
            "playerId": "A",
            "actionType": "PlayCard",
            "card": {"id": "p-red-1", "kind": "property", "color": "red"},
            "placeAs": "property",
        }))
        assert [c.id for c in game.properties["A"]["red"]] == ["p-red-1"]
        assert [c.id for c in game.hands["A"]] == ["m-1-1"]
        assert game.plays_this_turn == 1

        game = apply_ok(game, parse_move({"playerId": "A", "actionType": "EndTurn"}))
        assert game.turn_index == 1
        assert game.plays_this_turn == 0
        assert game.version == 4

    def test_move_out_of_turn(self):
        game = make_game(hand_b=[money(5)])
        assert apply_err(game, play("B", money(5), "bank")) == MoveError.NOT_YOUR_TURN


# =============================================================================
# Precondition Tests
# =============================================================================

class TestPreconditions:

    @pytest.mark.parametrize("status", [GameStatus.LOBBY, GameStatus.FINISHED])
    def test_not_in_progress(self, status):
        winner = "A" if status == GameStatus.FINISHED else None
        game = make_game(hand_a=[money(5)], status=status, winner=winner)
        assert apply_err(game, play("A", money(5), "bank")) == MoveError.NOT_IN_PROGRESS

    def test_status_checked_before_turn(self):
        game = make_game(status=GameStatus.FINISHED, winner="A")
        assert apply_err(game, BeginTurn("B")) == MoveError.NOT_IN_PROGRESS

    def test_unknown_action(self):
        move = parse_move({"playerId": "A", "actionType": "StealEverything"})
        assert isinstance(move, UnknownMove)
        assert apply_err(make_game(), move) == MoveError.UNKNOWN_ACTION

    def test_turn_checked_before_action_type(self):
        move = parse_move({"playerId": "B", "actionType": "StealEverything"})
        assert apply_err(make_game(), move) == MoveError.NOT_YOUR_TURN

    def test_unknown_player(self):
        assert apply_err(make_game(), EndTurn("Z")) == MoveError.NOT_YOUR_TURN

    def test_corrupted_game_raises(self):
        game = make_game(hand_a=[money(5)], discard_pile=[money(5)])
        with pytest.raises(InvariantViolation):
            apply_move(game, EndTurn("A"), RULES)


class TestTurnPhases:

    def test_play_before_draw_rejected(self):
        game = make_game(hand_a=[money(5)], turn_phase=TurnPhase.DRAW)
        assert apply_err(game, play("A", money(5), "bank")) == MoveError.TURN_NOT_BEGUN

    def test_end_before_draw_rejected(self):
        game = make_game(turn_phase=TurnPhase.DRAW)
        assert apply_err(game, EndTurn("A")) == MoveError.TURN_NOT_BEGUN

    def test_second_draw_rejected(self):
        game = make_game(turn_phase=TurnPhase.PLAY)
        assert apply_err(game, BeginTurn("A")) == MoveError.TURN_ALREADY_BEGUN

    def test_loose_phases_allow_play_before_draw(self):
        game = make_game(hand_a=[money(5)], turn_phase=TurnPhase.DRAW)
        game = apply_ok(game, play("A", money(5), "bank"), LOOSE_RULES)
        assert game.bank["A"] == [money(5)]

    def test_loose_phases_allow_second_draw(self):
        game = make_game(turn_phase=TurnPhase.PLAY)
        game = apply_ok(game, BeginTurn("A"), LOOSE_RULES)
        game = apply_ok(game, BeginTurn("A"), LOOSE_RULES)
        assert len(game.hands["A"]) == 4


# =============================================================================
# BeginTurn Tests
# =============================================================================

class TestBeginTurn:

    def test_draws_from_top(self):
        game = make_game(draw_pile=[money(1), money(2), money(3)], turn_phase=TurnPhase.DRAW)
        game = apply_ok(game, BeginTurn("A"))
        assert [c.id for c in game.hands["A"]] == ["m-1-1", "m-2-1"]
        assert [c.id for c in game.draw_pile] == ["m-3-1"]
        assert game.turn_phase == TurnPhase.PLAY

    def test_resets_play_counter(self):
        game = make_game(turn_phase=TurnPhase.DRAW, plays_this_turn=2)
        assert apply_ok(game, BeginTurn("A")).plays_this_turn == 0

    def test_reshuffles_discard_when_short(self):
        discard = [action("sly-deal", n) for n in range(1, 4)]
        game = make_game(draw_pile=[money(1)], discard_pile=discard, turn_phase=TurnPhase.DRAW)

        expected = [money(1)] + shuffle_cards(discard, seed=reshuffle_seed(game))
        after = apply_ok(game, BeginTurn("A"))

        assert after.hands["A"] == expected[:2]
        assert after.draw_pile == expected[2:]
        assert after.discard_pile == []

    def test_reshuffle_is_deterministic(self):
        discard = [action("sly-deal", n) for n in range(1, 8)]
        game = make_game(draw_pile=[], discard_pile=discard, turn_phase=TurnPhase.DRAW)
        first = apply_ok(game, BeginTurn("A"))
        second = apply_ok(game, BeginTurn("A"))
        assert first == second

    def test_deck_exhausted(self):
        game = make_game(draw_pile=[money(1)], discard_pile=[], turn_phase=TurnPhase.DRAW)
        assert apply_err(game, BeginTurn("A")) == MoveError.DECK_EXHAUSTED

    def test_deck_exhausted_without_reshuffle(self):
        rules = GameRules(RESHUFFLE_DISCARD=False)
        game = make_game(draw_pile=[money(1)], discard_pile=[action()], turn_phase=TurnPhase.DRAW)
        assert apply_err(game, BeginTurn("A"), rules) == MoveError.DECK_EXHAUSTED

    def test_configurable_draw_count(self):
        rules = GameRules(DRAW_PER_TURN=5)
        game = make_game(turn_phase=TurnPhase.DRAW)
        assert len(apply_ok(game, BeginTurn("A"), rules).hands["A"]) == 5


# =============================================================================
# PlayCard Tests
# =============================================================================

class TestPlayCard:

    def test_bank_money(self):
        game = apply_ok(make_game(hand_a=[money(5)]), play("A", money(5), "bank"))
        assert game.bank["A"] == [money(5)]
        assert game.hands["A"] == []

    def test_bank_action_for_value(self):
        game = apply_ok(make_game(hand_a=[action()]), play("A", action(), "bank"))
        assert game.bank["A"] == [action()]
        assert game.discard_pile == []

    def test_bank_rent(self):
        game = apply_ok(make_game(hand_a=[rent()]), play("A", rent(), "bank"))
        assert game.bank["A"] == [rent()]

    @pytest.mark.parametrize("card", [prop("red"), wild(("red", "yellow"))])
    def test_properties_cannot_be_banked(self, card):
        game = make_game(hand_a=[card])
        assert apply_err(game, play("A", card, "bank")) == MoveError.PROPERTIES_CANNOT_BE_BANKED

    def test_property_goes_to_its_color(self):
        game = apply_ok(make_game(hand_a=[prop("green")]), play("A", prop("green"), "property"))
        assert game.properties["A"] == {"green": [prop("green")]}

    def test_property_ignores_supplied_color(self):
        card = prop("green")
        game = apply_ok(make_game(hand_a=[card]), play("A", card, "property", color="red"))
        assert game.properties["A"] == {"green": [card]}

    def test_property_joins_existing_set(self):
        game = make_game(hand_a=[prop("red", 2)], properties={"A": {"red": [prop("red", 1)]}, "B": {}})
        game = apply_ok(game, play("A", prop("red", 2), "property"))
        assert [c.id for c in game.properties["A"]["red"]] == ["p-red-1", "p-red-2"]

    def test_wild_goes_to_chosen_color(self):
        card = wild(("red", "yellow"))
        game = apply_ok(make_game(hand_a=[card]), play("A", card, "property", color="yellow"))
        assert game.properties["A"] == {"yellow": [card]}

    @pytest.mark.parametrize("color", [None, "green", "chartreuse"])
    def test_wild_needs_one_of_its_colors(self, color):
        card = wild(("red", "yellow"))
        game = make_game(hand_a=[card])
        assert apply_err(game, play("A", card, "property", color=color)) == MoveError.INVALID_COLOR

    def test_multicolor_wild_any_color(self):
        card = wild(ALL_COLORS)
        game = apply_ok(make_game(hand_a=[card]), play("A", card, "property", color="railroad"))
        assert game.properties["A"]["railroad"] == [card]

    @pytest.mark.parametrize("card", [money(3), action(), rent()])
    def test_non_property_as_property(self, card):
        game = make_game(hand_a=[card])
        assert apply_err(game, play("A", card, "property")) == MoveError.NOT_A_PROPERTY

    @pytest.mark.parametrize("card", [action(), rent()])
    def test_action_is_discarded(self, card):
        game = apply_ok(make_game(hand_a=[card]), play("A", card, "action"))
        assert game.discard_pile == [card]
        assert game.hands["A"] == []
        assert game.plays_this_turn == 1

    @pytest.mark.parametrize("card", [prop("red"), wild(("red", "yellow"))])
    def test_property_as_action(self, card):
        game = make_game(hand_a=[card])
        assert apply_err(game, play("A", card, "action")) == MoveError.NON_PROPERTY_ACTION_ONLY

    def test_money_as_action(self):
        game = make_game(hand_a=[money(2)])
        assert apply_err(game, play("A", money(2), "action")) == MoveError.INVALID_PLACEMENT

    @pytest.mark.parametrize("place_as", ["", "hand", "BANK"])
    def test_unknown_placement(self, place_as):
        game = make_game(hand_a=[money(2)])
        assert apply_err(game, play("A", money(2), place_as)) == MoveError.INVALID_PLACEMENT

    def test_card_not_in_hand(self):
        game = make_game(hand_a=[money(2)], hand_b=[money(5)])
        assert apply_err(game, play("A", money(5), "bank")) == MoveError.CARD_NOT_IN_HAND

    def test_card_referenced_by_id_only(self):
        """Only the card id is trusted; the hand's copy is what moves."""
        game = make_game(hand_a=[money(10)])
        move = parse_move({
            "playerId": "A",
            "actionType": "PlayCard",
            "card": {"id": "m-10-1", "kind": "property", "value": 99},
            "placeAs": "bank",
        })
        game = apply_ok(game, move)
        assert game.bank["A"] == [money(10)]

    def test_play_limit(self):
        hand = [money(1, n) for n in range(11, 15)]
        game = make_game(hand_a=hand, draw_pile=[])
        for card in hand[:3]:
            game = apply_ok(game, play("A", card, "bank"))
        assert game.plays_this_turn == 3
        assert apply_err(game, play("A", hand[3], "bank")) == MoveError.PLAY_LIMIT_EXCEEDED

    def test_play_limit_checked_before_hand(self):
        game = make_game(plays_this_turn=3)
        assert apply_err(game, play("A", money(7), "bank")) == MoveError.PLAY_LIMIT_EXCEEDED

    def test_rejected_play_does_not_count(self):
        game = make_game(hand_a=[prop("red")])
        apply_err(game, play("A", prop("red"), "bank"))
        assert game.plays_this_turn == 0
        assert game.hands["A"] == [prop("red")]


# =============================================================================
# EndTurn Tests
# =============================================================================

class TestEndTurn:

    def test_rotates_and_wraps(self):
        game = make_game(players=["A", "B", "C"], hands={"A": [], "B": [], "C": []}, turn_index=2)
        game = apply_ok(game, EndTurn("C"))
        assert game.turn_index == 0
        assert game.turn_phase == TurnPhase.DRAW

    def test_within_limit_keeps_hand(self):
        hand = [money(1, n) for n in range(11, 18)]
        game = apply_ok(make_game(hand_a=hand), EndTurn("A"))
        assert game.hands["A"] == hand
        assert game.discard_pile == []

    def test_discards_from_end_of_hand(self):
        hand = [money(1, n) for n in range(11, 20)]
        game = apply_ok(make_game(hand_a=hand), EndTurn("A"))
        assert game.hands["A"] == hand[:7]
        assert game.discard_pile == [hand[8], hand[7]]

    def test_chosen_discards_go_first(self):
        hand = [money(1, n) for n in range(11, 20)]
        move = EndTurn("A", discards=(hand[0].id, hand[0].id))
        game = apply_ok(make_game(hand_a=hand), move)
        assert game.discard_pile == [hand[0], hand[8]]
        assert game.hands["A"] == hand[1:8]

    def test_extra_chosen_discards_ignored_once_within_limit(self):
        hand = [money(1, n) for n in range(11, 19)]
        move = EndTurn("A", discards=(hand[0].id, hand[1].id))
        game = apply_ok(make_game(hand_a=hand), move)
        assert game.discard_pile == [hand[0]]
        assert len(game.hands["A"]) == 7

    def test_chosen_discard_not_in_hand(self):
        hand = [money(1, n) for n in range(11, 20)]
        game = make_game(hand_a=hand)
        assert apply_err(game, EndTurn("A", discards=("p-red-9",))) == MoveError.CARD_NOT_IN_HAND

    def test_configurable_hand_limit(self):
        rules = GameRules(HAND_LIMIT=2)
        hand = [money(1, n) for n in range(11, 15)]
        game = apply_ok(make_game(hand_a=hand), EndTurn("A"), rules)
        assert len(game.hands["A"]) == 2


# =============================================================================
# Win Detection
# =============================================================================

class TestWinDetection:

    @staticmethod
    def near_win() -> Game:
        properties = {
            "A": {
                "brown": [prop("brown", 1), prop("brown", 2)],
                "darkblue": [prop("darkblue", 1), prop("darkblue", 2)],
                "utility": [prop("utility", 1)],
            },
            "B": {},
        }
        return make_game(hand_a=[prop("utility", 2)], properties=properties)

    def test_win_evaluated_at_end_of_turn(self):
        game = apply_ok(self.near_win(), play("A", prop("utility", 2), "property"))
        assert game.status == GameStatus.IN_PROGRESS
        assert game.winner is None

        game = apply_ok(game, EndTurn("A"))
        assert game.status == GameStatus.FINISHED
        assert game.winner == "A"

    def test_no_moves_after_win(self):
        game = apply_ok(self.near_win(), play("A", prop("utility", 2), "property"))
        game = apply_ok(game, EndTurn("A"))
        assert apply_err(game, BeginTurn("B")) == MoveError.NOT_IN_PROGRESS

    def test_two_sets_do_not_win(self):
        game = apply_ok(self.near_win(), EndTurn("A"))
        assert game.status == GameStatus.IN_PROGRESS

    @staticmethod
    def wild_only_green() -> Game:
        game = TestWinDetection.near_win()
        game.hands["A"] = [wild(ALL_COLORS, 1)]
        game.properties["A"]["green"] = [wild(ALL_COLORS, 2), wild(ALL_COLORS, 3)]
        return apply_ok(game, play("A", wild(ALL_COLORS, 1), "property", color="green"))

    def test_multicolor_wilds_complete_a_set(self):
        game = apply_ok(self.wild_only_green(), EndTurn("A"))
        assert game.winner == "A"

    def test_wild_only_sets_incomplete_house_rule(self):
        rules = GameRules(WILD_ONLY_SETS_INCOMPLETE=True)
        game = apply_ok(self.wild_only_green(), EndTurn("A"), rules)
        assert game.status == GameStatus.IN_PROGRESS

    def test_configurable_sets_to_win(self):
        rules = GameRules(SETS_TO_WIN=2)
        game = apply_ok(self.near_win(), EndTurn("A"), rules)
        assert game.winner == "A"


# =============================================================================
# Purity and Conservation
# =============================================================================

class TestPurity:

    def test_input_game_unchanged(self):
        game = make_game(hand_a=[prop("red")])
        before = game.to_dict()
        apply_ok(game, play("A", prop("red"), "property"))
        assert game.to_dict() == before

    def test_rejection_is_repeatable(self):
        game = make_game(hand_b=[money(5)])
        move = play("B", money(5), "bank")
        assert apply_move(game, move, RULES) == apply_move(game, move, RULES)

    def test_version_bumped_once_per_move(self):
        game = make_game(hand_a=[money(5)], version=41)
        assert apply_ok(game, play("A", money(5), "bank")).version == 42

    def test_default_rules_from_config(self):
        game = make_game(hand_a=[money(5)])
        assert apply_move(game, play("A", money(5), "bank")).ok


def _choose_move(game: Game):
    """Simple scripted player: draw, play what it can, end the turn."""
    player_id = game.current_player_id()
    if game.turn_phase == TurnPhase.DRAW:
        return BeginTurn(player_id)
    if game.plays_this_turn < RULES.MAX_PLAYS_PER_TURN:
        for card in game.hands[player_id]:
            if card.kind == CardKind.MONEY:
                return play(player_id, card, "bank")
            if card.kind == CardKind.PROPERTY:
                return play(player_id, card, "property")
            if card.kind == CardKind.PROPERTY_WILD:
                return play(player_id, card, "property", color=card.colors[0])
            if card.kind in (CardKind.ACTION, CardKind.RENT):
                return play(player_id, card, "action")
    return EndTurn(player_id)


class TestConservation:

    @pytest.mark.parametrize("seed", [1, 7, 2024])
    def test_full_game_keeps_every_card(self, seed):
        game = deal_game(new_game("CONSRV", "A", ["A", "B", "C"]), RULES, seed=seed)
        deck = Counter(game.all_card_ids())
        assert sum(deck.values()) == 106

        for _ in range(2000):
            result = apply_move(game, _choose_move(game), RULES)
            if not result.ok:
                assert result.error == MoveError.DECK_EXHAUSTED
                break
            assert result.game.version == game.version + 1
            game = result.game
            assert Counter(game.all_card_ids()) == deck
            check_invariants(game, RULES.MAX_PLAYS_PER_TURN)
            if game.status == GameStatus.FINISHED:
                break

        assert game.version > 10
