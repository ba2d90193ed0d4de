"""
Win evaluation for Monopoly Deal.

A player wins by holding complete property sets in enough different colors
(three by default). A set is complete once it holds at least the color's
set size in cards.
"""

from typing import Optional

from cards import CardKind, Card
from constants import DEFAULT_SET_SIZE, SET_SIZES


def set_size(color: str, set_sizes: Optional[dict[str, int]] = None) -> int:
    """Cards needed to complete a set of the given color."""
    return (set_sizes or SET_SIZES).get(color, DEFAULT_SET_SIZE)


def _only_multicolor_wilds(cards: list[Card]) -> bool:
    return all(card.kind == CardKind.PROPERTY_WILD and len(card.colors) > 2 for card in cards)


def is_complete_set(
    color: str,
    cards: list[Card],
    set_sizes: Optional[dict[str, int]] = None,
    require_real_property: bool = False,
) -> bool:
    """
    Check whether a property set is complete.

    Args:
        color: Set color.
        cards: Cards in the set.
        set_sizes: Optional custom set-size table.
        require_real_property: House rule: a set built only from ten-color
            wilds never counts as complete.

    Returns:
        True if the set holds at least the color's set size.
    """
    if not cards:
        return False
    if require_real_property and _only_multicolor_wilds(cards):
        return False
    return len(cards) >= set_size(color, set_sizes)


def complete_sets(
    properties: dict[str, list[Card]],
    set_sizes: Optional[dict[str, int]] = None,
    require_real_property: bool = False,
) -> list[str]:
    """List the colors a player has completed, sorted by name."""
    return sorted(
        color for color, cards in properties.items()
        if is_complete_set(color, cards, set_sizes, require_real_property)
    )


def is_winner(
    properties: dict[str, list[Card]],
    sets_to_win: int = 3,
    set_sizes: Optional[dict[str, int]] = None,
    require_real_property: bool = False,
) -> bool:
    """
    Check whether a player's property sets win the game.

    Args:
        properties: The player's sets, color -> cards.
        sets_to_win: Complete colors needed to win.
        set_sizes: Optional custom set-size table.
        require_real_property: See is_complete_set().
    """
    return len(complete_sets(properties, set_sizes, require_real_property)) >= sets_to_win
