"""
Deck building and shuffling.

The deck is expanded from the catalog in declaration order, then shuffled
with a seeded random.Random so that a deal can be reproduced from its seed.
"""

import random
from typing import Iterable, Optional

from cards import Card
from catalog import CATALOG, CatalogEntry


def build_deck(catalog: Iterable[CatalogEntry] = CATALOG) -> list[Card]:
    """
    Expand the catalog into one Card per configured copy.

    Args:
        catalog: Catalog entries, in the order the deck should list them.

    Returns:
        Cards in catalog declaration order.

    Raises:
        ValueError: If two entries would produce the same card id.
    """
    cards: list[Card] = []
    seen: set[str] = set()

    for entry in catalog:
        for n in range(1, entry.count + 1):
            card_id = f"{entry.prefix}-{n}"
            if card_id in seen:
                raise ValueError(f"Duplicate card id in catalog: {card_id}")
            seen.add(card_id)
            cards.append(Card(
                id=card_id,
                kind=entry.kind,
                value=entry.value,
                color=entry.color,
                colors=entry.colors,
                action_kind=entry.action_kind,
            ))

    return cards


def shuffle_cards(cards: Iterable[Card], seed: Optional[int] = None) -> list[Card]:
    """
    Return a uniformly shuffled copy of the cards.

    random.Random.shuffle is a Fisher-Yates shuffle, so every permutation is
    equally likely. The input is never modified.

    Args:
        cards: Cards to shuffle.
        seed: Optional seed for a reproducible order.

    Returns:
        New list holding the same cards in random order.
    """
    shuffled = list(cards)
    random.Random(seed).shuffle(shuffled)
    return shuffled


def new_seed() -> int:
    """Generate a seed for a new game's shuffles."""
    return random.randint(0, 2**31 - 1)
