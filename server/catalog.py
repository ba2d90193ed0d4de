"""
Card catalog for the standard 106-card Monopoly Deal deck.

Pure configuration: every entry is a card template plus how many copies the
deck holds. Card ids are "<prefix>-<n>" with n counting from 1 per entry, so
ids are stable across games built from the same catalog.

Composition:
    - 20 money
    - 28 property
    - 11 wild property
    - 34 action
    - 13 rent
"""

from dataclasses import dataclass
from typing import Optional

from cards import ALL_COLORS, ActionKind, CardKind, Color


@dataclass(frozen=True)
class CatalogEntry:
    """Template for `count` identical cards."""
    prefix: str
    count: int
    kind: CardKind
    value: int
    color: Optional[str] = None
    colors: tuple[str, ...] = ()
    action_kind: Optional[str] = None


def _money(value: int, count: int) -> CatalogEntry:
    return CatalogEntry(f"m-{value}", count, CardKind.MONEY, value)


def _property(color: Color, count: int, value: int) -> CatalogEntry:
    return CatalogEntry(f"p-{color.value}", count, CardKind.PROPERTY, value, color=color.value)


def _wild(colors: tuple[Color, ...], count: int, value: int) -> CatalogEntry:
    names = tuple(c.value for c in colors)
    return CatalogEntry(f"w-{'-'.join(names)}", count, CardKind.PROPERTY_WILD, value, colors=names)


def _action(kind: ActionKind, count: int, value: int) -> CatalogEntry:
    return CatalogEntry(f"a-{kind.value}", count, CardKind.ACTION, value, action_kind=kind.value)


def _rent(colors: tuple[Color, ...], count: int, value: int) -> CatalogEntry:
    names = tuple(c.value for c in colors)
    return CatalogEntry(f"r-{'-'.join(names)}", count, CardKind.RENT, value, colors=names)


CATALOG: tuple[CatalogEntry, ...] = (
    # Money
    _money(1, 6),
    _money(2, 5),
    _money(3, 3),
    _money(4, 3),
    _money(5, 2),
    _money(10, 1),

    # Properties
    _property(Color.BROWN, 2, 1),
    _property(Color.DARK_BLUE, 2, 4),
    _property(Color.GREEN, 3, 4),
    _property(Color.LIGHT_BLUE, 3, 1),
    _property(Color.ORANGE, 3, 2),
    _property(Color.PURPLE, 3, 2),
    _property(Color.RAILROAD, 4, 2),
    _property(Color.RED, 3, 3),
    _property(Color.UTILITY, 2, 2),
    _property(Color.YELLOW, 3, 3),

    # Wild properties
    _wild((Color.DARK_BLUE, Color.GREEN), 1, 4),
    _wild((Color.GREEN, Color.RAILROAD), 1, 4),
    _wild((Color.UTILITY, Color.RAILROAD), 1, 2),
    _wild((Color.LIGHT_BLUE, Color.RAILROAD), 1, 4),
    _wild((Color.LIGHT_BLUE, Color.BROWN), 1, 1),
    _wild((Color.PURPLE, Color.ORANGE), 2, 2),
    _wild((Color.RED, Color.YELLOW), 2, 3),
    CatalogEntry("w-any", 2, CardKind.PROPERTY_WILD, 0, colors=ALL_COLORS),

    # Actions
    _action(ActionKind.DEAL_BREAKER, 2, 5),
    _action(ActionKind.JUST_SAY_NO, 3, 4),
    _action(ActionKind.SLY_DEAL, 3, 3),
    _action(ActionKind.FORCED_DEAL, 3, 3),
    _action(ActionKind.DEBT_COLLECTOR, 3, 3),
    _action(ActionKind.ITS_MY_BIRTHDAY, 3, 2),
    _action(ActionKind.PASS_GO, 10, 1),
    _action(ActionKind.HOUSE, 3, 3),
    _action(ActionKind.HOTEL, 2, 4),
    _action(ActionKind.DOUBLE_THE_RENT, 2, 1),

    # Rent
    _rent((Color.DARK_BLUE, Color.GREEN), 2, 1),
    _rent((Color.RED, Color.YELLOW), 2, 1),
    _rent((Color.PURPLE, Color.ORANGE), 2, 1),
    _rent((Color.LIGHT_BLUE, Color.BROWN), 2, 1),
    _rent((Color.RAILROAD, Color.UTILITY), 2, 1),
    CatalogEntry("r-any", 3, CardKind.RENT, 3, colors=ALL_COLORS),
)


def catalog_size(catalog: tuple[CatalogEntry, ...] = CATALOG) -> int:
    """Total number of card instances the catalog expands to."""
    return sum(entry.count for entry in catalog)
