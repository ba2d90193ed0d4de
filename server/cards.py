"""
Card model for Monopoly Deal.

Cards are immutable values. A card never changes during a game; only the
pile, hand, bank or property set that holds it does.

Card kinds:
    - money: banked for its face value
    - property: played into the property set of its color
    - property-wild: property valid for any one of its colors, chosen at play
    - action: resolved (then discarded) or banked for its face value
    - rent: like action, names the colors it charges for
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CardKind(str, Enum):
    """Card categories."""

    PROPERTY = "property"
    PROPERTY_WILD = "property-wild"
    ACTION = "action"
    RENT = "rent"
    MONEY = "money"


class Color(str, Enum):
    """Property set colors."""

    BROWN = "brown"
    DARK_BLUE = "darkblue"
    GREEN = "green"
    LIGHT_BLUE = "lightblue"
    ORANGE = "orange"
    PURPLE = "purple"
    RAILROAD = "railroad"
    RED = "red"
    UTILITY = "utility"
    YELLOW = "yellow"


ALL_COLORS: tuple[str, ...] = tuple(c.value for c in Color)


class ActionKind(str, Enum):
    """Action card effects. Only their placement is enforced by the server."""

    DEAL_BREAKER = "deal-breaker"
    JUST_SAY_NO = "just-say-no"
    SLY_DEAL = "sly-deal"
    FORCED_DEAL = "forced-deal"
    DEBT_COLLECTOR = "debt-collector"
    ITS_MY_BIRTHDAY = "its-my-birthday"
    PASS_GO = "pass-go"
    HOUSE = "house"
    HOTEL = "hotel"
    DOUBLE_THE_RENT = "double-the-rent"


PROPERTY_KINDS = frozenset({CardKind.PROPERTY, CardKind.PROPERTY_WILD})


@dataclass(frozen=True)
class Card:
    """
    A single card instance.

    Attributes:
        id: Identifier unique within a game (e.g. "p-red-1").
        kind: Card category.
        value: Face value in millions, used when banked.
        color: Set color for plain property cards.
        colors: Allowed colors for wild properties and rent cards.
        action_kind: Effect for action cards.
    """

    id: str
    kind: CardKind
    value: int = 0
    color: Optional[str] = None
    colors: tuple[str, ...] = ()
    action_kind: Optional[str] = None

    @property
    def is_property(self) -> bool:
        return self.kind in PROPERTY_KINDS

    @property
    def is_wild(self) -> bool:
        return self.kind == CardKind.PROPERTY_WILD

    def can_be_color(self, color: Optional[str]) -> bool:
        """Whether this property card may sit in the given color's set."""
        if self.kind == CardKind.PROPERTY:
            return color == self.color
        if self.kind == CardKind.PROPERTY_WILD:
            return color in self.colors
        return False

    def to_dict(self) -> dict:
        """Serialize card for storage and the wire."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "value": self.value,
            "color": self.color,
            "colors": list(self.colors),
            "actionKind": self.action_kind,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Card":
        return cls(
            id=d["id"],
            kind=CardKind(d["kind"]),
            value=d.get("value", 0),
            color=d.get("color"),
            colors=tuple(d.get("colors") or ()),
            action_kind=d.get("actionKind"),
        )
