"""
Rule constants for Monopoly Deal.

Set sizes follow the printed deck: the number of property cards of a color
needed for a complete set. House rules that change set sizes pass their own
table to the scoring functions.

Turn limits (plays per turn, hand limit, cards drawn) are configurable and
live in config.GameRules.
"""

from cards import Color


# =============================================================================
# Property Set Sizes
# =============================================================================

SET_SIZES: dict[str, int] = {
    Color.BROWN.value: 2,
    Color.DARK_BLUE.value: 2,
    Color.GREEN.value: 3,
    Color.LIGHT_BLUE.value: 3,
    Color.ORANGE.value: 3,
    Color.PURPLE.value: 3,
    Color.RAILROAD.value: 4,
    Color.RED.value: 3,
    Color.UTILITY.value: 2,
    Color.YELLOW.value: 3,
}

# Colors missing from a custom table fall back to this size
DEFAULT_SET_SIZE = 3


# =============================================================================
# Game Records
# =============================================================================

# Alphabet for short game ids: no 0/O or 1/I/L to keep ids readable aloud
GAME_ID_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
