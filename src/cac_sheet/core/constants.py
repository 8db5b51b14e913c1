"""Rules constants for the character sheet engine.

Castles & Crusades values for modifiers, encumbrance, saves, currency
and the default experience table.
"""

from __future__ import annotations

# =============================================================================
# Ability Scores
# =============================================================================

DEFAULT_ROLLED_SCORE = 10
"""Rolled score assumed when an attribute is missing or unreadable."""

MODIFIER_BRACKETS: tuple[tuple[int, int], ...] = (
    (1, -4),
    (3, -3),
    (5, -2),
    (8, -1),
    (12, 0),
    (13, 1),
    (15, 2),
    (17, 3),
    (19, 4),
    (21, 5),
    (23, 6),
    (25, 7),
    (27, 8),
    (29, 9),
)
"""(highest score in bracket, modifier) pairs, ascending."""

MAX_MODIFIER = 10
"""Modifier for scores of 30 and above."""

PRIME_ENCUMBRANCE_BONUS = 3
"""Encumbrance rating added for each of STR and CON that is prime."""

# =============================================================================
# Encumbrance & Speed
# =============================================================================

OVERBURDENED_MULTIPLIER = 3
"""Total EV above rating x this value is overburdened."""

BURDENED_SPEED_PENALTY_CAP = 10
"""Largest speed loss while merely burdened."""

MINIMUM_SPEED = 5
"""Encumbrance never reduces speed below this value."""

COINS_PER_POUND = 16
COINS_PER_EV = 160

DEFAULT_SPEED = 30

# =============================================================================
# Saving Throws
# =============================================================================

BASE_SAVE_CHALLENGE = 12
"""Challenge base every save is rolled against."""

PRIME_SAVE_BONUS = 6
"""Bonus applied to saves using a prime attribute."""

BURDENED_DEX_SAVE_PENALTY = 2
"""Penalty to Dexterity saves while burdened or overburdened."""

# =============================================================================
# Armor Class
# =============================================================================

DEFAULT_AC_BASE = 10

# =============================================================================
# Progression
# =============================================================================

DEFAULT_XP_TABLE: tuple[int, ...] = (
    0, 2000, 4000, 8000, 16000, 32000, 64000, 120000, 240000, 360000,
    480000, 600000, 720000, 840000, 960000, 1080000, 1200000, 1320000,
    1440000, 1560000, 1680000, 1800000, 1920000, 2040000, 2160000,
)
"""Default 25-level experience table."""

DEFAULT_HP_BY_LEVEL: tuple[int, ...] = (0, 0, 0)

# =============================================================================
# Spell Economy
# =============================================================================

DEFAULT_GRIMOIRE_CAPACITY = 39
"""Spell points held by a new grimoire."""

PERMANENT_LIMIT_CLASS_KEYWORD = "arcane thief"
"""Class-name fragment that ties the permanent spell limit to a class level."""

# =============================================================================
# Currency
# =============================================================================

CURRENCY_TO_GP: dict[str, float] = {
    "copper": 0.01,
    "silver": 0.1,
    "gold": 1.0,
    "electrum": 5.0,
    "platinum": 10.0,
}

# =============================================================================
# Persistence
# =============================================================================

ROSTER_FORMAT_VERSION = 2
"""Version tag written into saved and exported roster files."""


__all__ = [
    "DEFAULT_ROLLED_SCORE",
    "MODIFIER_BRACKETS",
    "MAX_MODIFIER",
    "PRIME_ENCUMBRANCE_BONUS",
    "OVERBURDENED_MULTIPLIER",
    "BURDENED_SPEED_PENALTY_CAP",
    "MINIMUM_SPEED",
    "COINS_PER_POUND",
    "COINS_PER_EV",
    "DEFAULT_SPEED",
    "BASE_SAVE_CHALLENGE",
    "PRIME_SAVE_BONUS",
    "BURDENED_DEX_SAVE_PENALTY",
    "DEFAULT_AC_BASE",
    "DEFAULT_XP_TABLE",
    "DEFAULT_HP_BY_LEVEL",
    "DEFAULT_GRIMOIRE_CAPACITY",
    "PERMANENT_LIMIT_CLASS_KEYWORD",
    "CURRENCY_TO_GP",
    "ROSTER_FORMAT_VERSION",
]
