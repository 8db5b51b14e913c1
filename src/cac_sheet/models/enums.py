"""Enumeration types for the character sheet engine."""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """The six ability scores, keyed the way saved sheets key them."""

    STR = "str"
    DEX = "dex"
    CON = "con"
    INT = "int"
    WIS = "wis"
    CHA = "cha"

    @classmethod
    def parse(cls, value: object) -> Ability | None:
        """Match "str", "STR" or "Strength" to an ability, or return None."""
        key = str(value).strip().lower()[:3]
        try:
            return cls(key)
        except ValueError:
            return None


class EncumbranceStatus(StrEnum):
    """Three-tier carried-load status."""

    UNBURDENED = "unburdened"
    BURDENED = "burdened"
    OVERBURDENED = "overburdened"


class EffectKind(StrEnum):
    """What an item effect modifies while its item is worn."""

    ATTACK = "attack"
    """To-hit and damage bonuses, selected per attack."""

    AC = "ac"
    """Armor class bonus, active while in the equipped AC effect set."""

    SPEED = "speed"
    """Speed bonus, active while in the equipped speed item set."""


class WeaponMode(StrEnum):
    """How an attack is delivered; picks the ability used for modifiers."""

    MELEE = "melee"
    RANGED = "ranged"
    OTHER = "other"


class Coin(StrEnum):
    """Wallet denominations."""

    COPPER = "copper"
    SILVER = "silver"
    ELECTRUM = "electrum"
    GOLD = "gold"
    PLATINUM = "platinum"


__all__ = [
    "Ability",
    "EncumbranceStatus",
    "EffectKind",
    "WeaponMode",
    "Coin",
]
