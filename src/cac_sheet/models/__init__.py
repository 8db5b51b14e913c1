"""Pydantic V2 schemas for the character sheet.

Submodules:
    enums: Ability, EncumbranceStatus, EffectKind, WeaponMode, Coin.
    fields: Lenient numeric and id field types.
    character: The Character aggregate and its sub-records.

Example:
    >>> from cac_sheet.models import Character, InventoryItem
    >>> hero = Character(name="Aldric", inventory=[InventoryItem(name="Rope", ev=1)])
    >>> hero.inventory[0].quantity
    1
"""

from __future__ import annotations

from cac_sheet.models.character import (
    Attack,
    AttrBonus,
    AttributeScore,
    Character,
    Companion,
    CompanionAttack,
    EquippedEffects,
    Grimoire,
    GrimoireEntry,
    InventoryItem,
    ItemEffect,
    MagicItem,
    MagicItemSpell,
    RaceAttributeMod,
    SheetModel,
    Spell,
    Wallet,
    new_id,
)
from cac_sheet.models.enums import Ability, Coin, EffectKind, EncumbranceStatus, WeaponMode
from cac_sheet.models.fields import coerce_float, coerce_int


__all__ = [
    # === Enumerations ===
    "Ability",
    "Coin",
    "EffectKind",
    "EncumbranceStatus",
    "WeaponMode",
    # === Fields ===
    "coerce_float",
    "coerce_int",
    # === Records ===
    "SheetModel",
    "new_id",
    "AttributeScore",
    "RaceAttributeMod",
    "AttrBonus",
    "ItemEffect",
    "InventoryItem",
    "EquippedEffects",
    "Attack",
    "Spell",
    "GrimoireEntry",
    "Grimoire",
    "MagicItemSpell",
    "MagicItem",
    "Wallet",
    "CompanionAttack",
    "Companion",
    "Character",
]
