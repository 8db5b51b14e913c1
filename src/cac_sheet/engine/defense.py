"""Armor class resolution."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from cac_sheet.engine.attributes import calc_mod, race_bonus
from cac_sheet.models import Character, EffectKind, EncumbranceStatus, InventoryItem


class ArmorClassBreakdown(BaseModel):
    """Each term of the AC sum, for display next to the total."""

    model_config = ConfigDict(frozen=True)

    base: int
    armor: int
    shield: int
    dex_term: int
    magic: int
    misc: int
    race: int
    bonus: int
    effects: int

    @property
    def total(self) -> int:
        return (
            self.base
            + self.armor
            + self.shield
            + self.dex_term
            + self.magic
            + self.misc
            + self.race
            + self.bonus
            + self.effects
        )


def _protection(item: InventoryItem | None) -> int:
    if item is None:
        return 0
    return item.ac_bonus + item.magic_ac_bonus


def dex_term(character: Character, dex_total: int, status: EncumbranceStatus) -> int:
    """DEX contribution to AC.

    With automatic modifiers on, an overburdened character loses the
    Dexterity modifier entirely. Being merely burdened does not.
    """
    if not character.ac_mod_auto:
        return character.ac_mod
    if status == EncumbranceStatus.OVERBURDENED:
        return 0
    return calc_mod(dex_total)


def equipped_ac_effects(character: Character) -> int:
    """Sum AC effects of items in the equipped AC effect set."""
    total = 0
    for item_id in character.equipped_effect_item_ids.ac:
        item = character.get_item(item_id)
        if item is None:
            continue
        total += sum(effect.ac for effect in item.effects_of(EffectKind.AC))
    return total


def armor_class_breakdown(
    character: Character,
    dex_total: int,
    status: EncumbranceStatus,
) -> ArmorClassBreakdown:
    """Resolve every AC term.

    Args:
        character: The character record.
        dex_total: The resolved Dexterity total.
        status: The resolved encumbrance status.
    """
    return ArmorClassBreakdown(
        base=character.ac_base,
        armor=sum(_protection(character.get_item(aid)) for aid in character.equipped_armor_ids),
        shield=_protection(character.get_item(character.equipped_shield_id)),
        dex_term=dex_term(character, dex_total, status),
        magic=character.ac_magic,
        misc=character.ac_misc,
        race=race_bonus(character, "ac"),
        bonus=character.ac_bonus,
        effects=equipped_ac_effects(character),
    )


def armor_class(character: Character, dex_total: int, status: EncumbranceStatus) -> int:
    """Compute total armor class."""
    return armor_class_breakdown(character, dex_total, status).total


__all__ = [
    "ArmorClassBreakdown",
    "dex_term",
    "equipped_ac_effects",
    "armor_class_breakdown",
    "armor_class",
]
