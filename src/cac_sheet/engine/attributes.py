"""Ability score totals and modifiers.

A total is the rolled score plus racial adjustments, the manual bonus,
and the bonuses of items equipped for that ability. Nothing here raises:
unreadable inputs were already coerced to defaults by the models.
"""

from __future__ import annotations

from bisect import bisect_left

from cac_sheet.core.constants import MAX_MODIFIER, MODIFIER_BRACKETS
from cac_sheet.models import Ability, Character


_BRACKET_CEILINGS = [ceiling for ceiling, _ in MODIFIER_BRACKETS]


def calc_mod(score: int) -> int:
    """Look up the ability modifier for a score.

    Scores up to 12 follow the flat low-end table; above that the
    modifier tracks ``(score - 10) // 2`` and tops out at +10 from 30.

    Example:
        >>> calc_mod(10), calc_mod(18), calc_mod(1), calc_mod(30)
        (0, 4, -4, 10)
    """
    index = bisect_left(_BRACKET_CEILINGS, score)
    if index >= len(MODIFIER_BRACKETS):
        return MAX_MODIFIER
    return MODIFIER_BRACKETS[index][1]


def _race_key(attr: str) -> str:
    ability = Ability.parse(attr)
    return ability.value if ability is not None else attr.strip().lower()


def race_bonus(character: Character, key: Ability | str) -> int:
    """Sum every racial adjustment whose ``attr`` matches ``key``.

    Ability keys match any case or spelling ``Ability.parse`` accepts
    ("STR", "Strength"); other keys such as "ac" match case-insensitively.
    """
    wanted = _race_key(key)
    return sum(mod.value for mod in character.race_attribute_mods if _race_key(mod.attr) == wanted)


def item_bonus(character: Character, ability: Ability) -> int:
    """Sum equipped item bonuses to one ability, scaled by stack size."""
    equipped = set(character.equipped_attr_bonuses.get(ability, ()))
    if not equipped:
        return 0
    return sum(
        item.attr_bonus_for(ability) * item.quantity
        for item in character.inventory
        if item.has_attr_bonus and item.id in equipped
    )


def attribute_total(character: Character, ability: Ability) -> int:
    """Compute one ability's total score."""
    score = character.attribute(ability)
    return (
        score.rolled_score
        + race_bonus(character, ability)
        + score.bonus_mod
        + item_bonus(character, ability)
    )


def attribute_totals(character: Character) -> dict[Ability, int]:
    """Compute all six ability totals."""
    return {ability: attribute_total(character, ability) for ability in Ability}


def ability_modifiers(totals: dict[Ability, int]) -> dict[Ability, int]:
    """Map totals to modifiers."""
    return {ability: calc_mod(total) for ability, total in totals.items()}


__all__ = [
    "calc_mod",
    "race_bonus",
    "item_bonus",
    "attribute_total",
    "attribute_totals",
    "ability_modifiers",
]
