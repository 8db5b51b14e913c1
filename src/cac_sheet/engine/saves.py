"""Saving throw bonuses.

Castles & Crusades resolves a save as d20 + level + ability modifier
against a challenge of 12, or 18 for a non-prime ability. Here the prime
allowance is folded into the bonus so every save is rolled against the
same base challenge.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from cac_sheet.core.constants import (
    BASE_SAVE_CHALLENGE,
    BURDENED_DEX_SAVE_PENALTY,
    PRIME_SAVE_BONUS,
)
from cac_sheet.engine.attributes import calc_mod
from cac_sheet.models import Ability, Character, EncumbranceStatus


class SavingThrow(BaseModel):
    """One ability's saving throw."""

    model_config = ConfigDict(frozen=True)

    ability: Ability
    bonus: int
    is_prime: bool
    challenge_base: int = BASE_SAVE_CHALLENGE


def save_bonus(
    character: Character,
    ability: Ability,
    total: int,
    level: int,
    status: EncumbranceStatus,
) -> int:
    """Compute the bonus added to a d20 save for one ability.

    Args:
        character: The character record.
        ability: The ability the save uses.
        total: That ability's resolved total.
        level: Effective (drain-adjusted) level.
        status: Resolved encumbrance status.
    """
    score = character.attribute(ability)
    bonus = level + calc_mod(total) + score.save_modifier + character.save_bonus
    if score.is_prime:
        bonus += PRIME_SAVE_BONUS + character.prime_save_bonus
    if ability == Ability.DEX and status != EncumbranceStatus.UNBURDENED:
        bonus -= BURDENED_DEX_SAVE_PENALTY
    return bonus


def saving_throws(
    character: Character,
    totals: dict[Ability, int],
    level: int,
    status: EncumbranceStatus,
) -> dict[Ability, SavingThrow]:
    """Compute all six saving throws."""
    return {
        ability: SavingThrow(
            ability=ability,
            bonus=save_bonus(character, ability, totals.get(ability, 10), level, status),
            is_prime=character.attribute(ability).is_prime,
        )
        for ability in Ability
    }


__all__ = [
    "SavingThrow",
    "save_bonus",
    "saving_throws",
]
