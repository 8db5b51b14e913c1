"""Hit points, total class level and level drain bookkeeping."""

from __future__ import annotations

from cac_sheet.models import Character


def max_hp(character: Character) -> int:
    """Sum hit points rolled at each level, skipping drained levels, plus the bonus.

    Example:
        >>> max_hp(Character(hp_by_level=[8, 5, 6], level_drained=[False, True], hp_bonus=2))
        16
    """
    drained = character.level_drained
    rolled = sum(
        hp
        for index, hp in enumerate(character.hp_by_level)
        if not (index < len(drained) and drained[index])
    )
    return rolled + character.hp_bonus


def clamp_hp(hp: int, maximum: int) -> int:
    """Clamp current hit points to ``[0, maximum]``."""
    return max(0, min(hp, max(maximum, 0)))


def hp_levels_filled(character: Character) -> int:
    """Count levels that have hit points recorded."""
    return sum(1 for hp in character.hp_by_level if hp > 0)


def total_level(character: Character) -> int:
    """Combined level across both classes; never below 1."""
    return (character.class1_level + character.class2_level) or 1


__all__ = [
    "max_hp",
    "clamp_hp",
    "hp_levels_filled",
    "total_level",
]
