"""Level and experience progress from the character's XP table."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict


class LevelInfo(BaseModel):
    """Where the character stands on the XP table.

    Attributes:
        current_level: Level earned by XP.
        next_level_xp: XP needed for the next level (the last table entry
            at maximum level).
        progress: Percent of the way from this level to the next, 0-100.
        can_level_up: Whether XP has reached the next threshold.
        level_up_pending: Whether a level earned by XP still has no hit
            points recorded.
        drained_levels: Levels lost to energy drain.
        effective_level: Level after drain, never below 1.
    """

    model_config = ConfigDict(frozen=True)

    current_level: int = 1
    next_level_xp: int = 0
    progress: float = 0.0
    can_level_up: bool = False
    level_up_pending: bool = False
    drained_levels: int = 0
    effective_level: int = 1


def normalize_xp_table(table: Sequence[int]) -> list[int]:
    """Force a table to be strictly increasing.

    Any entry not above its predecessor is bumped to ``previous + 1``.

    Example:
        >>> normalize_xp_table([0, 2000, 1500, 1500, 9000])
        [0, 2000, 2001, 2002, 9000]
    """
    normalized: list[int] = []
    for value in table:
        if normalized and value <= normalized[-1]:
            value = normalized[-1] + 1
        normalized.append(value)
    return normalized


def level_for_xp(xp_table: Sequence[int], current_xp: int) -> int:
    """Highest level whose threshold ``current_xp`` meets; 1 if none."""
    for index in range(len(xp_table) - 1, -1, -1):
        if current_xp >= xp_table[index]:
            return index + 1
    return 1


def resolve_level(
    xp_table: Sequence[int],
    current_xp: int,
    level_drained: Sequence[bool] = (),
    hp_levels_filled: int | None = None,
) -> LevelInfo:
    """Compute level, progress and level-up readiness.

    Args:
        xp_table: Strictly increasing XP thresholds, index 0 = level 1.
        current_xp: Experience earned.
        level_drained: Per-level drain flags.
        hp_levels_filled: Levels that already have hit points recorded; a
            level-up is pending while the XP-earned level exceeds it.
    """
    drained = sum(1 for flag in level_drained if flag)
    if not xp_table:
        return LevelInfo(drained_levels=drained)

    level = level_for_xp(xp_table, current_xp)
    at_max = level >= len(xp_table)
    floor_xp = xp_table[level - 1]
    next_xp = xp_table[-1] if at_max else xp_table[level]

    span = next_xp - floor_xp
    if span > 0:
        progress = 100 * (current_xp - floor_xp) / span
        progress = min(100.0, max(0.0, progress))
    else:
        progress = 100.0

    return LevelInfo(
        current_level=level,
        next_level_xp=next_xp,
        progress=round(progress, 1),
        can_level_up=current_xp >= next_xp,
        level_up_pending=hp_levels_filled is not None and level > hp_levels_filled,
        drained_levels=drained,
        effective_level=max(1, level - drained),
    )


__all__ = [
    "LevelInfo",
    "normalize_xp_table",
    "level_for_xp",
    "resolve_level",
]
