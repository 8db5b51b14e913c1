"""Runs the resolvers in dependency order and assembles the derived snapshot.

Order of evaluation:

    attributes -> encumbrance -> defense
    attributes -> combat
    progression -> saves
    vitals, ledger summaries

Each resolver is memoized on a fingerprint of the character fields it
reads plus the upstream values it consumes, so editing a note does not
recompute armor class and editing inventory does not recompute level.
The memo holds one entry per resolver: the last character seen.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from cac_sheet.core.config import get_settings
from cac_sheet.core.logging import character_context, get_logger
from cac_sheet.engine.attributes import ability_modifiers, attribute_totals
from cac_sheet.engine.combat import AttackTotals, resolve_attacks
from cac_sheet.engine.defense import ArmorClassBreakdown, armor_class_breakdown
from cac_sheet.engine.encumbrance import EncumbranceInfo, resolve_encumbrance
from cac_sheet.engine.ledger import permanent_count, permanent_spell_limit, points_used
from cac_sheet.engine.progression import LevelInfo, resolve_level
from cac_sheet.engine.saves import SavingThrow, saving_throws
from cac_sheet.engine.vitals import clamp_hp, hp_levels_filled, max_hp, total_level
from cac_sheet.models import Ability, Character


logger = get_logger(__name__)

T = TypeVar("T")


class GrimoireSummary(BaseModel):
    """Point usage of one grimoire."""

    model_config = ConfigDict(frozen=True)

    capacity: int
    points_used: int
    points_left: int
    permanent_entries: int


class DerivedSnapshot(BaseModel):
    """Every derived value for one character, computed in a single pass.

    Attributes:
        attribute_totals: Total score per ability.
        attribute_modifiers: Modifier per ability.
        ac: Total armor class.
        ac_breakdown: The terms summed into ``ac``.
        encumbrance: Load, status and speed.
        speed: Final speed after the load penalty.
        level_info: Level, progress and drain.
        max_hp: Maximum hit points.
        hp: Current hit points, clamped to ``[0, max_hp]``.
        per_attack_totals: To-hit and damage bonuses by attack id.
        saves: Saving throws by ability.
        grimoires: Point usage by grimoire id.
        magic_items: Free charge slots by magic item id.
        permanent_spell_limit: Permanent entries allowed per grimoire.
        total_level: Combined class level.
        wallet_gp: Value of carried coins in gold pieces.
    """

    model_config = ConfigDict(frozen=True)

    attribute_totals: dict[Ability, int]
    attribute_modifiers: dict[Ability, int]
    ac: int
    ac_breakdown: ArmorClassBreakdown
    encumbrance: EncumbranceInfo
    speed: int
    level_info: LevelInfo
    max_hp: int
    hp: int
    per_attack_totals: dict[str, AttackTotals]
    saves: dict[Ability, SavingThrow]
    grimoires: dict[str, GrimoireSummary]
    magic_items: dict[str, int]
    permanent_spell_limit: int
    total_level: int
    wallet_gp: float


# =============================================================================
# Dependency Slices
# =============================================================================

_ATTRIBUTE_FIELDS = {"attributes", "race_attribute_mods", "inventory", "equipped_attr_bonuses"}
_ENCUMBRANCE_FIELDS = {
    "attributes",
    "inventory",
    "wallet",
    "include_coin_weight",
    "encumbrance_enabled",
    "speed",
    "speed_bonus",
    "equipped_speed_item_ids",
}
_DEFENSE_FIELDS = {
    "inventory",
    "equipped_armor_ids",
    "equipped_shield_id",
    "equipped_effect_item_ids",
    "race_attribute_mods",
    "ac_base",
    "ac_mod",
    "ac_mod_auto",
    "ac_magic",
    "ac_misc",
    "ac_bonus",
}
_COMBAT_FIELDS = {"attacks", "inventory", "base_bth", "attack_bonus", "damage_bonus"}
_PROGRESSION_FIELDS = {"xp_table", "current_xp", "level_drained", "hp_by_level"}
_VITALS_FIELDS = {"hp_by_level", "level_drained", "hp_bonus", "hp", "class1_level", "class2_level"}
_SAVE_FIELDS = {"attributes", "save_bonus", "prime_save_bonus"}
_LEDGER_FIELDS = {
    "grimoires",
    "magic_items",
    "spells_learned",
    "class1",
    "class2",
    "class2_level",
    "xp_table",
    "current_xp",
}


def fingerprint(character: Character, fields: set[str], *upstream: Any) -> str:
    """Serialize the part of a character a resolver reads, plus its inputs."""
    slice_json = character.model_dump_json(include=fields)
    if not upstream:
        return slice_json
    return slice_json + json.dumps(upstream, sort_keys=True, default=_encode)


def _encode(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


class _Memo:
    """Single-entry cache for one resolver."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._key: str | None = None
        self._value: Any = None

    def get(self, key: str, compute: Callable[[], T]) -> T:
        if key != self._key:
            logger.debug("Recomputing", resolver=self.name)
            self._value = compute()
            self._key = key
        return self._value

    def clear(self) -> None:
        self._key = None
        self._value = None


# =============================================================================
# Orchestrator
# =============================================================================


class Orchestrator:
    """Computes derived snapshots, reusing resolver results between calls.

    Example:
        >>> orchestrator = Orchestrator()
        >>> snapshot = orchestrator.snapshot(hero)
        >>> snapshot.ac, snapshot.speed
        (16, 30)
    """

    RESOLVERS = (
        "attributes",
        "encumbrance",
        "defense",
        "combat",
        "progression",
        "vitals",
        "saves",
        "ledger",
    )

    def __init__(self) -> None:
        self._memos = {name: _Memo(name) for name in self.RESOLVERS}

    def clear(self) -> None:
        """Forget every memoized result."""
        for memo in self._memos.values():
            memo.clear()

    def snapshot(self, character: Character) -> DerivedSnapshot:
        """Compute the derived snapshot for ``character``."""
        with character_context(character.id):
            return self._resolve(character)

    def _resolve(self, character: Character) -> DerivedSnapshot:
        memo = self._memos

        totals = memo["attributes"].get(
            fingerprint(character, _ATTRIBUTE_FIELDS),
            lambda: attribute_totals(character),
        )
        strength, dexterity = totals[Ability.STR], totals[Ability.DEX]

        encumbrance = memo["encumbrance"].get(
            fingerprint(character, _ENCUMBRANCE_FIELDS, strength),
            lambda: resolve_encumbrance(character, strength),
        )
        status = encumbrance.status

        breakdown = memo["defense"].get(
            fingerprint(character, _DEFENSE_FIELDS, dexterity, status),
            lambda: armor_class_breakdown(character, dexterity, status),
        )

        totals_key = {ability.value: total for ability, total in totals.items()}
        attacks = memo["combat"].get(
            fingerprint(character, _COMBAT_FIELDS, totals_key),
            lambda: resolve_attacks(character, totals),
        )

        level_info = memo["progression"].get(
            fingerprint(character, _PROGRESSION_FIELDS),
            lambda: resolve_level(
                character.xp_table,
                character.current_xp,
                character.level_drained,
                hp_levels_filled(character),
            ),
        )

        vitals = memo["vitals"].get(
            fingerprint(character, _VITALS_FIELDS),
            lambda: _vitals(character),
        )

        saves = memo["saves"].get(
            fingerprint(character, _SAVE_FIELDS, totals_key, level_info.effective_level, status),
            lambda: saving_throws(character, totals, level_info.effective_level, status),
        )

        keyword = get_settings().rules.arcane_thief_keyword
        ledger = memo["ledger"].get(
            fingerprint(character, _LEDGER_FIELDS, keyword),
            lambda: _ledger(character, keyword),
        )
        grimoires, magic_items, limit = ledger
        maximum, hp, level = vitals

        return DerivedSnapshot(
            attribute_totals=totals,
            attribute_modifiers=ability_modifiers(totals),
            ac=breakdown.total,
            ac_breakdown=breakdown,
            encumbrance=encumbrance,
            speed=encumbrance.final_speed,
            level_info=level_info,
            max_hp=maximum,
            hp=hp,
            per_attack_totals=attacks,
            saves=saves,
            grimoires=grimoires,
            magic_items=magic_items,
            permanent_spell_limit=limit,
            total_level=level,
            wallet_gp=character.wallet.total_gp,
        )


def _vitals(character: Character) -> tuple[int, int, int]:
    maximum = max_hp(character)
    return maximum, clamp_hp(character.hp, maximum), total_level(character)


def _ledger(
    character: Character,
    keyword: str,
) -> tuple[dict[str, GrimoireSummary], dict[str, int], int]:
    grimoires = {}
    for book in character.grimoires:
        used = points_used(character, book)
        grimoires[book.id] = GrimoireSummary(
            capacity=book.capacity,
            points_used=used,
            points_left=book.capacity - used,
            permanent_entries=permanent_count(book),
        )
    magic_items = {item.id: item.remaining for item in character.magic_items}
    return grimoires, magic_items, permanent_spell_limit(character, keyword)


def compute_snapshot(character: Character) -> DerivedSnapshot:
    """Compute a snapshot without keeping any memo."""
    return Orchestrator().snapshot(character)


__all__ = [
    "GrimoireSummary",
    "DerivedSnapshot",
    "Orchestrator",
    "compute_snapshot",
    "fingerprint",
]
