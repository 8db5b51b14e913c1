"""Derived-stat and resource-economy engine.

Pure computations that turn a Character record into secondary statistics,
plus the commands and ledger operations that produce updated records.

Submodules:
    attributes: Ability totals and modifiers
    encumbrance: Carried load, status and speed
    defense: Armor class
    combat: Per-attack to-hit and damage bonuses
    progression: Level and XP progress
    vitals: Hit points and total level
    saves: Saving throws
    ledger: Grimoire points and magic item charges
    commands: Reducers for user edits
    orchestrator: Snapshot assembly with per-resolver memoization
    dice: Dice rolling (d20 library)

Example:
    >>> from cac_sheet.engine import Orchestrator, add_item
    >>>
    >>> result = add_item(hero, {"name": "Chain Mail", "ev": 4, "acBonus": 5})
    >>> snapshot = Orchestrator().snapshot(result.character)
    >>> snapshot.encumbrance.status
    'unburdened'
"""

from __future__ import annotations

# =============================================================================
# Resolvers
# =============================================================================
from cac_sheet.engine.attributes import (
    ability_modifiers,
    attribute_total,
    attribute_totals,
    calc_mod,
)
from cac_sheet.engine.combat import AttackTotals, resolve_attack, resolve_attacks, resolve_weapon
from cac_sheet.engine.defense import ArmorClassBreakdown, armor_class, armor_class_breakdown
from cac_sheet.engine.encumbrance import EncumbranceInfo, resolve_encumbrance
from cac_sheet.engine.progression import LevelInfo, normalize_xp_table, resolve_level
from cac_sheet.engine.saves import SavingThrow, saving_throws
from cac_sheet.engine.vitals import clamp_hp, max_hp, total_level

# =============================================================================
# Commands & Ledger
# =============================================================================
from cac_sheet.engine.commands import (
    add_attack,
    add_companion,
    add_item,
    add_xp,
    adjust_hp,
    bind_weapon,
    deposit_coins,
    duplicate_character,
    forget_spell,
    learn_spell,
    new_character,
    remove_attack,
    remove_companion,
    remove_item,
    replace_character,
    set_hp,
    set_hp_for_level,
    set_shield,
    set_xp_table,
    spend_coins,
    toggle_armor,
    toggle_attack_effect,
    toggle_attr_bonus,
    toggle_effect_item,
    toggle_level_drain,
    toggle_speed_item,
    update_item,
)
from cac_sheet.engine.ledger import (
    add_grimoire,
    add_magic_item,
    add_spell_to_grimoire,
    add_spell_to_item,
    cast_from_grimoire,
    cast_from_item,
    permanent_spell_limit,
    point_cost,
    points_left,
    points_used,
    remove_grimoire,
    remove_grimoire_entry,
    remove_magic_item,
    reset_item,
    reset_permanent_for_new_day,
    set_grimoire_entry_permanent,
)
from cac_sheet.engine.results import CommandResult

# =============================================================================
# Orchestration & Dice
# =============================================================================
from cac_sheet.engine.dice import DiceResult, DiceRoller
from cac_sheet.engine.orchestrator import DerivedSnapshot, Orchestrator, compute_snapshot


__all__ = [
    # Resolvers
    "calc_mod",
    "attribute_total",
    "attribute_totals",
    "ability_modifiers",
    "EncumbranceInfo",
    "resolve_encumbrance",
    "ArmorClassBreakdown",
    "armor_class",
    "armor_class_breakdown",
    "AttackTotals",
    "resolve_weapon",
    "resolve_attack",
    "resolve_attacks",
    "LevelInfo",
    "normalize_xp_table",
    "resolve_level",
    "SavingThrow",
    "saving_throws",
    "max_hp",
    "clamp_hp",
    "total_level",
    # Commands
    "CommandResult",
    "new_character",
    "duplicate_character",
    "replace_character",
    "add_item",
    "update_item",
    "remove_item",
    "toggle_armor",
    "set_shield",
    "toggle_attr_bonus",
    "toggle_speed_item",
    "toggle_effect_item",
    "add_attack",
    "remove_attack",
    "bind_weapon",
    "toggle_attack_effect",
    "set_xp_table",
    "add_xp",
    "set_hp",
    "adjust_hp",
    "set_hp_for_level",
    "toggle_level_drain",
    "learn_spell",
    "forget_spell",
    "deposit_coins",
    "spend_coins",
    "add_companion",
    "remove_companion",
    # Ledger
    "point_cost",
    "points_used",
    "points_left",
    "permanent_spell_limit",
    "add_grimoire",
    "remove_grimoire",
    "add_spell_to_grimoire",
    "cast_from_grimoire",
    "set_grimoire_entry_permanent",
    "remove_grimoire_entry",
    "add_magic_item",
    "remove_magic_item",
    "add_spell_to_item",
    "cast_from_item",
    "reset_item",
    "reset_permanent_for_new_day",
    # Orchestration & dice
    "DerivedSnapshot",
    "Orchestrator",
    "compute_snapshot",
    "DiceResult",
    "DiceRoller",
]
