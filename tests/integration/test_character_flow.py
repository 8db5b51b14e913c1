"""Integration tests for the character lifecycle.

Tests the complete flow: create, outfit, write spells, cast, rest, level
up, save, load, and roll.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cac_sheet.engine import (
    DiceRoller,
    Orchestrator,
    add_attack,
    add_grimoire,
    add_item,
    add_spell_to_grimoire,
    add_xp,
    cast_from_grimoire,
    learn_spell,
    new_character,
    remove_item,
    reset_permanent_for_new_day,
    set_hp,
    set_hp_for_level,
    toggle_armor,
)
from cac_sheet.models import Ability, Character
from cac_sheet.storage import RosterStore


@pytest.fixture
def apprentice() -> Character:
    """A first-level wizard with no hit points recorded yet."""
    return new_character(
        "Thessaly",
        class1="Wizard",
        attributes={
            "str": {"rolledScore": 9},
            "dex": {"rolledScore": 13},
            "int": {"rolledScore": 17, "isPrime": True},
        },
    )


def _outfit(character: Character) -> Character:
    for item in (
        {"id": "pack", "name": "Backpack", "ev": 2, "isContainer": True},
        {
            "id": "staff",
            "name": "Quarterstaff",
            "ev": 1,
            "isWeapon": True,
            "weaponDamageNumDice": 1,
            "weaponDamageDieType": 6,
        },
        {"id": "bracers", "name": "Bracers of Defense", "acBonus": 2, "isArmor": True},
    ):
        character = add_item(character, item).character
    character = toggle_armor(character, "bracers").character
    return add_attack(character, {"id": "atk", "name": "Staff", "weaponId": "staff"}).character


class TestCharacterFlow:
    """Test a wizard from creation to second level."""

    def test_new_character_needs_hit_points(self, apprentice: Character) -> None:
        """A fresh character has a pending level until hit points are rolled."""
        orchestrator = Orchestrator()

        before = orchestrator.snapshot(apprentice)
        rolled = set_hp_for_level(apprentice, 1, 4).character
        rolled = set_hp(rolled, 4).character
        after = orchestrator.snapshot(rolled)

        assert before.level_info.level_up_pending is True
        assert before.max_hp == 0
        assert after.level_info.level_up_pending is False
        assert (after.max_hp, after.hp) == (4, 4)

    def test_outfitting(self, apprentice: Character) -> None:
        """Armor, load and attacks follow the inventory."""
        snapshot = Orchestrator().snapshot(_outfit(apprentice))

        assert snapshot.ac == 10 + 2 + 1
        assert snapshot.encumbrance.rating == 9
        assert snapshot.encumbrance.total_ev == 3
        assert snapshot.speed == 30
        assert snapshot.per_attack_totals["atk"].to_hit == 0
        assert snapshot.per_attack_totals["atk"].damage_expression == "1d6"
        assert snapshot.attribute_modifiers[Ability.INT] == 3

    def test_spell_day(self, apprentice: Character) -> None:
        """Write, cast and restore spells over one adventuring day."""
        missile_spell = {"id": "mm", "name": "Magic Missile", "level": 1}
        character = learn_spell(apprentice, missile_spell).character
        character = learn_spell(character, {"id": "fb", "name": "Fireball", "level": 3}).character
        character = add_grimoire(character, "Spellbook").character
        book_id = character.grimoires[0].id

        character = add_spell_to_grimoire(character, book_id, "fb", permanent=True).character
        refused = add_spell_to_grimoire(character, book_id, "mm", permanent=True)
        character = add_spell_to_grimoire(character, book_id, "mm").character

        assert refused.message == "Permanent spell limit reached (1)"
        assert Orchestrator().snapshot(character).grimoires[book_id].points_left == 35

        fireball, missile = (e.instance_id for e in character.grimoires[0].entries)
        character = cast_from_grimoire(character, book_id, missile).character
        character = cast_from_grimoire(character, book_id, fireball).character

        assert Orchestrator().snapshot(character).grimoires[book_id].points_left == 36
        assert not cast_from_grimoire(character, book_id, fireball).success

        character = reset_permanent_for_new_day(character).character

        assert cast_from_grimoire(character, book_id, fireball).success

    def test_level_up(self, apprentice: Character) -> None:
        """Earning XP opens a level that closes once hit points are rolled."""
        orchestrator = Orchestrator()
        character = set_hp_for_level(apprentice, 1, 4).character

        character = add_xp(character, 2500).character
        earned = orchestrator.snapshot(character)
        character = set_hp_for_level(character, 2, 3).character
        rolled = orchestrator.snapshot(character)

        assert earned.level_info.current_level == 2
        assert earned.level_info.level_up_pending is True
        assert earned.permanent_spell_limit == 2
        assert rolled.level_info.level_up_pending is False
        assert rolled.max_hp == 7
        assert rolled.saves[Ability.INT].bonus == 2 + 3 + 6

    def test_save_load_and_roll(self, apprentice: Character, tmp_path: Path) -> None:
        """A saved character loads, loses its weapon, and still rolls."""
        store = RosterStore(tmp_path / "roster.json")
        character = _outfit(apprentice)

        assert store.save([character])
        [loaded] = store.load()
        orchestrator = Orchestrator()

        assert (
            orchestrator.snapshot(loaded).model_dump()
            == orchestrator.snapshot(character).model_dump()
        )

        unarmed = remove_item(loaded, "staff").character
        snapshot = orchestrator.snapshot(unarmed)
        roll = DiceRoller(seed=1).roll_attack(snapshot.per_attack_totals["atk"])

        assert unarmed.get_attack("atk").weapon_id is None
        assert snapshot.per_attack_totals["atk"].damage_expression is None
        assert 1 <= roll.total <= 20
