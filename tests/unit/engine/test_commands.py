"""Tests for character edit commands."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest
import structlog

from cac_sheet.core.exceptions import InvalidCommandError
from cac_sheet.engine import results as results_module
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
    update_item,
)
from cac_sheet.engine.ledger import add_spell_to_grimoire
from cac_sheet.engine.orchestrator import compute_snapshot
from cac_sheet.models import Ability, Character, EffectKind


@pytest.fixture
def outfitted(sample_character_data: dict[str, Any]) -> Character:
    """A fighter whose belt is referenced from every equip slot and a grimoire."""
    data = dict(sample_character_data)
    data["inventory"] = [
        *data["inventory"],
        {
            "id": "belt",
            "name": "Belt of Giants",
            "isContainer": True,
            "hasAttrBonus": True,
            "attrBonuses": [{"attr": "str", "value": 2}],
            "effects": [{"kind": "ac", "ac": 1}, {"kind": "speed", "speed": 5}],
        },
        {"id": "pouch", "name": "Pouch", "storedInId": "belt"},
    ]
    data.update(
        equippedAttrBonuses={"str": ["belt"]},
        equippedArmorIds=["armor", "belt"],
        equippedSpeedItemIds=["belt"],
        equippedEffectItemIds={"attack": ["belt"], "ac": ["belt"]},
        grimoires=[{"id": "g1", "name": "Belt Book", "linkedInventoryItemId": "belt"}],
        magicItems=[{"id": "m1", "name": "Belt Charm", "linkedInventoryItemId": "belt"}],
    )
    data["attacks"] = [
        {"id": "atk-sword", "weaponId": "sword", "appliedEffectItemIds": ["belt"]},
        {"id": "atk-belt", "weaponId": "belt"},
    ]
    return Character.model_validate(data)


class TestRoster:
    """Tests for creating and replacing characters."""

    def test_new_character_defaults(self) -> None:
        """Test a blank character."""
        character = new_character("Brom")

        assert character.name == "Brom"
        assert character.speed == 30
        assert character.id

    def test_duplicate_gets_new_id(self, sample_character: Character) -> None:
        """Test duplicating copies everything but the id and name."""
        copy = duplicate_character(sample_character)

        assert copy.id != sample_character.id
        assert copy.name == "Aldric (Copy)"
        assert copy.inventory == sample_character.inventory

    def test_replace_keeps_id_and_clamps(self, sample_character: Character) -> None:
        """Test replacement repairs hit points and the XP table."""
        result = replace_character(
            sample_character,
            {"id": "other", "name": "Aldric II", "hpByLevel": [8], "hp": 50, "xpTable": [0, 5, 5]},
        )

        assert result.character.id == "char-1"
        assert result.character.hp == 8
        assert result.character.xp_table == [0, 5, 6]

    def test_replace_with_character(self, sample_character: Character) -> None:
        """Test passing a Character keeps every field."""
        edited = sample_character.model_copy(update={"notes": "Sworn to the duke"})

        result = replace_character(sample_character, edited)

        assert result.character.model_dump() == edited.model_dump()

    def test_replace_drops_empty_stacks(self, sample_character: Character) -> None:
        """Test an item replaced with quantity 0 is removed and unequipped."""
        data = sample_character.model_dump()
        data["inventory"] = [
            {**item, "quantity": 0} if item["id"] == "armor" else item
            for item in data["inventory"]
        ]

        character = replace_character(sample_character, data).character

        assert character.get_item("armor") is None
        assert character.equipped_armor_ids == []
        assert compute_snapshot(character).ac == 14


class TestInventory:
    """Tests for inventory edits and the removal cascade."""

    def test_add_item_rejects_duplicate_id(self, sample_character: Character) -> None:
        """Test ids stay unique."""
        result = add_item(sample_character, {"id": "sword", "name": "Another Sword"})

        assert not result.success
        assert result.character is sample_character

    def test_update_item(self, sample_character: Character) -> None:
        """Test editing fields keeps the id."""
        result = update_item(sample_character, "armor", ac_bonus=5, id="ignored")

        assert result.character.get_item("armor").ac_bonus == 5
        assert not update_item(sample_character, "missing", ev=1).success

    def test_update_to_zero_quantity_purges(self, outfitted: Character) -> None:
        """Test an edit that empties a stack clears every reference to it."""
        result = update_item(outfitted, "belt", quantity=0)
        character = result.character

        assert result.success
        assert character.get_item("belt") is None
        assert character.equipped_armor_ids == ["armor"]
        assert character.equipped_effect_item_ids.ac == []
        assert character.grimoires == []
        assert character.magic_items == []

    def test_update_to_zero_quantity_drops_armor_class(
        self, sample_character: Character
    ) -> None:
        """Test emptied armor no longer counts toward armor class."""
        character = update_item(sample_character, "armor", quantity=0).character

        assert character.equipped_armor_ids == []
        assert compute_snapshot(character).ac == 14

    def test_remove_partial_stack(self) -> None:
        """Test removing part of a stack keeps the item."""
        character = Character.model_validate({"inventory": [{"id": "arrows", "quantity": 20}]})

        result = remove_item(character, "arrows", 5)

        assert result.character.get_item("arrows").quantity == 15

    def test_remove_cascades(self, outfitted: Character) -> None:
        """Test removing an item clears every reference to it."""
        result = remove_item(outfitted, "belt", None)
        character = result.character

        assert result.success
        assert character.get_item("belt") is None
        assert character.equipped_attr_bonuses[Ability.STR] == []
        assert character.equipped_armor_ids == ["armor"]
        assert character.equipped_speed_item_ids == []
        assert character.equipped_effect_item_ids.attack == []
        assert character.equipped_effect_item_ids.ac == []
        assert character.get_attack("atk-sword").applied_effect_item_ids == []
        assert character.get_attack("atk-belt").weapon_id is None
        assert character.grimoires == []
        assert character.magic_items == []
        assert character.get_item("pouch").stored_in_id is None

    def test_remove_shield_clears_slot(self, sample_character: Character) -> None:
        """Test removing the readied shield empties the shield slot."""
        result = remove_item(sample_character, "shield")

        assert result.character.equipped_shield_id is None

    def test_remove_rejects_bad_quantity(self, sample_character: Character) -> None:
        """Test a non-positive quantity is a programming error."""
        with pytest.raises(InvalidCommandError):
            remove_item(sample_character, "sword", 0)

    def test_remove_missing_item(self, sample_character: Character) -> None:
        """Test removing an unknown item is rejected."""
        assert remove_item(sample_character, "missing").message == "Item not found"

    def test_rejection_logged_with_character(self, sample_character: Character) -> None:
        """Test a rejection is logged with the character id bound."""
        bound: list[dict[str, Any]] = []

        with patch.object(results_module, "logger") as mock_logger:
            mock_logger.info.side_effect = lambda *args, **kwargs: bound.append(
                {**structlog.contextvars.get_contextvars(), **kwargs}
            )
            remove_item(sample_character, "missing")

        assert bound == [
            {"character_id": "char-1", "reason": "Item not found", "item_id": "missing"}
        ]


class TestEquipment:
    """Tests for equip toggles."""

    def test_toggle_armor(self, sample_character: Character) -> None:
        """Test armor comes off and goes back on."""
        off = toggle_armor(sample_character, "armor").character
        on = toggle_armor(off, "armor").character

        assert off.equipped_armor_ids == []
        assert on.equipped_armor_ids == ["armor"]

    def test_set_shield(self, sample_character: Character) -> None:
        """Test clearing and rejecting shields."""
        assert set_shield(sample_character, None).character.equipped_shield_id is None
        assert not set_shield(sample_character, "missing").success

    def test_toggle_attr_bonus(self, sample_character: Character) -> None:
        """Test toggling by ability name."""
        result = toggle_attr_bonus(sample_character, "DEX", "sword")

        assert result.character.equipped_attr_bonuses[Ability.DEX] == ["sword"]

    def test_toggle_attr_bonus_unknown_ability(self, sample_character: Character) -> None:
        """Test an unknown ability name is a programming error."""
        with pytest.raises(InvalidCommandError):
            toggle_attr_bonus(sample_character, "luck", "sword")

    def test_toggle_effect_item_by_kind(self, sample_character: Character) -> None:
        """Test each kind goes to its own equipped set."""
        character = toggle_effect_item(sample_character, EffectKind.AC, "shield").character
        character = toggle_effect_item(character, "attack", "sword").character
        character = toggle_effect_item(character, "speed", "armor").character

        assert character.equipped_effect_item_ids.ac == ["shield"]
        assert character.equipped_effect_item_ids.attack == ["sword"]
        assert character.equipped_speed_item_ids == ["armor"]

    def test_toggle_effect_item_unknown_kind(self, sample_character: Character) -> None:
        """Test an unknown kind is a programming error."""
        with pytest.raises(InvalidCommandError):
            toggle_effect_item(sample_character, "saves", "sword")


class TestAttacks:
    """Tests for attack line edits."""

    def test_add_attack_drops_dangling_weapon(self, sample_character: Character) -> None:
        """Test binding to a missing weapon is cleared on add."""
        result = add_attack(sample_character, {"id": "atk-2", "weaponId": "gone"})

        assert result.character.get_attack("atk-2").weapon_id is None

    def test_bind_weapon_adopts_mode(self) -> None:
        """Test a bound attack takes the weapon's mode."""
        character = Character.model_validate(
            {
                "inventory": [{"id": "bow", "weaponMode": "ranged"}],
                "attacks": [{"id": "a1", "weaponMode": "melee"}],
            }
        )

        bound = bind_weapon(character, "a1", "bow").character.get_attack("a1")

        assert bound.weapon_id == "bow"
        assert bound.weapon_mode == "ranged"

    def test_unbind_and_remove(self, sample_character: Character) -> None:
        """Test unbinding and deleting an attack."""
        unbound = bind_weapon(sample_character, "atk-sword", None).character

        assert unbound.get_attack("atk-sword").weapon_id is None
        assert remove_attack(unbound, "atk-sword").character.attacks == []
        assert not remove_attack(unbound, "missing").success

    def test_toggle_attack_effect(self, sample_character: Character) -> None:
        """Test applying an item's effects to one attack."""
        result = toggle_attack_effect(sample_character, "atk-sword", "shield")

        assert result.character.get_attack("atk-sword").applied_effect_item_ids == ["shield"]


class TestExperienceAndHitPoints:
    """Tests for XP and hit point commands."""

    def test_set_xp_table_adjusts(self, sample_character: Character) -> None:
        """Test out-of-order entries are bumped and reported."""
        result = set_xp_table(sample_character, [0, 1000, 900])

        assert result.character.xp_table == [0, 1000, 1001]
        assert result.message == "XP table saved; entries adjusted"

    def test_add_xp_floor(self, sample_character: Character) -> None:
        """Test experience never goes negative."""
        assert add_xp(sample_character, 500).character.current_xp == 5000
        assert add_xp(sample_character, -9000).character.current_xp == 0

    def test_hp_clamped(self, sample_character: Character) -> None:
        """Test damage and healing stay within bounds."""
        assert set_hp(sample_character, 99).character.hp == 23
        assert adjust_hp(sample_character, -30).character.hp == 0
        assert adjust_hp(sample_character, -5).character.hp == 18

    def test_set_hp_for_level_extends(self, sample_character: Character) -> None:
        """Test recording hit points past the end of the list."""
        result = set_hp_for_level(sample_character, 5, 9)

        assert result.character.hp_by_level == [10, 7, 6, 0, 9]

    def test_level_drain_clamps_current_hp(self, sample_character: Character) -> None:
        """Test draining a level lowers the maximum and current hit points."""
        result = toggle_level_drain(sample_character, 1)

        assert result.character.level_drained == [True]
        assert result.character.hp == 13

    @pytest.mark.parametrize("command", [set_hp_for_level, toggle_level_drain])
    def test_level_must_be_positive(self, sample_character: Character, command: Any) -> None:
        """Test level zero is a programming error."""
        args = (0, 5) if command is set_hp_for_level else (0,)
        with pytest.raises(InvalidCommandError):
            command(sample_character, *args)


class TestSpells:
    """Tests for learning and forgetting spells."""

    def test_learn_rejects_duplicate(self, wizard: Character) -> None:
        """Test the same spell id cannot be learned twice."""
        assert not learn_spell(wizard, {"id": "light", "name": "Light"}).success
        assert learn_spell(wizard, {"id": "haste", "name": "Haste", "level": 3}).success

    def test_forget_erases_entries(self, wizard: Character) -> None:
        """Test forgetting a spell erases it from grimoires."""
        character = add_spell_to_grimoire(wizard, "book", "fireball").character

        result = forget_spell(character, "fireball")

        assert result.character.get_spell("fireball") is None
        assert result.character.get_grimoire("book").entries == []


class TestWallet:
    """Tests for coin deposits and spending."""

    def test_deposit_and_spend(self, sample_character: Character) -> None:
        """Test coins go in and come out."""
        character = deposit_coins(sample_character, "gold", 10).character
        character = spend_coins(character, "GOLD", 4).character

        assert character.wallet.gold == 6

    def test_overspend_rejected(self, sample_character: Character) -> None:
        """Test spending more than is held."""
        result = spend_coins(sample_character, "gold", 1)

        assert not result.success
        assert result.message == "Not enough gold: have 0, need 1"

    @pytest.mark.parametrize(("coin", "amount"), [("doubloon", 1), ("gold", -1)])
    def test_bad_arguments(self, sample_character: Character, coin: str, amount: int) -> None:
        """Test unknown coins and negative amounts are programming errors."""
        with pytest.raises(InvalidCommandError):
            deposit_coins(sample_character, coin, amount)


class TestCompanions:
    """Tests for companions."""

    def test_add_and_remove(self, sample_character: Character) -> None:
        """Test a companion round trip."""
        character = add_companion(sample_character, {"id": "dog", "name": "Rex"}).character

        assert character.companions[0].name == "Rex"
        assert remove_companion(character, "dog").character.companions == []
        assert not remove_companion(character, "cat").success
