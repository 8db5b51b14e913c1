"""Tests for hit points, total level and saving throws."""

from __future__ import annotations

from cac_sheet.engine.attributes import attribute_totals
from cac_sheet.engine.saves import save_bonus, saving_throws
from cac_sheet.engine.vitals import clamp_hp, hp_levels_filled, max_hp, total_level
from cac_sheet.models import Ability, Character, EncumbranceStatus


class TestVitals:
    """Tests for hit point helpers."""

    def test_max_hp_sums_levels_and_bonus(self) -> None:
        """Test rolled hit points plus the flat bonus."""
        character = Character.model_validate({"hpByLevel": [8, 5, 6], "hpBonus": 2})

        assert max_hp(character) == 21

    def test_max_hp_skips_drained_levels(self) -> None:
        """Test a drained level's hit points are not counted."""
        character = Character.model_validate(
            {"hpByLevel": [8, 5, 6], "levelDrained": [False, True]}
        )

        assert max_hp(character) == 14

    def test_clamp_hp(self) -> None:
        """Test current hit points stay within zero and the maximum."""
        assert clamp_hp(30, 23) == 23
        assert clamp_hp(-4, 23) == 0
        assert clamp_hp(10, 23) == 10
        assert clamp_hp(10, -2) == 0

    def test_hp_levels_filled(self) -> None:
        """Test only levels with hit points count."""
        character = Character.model_validate({"hpByLevel": [8, 0, 6, 0]})

        assert hp_levels_filled(character) == 2

    def test_total_level(self) -> None:
        """Test both class levels add together."""
        multiclass = Character.model_validate({"class1Level": 3, "class2Level": 2})
        blank = Character.model_validate({"class1Level": 0, "class2Level": 0})

        assert total_level(multiclass) == 5
        assert total_level(blank) == 1


class TestSaves:
    """Tests for saving throw bonuses."""

    def test_sample_saves(self, sample_character: Character) -> None:
        """Test prime and non-prime saves at level 3."""
        saves = saving_throws(
            sample_character,
            attribute_totals(sample_character),
            3,
            EncumbranceStatus.UNBURDENED,
        )

        assert saves[Ability.STR].bonus == 3 + 3 + 6
        assert saves[Ability.STR].is_prime is True
        assert saves[Ability.DEX].bonus == 3 + 2
        assert saves[Ability.CHA].bonus == 3 - 1
        assert saves[Ability.CHA].challenge_base == 12

    def test_burdened_dex_penalty(self, sample_character: Character) -> None:
        """Test any load above unburdened costs two on DEX saves only."""
        totals = attribute_totals(sample_character)

        for status in (EncumbranceStatus.BURDENED, EncumbranceStatus.OVERBURDENED):
            assert save_bonus(sample_character, Ability.DEX, totals[Ability.DEX], 3, status) == 3
            assert save_bonus(sample_character, Ability.CON, totals[Ability.CON], 3, status) == 4

    def test_manual_adjustments(self) -> None:
        """Test per-ability, global and prime save bonuses."""
        character = Character.model_validate(
            {
                "attributes": {"wis": {"rolledScore": 10, "isPrime": True, "saveModifier": 1}},
                "saveBonus": 1,
                "primeSaveBonus": 1,
            }
        )

        bonus = save_bonus(character, Ability.WIS, 10, 1, EncumbranceStatus.UNBURDENED)

        assert bonus == 1 + 0 + 1 + 1 + 6 + 1
