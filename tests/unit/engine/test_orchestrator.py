"""Tests for the derived snapshot and resolver memoization."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import structlog

from cac_sheet.engine import orchestrator as orchestrator_module
from cac_sheet.engine.commands import add_item, set_hp, toggle_armor
from cac_sheet.engine.ledger import add_spell_to_grimoire
from cac_sheet.engine.orchestrator import Orchestrator, compute_snapshot, fingerprint
from cac_sheet.models import Ability, Character, EncumbranceStatus


class TestSnapshot:
    """Tests for the assembled snapshot."""

    def test_sample_fighter(self, sample_character: Character) -> None:
        """Test every headline number for the sample fighter."""
        snapshot = compute_snapshot(sample_character)

        assert snapshot.attribute_totals[Ability.STR] == 16
        assert snapshot.attribute_modifiers[Ability.DEX] == 2
        assert snapshot.encumbrance.rating == 19
        assert snapshot.encumbrance.total_ev == 6
        assert snapshot.encumbrance.status == EncumbranceStatus.UNBURDENED
        assert snapshot.speed == 30
        assert snapshot.ac == 18
        assert snapshot.per_attack_totals["atk-sword"].to_hit == 7
        assert snapshot.per_attack_totals["atk-sword"].damage_expression == "1d8+4"
        assert snapshot.level_info.current_level == 3
        assert snapshot.level_info.progress == 12.5
        assert snapshot.level_info.level_up_pending is False
        assert snapshot.max_hp == 23
        assert snapshot.hp == 23
        assert snapshot.total_level == 3
        assert snapshot.saves[Ability.STR].bonus == 12

    def test_wizard_ledger(self, wizard: Character) -> None:
        """Test grimoire and magic item summaries."""
        character = add_spell_to_grimoire(wizard, "book", "fireball", permanent=True).character

        snapshot = compute_snapshot(character)

        book = snapshot.grimoires["book"]
        assert (book.capacity, book.points_used, book.points_left) == (39, 3, 36)
        assert book.permanent_entries == 1
        assert snapshot.magic_items == {"wand": 3}
        assert snapshot.permanent_spell_limit == 3

    def test_hp_clamped_in_snapshot(self) -> None:
        """Test a stored hp above the maximum is reported clamped."""
        character = Character.model_validate({"hpByLevel": [6], "hp": 40})

        assert compute_snapshot(character).hp == 6

    def test_idempotent(self, sample_character: Character, orchestrator: Orchestrator) -> None:
        """Test repeated snapshots of the same character are equal."""
        first = orchestrator.snapshot(sample_character)
        second = orchestrator.snapshot(sample_character)
        fresh = compute_snapshot(sample_character)

        assert first == second
        assert first.model_dump() == fresh.model_dump()


class TestMemoization:
    """Tests for per-resolver caching."""

    def test_unrelated_edit_reuses_results(
        self, sample_character: Character, orchestrator: Orchestrator
    ) -> None:
        """Test editing notes does not recompute armor class."""
        orchestrator.snapshot(sample_character)
        edited = sample_character.model_copy(update={"notes": "Owes the smith 5 gp"})

        with patch.object(
            orchestrator_module,
            "armor_class_breakdown",
            wraps=orchestrator_module.armor_class_breakdown,
        ) as spy:
            orchestrator.snapshot(edited)

        spy.assert_not_called()

    def test_relevant_edit_recomputes(
        self, sample_character: Character, orchestrator: Orchestrator
    ) -> None:
        """Test taking off armor recomputes armor class."""
        before = orchestrator.snapshot(sample_character)

        after = orchestrator.snapshot(toggle_armor(sample_character, "armor").character)

        assert before.ac == 18
        assert after.ac == 14

    def test_inventory_edit_keeps_level(
        self, sample_character: Character, orchestrator: Orchestrator
    ) -> None:
        """Test adding an item does not recompute level progress."""
        orchestrator.snapshot(sample_character)
        edited = add_item(sample_character, {"id": "rope", "ev": 1}).character

        with patch.object(
            orchestrator_module, "resolve_level", wraps=orchestrator_module.resolve_level
        ) as spy:
            snapshot = orchestrator.snapshot(edited)

        spy.assert_not_called()
        assert snapshot.encumbrance.total_ev == 7

    def test_upstream_change_propagates(self, orchestrator: Orchestrator) -> None:
        """Test a new DEX total reaches AC through the memo."""
        character = Character.model_validate({"attributes": {"dex": {"rolledScore": 10}}})
        orchestrator.snapshot(character)

        faster = character.model_copy(
            update={
                "attributes": {
                    **character.attributes,
                    Ability.DEX: character.attribute(Ability.DEX).model_copy(
                        update={"rolled_score": 18}
                    ),
                }
            }
        )

        assert orchestrator.snapshot(faster).ac == 14

    def test_clear(self, sample_character: Character, orchestrator: Orchestrator) -> None:
        """Test clearing forces every resolver to run again."""
        orchestrator.snapshot(sample_character)
        orchestrator.clear()

        with patch.object(
            orchestrator_module, "resolve_level", wraps=orchestrator_module.resolve_level
        ) as spy:
            orchestrator.snapshot(set_hp(sample_character, 10).character)

        spy.assert_called_once()

    def test_fingerprint_ignores_other_fields(self, sample_character: Character) -> None:
        """Test the fingerprint covers only the named fields."""
        edited = sample_character.model_copy(update={"notes": "changed"})

        assert fingerprint(sample_character, {"hp"}) == fingerprint(edited, {"hp"})
        assert fingerprint(sample_character, {"notes"}) != fingerprint(edited, {"notes"})

    def test_recompute_logged_with_character(
        self, sample_character: Character, orchestrator: Orchestrator
    ) -> None:
        """Test recompute entries carry the character id, bound only during the snapshot."""
        bound: list[dict[str, Any]] = []

        with patch.object(orchestrator_module, "logger") as mock_logger:
            mock_logger.debug.side_effect = lambda *args, **kwargs: bound.append(
                structlog.contextvars.get_contextvars()
            )
            orchestrator.snapshot(sample_character)

        assert bound
        assert all(context["character_id"] == "char-1" for context in bound)
        assert "character_id" not in structlog.contextvars.get_contextvars()
