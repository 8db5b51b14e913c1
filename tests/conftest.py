"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the character sheet engine test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from cac_sheet.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def isolated_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each test in a temporary directory so default data paths land there."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "CAC_SHEET_LOG_LEVEL": "DEBUG",
        "CAC_SHEET_RULES_DEFAULT_GRIMOIRE_CAPACITY": "50",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_attributes() -> dict[str, dict[str, Any]]:
    """Provide sample ability scores in the saved-sheet shape.

    Returns:
        Attributes keyed by ability.
    """
    return {
        "str": {"rolledScore": 16, "isPrime": True},
        "dex": {"rolledScore": 14},
        "con": {"rolledScore": 13},
        "int": {"rolledScore": 10},
        "wis": {"rolledScore": 12},
        "cha": {"rolledScore": 8},
    }


@pytest.fixture
def sample_character_data(sample_attributes: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """Provide sample character data for testing.

    A fighter wearing chain mail and carrying a shield and a longsword,
    with one attack bound to the sword.

    Args:
        sample_attributes: Ability scores.

    Returns:
        Dictionary of character data, camelCase as saved by the app.
    """
    return {
        "id": "char-1",
        "name": "Aldric",
        "race": "Human",
        "class1": "Fighter",
        "class1Level": 3,
        "attributes": sample_attributes,
        "inventory": [
            {"id": "armor", "name": "Chain Mail", "ev": 4, "acBonus": 4, "isArmor": True},
            {"id": "shield", "name": "Medium Shield", "ev": 1, "acBonus": 2, "isShield": True},
            {
                "id": "sword",
                "name": "Longsword",
                "ev": 1,
                "isWeapon": True,
                "weaponMode": "melee",
                "weaponToHitMagic": 1,
                "weaponDamageMagic": 1,
                "weaponDamageNumDice": 1,
                "weaponDamageDieType": 8,
            },
        ],
        "equippedArmorIds": ["armor"],
        "equippedShieldId": "shield",
        "hpByLevel": [10, 7, 6],
        "hp": 23,
        "currentXp": 4500,
        "baseBth": 3,
        "attacks": [{"id": "atk-sword", "name": "Longsword", "weaponId": "sword"}],
    }


@pytest.fixture
def sample_character(sample_character_data: dict[str, Any]) -> Any:
    """Create a sample Character instance for testing.

    Args:
        sample_character_data: Character data dictionary.

    Returns:
        Character instance.
    """
    from cac_sheet.models import Character

    return Character.model_validate(sample_character_data)


@pytest.fixture
def wizard() -> Any:
    """Create a wizard with learned spells and an empty grimoire.

    Returns:
        Character instance.
    """
    from cac_sheet.models import Character

    return Character.model_validate(
        {
            "id": "wiz-1",
            "name": "Mirela",
            "class1": "Wizard",
            "currentXp": 4500,
            "spellsLearned": [
                {"id": "light", "name": "Light", "level": 0},
                {"id": "sleep", "name": "Sleep", "level": 1},
                {"id": "fireball", "name": "Fireball", "level": 3},
                {"id": "cone", "name": "Cone of Cold", "level": 5},
            ],
            "grimoires": [{"id": "book", "name": "Spellbook", "capacity": 39}],
            "magicItems": [{"id": "wand", "name": "Wand of Sparks", "capacity": 3}],
        }
    )


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> Any:
    """Create a DiceRoller with a fixed seed for reproducible tests.

    Returns:
        DiceRoller instance with fixed seed.
    """
    from cac_sheet.engine.dice import DiceRoller

    return DiceRoller(seed=42)


@pytest.fixture
def orchestrator() -> Any:
    """Create a fresh Orchestrator.

    Returns:
        Orchestrator instance.
    """
    from cac_sheet.engine.orchestrator import Orchestrator

    return Orchestrator()
