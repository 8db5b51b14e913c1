"""Configuration management for the character sheet engine.

Centralized configuration using pydantic-settings, supporting environment
variables, .env files, and runtime overrides.

Example:
    >>> from cac_sheet.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.default_grimoire_capacity
    39

Environment Variables:
    CAC_SHEET_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    CAC_SHEET_LOG_JSON: Emit JSON log lines instead of console output
    CAC_SHEET_LOG_FILE: File receiving log lines instead of stdout
    CAC_SHEET_ROSTER_PATH: Path to the roster JSON file
    CAC_SHEET_EXPORT_DIR: Directory receiving roster exports
    CAC_SHEET_RULES_DEFAULT_GRIMOIRE_CAPACITY: Point budget of new grimoires
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cac_sheet.core.constants import (
    DEFAULT_GRIMOIRE_CAPACITY,
    DEFAULT_SPEED,
    PERMANENT_LIMIT_CLASS_KEYWORD,
)
from cac_sheet.core.exceptions import ConfigurationError


class StorageSettings(BaseSettings):
    """Configuration for roster persistence.

    Attributes:
        roster_path: JSON file holding the saved roster.
        export_dir: Directory where dated exports are written.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAC_SHEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    roster_path: Path = Field(
        default=Path("data/characters.json"),
        description="Roster JSON file",
    )
    export_dir: Path = Field(
        default=Path("data/exports"),
        description="Directory for roster exports",
    )

    @field_validator("export_dir", mode="after")
    @classmethod
    def ensure_directory_exists(cls, value: Path) -> Path:
        """Ensure the export directory exists, creating it if necessary."""
        value.mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("roster_path", mode="after")
    @classmethod
    def ensure_parent_exists(cls, value: Path) -> Path:
        """Ensure the roster file's directory exists."""
        value.parent.mkdir(parents=True, exist_ok=True)
        return value


class RulesSettings(BaseSettings):
    """House-rule knobs used when creating new records.

    Attributes:
        default_grimoire_capacity: Point budget given to a new grimoire.
        default_speed: Base speed of a new character.
        arcane_thief_keyword: Class-name fragment selecting the class-level
            permanent spell limit.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAC_SHEET_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_grimoire_capacity: int = Field(
        default=DEFAULT_GRIMOIRE_CAPACITY,
        ge=1,
        le=1000,
        description="Point budget of a new grimoire",
    )
    default_speed: int = Field(
        default=DEFAULT_SPEED,
        ge=0,
        le=1000,
        description="Base speed of a new character",
    )
    arcane_thief_keyword: str = Field(
        default=PERMANENT_LIMIT_CLASS_KEYWORD,
        description="Class-name fragment for the permanent spell limit rule",
    )

    @model_validator(mode="after")
    def validate_keyword(self) -> "RulesSettings":
        """Reject a blank class keyword, which would match every class.

        Raises:
            ConfigurationError: If the keyword is empty or whitespace.
        """
        if not self.arcane_thief_keyword.strip():
            raise ConfigurationError(
                "arcane_thief_keyword must not be blank",
                config_key="arcane_thief_keyword",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        log_level: Application logging level.
        log_json: Render logs as JSON lines.
        log_file: Optional file receiving log lines instead of stdout.
        storage: Roster persistence settings.
        rules: House-rule settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAC_SHEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON",
    )
    log_file: Path | None = Field(
        default=None,
        description="File receiving log lines",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    rules: RulesSettings = Field(default_factory=RulesSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "StorageSettings",
    "RulesSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
