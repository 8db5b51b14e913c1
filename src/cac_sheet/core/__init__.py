"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        SheetError: Base exception for all application errors.
        EngineError, InvalidCommandError, DiceRollError: Engine errors.
        StorageError, RosterFormatError: Persistence errors.
        ConfigurationError: Invalid configuration.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        configure_from_settings: Set up logging from Settings.
        character_context: Bind a character id to log entries.
"""

from __future__ import annotations

from cac_sheet.core.config import (
    RulesSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from cac_sheet.core.exceptions import (
    ConfigurationError,
    DiceRollError,
    EngineError,
    InvalidCommandError,
    RosterFormatError,
    SheetError,
    StorageError,
)
from cac_sheet.core.logging import (
    character_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)


__all__ = [
    # Exceptions
    "SheetError",
    "EngineError",
    "InvalidCommandError",
    "DiceRollError",
    "StorageError",
    "RosterFormatError",
    "ConfigurationError",
    # Configuration
    "Settings",
    "StorageSettings",
    "RulesSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "configure_from_settings",
    "character_context",
]
