"""Custom exception hierarchy for the character sheet engine.

All exceptions inherit from SheetError, enabling unified error handling
at the application boundary while preserving domain-specific context.

User-facing rejections (not enough grimoire points, a full magic item,
spending more coin than the wallet holds) are NOT exceptions: commands
report them through ``CommandResult``. The classes below cover
configuration, persistence, dice notation and programming errors.

Example:
    >>> from cac_sheet.core.exceptions import RosterFormatError
    >>> raise RosterFormatError("No characters found", source_file="party.json")
"""

from __future__ import annotations

from typing import Any


class SheetError(Exception):
    """Base exception for all character sheet errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Engine Domain Exceptions
# =============================================================================


class EngineError(SheetError):
    """Base exception for derived-stat engine errors."""


class InvalidCommandError(EngineError):
    """Raised when a command is called with arguments no user action can produce.

    Typical causes are an unknown equip slot name or a non-positive copy
    count passed by calling code.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid command error with command context.

        Args:
            message: Human-readable error description.
            command: Name of the command that was misused.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if command:
            combined_details["command"] = command
        super().__init__(message, details=combined_details)


class DiceRollError(EngineError):
    """Raised when dice notation cannot be parsed or rolled."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# Storage Domain Exceptions
# =============================================================================


class StorageError(SheetError):
    """Base exception for roster persistence errors."""

    def __init__(
        self,
        message: str,
        *,
        source_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize storage error with file context.

        Args:
            message: Human-readable error description.
            source_file: Path to the file involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if source_file:
            combined_details["source_file"] = source_file
        super().__init__(message, details=combined_details)


class RosterFormatError(StorageError):
    """Raised when an imported roster file is not a valid character export."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(SheetError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


__all__ = [
    "SheetError",
    "EngineError",
    "InvalidCommandError",
    "DiceRollError",
    "StorageError",
    "RosterFormatError",
    "ConfigurationError",
]
