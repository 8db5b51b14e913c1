"""Outcome of a command or ledger operation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from cac_sheet.core.logging import character_context, get_logger
from cac_sheet.models import Character


logger = get_logger(__name__)


class CommandResult(BaseModel):
    """Result of applying a command to a character.

    A rejected command carries the character it was given, unchanged, and
    a message suitable for showing to the user.

    Attributes:
        success: Whether the command was applied.
        message: Human-readable outcome.
        character: The resulting character.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    character: Character

    def __bool__(self) -> bool:
        return self.success


def accepted(character: Character, message: str = "OK") -> CommandResult:
    """Wrap an applied change."""
    return CommandResult(success=True, message=message, character=character)


def rejected(character: Character, message: str, **context: Any) -> CommandResult:
    """Wrap a rejection and log it.

    Args:
        character: The unchanged character.
        message: Why the command was refused.
        **context: Extra fields for the log entry.
    """
    with character_context(character.id):
        logger.info("Command rejected", reason=message, **context)
    return CommandResult(success=False, message=message, character=character)


__all__ = [
    "CommandResult",
    "accepted",
    "rejected",
]
