"""Structured logging for the character sheet engine.

Every entry goes through structlog: a console renderer while editing
sheets by hand, JSON lines when a roster service or log shipper reads
them. Resolvers and commands bind the id of the character they are
working on, so entries from one snapshot or edit can be told apart.

Example:
    >>> from cac_sheet.core.logging import character_context, get_logger
    >>> logger = get_logger(__name__)
    >>> with character_context("c-42"):
    ...     logger.info("Spell added", grimoire_id="g1", cost=3)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from cac_sheet.core.config import Settings, get_settings


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag log entries with the package name.

    Args:
        logger: The wrapped logger instance.
        method_name: Name of the logging method called.
        event_dict: The event dictionary to modify.

    Returns:
        The modified event dictionary.
    """
    event_dict["app"] = "cac_sheet"
    return event_dict


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog for the whole package.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Render one JSON object per line.
        log_file: Append entries to this file instead of stdout.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=log_file is None,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    stream: IO[str] = sys.stdout
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        stream = path.open("a", encoding="utf-8")

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from ``log_level``, ``log_json`` and ``log_file``.

    Args:
        settings: Settings to read; the cached application settings when
            omitted.
    """
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        log_file=settings.log_file,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically with ``__name__``."""
    return structlog.get_logger(name)


@contextmanager
def character_context(character_id: str, **extra: Any) -> Iterator[None]:
    """Bind a character id to every entry logged inside the block.

    Args:
        character_id: Id of the character being resolved or edited.
        **extra: Further fields to bind, such as a command name.
    """
    with structlog.contextvars.bound_contextvars(character_id=character_id, **extra):
        yield


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "character_context",
]
