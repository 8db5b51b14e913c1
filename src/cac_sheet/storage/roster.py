"""JSON roster persistence.

The roster file holds every saved character:

    {"version": 2, "savedAt": "<ISO timestamp>", "characters": [...]}

Characters are written with camelCase keys so files move freely between
this package and the browser version of the sheet. Files from older
versions are migrated on read.

Default location: ``data/characters.json`` (see ``CAC_SHEET_ROSTER_PATH``).
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from cac_sheet.core.config import get_settings
from cac_sheet.core.constants import DEFAULT_HP_BY_LEVEL, ROSTER_FORMAT_VERSION
from cac_sheet.core.exceptions import RosterFormatError
from cac_sheet.core.logging import get_logger
from cac_sheet.models import Character, coerce_float


logger = get_logger(__name__)


# =============================================================================
# Payload Format
# =============================================================================


def migrate_payload(characters: list[dict[str, Any]], from_version: int) -> list[dict[str, Any]]:
    """Upgrade raw character dicts written by an older roster version.

    Version 1 kept a single ``moneyGP`` figure instead of a wallet and had
    no level drain tracking.

    Args:
        characters: Raw character mappings.
        from_version: Version recorded in the file.

    Returns:
        New mappings in the current shape.
    """
    migrated = [dict(character) for character in characters]
    if from_version < 2:
        for character in migrated:
            if not character.get("wallet"):
                character["wallet"] = {
                    "platinum": 0,
                    "gold": int(coerce_float(character.get("moneyGP"))),
                    "electrum": 0,
                    "silver": 0,
                    "copper": 0,
                }
            character.setdefault("levelDrained", [])
            if not character.get("hpByLevel"):
                character["hpByLevel"] = list(DEFAULT_HP_BY_LEVEL)
    return migrated


def build_payload(characters: list[Character]) -> dict[str, Any]:
    """Serialize characters into the current roster payload."""
    return {
        "version": ROSTER_FORMAT_VERSION,
        "savedAt": datetime.now(timezone.utc).isoformat(),
        "characters": [c.model_dump(mode="json", by_alias=True) for c in characters],
    }


def parse_payload(payload: Any, source_file: str | None = None) -> list[Character]:
    """Validate a decoded roster payload into characters.

    Raises:
        RosterFormatError: If the payload has no character list or a
            character cannot be read.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("characters"), list):
        raise RosterFormatError("Invalid file format: no characters found", source_file=source_file)

    raw = [entry for entry in payload["characters"] if isinstance(entry, dict)]
    version = int(coerce_float(payload.get("version"), ROSTER_FORMAT_VERSION))
    if version < ROSTER_FORMAT_VERSION:
        logger.info("Migrating roster", from_version=version, count=len(raw))
        raw = migrate_payload(raw, version)

    try:
        return [Character.model_validate(entry) for entry in raw]
    except PydanticValidationError as exc:
        raise RosterFormatError(
            f"Invalid character data: {exc.error_count()} error(s)",
            source_file=source_file,
            details={"errors": exc.errors(include_url=False)[:5]},
        ) from exc


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RosterFormatError("Failed to parse file", source_file=str(path)) from exc


# =============================================================================
# Roster Store
# =============================================================================


class RosterStore:
    """Loads and saves the character roster as a JSON file.

    Example:
        >>> store = RosterStore("party.json")
        >>> store.save([Character(name="Aldric")])
        True
        >>> [c.name for c in store.load()]
        ['Aldric']
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """Initialize the store.

        Args:
            path: Roster file. Defaults to the configured roster path.
        """
        self.path = Path(path) if path is not None else get_settings().storage.roster_path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> list[Character]:
        """Read the roster; a missing file is an empty roster.

        Raises:
            RosterFormatError: If the file exists but is not a roster.
        """
        if not self.path.exists():
            return []
        characters = parse_payload(_read_json(self.path), source_file=str(self.path))
        logger.info("Roster loaded", path=str(self.path), count=len(characters))
        return characters

    def save(self, characters: list[Character]) -> bool:
        """Write the roster, replacing the file atomically.

        Returns:
            True on success, False if the file could not be written.
        """
        text = json.dumps(build_payload(characters), indent=2)
        try:
            _write_atomic(self.path, text)
        except OSError as exc:
            logger.error("Roster save failed", path=str(self.path), error=str(exc))
            return False
        logger.info("Roster saved", path=str(self.path), count=len(characters))
        return True

    def clear(self) -> None:
        """Delete the roster file if present."""
        self.path.unlink(missing_ok=True)


def _write_atomic(path: Path, text: str) -> None:
    handle, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
            temp_file.write(text)
        os.replace(temp_name, path)
    except OSError:
        Path(temp_name).unlink(missing_ok=True)
        raise


# =============================================================================
# Import & Export
# =============================================================================


def export_filename(on: date | None = None) -> str:
    """Name of an export file, e.g. ``cac-characters-2024-05-01.json``."""
    return f"cac-characters-{(on or date.today()).isoformat()}.json"


def export_roster(characters: list[Character], directory: Path | str | None = None) -> Path:
    """Write a dated, pretty-printed export of ``characters``.

    Args:
        characters: Characters to export.
        directory: Target directory. Defaults to the configured export dir.

    Returns:
        Path of the written file.
    """
    target_dir = Path(directory) if directory is not None else get_settings().storage.export_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / export_filename()
    _write_atomic(target, json.dumps(build_payload(characters), indent=2))
    logger.info("Roster exported", path=str(target), count=len(characters))
    return target


def import_roster(path: Path | str) -> list[Character]:
    """Read characters from an export file.

    Raises:
        RosterFormatError: If the file is not JSON or has no character list.
    """
    path = Path(path)
    characters = parse_payload(_read_json(path), source_file=str(path))
    logger.info("Roster imported", path=str(path), count=len(characters))
    return characters


__all__ = [
    "migrate_payload",
    "build_payload",
    "parse_payload",
    "RosterStore",
    "export_filename",
    "export_roster",
    "import_roster",
]
