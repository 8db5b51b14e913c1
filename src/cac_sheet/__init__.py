"""cac-sheet - Castles & Crusades character sheet engine.

Stores a roster of characters and derives their secondary statistics:
ability totals, armor class, encumbrance and speed, attack bonuses,
level progress, saves, and the grimoire and magic item spell ledgers.

Characters are immutable records. Edits go through commands, which
return a new character; the orchestrator turns any character into a
snapshot of derived values.

Example:
    >>> from cac_sheet import Orchestrator, RosterStore, new_character
    >>>
    >>> hero = new_character("Aldric", class1="Fighter")
    >>> snapshot = Orchestrator().snapshot(hero)
    >>> snapshot.ac
    10
    >>> RosterStore("party.json").save([hero])
    True

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas for the character record.
    engine: Resolvers, ledger, commands, orchestrator and dice.
    storage: JSON roster persistence with import/export.
"""

from __future__ import annotations

# Core
from cac_sheet.core.config import Settings, get_settings
from cac_sheet.core.exceptions import SheetError
from cac_sheet.core.logging import configure_from_settings, configure_logging, get_logger

# Models
from cac_sheet.models import Ability, Character, EncumbranceStatus, InventoryItem

# Engine
from cac_sheet.engine import (
    CommandResult,
    DerivedSnapshot,
    DiceRoller,
    Orchestrator,
    compute_snapshot,
    new_character,
)

# Storage
from cac_sheet.storage import RosterStore, export_roster, import_roster


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "SheetError",
    "Settings",
    "get_settings",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    # Models
    "Ability",
    "Character",
    "EncumbranceStatus",
    "InventoryItem",
    # Engine
    "CommandResult",
    "DerivedSnapshot",
    "DiceRoller",
    "Orchestrator",
    "compute_snapshot",
    "new_character",
    # Storage
    "RosterStore",
    "export_roster",
    "import_roster",
]
