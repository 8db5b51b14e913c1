"""Storage module for roster persistence.

Provides JSON file storage for:
- The saved roster (load/save with atomic replacement)
- Dated exports and imports of character files
"""

from cac_sheet.storage.roster import (
    RosterStore,
    export_roster,
    import_roster,
    migrate_payload,
)

__all__ = [
    "RosterStore",
    "export_roster",
    "import_roster",
    "migrate_payload",
]
