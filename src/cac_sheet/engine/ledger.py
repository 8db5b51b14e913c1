"""Spell-point and spell-charge ledgers.

Two capacity-limited collections live on the character:

* Grimoires share a point budget. Each entry costs its spell's level,
  with cantrips and first-level spells costing one point.
* Magic items hold one slot per stored spell charge.

Entries are either consumable (removed when cast) or permanent (marked
used when cast and restored at the start of a new day). Every operation
takes a Character and returns a CommandResult holding the new one.

Example:
    >>> result = add_spell_to_grimoire(hero, book.id, magic_missile.id)
    >>> result.success, points_left(result.character, book.id)
    (True, 38)
"""

from __future__ import annotations

from cac_sheet.core.config import get_settings
from cac_sheet.core.exceptions import InvalidCommandError
from cac_sheet.core.logging import character_context, get_logger
from cac_sheet.engine.progression import level_for_xp
from cac_sheet.engine.results import CommandResult, accepted, rejected
from cac_sheet.models import (
    Character,
    Grimoire,
    GrimoireEntry,
    MagicItem,
    MagicItemSpell,
    Spell,
)


logger = get_logger(__name__)


# =============================================================================
# Grimoire Accounting
# =============================================================================


def point_cost(level: int) -> int:
    """Grimoire points a spell of ``level`` occupies.

    Example:
        >>> point_cost(0), point_cost(1), point_cost(5)
        (1, 1, 5)
    """
    return 1 if level <= 1 else level


def resolve_spell(character: Character, spell_id: str) -> Spell | None:
    """Look up a learned spell; a forgotten spell resolves to None."""
    return character.get_spell(spell_id)


def entry_cost(character: Character, entry: GrimoireEntry) -> int:
    spell = resolve_spell(character, entry.spell_id)
    return point_cost(spell.level if spell is not None else 0)


def points_used(character: Character, grimoire: Grimoire) -> int:
    """Points occupied by every entry in a grimoire."""
    return sum(entry_cost(character, entry) for entry in grimoire.entries)


def points_left(character: Character, grimoire_id: str) -> int:
    """Free points in a grimoire; 0 for an unknown grimoire."""
    grimoire = character.get_grimoire(grimoire_id)
    if grimoire is None:
        return 0
    return grimoire.capacity - points_used(character, grimoire)


def permanent_spell_limit(character: Character, keyword: str | None = None) -> int:
    """How many permanent entries a single grimoire may hold.

    Arcane thieves learn permanent spells by level: the XP-derived level
    when it is the primary class, the stored class level when secondary.
    Every other class gets its current level, at least 1.

    Args:
        character: The character record.
        keyword: Class-name fragment marking the class-level rule.
            Defaults to the configured ``rules.arcane_thief_keyword``.
    """
    keyword = (keyword or get_settings().rules.arcane_thief_keyword).lower()
    xp_level = level_for_xp(character.xp_table, character.current_xp)
    if keyword in character.class1.lower():
        return xp_level
    if character.class2 and keyword in character.class2.lower():
        return character.class2_level
    return max(1, xp_level)


def permanent_count(grimoire: Grimoire) -> int:
    return sum(1 for entry in grimoire.entries if entry.permanent)


def _with_grimoire(character: Character, grimoire: Grimoire) -> Character:
    grimoires = [grimoire if book.id == grimoire.id else book for book in character.grimoires]
    return character.model_copy(update={"grimoires": grimoires})


def _find_entry(grimoire: Grimoire, instance_id: str) -> GrimoireEntry | None:
    return next((entry for entry in grimoire.entries if entry.instance_id == instance_id), None)


# =============================================================================
# Grimoire Operations
# =============================================================================


def add_grimoire(
    character: Character,
    name: str,
    *,
    capacity: int | None = None,
    linked_item_id: str | None = None,
) -> CommandResult:
    """Create an empty grimoire."""
    if capacity is None:
        capacity = get_settings().rules.default_grimoire_capacity
    grimoire = Grimoire(name=name, capacity=capacity, linked_item_id=linked_item_id)
    updated = character.model_copy(update={"grimoires": [*character.grimoires, grimoire]})
    with character_context(character.id):
        logger.debug("Grimoire added", grimoire_id=grimoire.id, capacity=capacity)
    return accepted(updated, f"Added grimoire {name!r}")


def remove_grimoire(character: Character, grimoire_id: str) -> CommandResult:
    """Delete a grimoire and everything written in it."""
    if character.get_grimoire(grimoire_id) is None:
        return rejected(character, "Grimoire not found", grimoire_id=grimoire_id)
    grimoires = [book for book in character.grimoires if book.id != grimoire_id]
    return accepted(character.model_copy(update={"grimoires": grimoires}), "Grimoire removed")


def add_spell_to_grimoire(
    character: Character,
    grimoire_id: str,
    spell_id: str,
    *,
    permanent: bool = False,
    num_dice: int = 0,
) -> CommandResult:
    """Write a learned spell into a grimoire.

    Rejected when the spell costs more than the points left, or when a
    permanent entry is requested and the grimoire already holds the
    permanent limit.
    """
    grimoire = character.get_grimoire(grimoire_id)
    if grimoire is None:
        return rejected(character, "Grimoire not found", grimoire_id=grimoire_id)
    spell = resolve_spell(character, spell_id)
    if spell is None:
        return rejected(character, "Spell has not been learned", spell_id=spell_id)

    cost = point_cost(spell.level)
    available = grimoire.capacity - points_used(character, grimoire)
    if cost > available:
        return rejected(
            character,
            f"Not enough points in {grimoire.name or 'grimoire'}: "
            f"{spell.name} needs {cost}, {available} left",
            grimoire_id=grimoire_id,
            cost=cost,
            points_left=available,
        )

    if permanent:
        limit = permanent_spell_limit(character)
        if permanent_count(grimoire) >= limit:
            return rejected(
                character,
                f"Permanent spell limit reached ({limit})",
                grimoire_id=grimoire_id,
                limit=limit,
            )

    entry = GrimoireEntry(spell_id=spell.id, permanent=permanent, num_dice=num_dice)
    updated = grimoire.model_copy(update={"entries": [*grimoire.entries, entry]})
    with character_context(character.id):
        logger.debug("Spell written", grimoire_id=grimoire_id, spell_id=spell.id, cost=cost)
    return accepted(_with_grimoire(character, updated), f"Added {spell.name} ({cost} pts)")


def cast_from_grimoire(character: Character, grimoire_id: str, instance_id: str) -> CommandResult:
    """Cast an entry: permanent entries are marked used, consumables are erased."""
    grimoire = character.get_grimoire(grimoire_id)
    entry = _find_entry(grimoire, instance_id) if grimoire is not None else None
    if grimoire is None or entry is None:
        return rejected(character, "Spell entry not found", instance_id=instance_id)

    spell = resolve_spell(character, entry.spell_id)
    spell_name = spell.name if spell is not None else "Spell"

    if entry.permanent:
        if entry.used_today:
            return rejected(
                character, f"{spell_name} was already cast today", instance_id=instance_id
            )
        cast = entry.model_copy(update={"used_today": True})
        entries = [cast if e.instance_id == instance_id else e for e in grimoire.entries]
        message = f"Cast {spell_name}"
    else:
        entries = [e for e in grimoire.entries if e.instance_id != instance_id]
        message = f"Cast {spell_name}; entry erased"

    updated = grimoire.model_copy(update={"entries": entries})
    return accepted(_with_grimoire(character, updated), message)


def set_grimoire_entry_permanent(
    character: Character,
    grimoire_id: str,
    instance_id: str,
    permanent: bool,
) -> CommandResult:
    """Promote an entry to permanent, or demote it to consumable."""
    grimoire = character.get_grimoire(grimoire_id)
    entry = _find_entry(grimoire, instance_id) if grimoire is not None else None
    if grimoire is None or entry is None:
        return rejected(character, "Spell entry not found", instance_id=instance_id)
    if entry.permanent == permanent:
        return accepted(character, "No change")

    if permanent:
        limit = permanent_spell_limit(character)
        if permanent_count(grimoire) >= limit:
            return rejected(
                character,
                f"Permanent spell limit reached ({limit})",
                grimoire_id=grimoire_id,
                limit=limit,
            )

    changed = entry.model_copy(update={"permanent": permanent, "used_today": False})
    entries = [changed if e.instance_id == instance_id else e for e in grimoire.entries]
    updated = grimoire.model_copy(update={"entries": entries})
    message = "Marked permanent" if permanent else "Marked consumable"
    return accepted(_with_grimoire(character, updated), message)


def remove_grimoire_entry(character: Character, grimoire_id: str, instance_id: str) -> CommandResult:
    """Erase one entry from a grimoire."""
    grimoire = character.get_grimoire(grimoire_id)
    if grimoire is None or _find_entry(grimoire, instance_id) is None:
        return rejected(character, "Spell entry not found", instance_id=instance_id)
    entries = [e for e in grimoire.entries if e.instance_id != instance_id]
    updated = grimoire.model_copy(update={"entries": entries})
    return accepted(_with_grimoire(character, updated), "Entry removed")


# =============================================================================
# Magic Item Operations
# =============================================================================


def _with_magic_item(character: Character, item: MagicItem) -> Character:
    items = [item if existing.id == item.id else existing for existing in character.magic_items]
    return character.model_copy(update={"magic_items": items})


def add_magic_item(
    character: Character,
    name: str,
    capacity: int,
    *,
    description: str = "",
    linked_item_id: str | None = None,
) -> CommandResult:
    """Create an empty magic item with ``capacity`` charge slots."""
    item = MagicItem(
        name=name,
        capacity=capacity,
        description=description,
        linked_item_id=linked_item_id,
    )
    updated = character.model_copy(update={"magic_items": [*character.magic_items, item]})
    return accepted(updated, f"Added magic item {name!r}")


def remove_magic_item(character: Character, item_id: str) -> CommandResult:
    """Delete a magic item and its stored charges."""
    if character.get_magic_item(item_id) is None:
        return rejected(character, "Magic item not found", magic_item_id=item_id)
    items = [item for item in character.magic_items if item.id != item_id]
    return accepted(character.model_copy(update={"magic_items": items}), "Magic item removed")


def add_spell_to_item(
    character: Character,
    item_id: str,
    spell: Spell,
    *,
    copies: int = 1,
    permanent: bool = False,
    num_dice: int = 0,
) -> CommandResult:
    """Store up to ``copies`` charges of a spell in a magic item.

    Only as many copies as there are free slots are added.

    Raises:
        InvalidCommandError: If ``copies`` is less than 1.
    """
    if copies < 1:
        raise InvalidCommandError(
            "copies must be at least 1",
            command="add_spell_to_item",
            details={"copies": copies},
        )
    item = character.get_magic_item(item_id)
    if item is None:
        return rejected(character, "Magic item not found", magic_item_id=item_id)
    if item.remaining <= 0:
        return rejected(
            character,
            f"{item.name or 'Magic item'} is full ({item.capacity} slots)",
            magic_item_id=item_id,
        )

    count = min(item.remaining, copies)
    charge = MagicItemSpell(spell=spell, permanent=permanent, num_dice=num_dice)
    updated = item.model_copy(update={"spells": [*item.spells, *([charge] * count)]})
    if count < copies:
        message = f"Added {count} of {copies} copies of {spell.name}; item is now full"
    else:
        message = f"Added {count} {'copy' if count == 1 else 'copies'} of {spell.name}"
    return accepted(_with_magic_item(character, updated), message)


def cast_from_item(
    character: Character,
    item_id: str,
    spell_name: str,
    *,
    permanent: bool,
) -> CommandResult:
    """Cast one stored charge of ``spell_name``.

    A permanent charge that has not been used today is marked used; a
    consumable charge is removed.
    """
    item = character.get_magic_item(item_id)
    if item is None:
        return rejected(character, "Magic item not found", magic_item_id=item_id)

    index = next(
        (
            i
            for i, charge in enumerate(item.spells)
            if charge.spell.name == spell_name
            and charge.permanent == permanent
            and not (permanent and charge.used_today)
        ),
        None,
    )
    if index is None:
        kind = "unused permanent" if permanent else "consumable"
        return rejected(
            character,
            f"No {kind} charge of {spell_name} left",
            magic_item_id=item_id,
            spell_name=spell_name,
        )

    spells = list(item.spells)
    if permanent:
        spells[index] = spells[index].model_copy(update={"used_today": True})
    else:
        del spells[index]
    updated = item.model_copy(update={"spells": spells})
    return accepted(_with_magic_item(character, updated), f"Cast {spell_name}")


def _reset_item(item: MagicItem) -> MagicItem:
    if not any(charge.used_today for charge in item.spells):
        return item
    spells = [
        charge.model_copy(update={"used_today": False}) if charge.permanent else charge
        for charge in item.spells
    ]
    return item.model_copy(update={"spells": spells})


def reset_item(character: Character, item_id: str) -> CommandResult:
    """Restore the permanent charges of one magic item."""
    item = character.get_magic_item(item_id)
    if item is None:
        return rejected(character, "Magic item not found", magic_item_id=item_id)
    return accepted(_with_magic_item(character, _reset_item(item)), "Charges restored")


# =============================================================================
# New Day
# =============================================================================


def _reset_grimoire(grimoire: Grimoire) -> Grimoire:
    if not any(entry.used_today for entry in grimoire.entries):
        return grimoire
    entries = [
        entry.model_copy(update={"used_today": False}) if entry.permanent else entry
        for entry in grimoire.entries
    ]
    return grimoire.model_copy(update={"entries": entries})


def reset_permanent_for_new_day(character: Character) -> CommandResult:
    """Clear ``used_today`` on every permanent entry and charge."""
    updated = character.model_copy(
        update={
            "grimoires": [_reset_grimoire(book) for book in character.grimoires],
            "magic_items": [_reset_item(item) for item in character.magic_items],
        }
    )
    with character_context(character.id):
        logger.info("New day")
    return accepted(updated, "A new day dawns; permanent spells restored")


__all__ = [
    "point_cost",
    "resolve_spell",
    "entry_cost",
    "points_used",
    "points_left",
    "permanent_spell_limit",
    "permanent_count",
    "add_grimoire",
    "remove_grimoire",
    "add_spell_to_grimoire",
    "cast_from_grimoire",
    "set_grimoire_entry_permanent",
    "remove_grimoire_entry",
    "add_magic_item",
    "remove_magic_item",
    "add_spell_to_item",
    "cast_from_item",
    "reset_item",
    "reset_permanent_for_new_day",
]
