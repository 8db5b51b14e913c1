"""Reducers that apply user edits to a character.

Characters are frozen, so every command builds and returns a new one
inside a CommandResult. A rejected command returns the character it was
given. After each applied command:

* every equipped-id set only names items still in the inventory,
* no item is held with a quantity of zero or less,
* the XP table is strictly increasing,
* current hit points lie within ``[0, max_hp]``.
"""

from __future__ import annotations

from typing import Any

from cac_sheet.core.config import get_settings
from cac_sheet.core.exceptions import InvalidCommandError
from cac_sheet.core.logging import character_context, get_logger
from cac_sheet.engine.progression import normalize_xp_table
from cac_sheet.engine.results import CommandResult, accepted, rejected
from cac_sheet.engine.vitals import clamp_hp, max_hp
from cac_sheet.models import (
    Ability,
    Attack,
    Character,
    Coin,
    Companion,
    EffectKind,
    EquippedEffects,
    InventoryItem,
    Spell,
    new_id,
)


logger = get_logger(__name__)


def _toggled(ids: list[str], item_id: str) -> list[str]:
    if item_id in ids:
        return [existing for existing in ids if existing != item_id]
    return [*ids, item_id]


def _finalize(character: Character) -> Character:
    """Re-establish the inventory, XP table and hit point invariants."""
    for item in character.inventory:
        if item.quantity <= 0:
            character = purge_item(character, item.id)
    table = normalize_xp_table(character.xp_table)
    hp = clamp_hp(character.hp, max_hp(character))
    if table == character.xp_table and hp == character.hp:
        return character
    return character.model_copy(update={"xp_table": table, "hp": hp})


# =============================================================================
# Roster
# =============================================================================


def new_character(name: str = "New Character", **fields: Any) -> Character:
    """Create a blank character using the configured rule defaults."""
    fields.setdefault("speed", get_settings().rules.default_speed)
    return Character.model_validate({"name": name, **fields})


def duplicate_character(character: Character) -> Character:
    """Copy a character under a new id."""
    return character.model_copy(update={"id": new_id(), "name": f"{character.name} (Copy)"})


def replace_character(character: Character, data: Character | dict[str, Any]) -> CommandResult:
    """Replace a character wholesale with validated data.

    The id is kept. Hit points are clamped and the XP table repaired.

    Args:
        character: The character being edited.
        data: The edited record, as a Character or a (camelCase or
            snake_case) mapping.
    """
    payload = data.model_dump() if isinstance(data, Character) else dict(data)
    payload["id"] = character.id
    replacement = Character.model_validate(payload)
    return accepted(_finalize(replacement), "Character updated")


# =============================================================================
# Inventory
# =============================================================================


def add_item(character: Character, item: InventoryItem | dict[str, Any]) -> CommandResult:
    """Add an item to the inventory."""
    if not isinstance(item, InventoryItem):
        item = InventoryItem.model_validate(item)
    if character.get_item(item.id) is not None:
        return rejected(character, "An item with that id already exists", item_id=item.id)
    updated = character.model_copy(update={"inventory": [*character.inventory, item]})
    return accepted(updated, f"Added {item.name or 'item'}")


def update_item(character: Character, item_id: str, **changes: Any) -> CommandResult:
    """Edit fields of an inventory item.

    Setting ``quantity`` to zero or below removes the item like
    ``remove_item`` does.

    Args:
        character: The character record.
        item_id: Item to edit.
        **changes: New field values by snake_case name.
    """
    item = character.get_item(item_id)
    if item is None:
        return rejected(character, "Item not found", item_id=item_id)
    changes.pop("id", None)
    edited = InventoryItem.model_validate({**item.model_dump(), **changes})
    if edited.quantity <= 0:
        return accepted(purge_item(character, item_id), f"Removed {item.name or 'item'}")
    inventory = [edited if existing.id == item_id else existing for existing in character.inventory]
    return accepted(character.model_copy(update={"inventory": inventory}), f"Updated {edited.name}")


def purge_item(character: Character, item_id: str) -> Character:
    """Delete an item and every reference to it.

    Equipped sets, the shield slot, attack bindings and applied effects
    drop the id. Grimoires and magic items linked to the item are
    deleted. Items stored inside it are taken out.
    """
    updates: dict[str, Any] = {
        "inventory": [
            item.model_copy(update={"stored_in_id": None}) if item.stored_in_id == item_id else item
            for item in character.inventory
            if item.id != item_id
        ],
        "equipped_attr_bonuses": {
            ability: [i for i in ids if i != item_id]
            for ability, ids in character.equipped_attr_bonuses.items()
        },
        "equipped_armor_ids": [i for i in character.equipped_armor_ids if i != item_id],
        "equipped_speed_item_ids": [i for i in character.equipped_speed_item_ids if i != item_id],
        "equipped_effect_item_ids": EquippedEffects(
            attack=[i for i in character.equipped_effect_item_ids.attack if i != item_id],
            ac=[i for i in character.equipped_effect_item_ids.ac if i != item_id],
        ),
        "attacks": [
            attack.model_copy(
                update={
                    "weapon_id": None if attack.weapon_id == item_id else attack.weapon_id,
                    "applied_effect_item_ids": [
                        i for i in attack.applied_effect_item_ids if i != item_id
                    ],
                }
            )
            for attack in character.attacks
        ],
        "grimoires": [book for book in character.grimoires if book.linked_item_id != item_id],
        "magic_items": [m for m in character.magic_items if m.linked_item_id != item_id],
    }
    if character.equipped_shield_id == item_id:
        updates["equipped_shield_id"] = None
    with character_context(character.id):
        logger.debug("Item purged", item_id=item_id)
    return character.model_copy(update=updates)


def remove_item(character: Character, item_id: str, quantity: int | None = 1) -> CommandResult:
    """Remove ``quantity`` of an item; ``None`` removes the whole stack.

    When the stack reaches zero the item is purged along with every
    reference to it.
    """
    item = character.get_item(item_id)
    if item is None:
        return rejected(character, "Item not found", item_id=item_id)
    if quantity is not None and quantity < 1:
        raise InvalidCommandError(
            "quantity must be at least 1", command="remove_item", details={"quantity": quantity}
        )

    if quantity is not None and item.quantity > quantity:
        reduced = item.model_copy(update={"quantity": item.quantity - quantity})
        inventory = [reduced if i.id == item_id else i for i in character.inventory]
        return accepted(
            character.model_copy(update={"inventory": inventory}),
            f"{item.name}: {reduced.quantity} left",
        )
    return accepted(purge_item(character, item_id), f"Removed {item.name or 'item'}")


# =============================================================================
# Equipment
# =============================================================================


def toggle_armor(character: Character, item_id: str) -> CommandResult:
    """Wear or take off a piece of armor."""
    if character.get_item(item_id) is None:
        return rejected(character, "Item not found", item_id=item_id)
    armor = _toggled(character.equipped_armor_ids, item_id)
    return accepted(character.model_copy(update={"equipped_armor_ids": armor}))


def set_shield(character: Character, item_id: str | None) -> CommandResult:
    """Ready a shield, or put it away with ``None``."""
    if item_id is not None and character.get_item(item_id) is None:
        return rejected(character, "Item not found", item_id=item_id)
    return accepted(character.model_copy(update={"equipped_shield_id": item_id}))


def toggle_attr_bonus(character: Character, ability: Ability | str, item_id: str) -> CommandResult:
    """Turn an item's ability bonus on or off.

    Raises:
        InvalidCommandError: If ``ability`` names no ability.
    """
    parsed = Ability.parse(ability)
    if parsed is None:
        raise InvalidCommandError(
            f"Unknown ability: {ability!r}", command="toggle_attr_bonus"
        )
    if character.get_item(item_id) is None:
        return rejected(character, "Item not found", item_id=item_id)
    bonuses = dict(character.equipped_attr_bonuses)
    bonuses[parsed] = _toggled(list(bonuses.get(parsed, [])), item_id)
    return accepted(character.model_copy(update={"equipped_attr_bonuses": bonuses}))


def toggle_speed_item(character: Character, item_id: str) -> CommandResult:
    """Turn an item's speed effects on or off."""
    if character.get_item(item_id) is None:
        return rejected(character, "Item not found", item_id=item_id)
    speed_ids = _toggled(character.equipped_speed_item_ids, item_id)
    return accepted(character.model_copy(update={"equipped_speed_item_ids": speed_ids}))


def toggle_effect_item(character: Character, kind: EffectKind | str, item_id: str) -> CommandResult:
    """Turn an item's effects of one kind on or off.

    Raises:
        InvalidCommandError: If ``kind`` is not an effect kind.
    """
    try:
        kind = EffectKind(kind)
    except ValueError as exc:
        raise InvalidCommandError(
            f"Unknown effect kind: {kind!r}", command="toggle_effect_item"
        ) from exc
    if kind == EffectKind.SPEED:
        return toggle_speed_item(character, item_id)
    if character.get_item(item_id) is None:
        return rejected(character, "Item not found", item_id=item_id)

    equipped = character.equipped_effect_item_ids
    if kind == EffectKind.ATTACK:
        effects = equipped.model_copy(update={"attack": _toggled(equipped.attack, item_id)})
    else:
        effects = equipped.model_copy(update={"ac": _toggled(equipped.ac, item_id)})
    return accepted(character.model_copy(update={"equipped_effect_item_ids": effects}))


# =============================================================================
# Attacks
# =============================================================================


def _with_attack(character: Character, attack: Attack) -> Character:
    attacks = [attack if a.id == attack.id else a for a in character.attacks]
    return character.model_copy(update={"attacks": attacks})


def add_attack(character: Character, attack: Attack | dict[str, Any]) -> CommandResult:
    """Add an attack line."""
    if not isinstance(attack, Attack):
        attack = Attack.model_validate(attack)
    if attack.weapon_id is not None and character.get_item(attack.weapon_id) is None:
        attack = attack.model_copy(update={"weapon_id": None})
    return accepted(
        character.model_copy(update={"attacks": [*character.attacks, attack]}),
        f"Added attack {attack.name!r}",
    )


def remove_attack(character: Character, attack_id: str) -> CommandResult:
    """Delete an attack line."""
    if character.get_attack(attack_id) is None:
        return rejected(character, "Attack not found", attack_id=attack_id)
    attacks = [a for a in character.attacks if a.id != attack_id]
    return accepted(character.model_copy(update={"attacks": attacks}), "Attack removed")


def bind_weapon(character: Character, attack_id: str, item_id: str | None) -> CommandResult:
    """Bind an attack to an inventory weapon, or unbind it with ``None``.

    Binding also adopts the weapon's melee/ranged mode.
    """
    attack = character.get_attack(attack_id)
    if attack is None:
        return rejected(character, "Attack not found", attack_id=attack_id)
    if item_id is None:
        return accepted(_with_attack(character, attack.model_copy(update={"weapon_id": None})))

    weapon = character.get_item(item_id)
    if weapon is None:
        return rejected(character, "Item not found", item_id=item_id)
    bound = attack.model_copy(update={"weapon_id": weapon.id, "weapon_mode": weapon.weapon_mode})
    return accepted(_with_attack(character, bound), f"{attack.name} uses {weapon.name}")


def toggle_attack_effect(character: Character, attack_id: str, item_id: str) -> CommandResult:
    """Apply or stop applying an item's attack effects to one attack."""
    attack = character.get_attack(attack_id)
    if attack is None:
        return rejected(character, "Attack not found", attack_id=attack_id)
    if character.get_item(item_id) is None:
        return rejected(character, "Item not found", item_id=item_id)
    applied = _toggled(attack.applied_effect_item_ids, item_id)
    updated = attack.model_copy(update={"applied_effect_item_ids": applied})
    return accepted(_with_attack(character, updated))


# =============================================================================
# Experience & Hit Points
# =============================================================================


def set_xp_table(character: Character, table: list[int]) -> CommandResult:
    """Replace the XP table, bumping out-of-order entries upward."""
    normalized = normalize_xp_table([int(value) for value in table])
    message = "XP table saved" if normalized == list(table) else "XP table saved; entries adjusted"
    return accepted(character.model_copy(update={"xp_table": normalized}), message)


def add_xp(character: Character, amount: int) -> CommandResult:
    """Award (or with a negative amount, remove) experience; never below 0."""
    current_xp = max(0, character.current_xp + amount)
    return accepted(character.model_copy(update={"current_xp": current_xp}), f"{amount:+d} XP")


def set_hp(character: Character, hp: int) -> CommandResult:
    """Set current hit points, clamped to the maximum."""
    hp = clamp_hp(hp, max_hp(character))
    return accepted(character.model_copy(update={"hp": hp}))


def adjust_hp(character: Character, delta: int) -> CommandResult:
    """Apply damage (negative) or healing (positive)."""
    return set_hp(character, character.hp + delta)


def set_hp_for_level(character: Character, level: int, hp: int) -> CommandResult:
    """Record the hit points rolled at ``level`` (1-based).

    Raises:
        InvalidCommandError: If ``level`` is below 1.
    """
    if level < 1:
        raise InvalidCommandError(
            "level must be at least 1", command="set_hp_for_level", details={"level": level}
        )
    hp_by_level = list(character.hp_by_level)
    if len(hp_by_level) < level:
        hp_by_level.extend([0] * (level - len(hp_by_level)))
    hp_by_level[level - 1] = max(0, hp)
    updated = character.model_copy(update={"hp_by_level": hp_by_level})
    return accepted(_finalize(updated), f"Level {level}: {hp_by_level[level - 1]} HP")


def toggle_level_drain(character: Character, level: int) -> CommandResult:
    """Mark or clear energy drain on ``level`` (1-based).

    Raises:
        InvalidCommandError: If ``level`` is below 1.
    """
    if level < 1:
        raise InvalidCommandError(
            "level must be at least 1", command="toggle_level_drain", details={"level": level}
        )
    drained = list(character.level_drained)
    if len(drained) < level:
        drained.extend([False] * (level - len(drained)))
    drained[level - 1] = not drained[level - 1]
    updated = character.model_copy(update={"level_drained": drained})
    state = "drained" if drained[level - 1] else "restored"
    return accepted(_finalize(updated), f"Level {level} {state}")


# =============================================================================
# Spells
# =============================================================================


def learn_spell(character: Character, spell: Spell | dict[str, Any]) -> CommandResult:
    """Add a spell to the learned list."""
    if not isinstance(spell, Spell):
        spell = Spell.model_validate(spell)
    if character.get_spell(spell.id) is not None:
        return rejected(character, f"{spell.name} is already known", spell_id=spell.id)
    updated = character.model_copy(update={"spells_learned": [*character.spells_learned, spell]})
    return accepted(updated, f"Learned {spell.name}")


def forget_spell(character: Character, spell_id: str) -> CommandResult:
    """Forget a spell and erase its grimoire entries."""
    spell = character.get_spell(spell_id)
    if spell is None:
        return rejected(character, "Spell not found", spell_id=spell_id)
    grimoires = [
        book.model_copy(
            update={"entries": [e for e in book.entries if e.spell_id != spell_id]}
        )
        for book in character.grimoires
    ]
    updated = character.model_copy(
        update={
            "spells_learned": [s for s in character.spells_learned if s.id != spell_id],
            "grimoires": grimoires,
        }
    )
    return accepted(updated, f"Forgot {spell.name}")


# =============================================================================
# Wallet
# =============================================================================


def _coin(coin: Coin | str, command: str) -> Coin:
    try:
        return Coin(str(coin).lower())
    except ValueError as exc:
        raise InvalidCommandError(f"Unknown coin: {coin!r}", command=command) from exc


def deposit_coins(character: Character, coin: Coin | str, amount: int) -> CommandResult:
    """Add coins of one denomination.

    Raises:
        InvalidCommandError: If the coin is unknown or ``amount`` is negative.
    """
    denomination = _coin(coin, "deposit_coins")
    if amount < 0:
        raise InvalidCommandError(
            "amount must not be negative", command="deposit_coins", details={"amount": amount}
        )
    held = getattr(character.wallet, denomination.value)
    wallet = character.wallet.model_copy(update={denomination.value: held + amount})
    return accepted(
        character.model_copy(update={"wallet": wallet}), f"+{amount} {denomination.value}"
    )


def spend_coins(character: Character, coin: Coin | str, amount: int) -> CommandResult:
    """Spend coins of one denomination; rejected when not enough are held.

    Raises:
        InvalidCommandError: If the coin is unknown or ``amount`` is negative.
    """
    denomination = _coin(coin, "spend_coins")
    if amount < 0:
        raise InvalidCommandError(
            "amount must not be negative", command="spend_coins", details={"amount": amount}
        )
    held = getattr(character.wallet, denomination.value)
    if amount > held:
        return rejected(
            character,
            f"Not enough {denomination.value}: have {held}, need {amount}",
            coin=denomination.value,
            held=held,
            amount=amount,
        )
    wallet = character.wallet.model_copy(update={denomination.value: held - amount})
    return accepted(
        character.model_copy(update={"wallet": wallet}), f"-{amount} {denomination.value}"
    )


# =============================================================================
# Companions
# =============================================================================


def add_companion(character: Character, companion: Companion | dict[str, Any]) -> CommandResult:
    """Add a companion."""
    if not isinstance(companion, Companion):
        companion = Companion.model_validate(companion)
    updated = character.model_copy(update={"companions": [*character.companions, companion]})
    return accepted(updated, f"Added {companion.name or 'companion'}")


def remove_companion(character: Character, companion_id: str) -> CommandResult:
    """Remove a companion."""
    if not any(c.id == companion_id for c in character.companions):
        return rejected(character, "Companion not found", companion_id=companion_id)
    companions = [c for c in character.companions if c.id != companion_id]
    return accepted(character.model_copy(update={"companions": companions}), "Companion removed")


__all__ = [
    "new_character",
    "duplicate_character",
    "replace_character",
    "add_item",
    "update_item",
    "purge_item",
    "remove_item",
    "toggle_armor",
    "set_shield",
    "toggle_attr_bonus",
    "toggle_speed_item",
    "toggle_effect_item",
    "add_attack",
    "remove_attack",
    "bind_weapon",
    "toggle_attack_effect",
    "set_xp_table",
    "add_xp",
    "set_hp",
    "adjust_hp",
    "set_hp_for_level",
    "toggle_level_drain",
    "learn_spell",
    "forget_spell",
    "deposit_coins",
    "spend_coins",
    "add_companion",
    "remove_companion",
]
