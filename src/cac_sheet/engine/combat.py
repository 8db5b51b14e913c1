"""Attack and damage bonus resolution.

Merges, per attack: the bound weapon's magic and misc bonuses, the
attack's own manual modifiers, attack effects of the items selected for
that attack, and the character's global attack/damage bonuses. No dice
are rolled here; see ``cac_sheet.engine.dice`` for that.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from cac_sheet.engine.attributes import calc_mod
from cac_sheet.models import Ability, Attack, Character, EffectKind, InventoryItem, WeaponMode


class AttackTotals(BaseModel):
    """Static bonuses for one attack line.

    Attributes:
        attack_id: The attack these totals belong to.
        to_hit: Bonus added to the d20 attack roll.
        damage_bonus: Bonus added to the damage dice.
        num_dice: Damage dice count (0 when unset).
        die_type: Damage die size (0 when unset).
    """

    model_config = ConfigDict(frozen=True)

    attack_id: str
    to_hit: int
    damage_bonus: int
    num_dice: int = 0
    die_type: int = 0

    @property
    def damage_expression(self) -> str | None:
        """Dice notation for the damage roll, e.g. ``"1d8+3"``."""
        if self.num_dice <= 0 or self.die_type <= 0:
            return None
        if self.damage_bonus == 0:
            return f"{self.num_dice}d{self.die_type}"
        return f"{self.num_dice}d{self.die_type}{self.damage_bonus:+d}"


class EffectBonuses(BaseModel):
    """Summed attack-effect contributions."""

    model_config = ConfigDict(frozen=True)

    misc_to_hit: int = 0
    magic_to_hit: int = 0
    misc_damage: int = 0
    magic_damage: int = 0


def resolve_weapon(character: Character, weapon_id: str | None) -> InventoryItem | None:
    """Look up an attack's bound weapon; a deleted weapon resolves to None."""
    return character.get_item(weapon_id)


def applied_effect_bonuses(character: Character, attack: Attack) -> EffectBonuses:
    """Sum attack effects of the items this attack has selected."""
    misc_to_hit = magic_to_hit = misc_damage = magic_damage = 0
    for item_id in attack.applied_effect_item_ids:
        item = character.get_item(item_id)
        if item is None:
            continue
        for effect in item.effects_of(EffectKind.ATTACK):
            misc_to_hit += effect.misc_to_hit
            magic_to_hit += effect.magic_to_hit
            misc_damage += effect.misc_damage
            magic_damage += effect.magic_damage
    return EffectBonuses(
        misc_to_hit=misc_to_hit,
        magic_to_hit=magic_to_hit,
        misc_damage=misc_damage,
        magic_damage=magic_damage,
    )


def _to_hit_ability(mode: WeaponMode) -> Ability | None:
    if mode == WeaponMode.MELEE:
        return Ability.STR
    if mode == WeaponMode.RANGED:
        return Ability.DEX
    return None


def attribute_modifiers(attack: Attack, totals: dict[Ability, int]) -> tuple[int, int]:
    """Return the (to-hit, damage) ability modifiers for an attack.

    With automatic modifiers the stored ``attr_mod`` is an extra on top
    of STR (melee) or DEX (ranged). Melee damage adds STR; ranged damage
    stays manual because thrown and fired weapons differ.
    """
    if not attack.uses_auto_mods:
        return attack.attr_mod, 0

    ability = _to_hit_ability(WeaponMode(attack.weapon_mode))
    to_hit_mod = attack.attr_mod
    if ability is not None:
        to_hit_mod += calc_mod(totals.get(ability, 10))

    damage_mod = 0
    if attack.weapon_mode == WeaponMode.MELEE:
        damage_mod = calc_mod(totals.get(Ability.STR, 10))
    return to_hit_mod, damage_mod


def resolve_attack(
    character: Character,
    attack: Attack,
    totals: dict[Ability, int],
) -> AttackTotals:
    """Compute to-hit and damage bonuses for one attack.

    Args:
        character: The character record.
        attack: The attack line.
        totals: Resolved ability totals.
    """
    weapon = resolve_weapon(character, attack.weapon_id)
    effects = applied_effect_bonuses(character, attack)
    to_hit_mod, damage_ability_mod = attribute_modifiers(attack, totals)

    weapon_to_hit = weapon_damage = 0
    num_dice, die_type = attack.num_dice, attack.die_type
    if weapon is not None:
        weapon_to_hit = weapon.weapon_to_hit_magic + weapon.weapon_to_hit_misc
        weapon_damage = weapon.weapon_damage_magic + weapon.weapon_damage_misc
        if num_dice <= 0:
            num_dice = weapon.weapon_damage_num_dice
        if die_type <= 0:
            die_type = weapon.weapon_damage_die_type

    to_hit = (
        character.base_bth
        + attack.bth
        + to_hit_mod
        + attack.magic
        + attack.misc
        + weapon_to_hit
        + character.attack_bonus
        + effects.misc_to_hit
        + effects.magic_to_hit
    )
    damage_bonus = (
        damage_ability_mod
        + attack.damage_mod
        + attack.damage_magic
        + attack.damage_misc
        + weapon_damage
        + character.damage_bonus
        + effects.misc_damage
        + effects.magic_damage
    )
    return AttackTotals(
        attack_id=attack.id,
        to_hit=to_hit,
        damage_bonus=damage_bonus,
        num_dice=num_dice,
        die_type=die_type,
    )


def resolve_attacks(character: Character, totals: dict[Ability, int]) -> dict[str, AttackTotals]:
    """Compute totals for every attack, keyed by attack id."""
    return {attack.id: resolve_attack(character, attack, totals) for attack in character.attacks}


__all__ = [
    "AttackTotals",
    "EffectBonuses",
    "resolve_weapon",
    "applied_effect_bonuses",
    "attribute_modifiers",
    "resolve_attack",
    "resolve_attacks",
]
