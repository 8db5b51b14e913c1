"""Pydantic V2 schemas for the character record.

The Character is the aggregate root: an immutable value that owns its
inventory, attacks, grimoires, magic items, wallet and companions. The
engine never mutates a Character in place; commands build a new one.

Cross-references between sub-records are plain string ids (attack to
weapon, grimoire entry to learned spell, effect set to owning item),
resolved by lookup at computation time.

Field names are snake_case; every model also accepts and emits the
camelCase keys used by saved sheets. Legacy field shapes written by
older versions of the app are normalized once, here, in ``mode="before"``
validators, so resolvers only ever see the current shape.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from cac_sheet.core.constants import (
    CURRENCY_TO_GP,
    DEFAULT_AC_BASE,
    DEFAULT_GRIMOIRE_CAPACITY,
    DEFAULT_HP_BY_LEVEL,
    DEFAULT_SPEED,
    DEFAULT_XP_TABLE,
)
from cac_sheet.models.enums import Ability, Coin, EffectKind, WeaponMode
from cac_sheet.models.fields import (
    IdList,
    ItemId,
    LenientFloat,
    LenientInt,
    OptionalItemId,
    Quantity,
    RolledScore,
    coerce_float,
    coerce_int,
)


def new_id() -> str:
    """Generate a fresh record identifier."""
    return uuid4().hex


def _pick(data: dict[str, Any], *keys: str) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _has_any(data: dict[str, Any], *keys: str) -> bool:
    return any(key in data for key in keys)


# =============================================================================
# Base Model
# =============================================================================


class SheetModel(BaseModel):
    """Base class for all character sheet records.

    Records are frozen values. Unknown keys (UI-only fields from saved
    sheets) are ignored on load.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# =============================================================================
# Attributes
# =============================================================================


class AttributeScore(SheetModel):
    """One ability's raw inputs.

    Attributes:
        rolled_score: The rolled (or point-bought) score.
        bonus_mod: Manual adjustment added to the score.
        is_prime: Whether this ability is prime for the character.
        save_modifier: Manual adjustment to saves using this ability.
    """

    rolled_score: RolledScore = 10
    bonus_mod: LenientInt = 0
    is_prime: bool = False
    save_modifier: LenientInt = 0

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_shape(cls, data: Any) -> Any:
        """Map the old ``{base, bonus, tempMod}`` shape onto current fields."""
        if not isinstance(data, dict) or _has_any(data, "rolledScore", "rolled_score"):
            return data
        if not _has_any(data, "base", "bonus", "tempMod"):
            return data
        upgraded = dict(data)
        upgraded["rolledScore"] = data.get("base")
        upgraded["bonusMod"] = coerce_int(data.get("bonus")) + coerce_int(data.get("tempMod"))
        return upgraded


class RaceAttributeMod(SheetModel):
    """A racial adjustment to an ability score, or to AC when ``attr`` is "ac"."""

    attr: str
    value: LenientInt = 0
    description: str | None = None


class AttrBonus(SheetModel):
    """A per-unit ability bonus granted by an item while it is equipped."""

    attr: str
    value: LenientInt = 0


# =============================================================================
# Inventory
# =============================================================================


_LEGACY_EFFECT_KINDS: dict[str, tuple[str, str]] = {
    "toHit": ("toHit", "miscToHit"),
    "damage": ("damage", "miscDamage"),
}


class ItemEffect(SheetModel):
    """A bonus that stays attached to its item and applies while worn.

    Attack effects apply to the attacks that list the owning item in
    their ``applied_effect_item_ids``; AC effects apply while the item is
    in the equipped AC effect set; speed effects apply while the item is
    in the equipped speed item set.
    """

    id: ItemId = Field(default_factory=new_id)
    kind: EffectKind
    misc_to_hit: LenientInt = 0
    misc_damage: LenientInt = 0
    magic_to_hit: LenientInt = 0
    magic_damage: LenientInt = 0
    ac: LenientInt = 0
    speed: LenientInt = 0
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_kind(cls, data: Any) -> Any:
        """Fold the old single-purpose ``toHit``/``damage`` kinds into attack effects."""
        if not isinstance(data, dict):
            return data
        legacy = _LEGACY_EFFECT_KINDS.get(data.get("kind"))
        if legacy is None:
            return data
        source_key, target_key = legacy
        upgraded = dict(data)
        upgraded["kind"] = EffectKind.ATTACK
        upgraded[target_key] = data.get(source_key)
        return upgraded


_KNOWN_EFFECT_KINDS = {kind.value for kind in EffectKind} | set(_LEGACY_EFFECT_KINDS)


class InventoryItem(SheetModel):
    """An item carried by the character.

    Only the fields the engine reads are typed; display-only fields from
    saved sheets are dropped on load.
    """

    id: ItemId = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    quantity: Quantity = 1
    weight_per: LenientFloat = 0.0
    ev: LenientFloat = 0.0
    worth_gp: LenientFloat = Field(default=0.0, alias="worthGP")

    # Armor & shields
    is_armor: bool = False
    is_shield: bool = False
    ac_bonus: LenientInt = 0
    magic_ac_bonus: LenientInt = Field(default=0, alias="magicACBonus")

    # Weapons
    is_weapon: bool = False
    weapon_mode: WeaponMode = WeaponMode.MELEE
    weapon_to_hit_magic: LenientInt = 0
    weapon_to_hit_misc: LenientInt = 0
    weapon_damage_magic: LenientInt = 0
    weapon_damage_misc: LenientInt = 0
    weapon_damage_num_dice: LenientInt = 0
    weapon_damage_die_type: LenientInt = 0

    # Ability bonuses & worn effects
    has_attr_bonus: bool = False
    attr_bonuses: list[AttrBonus] = Field(default_factory=list)
    effects: list[ItemEffect] = Field(default_factory=list)

    # Containers
    is_container: bool = False
    is_magical_container: bool = False
    stored_in_id: OptionalItemId = None
    stored_coins_gp: LenientFloat = Field(default=0.0, alias="storedCoinsGP")

    # Spell storage
    is_grimoire: bool = False
    is_magic_casting: bool = False
    capacity: LenientInt = 0

    @field_validator("weapon_mode", mode="before")
    @classmethod
    def parse_weapon_mode(cls, value: Any) -> Any:
        """Accept any casing; unknown modes fall back to melee."""
        try:
            return WeaponMode(str(value).strip().lower())
        except ValueError:
            return WeaponMode.MELEE

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_fields(cls, data: Any) -> Any:
        """Normalize the pre-array ability bonus and single-effect shapes."""
        if not isinstance(data, dict):
            return data
        upgraded = dict(data)

        if not _pick(data, "attrBonuses", "attr_bonuses"):
            attr = _pick(data, "attrBonusAttr", "attr_bonus_attr")
            if attr:
                value = _pick(data, "attrBonusValue", "attr_bonus_value")
                upgraded["attrBonuses"] = [{"attr": attr, "value": value}]

        effects = _pick(data, "effects")
        if isinstance(effects, list):
            # Effect kinds without an engine rule (saves, attributes) are dropped.
            upgraded["effects"] = [
                effect
                for effect in effects
                if not isinstance(effect, dict) or effect.get("kind") in _KNOWN_EFFECT_KINDS
            ]
        elif data.get("isWeaponEffect"):
            legacy_effects = []
            if data.get("effectToHitBonus"):
                legacy_effects.append({"kind": "toHit", "toHit": data["effectToHitBonus"]})
            if data.get("effectDamageBonus"):
                legacy_effects.append({"kind": "damage", "damage": data["effectDamageBonus"]})
            upgraded["effects"] = legacy_effects

        if _pick(data, "capacity") is None:
            legacy_capacity = _pick(data, "magicCastingCapacity")
            if legacy_capacity is not None:
                upgraded["capacity"] = legacy_capacity

        return upgraded

    @property
    def total_ev(self) -> float:
        """Encumbrance value of the whole stack."""
        return self.ev * self.quantity

    @property
    def total_weight(self) -> float:
        """Weight of the whole stack."""
        return self.weight_per * self.quantity

    def attr_bonus_for(self, ability: Ability) -> int:
        """Sum this item's per-unit bonuses to ``ability``."""
        return sum(
            bonus.value for bonus in self.attr_bonuses if Ability.parse(bonus.attr) == ability
        )

    def effects_of(self, kind: EffectKind) -> list[ItemEffect]:
        """Return this item's effects of one kind."""
        return [effect for effect in self.effects if effect.kind == kind]


class EquippedEffects(SheetModel):
    """Item ids whose effects are currently worn, by effect kind."""

    attack: IdList = Field(default_factory=list)
    ac: IdList = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_kinds(cls, data: Any) -> Any:
        """Merge the old ``toHit``/``damage`` id lists into ``attack``."""
        if not isinstance(data, dict) or "attack" in data:
            return data
        attack: list[Any] = []
        for key in ("toHit", "damage"):
            if isinstance(data.get(key), list):
                attack.extend(data[key])
        return {"attack": attack, "ac": data.get("ac") or []}


# =============================================================================
# Attacks
# =============================================================================


_LEGACY_ATTACK_FIELDS: dict[str, tuple[str, str]] = {
    "mod": ("attrMod", "attr_mod"),
    "toHitMagic": ("magic", "magic"),
    "toHitMisc": ("misc", "misc"),
    "damageBonus": ("damageMod", "damage_mod"),
    "linkedInventoryItemId": ("weaponId", "weapon_id"),
}


class Attack(SheetModel):
    """An attack line on the combat tab.

    Attributes:
        weapon_id: Inventory item this attack is bound to, if any.
        weapon_mode: Melee, ranged or other; picks STR or DEX.
        bth: Attack-specific to-hit adjustment added to the base BTH.
        attr_mod: Manual ability modifier, or the extra on top of the
            automatic one when ``auto_mods`` is on.
        auto_mods: Derive ability modifiers automatically. ``None`` means
            on for weapon-bound, melee and ranged attacks.
        applied_effect_item_ids: Items whose attack effects apply here.
    """

    id: ItemId = Field(default_factory=new_id)
    name: str = ""
    weapon_id: OptionalItemId = None
    weapon_mode: WeaponMode = WeaponMode.MELEE
    num_dice: LenientInt = 0
    die_type: LenientInt = 0
    bth: LenientInt = 0
    attr_mod: LenientInt = 0
    magic: LenientInt = 0
    misc: LenientInt = 0
    damage_mod: LenientInt = 0
    damage_magic: LenientInt = 0
    damage_misc: LenientInt = 0
    applied_effect_item_ids: IdList = Field(default_factory=list)
    auto_mods: bool | None = None
    notes: str = ""

    @field_validator("weapon_mode", mode="before")
    @classmethod
    def parse_weapon_mode(cls, value: Any) -> Any:
        """Accept any casing; unknown modes map to other."""
        try:
            return WeaponMode(str(value).strip().lower())
        except ValueError:
            return WeaponMode.OTHER

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_fields(cls, data: Any) -> Any:
        """Map the original attack form fields onto current names."""
        if not isinstance(data, dict):
            return data
        upgraded = dict(data)
        for old, (camel, snake) in _LEGACY_ATTACK_FIELDS.items():
            if old in data and not _has_any(data, camel, snake):
                upgraded[camel] = data[old]
        return upgraded

    @property
    def uses_auto_mods(self) -> bool:
        """Resolve the ``auto_mods`` default."""
        if self.auto_mods is not None:
            return self.auto_mods
        return self.weapon_id is not None or self.weapon_mode != WeaponMode.OTHER


# =============================================================================
# Spells, Grimoires & Magic Items
# =============================================================================


class Spell(SheetModel):
    """A spell the character has learned."""

    id: ItemId = Field(default_factory=new_id)
    name: str = ""
    level: LenientInt = 0
    description: str = ""


class GrimoireEntry(SheetModel):
    """One copy of a learned spell written into a grimoire."""

    instance_id: ItemId = Field(default_factory=new_id)
    spell_id: ItemId
    permanent: bool = False
    used_today: bool = False
    num_dice: LenientInt = 0

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_id(cls, data: Any) -> Any:
        """Older entries used ``id`` for the instance id."""
        if isinstance(data, dict) and not _has_any(data, "instanceId", "instance_id") and "id" in data:
            return {**data, "instanceId": data["id"]}
        return data


class Grimoire(SheetModel):
    """A spellbook with a shared spell-point budget."""

    id: ItemId = Field(default_factory=new_id)
    name: str = ""
    capacity: LenientInt = DEFAULT_GRIMOIRE_CAPACITY
    entries: list[GrimoireEntry] = Field(default_factory=list)
    linked_item_id: OptionalItemId = Field(default=None, alias="linkedInventoryItemId")


class MagicItemSpell(SheetModel):
    """One charge of a spell stored in a magic item."""

    spell: Spell
    permanent: bool = False
    used_today: bool = False
    num_dice: LenientInt = 0


class MagicItem(SheetModel):
    """A wand, staff or similar item holding spell charges up to ``capacity``."""

    id: ItemId = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    capacity: LenientInt = 0
    spells: list[MagicItemSpell] = Field(default_factory=list)
    linked_item_id: OptionalItemId = Field(default=None, alias="linkedInventoryItemId")

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_spells(cls, data: Any) -> Any:
        """Expand the old ``{name, level, copies}`` spell rows into one entry per copy."""
        if not isinstance(data, dict):
            return data
        upgraded = dict(data)
        if _pick(data, "capacity") is None and _pick(data, "maxCharges") is not None:
            upgraded["capacity"] = data["maxCharges"]
        spells = data.get("spells")
        if isinstance(spells, list):
            expanded: list[Any] = []
            for row in spells:
                if isinstance(row, dict) and "spell" not in row and "name" in row:
                    entry = {
                        "spell": {
                            "id": row.get("id") or new_id(),
                            "name": row.get("name", ""),
                            "level": row.get("level", 0),
                            "description": row.get("description", ""),
                        },
                        "permanent": bool(row.get("permanent")),
                        "usedToday": bool(row.get("usedToday")),
                    }
                    expanded.extend([entry] * max(1, coerce_int(row.get("copies"), 1)))
                else:
                    expanded.append(row)
            upgraded["spells"] = expanded
        return upgraded

    @property
    def remaining(self) -> int:
        """Free charge slots."""
        return self.capacity - len(self.spells)


# =============================================================================
# Wallet & Companions
# =============================================================================


class Wallet(SheetModel):
    """Coins carried, by denomination."""

    platinum: LenientInt = 0
    gold: LenientInt = 0
    electrum: LenientInt = 0
    silver: LenientInt = 0
    copper: LenientInt = 0

    @property
    def total_gp(self) -> float:
        """Value of all coins in gold pieces."""
        return round(
            sum(getattr(self, coin.value) * CURRENCY_TO_GP[coin.value] for coin in Coin), 2
        )

    @property
    def coin_count(self) -> int:
        """Number of physical coins."""
        return sum(getattr(self, coin.value) for coin in Coin)


class CompanionAttack(SheetModel):
    """An attack line for a companion; totals are entered by hand."""

    id: ItemId = Field(default_factory=new_id)
    name: str = ""
    bth: LenientInt = 0
    mod: LenientInt = 0
    num_dice: LenientInt = 1
    die_type: LenientInt = 6
    damage_bonus: LenientInt = 0


class Companion(SheetModel):
    """A henchman, animal companion or familiar."""

    id: ItemId = Field(default_factory=new_id)
    name: str = ""
    type: str = ""
    hp: LenientInt = 0
    max_hp: LenientInt = 0
    ac: LenientInt = 10
    attacks: list[CompanionAttack] = Field(default_factory=list)
    notes: str = ""


# =============================================================================
# Character (aggregate root)
# =============================================================================


def _default_attributes() -> dict[Ability, AttributeScore]:
    return {ability: AttributeScore() for ability in Ability}


class Character(SheetModel):
    """The full character record.

    Derived values (totals, AC, speed, level) are never stored here; the
    engine computes them from this record.
    """

    id: ItemId = Field(default_factory=new_id)
    name: str = "New Character"
    race: str = ""
    class1: str = ""
    class1_level: LenientInt = 1
    class2: str = ""
    class2_level: LenientInt = 0

    # Abilities
    attributes: dict[Ability, AttributeScore] = Field(default_factory=_default_attributes)
    race_attribute_mods: list[RaceAttributeMod] = Field(default_factory=list)

    # Inventory & equipment
    inventory: list[InventoryItem] = Field(default_factory=list)
    equipped_attr_bonuses: dict[Ability, IdList] = Field(default_factory=dict)
    equipped_armor_ids: IdList = Field(default_factory=list)
    equipped_shield_id: OptionalItemId = None
    equipped_speed_item_ids: IdList = Field(default_factory=list)
    equipped_effect_item_ids: EquippedEffects = Field(default_factory=EquippedEffects)

    # Armor class
    ac_base: LenientInt = DEFAULT_AC_BASE
    ac_mod: LenientInt = 0
    ac_mod_auto: bool = True
    ac_magic: LenientInt = 0
    ac_misc: LenientInt = 0
    ac_bonus: LenientInt = 0

    # Movement & load
    speed: LenientInt = DEFAULT_SPEED
    speed_bonus: LenientInt = 0
    encumbrance_enabled: bool = True
    include_coin_weight: bool = False

    # Hit points
    hp_by_level: list[LenientInt] = Field(default_factory=lambda: list(DEFAULT_HP_BY_LEVEL))
    level_drained: list[bool] = Field(default_factory=list)
    hp_bonus: LenientInt = 0
    hp: LenientInt = 0

    # Experience
    xp_table: list[LenientInt] = Field(default_factory=lambda: list(DEFAULT_XP_TABLE))
    current_xp: LenientInt = 0

    # Combat & saves
    base_bth: LenientInt = 0
    attack_bonus: LenientInt = 0
    damage_bonus: LenientInt = 0
    save_bonus: LenientInt = 0
    prime_save_bonus: LenientInt = 0
    attacks: list[Attack] = Field(default_factory=list)

    # Spells
    spells_learned: list[Spell] = Field(default_factory=list)
    grimoires: list[Grimoire] = Field(default_factory=list)
    magic_items: list[MagicItem] = Field(default_factory=list)

    # Everything else
    wallet: Wallet = Field(default_factory=Wallet)
    companions: list[Companion] = Field(default_factory=list)
    notes: str = ""

    @field_validator("attributes", mode="before")
    @classmethod
    def fill_attributes(cls, value: Any) -> Any:
        """Key attributes by ability and fill any missing ones with defaults."""
        if not isinstance(value, dict):
            return _default_attributes()
        filled: dict[Ability, Any] = {ability: AttributeScore() for ability in Ability}
        for key, score in value.items():
            ability = Ability.parse(key)
            if ability is not None:
                filled[ability] = score
        return filled

    @field_validator("hp_by_level", "xp_table", "level_drained", mode="before")
    @classmethod
    def default_missing_lists(cls, value: Any, info: ValidationInfo) -> Any:
        """Replace a missing or non-list table with its default."""
        if isinstance(value, (list, tuple)):
            return list(value)
        return {
            "hp_by_level": list(DEFAULT_HP_BY_LEVEL),
            "xp_table": list(DEFAULT_XP_TABLE),
            "level_drained": [],
        }[info.field_name]

    @field_validator("equipped_attr_bonuses", mode="before")
    @classmethod
    def key_attr_bonuses(cls, value: Any) -> Any:
        """Drop keys that are not abilities."""
        if not isinstance(value, dict):
            return {}
        keyed: dict[Ability, Any] = {}
        for key, ids in value.items():
            ability = Ability.parse(key)
            if ability is not None:
                keyed[ability] = ids
        return keyed

    @model_validator(mode="before")
    @classmethod
    def upgrade_legacy_fields(cls, data: Any) -> Any:
        """Normalize fields written by older versions of the sheet."""
        if not isinstance(data, dict):
            return data
        upgraded = dict(data)

        if not _has_any(data, "equippedArmorIds", "equipped_armor_ids"):
            legacy_armor = _pick(data, "equippedArmorId", "selectedArmorId")
            if legacy_armor is not None:
                upgraded["equippedArmorIds"] = [legacy_armor]

        if not _has_any(data, "equippedShieldId", "equipped_shield_id"):
            legacy_shield = _pick(data, "selectedShieldId")
            if legacy_shield is not None:
                upgraded["equippedShieldId"] = legacy_shield

        # Old sheets kept speed items inside the per-kind effect id map.
        effect_ids = _pick(data, "equippedEffectItemIds", "equipped_effect_item_ids")
        if isinstance(effect_ids, dict) and isinstance(effect_ids.get("speed"), list):
            speed_ids = list(_pick(data, "equippedSpeedItemIds", "equipped_speed_item_ids") or [])
            upgraded["equippedSpeedItemIds"] = speed_ids + effect_ids["speed"]

        if not _has_any(data, "hpBonus", "hp_bonus") and "maxHpBonus" in data:
            upgraded["hpBonus"] = data["maxHpBonus"]
        if not _has_any(data, "hp") and "currentHp" in data:
            upgraded["hp"] = data["currentHp"]

        if not _has_any(data, "wallet") and "moneyGP" in data:
            upgraded["wallet"] = {"gold": int(coerce_float(data["moneyGP"]))}

        return upgraded

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_item(self, item_id: str | None) -> InventoryItem | None:
        """Find an inventory item by id."""
        if item_id is None:
            return None
        return next((item for item in self.inventory if item.id == str(item_id)), None)

    def get_attack(self, attack_id: str) -> Attack | None:
        """Find an attack by id."""
        return next((attack for attack in self.attacks if attack.id == attack_id), None)

    def get_spell(self, spell_id: str) -> Spell | None:
        """Find a learned spell by id."""
        return next((spell for spell in self.spells_learned if spell.id == spell_id), None)

    def get_grimoire(self, grimoire_id: str) -> Grimoire | None:
        """Find a grimoire by id."""
        return next((book for book in self.grimoires if book.id == grimoire_id), None)

    def get_magic_item(self, item_id: str) -> MagicItem | None:
        """Find a magic item by id."""
        return next((item for item in self.magic_items if item.id == item_id), None)

    def attribute(self, ability: Ability) -> AttributeScore:
        """Raw inputs for one ability."""
        return self.attributes.get(ability) or AttributeScore()


__all__ = [
    "new_id",
    "SheetModel",
    "AttributeScore",
    "RaceAttributeMod",
    "AttrBonus",
    "ItemEffect",
    "InventoryItem",
    "EquippedEffects",
    "Attack",
    "Spell",
    "GrimoireEntry",
    "Grimoire",
    "MagicItemSpell",
    "MagicItem",
    "Wallet",
    "CompanionAttack",
    "Companion",
    "Character",
]
