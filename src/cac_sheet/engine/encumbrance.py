"""Carried load, encumbrance status and the resulting speed.

The rating is the Strength total, raised by 3 for each of Strength and
Constitution that is prime. Load is measured in EV; coins count when the
character opts in, and anything stored in a magical container weighs
nothing.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from cac_sheet.core.constants import (
    BURDENED_SPEED_PENALTY_CAP,
    COINS_PER_EV,
    COINS_PER_POUND,
    MINIMUM_SPEED,
    OVERBURDENED_MULTIPLIER,
    PRIME_ENCUMBRANCE_BONUS,
)
from cac_sheet.models import (
    Ability,
    Character,
    EffectKind,
    EncumbranceStatus,
    InventoryItem,
)


class EncumbranceInfo(BaseModel):
    """Resolved load and speed.

    Attributes:
        rating: EV the character carries without penalty.
        total_ev: Carried EV, coins included when enabled.
        total_weight: Carried weight in pounds, coins included when enabled.
        coin_weight: Weight of loose coins.
        coin_ev: EV of loose coins.
        status: Unburdened, burdened or overburdened.
        speed_penalty: Speed lost to the load.
        pre_encumbrance_speed: Speed before the load penalty.
        final_speed: Speed after the load penalty.
    """

    model_config = ConfigDict(frozen=True)

    rating: int
    total_ev: float
    total_weight: float
    coin_weight: float = 0.0
    coin_ev: float = 0.0
    status: EncumbranceStatus = Field(default=EncumbranceStatus.UNBURDENED)
    speed_penalty: int = 0
    pre_encumbrance_speed: int = 0
    final_speed: int = 0


def encumbrance_rating(character: Character, strength_total: int) -> int:
    """Strength total plus the prime STR/CON allowance."""
    prime_count = sum(
        1 for ability in (Ability.STR, Ability.CON) if character.attribute(ability).is_prime
    )
    return strength_total + PRIME_ENCUMBRANCE_BONUS * prime_count


def _loose_items(character: Character) -> list[InventoryItem]:
    magical_containers = {
        item.id for item in character.inventory if item.is_container and item.is_magical_container
    }
    return [item for item in character.inventory if item.stored_in_id not in magical_containers]


def _loose_coin_count(character: Character) -> int:
    stored_gp = sum(
        item.stored_coins_gp
        for item in character.inventory
        if item.is_container and item.is_magical_container
    )
    # Coins in magical containers are counted at one coin per gold piece.
    stored_count = math.ceil(stored_gp)
    return max(0, character.wallet.coin_count - stored_count)


def classify_load(total_ev: float, rating: int) -> EncumbranceStatus:
    """Place a load against a rating.

    Example:
        >>> classify_load(15, 14)
        <EncumbranceStatus.BURDENED: 'burdened'>
    """
    if rating <= 0 or total_ev <= rating:
        return EncumbranceStatus.UNBURDENED
    if total_ev <= OVERBURDENED_MULTIPLIER * rating:
        return EncumbranceStatus.BURDENED
    return EncumbranceStatus.OVERBURDENED


def equipped_speed_bonus(character: Character) -> int:
    """Sum speed effects of items in the equipped speed set."""
    total = 0
    for item_id in character.equipped_speed_item_ids:
        item = character.get_item(item_id)
        if item is None:
            continue
        total += sum(effect.speed for effect in item.effects_of(EffectKind.SPEED))
    return total


def speed_penalty(pre_encumbrance_speed: int, status: EncumbranceStatus) -> int:
    """Speed lost to the load; capped at 10 while merely burdened."""
    reducible = max(pre_encumbrance_speed - MINIMUM_SPEED, 0)
    if status == EncumbranceStatus.BURDENED:
        return min(BURDENED_SPEED_PENALTY_CAP, reducible)
    if status == EncumbranceStatus.OVERBURDENED:
        return reducible
    return 0


def resolve_encumbrance(character: Character, strength_total: int) -> EncumbranceInfo:
    """Compute load, status and speed for a character.

    Args:
        character: The character record.
        strength_total: The resolved Strength total.

    Returns:
        The resolved EncumbranceInfo.
    """
    rating = encumbrance_rating(character, strength_total)

    items = _loose_items(character)
    inventory_ev = sum(item.total_ev for item in items)
    inventory_weight = sum(item.total_weight for item in items)

    coin_count = _loose_coin_count(character)
    coin_weight = coin_count / COINS_PER_POUND
    coin_ev = coin_count / COINS_PER_EV

    total_ev = inventory_ev + (coin_ev if character.include_coin_weight else 0.0)
    total_weight = inventory_weight + (coin_weight if character.include_coin_weight else 0.0)

    if character.encumbrance_enabled:
        status = classify_load(total_ev, rating)
    else:
        status = EncumbranceStatus.UNBURDENED

    pre_speed = character.speed + character.speed_bonus + equipped_speed_bonus(character)
    penalty = speed_penalty(pre_speed, status)
    if status == EncumbranceStatus.UNBURDENED:
        final_speed = pre_speed
    else:
        final_speed = max(pre_speed - penalty, MINIMUM_SPEED)

    return EncumbranceInfo(
        rating=rating,
        total_ev=round(total_ev, 4),
        total_weight=round(total_weight, 4),
        coin_weight=round(coin_weight, 4),
        coin_ev=round(coin_ev, 4),
        status=status,
        speed_penalty=penalty,
        pre_encumbrance_speed=pre_speed,
        final_speed=final_speed,
    )


__all__ = [
    "EncumbranceInfo",
    "encumbrance_rating",
    "classify_load",
    "equipped_speed_bonus",
    "speed_penalty",
    "resolve_encumbrance",
]
