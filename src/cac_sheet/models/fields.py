"""Lenient field types shared by the character models.

Sheet data is typed in by hand and round-trips through JSON written by
older versions of the app, so numeric fields never reject input: blank,
non-numeric, NaN or infinite values fall back to a default instead.
"""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import BeforeValidator

from cac_sheet.core.constants import DEFAULT_ROLLED_SCORE


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Read a finite float out of ``value`` or return ``default``.

    Example:
        >>> coerce_float("2.5")
        2.5
        >>> coerce_float("heavy", 1.0)
        1.0
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def coerce_int(value: Any, default: int = 0) -> int:
    """Read an integer out of ``value`` or return ``default``.

    Fractional input is truncated toward zero.

    Example:
        >>> coerce_int("14")
        14
        >>> coerce_int(None, 10)
        10
    """
    if isinstance(value, int):
        return int(value)
    number = coerce_float(value, math.nan)
    if math.isnan(number):
        return default
    return int(number)


def coerce_id(value: Any) -> str:
    """Normalize an id to a string; numeric ids from old exports included."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def unique_ids(value: Any) -> list[str]:
    """Normalize an id collection to a de-duplicated list, keeping order."""
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        value = [value]
    seen: dict[str, None] = {}
    for item in value:
        if item is None or item == "":
            continue
        seen.setdefault(coerce_id(item), None)
    return list(seen)


def _default_int(default: int) -> BeforeValidator:
    return BeforeValidator(lambda v: coerce_int(v, default))


LenientInt = Annotated[int, _default_int(0)]
"""Integer defaulting to 0 when unreadable."""

RolledScore = Annotated[int, _default_int(DEFAULT_ROLLED_SCORE)]
"""Rolled ability score defaulting to 10 when unreadable."""

Quantity = Annotated[int, _default_int(1)]
"""Item count defaulting to 1 when unreadable."""

LenientFloat = Annotated[float, BeforeValidator(coerce_float)]
"""Float defaulting to 0.0 when unreadable."""

ItemId = Annotated[str, BeforeValidator(coerce_id)]
"""Identifier stored as a string."""

OptionalItemId = Annotated[
    str | None,
    BeforeValidator(lambda v: None if v is None or v == "" else coerce_id(v)),
]
"""Identifier reference that may be unset."""

IdList = Annotated[list[str], BeforeValidator(unique_ids)]
"""Ordered set of identifiers."""


__all__ = [
    "coerce_float",
    "coerce_int",
    "coerce_id",
    "unique_ids",
    "LenientInt",
    "RolledScore",
    "Quantity",
    "LenientFloat",
    "ItemId",
    "OptionalItemId",
    "IdList",
]
