"""Dice rolling for attack and damage lines.

Rolling sits outside the derived-stat engine: resolvers only produce the
static bonuses, and this module turns them into rolls using the d20
library.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any

import d20

from cac_sheet.core.exceptions import DiceRollError
from cac_sheet.core.logging import get_logger
from cac_sheet.engine.combat import AttackTotals


logger = get_logger(__name__)


@dataclass(frozen=True)
class DiceResult:
    """A rolled dice expression.

    Attributes:
        expression: The expression that was rolled.
        total: The total result of the roll.
        dice: Individual kept die results.
        modifier: Static modifier applied.
        is_critical: Whether a natural 20 was rolled on a d20.
        is_fumble: Whether a natural 1 was rolled on a d20.
    """

    expression: str
    total: int
    dice: list[int]
    modifier: int
    is_critical: bool = False
    is_fumble: bool = False


class DiceRoller:
    """Rolls dice notation.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> result = roller.roll("1d20+5")
        >>> 6 <= result.total <= 25
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll_die(self, sides: int) -> int:
        """Roll a single die with ``sides`` faces.

        Raises:
            DiceRollError: If ``sides`` is less than 1.
        """
        if sides < 1:
            raise DiceRollError("A die needs at least one side", details={"sides": sides})
        return random.randint(1, sides)

    def roll(self, expression: str) -> DiceResult:
        """Roll dice notation such as ``"2d6+3"``.

        Raises:
            DiceRollError: If the expression is empty or invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        try:
            result = d20.roll(expression)
        except d20.RollError as exc:
            raise DiceRollError(f"Invalid dice expression: {exc}", expression=expression) from exc

        dice = self._kept_dice(result.expr)
        is_d20 = "d20" in expression.lower()
        first = dice[0] if dice else 0
        rolled = DiceResult(
            expression=expression,
            total=result.total,
            dice=dice,
            modifier=result.total - sum(dice),
            is_critical=is_d20 and first == 20,
            is_fumble=is_d20 and first == 1,
        )
        logger.debug("Dice rolled", expression=expression, total=rolled.total)
        return rolled

    def _kept_dice(self, expr: Any) -> list[int]:
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                values.extend(die.number for die in node.values if die.kept)
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values

    def roll_attack(self, totals: AttackTotals) -> DiceResult:
        """Roll d20 plus an attack's to-hit bonus."""
        return self.roll(f"1d20{totals.to_hit:+d}")

    def roll_damage(self, totals: AttackTotals) -> DiceResult:
        """Roll an attack's damage dice plus its damage bonus.

        Raises:
            DiceRollError: If the attack has no damage dice.
        """
        expression = totals.damage_expression
        if expression is None:
            raise DiceRollError(
                "Attack has no damage dice", details={"attack_id": totals.attack_id}
            )
        return self.roll(expression)


__all__ = [
    "DiceResult",
    "DiceRoller",
]
