"""
Dice parser module for dmkit.

Parses dice expressions such as "1d20", "2d6+3" or "r3d6-1" and rolls them,
reporting every individual die, the total and, for a single d20, whether the
natural result was a critical success or failure.
"""

import random
import re

from catchery import log_warning
from pydantic import BaseModel, Field

from dmkit.core.constants import NATURAL_CRITICAL_FAILURE, NATURAL_CRITICAL_SUCCESS
from dmkit.core.error_handling import InvalidInputError

MAX_DICE = 100
MAX_SIDES = 1000

CRITICAL_SUCCESS = "CRITICAL SUCCESS!"
CRITICAL_FAILURE = "CRITICAL FAILURE!"


class DiceSpec(BaseModel):
    """A parsed, validated dice expression."""

    count: int = Field(description="Number of dice to roll")
    sides: int = Field(description="Number of sides on each die")
    modifier: int = Field(
        default=0,
        description="Flat modifier added after summing the dice",
    )

    def __str__(self) -> str:
        text = f"{self.count}d{self.sides}"
        if self.modifier:
            text += f"{self.modifier:+d}"
        return text


class DiceRoll(BaseModel):
    """Class to hold the outcome of a dice roll."""

    expression: str = Field(
        description="The normalized expression that was rolled",
    )
    count: int = Field(
        default=1,
        description="Number of dice rolled",
    )
    sides: int = Field(
        default=20,
        description="Number of sides on each die",
    )
    modifier: int = Field(
        default=0,
        description="Flat modifier applied after the dice",
    )
    rolls: list[int] = Field(
        default_factory=list,
        description="List of individual dice rolls",
    )
    total: int = Field(
        description="Total roll result, never below zero",
    )
    critical: str | None = Field(
        default=None,
        description="Critical annotation for a natural 1 or 20 on a single d20",
    )

    @property
    def natural(self) -> int:
        """The first die as rolled, before any modifier."""
        return self.rolls[0] if self.rolls else 0

    def describe(self) -> str:
        """
        Returns a short breakdown such as "2d6+3 → [4, 2] +3 = 9".
        """
        text = f"{self.expression} → {self.rolls}"
        if self.modifier:
            text += f" {self.modifier:+d}"
        return f"{text} = {self.total}"


class DiceParser:
    """Safe parser for dice expressions without using eval()."""

    DICE_PATTERN = re.compile(r"^(\d*)d(\d+)(?:([+-])(\d+))?$", re.IGNORECASE)

    @staticmethod
    def normalize(expression: str) -> str:
        """
        Strips whitespace, case and the optional dice-mode "r" prefix.

        Args:
            expression (str): Raw expression like "r2d6 + 3".

        Returns:
            str: The normalized expression like "2d6+3".

        """
        expr = "".join(expression.split()).lower()
        if expr.startswith("r"):
            expr = expr[1:]
        return expr

    @staticmethod
    def parse(expression: str) -> DiceSpec:
        """
        Parses and validates a dice expression.

        Args:
            expression: Dice expression like "1d20+5" or "2d6"

        Returns:
            DiceSpec: The number of dice, sides and modifier.

        Raises:
            InvalidInputError: If the expression is malformed or out of limits.

        """
        if not isinstance(expression, str) or not expression.strip():
            raise InvalidInputError("Invalid dice format: empty expression")

        expr = DiceParser.normalize(expression)
        match = DiceParser.DICE_PATTERN.match(expr)
        if not match:
            log_warning(
                f"Invalid dice string format: '{expression}'",
                {"expression": expression},
            )
            raise InvalidInputError(f"Invalid dice format: '{expression}'")

        count_str, sides_str, sign, modifier_str = match.groups()
        count = int(count_str) if count_str else 1
        sides = int(sides_str)
        modifier = int(modifier_str) if modifier_str else 0
        if sign == "-":
            modifier = -modifier

        if count <= 0 or sides <= 0:
            raise InvalidInputError("Number of dice and sides must be greater than 0")
        if count > MAX_DICE:
            raise InvalidInputError(f"Too many dice (maximum {MAX_DICE})")
        if sides > MAX_SIDES:
            raise InvalidInputError(f"Too many sides (maximum {MAX_SIDES})")

        return DiceSpec(count=count, sides=sides, modifier=modifier)

    @staticmethod
    def is_dice_expression(expression: str) -> bool:
        """
        Checks whether a token looks like a dice expression, without validating limits.

        Args:
            expression (str): The token to check.

        Returns:
            bool: True if the token matches the dice grammar.

        """
        if not isinstance(expression, str) or not expression.strip():
            return False
        return DiceParser.DICE_PATTERN.match(DiceParser.normalize(expression)) is not None


def critical_annotation(spec: DiceSpec, rolls: list[int]) -> str | None:
    """
    Computes the critical annotation for a roll.

    Only a single d20 can be critical.

    Args:
        spec (DiceSpec): The parsed expression.
        rolls (list[int]): The individual dice results.

    Returns:
        str | None: The annotation, or None.

    """
    if spec.count != 1 or spec.sides != 20 or not rolls:
        return None
    if rolls[0] == NATURAL_CRITICAL_SUCCESS:
        return CRITICAL_SUCCESS
    if rolls[0] == NATURAL_CRITICAL_FAILURE:
        return CRITICAL_FAILURE
    return None


def roll_spec(spec: DiceSpec) -> DiceRoll:
    """
    Rolls an already parsed dice expression.

    Args:
        spec (DiceSpec): The dice to roll.

    Returns:
        DiceRoll: The individual results, total and critical annotation.

    """
    rolls = [random.randint(1, spec.sides) for _ in range(spec.count)]
    # Apply modifier as post-roll addition/subtraction.
    total = max(0, sum(rolls) + spec.modifier)
    return DiceRoll(
        expression=str(spec),
        count=spec.count,
        sides=spec.sides,
        modifier=spec.modifier,
        rolls=rolls,
        total=total,
        critical=critical_annotation(spec, rolls),
    )


def roll_dice(expression: str) -> DiceRoll:
    """
    Parses and rolls a dice expression.

    Args:
        expression (str): The dice expression to roll, e.g. "2d6+3".

    Returns:
        DiceRoll: The outcome of the roll.

    Raises:
        InvalidInputError: If the expression is malformed or out of limits.

    """
    return roll_spec(DiceParser.parse(expression))
