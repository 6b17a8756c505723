"""
Error taxonomy and input validation helpers.

Every error raised by the combat engine is a ``CombatError``. They are all
recoverable: the session reports the message back to the caller and the
roster stays exactly as it was before the rejected command.
"""

from typing import Any


class CombatError(Exception):
    """Base class for recoverable combat engine errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NotFoundError(CombatError):
    """Raised when a combatant (or one of its status effects) does not exist."""


class InvalidInputError(CombatError, ValueError):
    """Raised when an initiative, amount, dice expression or command is malformed."""


class InvalidStateError(CombatError):
    """Raised when input cannot be accepted in the current protocol state."""


# ==============================================================================
# VALIDATION HELPERS
# ==============================================================================
# These helpers turn raw user tokens into typed values, raising
# InvalidInputError with a readable message when they cannot.


def parse_int(value: Any, param_name: str) -> int:
    """
    Parses an integer from a token.

    Args:
        value: The token to parse
        param_name: Human-readable parameter name for error messages

    Returns:
        int: The parsed integer

    Raises:
        InvalidInputError: If the token is not an integer
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid number for {param_name}: {value}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidInputError(f"Invalid number for {param_name}: {value}") from None


def parse_non_negative_int(value: Any, param_name: str) -> int:
    """
    Parses a non-negative integer from a token.

    Args:
        value: The token to parse
        param_name: Human-readable parameter name for error messages

    Returns:
        int: The parsed integer

    Raises:
        InvalidInputError: If the token is not an integer or is negative
    """
    number = parse_int(value, param_name)
    if number < 0:
        raise InvalidInputError(f"{param_name} cannot be negative, got {number}")
    return number


def require_non_negative_amount(amount: int, param_name: str = "Amount") -> int:
    """
    Guards damage and healing amounts.

    Args:
        amount (int): The amount to check
        param_name (str): Human-readable parameter name for error messages

    Returns:
        int: The amount, unchanged

    Raises:
        InvalidInputError: If the amount is negative
    """
    if amount < 0:
        raise InvalidInputError(f"{param_name} cannot be negative, got {amount}")
    return amount
