"""
Core system module for dmkit.

This module contains the fundamental components shared by the rest of the
package: constants, errors, logging, settings, dice rolling and display
utilities.
"""

from .config import Settings, load_settings
from .constants import (
    AbilityScore,
    CombatantType,
)
from .dice_parser import (
    DiceParser,
    DiceRoll,
    DiceSpec,
    roll_dice,
)
from .error_handling import (
    CombatError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from .utils import (
    ccapture,
    cprint,
    crule,
    health_bar,
)

__all__ = [
    # Import from config.py
    "Settings",
    "load_settings",
    # Import from constants.py
    "AbilityScore",
    "CombatantType",
    # Import from dice_parser.py
    "DiceParser",
    "DiceRoll",
    "DiceSpec",
    "roll_dice",
    # Import from error_handling.py
    "CombatError",
    "InvalidInputError",
    "InvalidStateError",
    "NotFoundError",
    # Import from utils.py
    "ccapture",
    "cprint",
    "crule",
    "health_bar",
]
