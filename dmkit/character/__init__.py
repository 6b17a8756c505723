"""
Character sheet module for dmkit.

This module handles the read-only character sheets the combat engine builds
its player combatants from, and loading them from JSON files.
"""

from .serialization import (
    find_sheet,
    load_character_sheets,
    sheet_from_dict,
)
from .sheet import CharacterSheet

__all__ = [
    # Import from serialization.py
    "find_sheet",
    "load_character_sheets",
    "sheet_from_dict",
    # Import from sheet.py
    "CharacterSheet",
]
