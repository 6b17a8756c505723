"""
Character sheet loading functions.

Sheets are stored as JSON, either one object per file or a list of objects in
a single file. Loading is tolerant: a broken entry is logged and skipped so a
single typo does not keep the rest of the party out of combat.
"""

import json
from pathlib import Path
from typing import Any

from catchery import log_error
from pydantic import ValidationError

from dmkit.character.sheet import CharacterSheet


def sheet_from_dict(data: dict[str, Any]) -> CharacterSheet:
    """
    Creates a CharacterSheet instance from a dictionary of data.

    Args:
        data (dict[str, Any]):
            The dictionary containing sheet data.

    Returns:
        CharacterSheet:
            The created CharacterSheet instance.

    Raises:
        ValidationError: If the data does not describe a valid sheet.

    """
    return CharacterSheet.model_validate(data)


def _sheets_from_json(data: Any, file_path: Path) -> list[CharacterSheet]:
    entries = data if isinstance(data, list) else [data]
    sheets: list[CharacterSheet] = []
    for entry in entries:
        if not isinstance(entry, dict):
            log_error(
                f"Character entry in {file_path} is not an object.",
                {
                    "file_path": str(file_path),
                    "entry": str(entry),
                    "context": "character_file_loading",
                },
            )
            continue
        try:
            sheets.append(sheet_from_dict(entry))
        except ValidationError as e:
            log_error(
                f"Invalid character '{entry.get('name', '?')}' in {file_path}: {e}",
                {
                    "file_path": str(file_path),
                    "context": "character_file_loading",
                },
            )
    return sheets


def load_character_sheets(path: Path) -> dict[str, CharacterSheet]:
    """
    Loads character sheets from a JSON file or a directory of JSON files.

    Args:
        path (Path):
            A JSON file holding one sheet or a list of sheets, or a directory
            whose *.json files are each loaded.

    Returns:
        dict[str, CharacterSheet]: Sheets keyed by character name.

    """
    path = Path(path)
    files = sorted(path.glob("*.json")) if path.is_dir() else [path]
    sheets: dict[str, CharacterSheet] = {}
    for file_path in files:
        try:
            with open(file_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log_error(
                f"Failed to load characters from {file_path}: {e}",
                {
                    "file_path": str(file_path),
                    "error": str(e),
                    "context": "character_file_loading",
                },
            )
            continue
        for sheet in _sheets_from_json(data, file_path):
            sheets[sheet.name] = sheet
    return sheets


def find_sheet(sheets: dict[str, CharacterSheet], name: str) -> CharacterSheet | None:
    """
    Finds a sheet by name, ignoring case.

    Args:
        sheets (dict[str, CharacterSheet]): Loaded sheets.
        name (str): The name to look for.

    Returns:
        CharacterSheet | None: The matching sheet, if any.

    """
    key = name.strip().lower()
    for sheet_name, sheet in sheets.items():
        if sheet_name.lower() == key:
            return sheet
    return None
