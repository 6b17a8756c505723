"""
Configuration module for dmkit.

Settings are read from a small JSON file. The file is optional: when it is
missing the defaults below apply, and when it cannot be read a warning is
logged and the defaults apply as well.
"""

import json
import os
from pathlib import Path

from catchery import log_warning
from pydantic import BaseModel, Field, ValidationError

# Environment variable that points to the settings file.
CONFIG_ENV_VAR = "DMKIT_CONFIG"
# Settings file looked up in the working directory when nothing else is given.
DEFAULT_CONFIG_FILE = "dmkit.json"


class Settings(BaseModel):
    """User settings for a dmkit session."""

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the character sheet files.",
    )
    characters_file: str = Field(
        default="characters.json",
        description="Sheets file, relative to data_dir.",
    )
    expire_status_effects: bool = Field(
        default=False,
        description=(
            "Count timed status effects down at every round start and "
            "remove them when they reach zero."
        ),
    )
    temp_hp_absorbs_damage: bool = Field(
        default=False,
        description="Spend temporary hit points before current hit points.",
    )
    history_size: int = Field(
        default=100,
        ge=1,
        description="How many submitted commands the session remembers.",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level name.",
    )

    @property
    def characters_path(self) -> Path:
        """Full path of the character sheets file."""
        return self.data_dir / self.characters_file


def resolve_config_path(path: Path | str | None = None) -> Path:
    """
    Works out which settings file to read.

    Args:
        path (Path | str | None): Explicit path, if any.

    Returns:
        Path: The explicit path, else $DMKIT_CONFIG, else ./dmkit.json.

    """
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path(DEFAULT_CONFIG_FILE)


def load_settings(path: Path | str | None = None) -> Settings:
    """
    Loads the settings file.

    Args:
        path (Path | str | None): Explicit settings file. Defaults to None.

    Returns:
        Settings: The loaded settings, or defaults if the file is missing or bad.

    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        return Settings()
    try:
        with open(config_path, encoding="utf-8") as f:
            return Settings(**json.load(f))
    except (
        OSError,
        UnicodeDecodeError,
        json.JSONDecodeError,
        TypeError,
        ValidationError,
    ) as e:
        log_warning(
            f"Failed to load settings from {config_path}, using defaults: {e}",
            {
                "file_path": str(config_path),
                "error": str(e),
                "context": "settings_loading",
            },
        )
        return Settings()
