"""
Tests for settings loading.
"""

import json
from pathlib import Path

import pytest

from dmkit.core.config import CONFIG_ENV_VAR, Settings, load_settings, resolve_config_path


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "dmkit.json"
    path.write_text(
        json.dumps(
            {
                "data_dir": str(tmp_path / "sheets"),
                "expire_status_effects": True,
                "history_size": 5,
                "log_level": "DEBUG",
            }
        ),
        encoding="utf-8",
    )
    return path


def test_defaults():
    """Test the default settings."""
    settings = Settings()
    assert settings.expire_status_effects is False
    assert settings.temp_hp_absorbs_damage is False
    assert settings.history_size == 100
    assert settings.characters_path == Path("data") / "characters.json"


def test_load_settings_from_file(config_file, tmp_path):
    """Test that values from the file override the defaults."""
    settings = load_settings(config_file)
    assert settings.expire_status_effects is True
    assert settings.history_size == 5
    assert settings.log_level == "DEBUG"
    assert settings.characters_path == tmp_path / "sheets" / "characters.json"


def test_missing_file_yields_defaults(tmp_path):
    """Test that a missing settings file is not an error."""
    assert load_settings(tmp_path / "nope.json") == Settings()


def test_invalid_file_yields_defaults(tmp_path):
    """Test that a broken settings file falls back to the defaults."""
    path = tmp_path / "dmkit.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_settings(path) == Settings()


def test_non_utf8_file_yields_defaults(tmp_path):
    """Test that a settings file with invalid UTF-8 falls back to the defaults."""
    path = tmp_path / "dmkit.json"
    path.write_bytes(b'{"history_size": 5}\xff')
    assert load_settings(path) == Settings()


def test_invalid_values_yield_defaults(tmp_path):
    """Test that values failing validation fall back to the defaults."""
    path = tmp_path / "dmkit.json"
    path.write_text(json.dumps({"history_size": 0}), encoding="utf-8")
    assert load_settings(path) == Settings()


def test_env_var_points_to_settings(config_file, monkeypatch):
    """Test that $DMKIT_CONFIG is used when no path is given."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
    assert resolve_config_path() == config_file
    assert load_settings().history_size == 5


def test_explicit_path_wins_over_env(config_file, monkeypatch, tmp_path):
    """Test the lookup order of the settings file."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
    other = tmp_path / "other.json"
    assert resolve_config_path(other) == other


def test_default_path(monkeypatch):
    """Test the fallback to dmkit.json in the working directory."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert resolve_config_path() == Path("dmkit.json")
