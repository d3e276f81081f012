"""Centralized config paths for clockhand.

Resolution order for the config directory:
  1. CLOCKHAND_CONFIG_DIR env var
  2. $XDG_CONFIG_HOME/clockhand
  3. ~/.config/clockhand
"""

import os
from pathlib import Path

APP_NAME = "clockhand"
ACCESS_TOKEN_FILENAME = "access-token.json"
PROJECT_CONFIG_FILENAME = "clockhand.json"

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / APP_NAME


def get_config_dir() -> Path:
    """Resolve the directory holding the Harvest credentials."""
    env = os.environ.get("CLOCKHAND_CONFIG_DIR")
    if env:
        return Path(env).expanduser()

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg).expanduser() / APP_NAME

    return _DEFAULT_CONFIG_DIR


def get_access_token_path() -> Path:
    return get_config_dir() / ACCESS_TOKEN_FILENAME


def find_project_config(start: Path) -> Path | None:
    """Walk up from ``start`` looking for a project's clockhand.json.

    Both ``<dir>/clockhand.json`` and ``<dir>/.config/clockhand.json`` count.
    """
    current = Path(start).expanduser().resolve()
    for directory in (current, *current.parents):
        for candidate in (
            directory / PROJECT_CONFIG_FILENAME,
            directory / ".config" / PROJECT_CONFIG_FILENAME,
        ):
            if candidate.is_file():
                return candidate
    return None
