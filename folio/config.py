"""Application settings for Folio.

Settings live in a per-user directory next to the project registry:

- ``$FOLIO_HOME`` when set, otherwise the platform app directory reported
  by click (``~/.config/folio`` on Linux).
- ``settings.yaml`` inside it overrides DEFAULT_SETTINGS.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import click
import yaml

APP_NAME = "folio"
HOME_ENV = "FOLIO_HOME"
SETTINGS_FILE = "settings.yaml"

DEFAULT_SETTINGS = {
    "host": "127.0.0.1",
    "port": 4000,
    "ws_port": None,
    "log_level": "INFO",
}


def settings_dir() -> Path:
    """Directory holding settings.yaml and projects.json."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path(click.get_app_dir(APP_NAME))


def load_settings(config_dir: Path | None = None) -> dict[str, Any]:
    """Load settings from settings.yaml.

    Args:
        config_dir: Directory to read from; defaults to settings_dir().

    Returns:
        Dictionary containing settings values, with defaults applied.
    """
    path = (config_dir or settings_dir()) / SETTINGS_FILE
    settings = DEFAULT_SETTINGS.copy()
    if path.exists():
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                settings.update(loaded)
    return settings
