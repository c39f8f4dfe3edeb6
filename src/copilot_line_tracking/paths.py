"""Shared path utilities for copilot-line-tracking."""

from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "copilot-line-tracking"


def get_default_state_path() -> Path:
    """Return the default quick-reload DuckDB path following XDG data directory conventions."""
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        base_data_dir = Path(xdg_data_home).expanduser()
    else:
        base_data_dir = Path("~/.local/share").expanduser()
    return base_data_dir / APP_DIR_NAME / "state.duckdb"


def get_default_config_path() -> Path:
    """Return the default settings file path following XDG config directory conventions."""
    env_config_path = os.environ.get("COPILOT_LINE_TRACKING_CONFIG")
    if env_config_path:
        return Path(env_config_path).expanduser()
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base_config_dir = Path(xdg_config_home).expanduser()
    else:
        base_config_dir = Path("~/.config").expanduser()
    return base_config_dir / APP_DIR_NAME / "settings.json"
