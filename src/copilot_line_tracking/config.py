"""Settings for line tracking, loaded from a JSON settings file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import orjson

from .stats.snapshot import DEFAULT_SNAPSHOT_FILE_NAME
from .stats.store import DEFAULT_DEBOUNCE_SECONDS

LOGGER = logging.getLogger(__name__)
SETTINGS_PREFIX = "copilotLineTracking."

DEFAULT_TRACKED_EXTENSIONS: tuple[str, ...] = (
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".c", ".cpp", ".h", ".hpp",
    ".cs", ".go", ".rb", ".php", ".swift", ".kt", ".rs", ".dart", ".vue",
    ".html", ".css", ".scss", ".sass", ".less", ".json", ".xml", ".yaml",
    ".yml", ".md", ".sql", ".sh", ".bash", ".ps1", ".schema",
)  # fmt: skip


class ConfigError(ValueError):
    """Raised when the settings file cannot be parsed or holds invalid values."""


@dataclass(frozen=True)
class TrackingConfig:
    """Configuration for line tracking.

    Attributes:
        tracked_extensions: File extensions (with leading dot) that accumulate statistics.
        update_interval_seconds: Refresh interval of the live status display.
        show_status_bar: Whether the live status display is shown at all.
        debounce_seconds: Quiet period before the durable snapshot is written.
        snapshot_file_name: Snapshot file name inside the workspace root.
    """

    tracked_extensions: tuple[str, ...] = DEFAULT_TRACKED_EXTENSIONS
    update_interval_seconds: float = 5.0
    show_status_bar: bool = True
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    snapshot_file_name: str = DEFAULT_SNAPSHOT_FILE_NAME

    def with_tracked_extensions(self, tracked_extensions: tuple[str, ...]) -> TrackingConfig:
        """Return a copy with a replaced extension list."""
        return replace(self, tracked_extensions=tracked_extensions)


def load_config(config_path: Path | None) -> TrackingConfig:
    """Load settings from `config_path`, falling back to defaults when absent.

    Keys use the editor settings names, e.g. `copilotLineTracking.trackedExtensions`;
    the un-prefixed form is accepted too. `updateInterval` is in milliseconds.

    Raises:
        ConfigError: If the file is malformed or holds values of the wrong type.
    """
    if config_path is None or not config_path.exists():
        return TrackingConfig()

    try:
        with config_path.open("rb") as handle:
            raw_settings = orjson.loads(handle.read())
    except orjson.JSONDecodeError as exc:
        raise ConfigError(f"Malformed JSON in settings file {config_path}: {exc}.") from exc
    if not isinstance(raw_settings, dict):
        raise ConfigError(f"Settings file {config_path} must hold a JSON object.")

    settings = _strip_prefix(raw_settings)
    config = TrackingConfig()

    if "trackedExtensions" in settings:
        extensions = settings["trackedExtensions"]
        if not isinstance(extensions, list) or not all(isinstance(ext, str) for ext in extensions):
            raise ConfigError(f"Invalid trackedExtensions in {config_path}: expected list of str.")
        config = replace(config, tracked_extensions=tuple(extensions))

    if "updateInterval" in settings:
        interval_ms = _positive_number(settings["updateInterval"], "updateInterval", config_path)
        config = replace(config, update_interval_seconds=interval_ms / 1000)

    if "showStatusBar" in settings:
        show_status_bar = settings["showStatusBar"]
        if not isinstance(show_status_bar, bool):
            raise ConfigError(f"Invalid showStatusBar in {config_path}: expected bool.")
        config = replace(config, show_status_bar=show_status_bar)

    if "saveDebounce" in settings:
        debounce_ms = _positive_number(settings["saveDebounce"], "saveDebounce", config_path)
        config = replace(config, debounce_seconds=debounce_ms / 1000)

    LOGGER.info("Loaded settings from %s.", config_path)
    return config


def _strip_prefix(raw_settings: dict[str, Any]) -> dict[str, Any]:
    return {key.removeprefix(SETTINGS_PREFIX): value for key, value in raw_settings.items()}


def _positive_number(value: Any, field_name: str, config_path: Path) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"Invalid {field_name} in {config_path}: expected positive number, got {value!r}.")
    return float(value)
