"""Path gate deciding which files participate in line accounting."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

LOGGER = logging.getLogger(__name__)

TEMPORARY_SUGGESTION_MARKER = "copilot-suggestion"
VCS_METADATA_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn"})
DEPENDENCY_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        "bower_components",
        "vendor",
        ".venv",
        "venv",
        "site-packages",
        "__pypackages__",
    }
)


def normalize_path(path: str | Path) -> str:
    """Return the absolute, normalized key used for per-file records."""
    return str(Path(path).expanduser().resolve())


class FileTrackingFilter:
    """Evaluate exclusion rules in order; the first match excludes the path."""

    def __init__(self, tracked_extensions: Iterable[str], snapshot_path: Path | None = None) -> None:
        self._tracked_extensions = frozenset(_normalize_extension(ext) for ext in tracked_extensions)
        self._snapshot_path = normalize_path(snapshot_path) if snapshot_path is not None else None

    @property
    def tracked_extensions(self) -> frozenset[str]:
        return self._tracked_extensions

    def with_extensions(self, tracked_extensions: Iterable[str]) -> FileTrackingFilter:
        """Return a filter with the same snapshot exclusion and new extensions."""
        rebuilt = FileTrackingFilter(tracked_extensions)
        rebuilt._snapshot_path = self._snapshot_path
        return rebuilt

    def should_track(self, path: str | Path) -> bool:
        """Return True when `path` should accumulate statistics."""
        normalized = Path(normalize_path(path))
        parts = normalized.parts

        if any(TEMPORARY_SUGGESTION_MARKER in part for part in parts):
            return False
        if any(part in VCS_METADATA_DIRS for part in parts[:-1]):
            return False
        if any(part in DEPENDENCY_DIRS for part in parts[:-1]):
            return False
        if self._snapshot_path is not None and str(normalized) == self._snapshot_path:
            return False
        if normalized.suffix.lower() not in self._tracked_extensions:
            LOGGER.debug("Skipping untracked extension: %s", normalized)
            return False
        return True


def _normalize_extension(extension: str) -> str:
    """Lower-case an extension and make sure it carries its leading dot."""
    lowered = extension.strip().lower()
    if lowered and not lowered.startswith("."):
        return f".{lowered}"
    return lowered
