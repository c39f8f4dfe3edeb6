"""Durable per-workspace JSON snapshot of line statistics."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import orjson

from .schemas import RepositoryStats, TrackingStats, repository_stats_to_payload, stats_from_payload

LOGGER = logging.getLogger(__name__)
DEFAULT_SNAPSHOT_FILE_NAME = ".copilot-stats.json"


class WorkspaceSnapshot:
    """Read and write `<workspace root>/.copilot-stats.json`."""

    def __init__(
        self,
        workspace_root: Path | None,
        file_name: str = DEFAULT_SNAPSHOT_FILE_NAME,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._workspace_root = workspace_root
        self._file_name = file_name
        self._clock = clock

    @property
    def workspace_root(self) -> Path | None:
        return self._workspace_root

    @property
    def path(self) -> Path | None:
        """Return the snapshot file path, or None when no workspace root is open."""
        if self._workspace_root is None:
            return None
        return self._workspace_root / self._file_name

    def write(self, stats: TrackingStats) -> Path:
        """Serialize and write the snapshot.

        Raises:
            FileNotFoundError: If no workspace root is resolvable.
            OSError: If the file cannot be written.
        """
        snapshot_path = self.path
        if snapshot_path is None:
            raise FileNotFoundError("No workspace root is open.")
        repository_stats = RepositoryStats(
            stats=stats,
            repository=self._workspace_root.name,
            last_updated=self._clock(),
        )
        content = orjson.dumps(repository_stats_to_payload(repository_stats), option=orjson.OPT_INDENT_2)
        with snapshot_path.open("wb") as handle:
            handle.write(content)
        LOGGER.info("Wrote stats snapshot to %s.", snapshot_path)
        return snapshot_path

    def read(self) -> TrackingStats | None:
        """Load stats from the snapshot file, or None when it does not exist."""
        snapshot_path = self.path
        if snapshot_path is None or not snapshot_path.exists():
            return None
        with snapshot_path.open("rb") as handle:
            return stats_from_payload(orjson.loads(handle.read()))
