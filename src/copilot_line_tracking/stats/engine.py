"""Incremental accounting of total and AI-attributed lines."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from .schemas import LineStats, TrackingStats

LOGGER = logging.getLogger(__name__)


class StatsSink(Protocol):
    """Persistence collaborator notified by the engine."""

    def mark_dirty(self, stats: TrackingStats) -> None: ...

    def flush_now(self, stats: TrackingStats, force: bool = False) -> bool: ...


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AccountingEngine:
    """Own per-file and aggregate line counters.

    After every completed mutation the aggregate equals the sum of the file
    records and no AI-attributed count exceeds its total. AI lines seen while a
    file still has no content are held as pending attribution and granted
    when that file's total first becomes positive.
    """

    def __init__(
        self,
        stats: TrackingStats | None = None,
        sink: StatsSink | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._stats = stats if stats is not None else TrackingStats(last_updated=clock())
        self._sink = sink
        self._clock = clock
        self._pending_attribution = 0

    @property
    def stats(self) -> TrackingStats:
        return self._stats

    @property
    def pending_attribution(self) -> int:
        return self._pending_attribution

    def file_stats(self, path: str) -> LineStats | None:
        """Return the record for `path`, or None when it was never observed."""
        return self._stats.file_stats.get(path)

    def snapshot(self) -> TrackingStats:
        """Return a deep copy of the current stats."""
        return self._stats.copy()

    def apply_ai_lines(self, path: str, count: int) -> bool:
        """Attribute `count` AI lines to `path`; return True when stats changed."""
        if count < 0:
            raise ValueError(f"AI line count must be non-negative, got {count}.")
        if count == 0:
            return False

        record = self._stats.file_stats.get(path)
        current_total = record.total_lines if record is not None else 0
        if record is None or current_total == 0:
            self._pending_attribution += count
            LOGGER.debug("Deferred %d AI lines for empty file %s.", count, path)
            return False

        candidate = record.copilot_lines + count
        if candidate > current_total:
            LOGGER.debug(
                "Dropped %d AI lines for %s: %d would exceed total %d.", count, path, candidate, current_total
            )
            return False

        record.copilot_lines = candidate
        self._stats.totals.copilot_lines += count
        self._mark_dirty()
        return True

    def update_totals(self, path: str, new_total: int) -> bool:
        """Store the current line count of `path`; return True when stats changed."""
        if new_total < 0:
            raise ValueError(f"Total line count must be non-negative, got {new_total}.")

        record = self._stats.file_stats.setdefault(path, LineStats())
        old_total = record.total_lines
        if new_total == old_total:
            return False

        self._stats.totals.total_lines += new_total - old_total
        record.total_lines = new_total

        if old_total == 0 and new_total > 0 and self._pending_attribution > 0:
            take = min(self._pending_attribution, new_total)
            record.copilot_lines += take
            self._stats.totals.copilot_lines += take
            self._pending_attribution -= take
            LOGGER.debug("Granted %d pending AI lines to %s.", take, path)

        if record.copilot_lines > new_total:
            excess = record.copilot_lines - new_total
            record.copilot_lines = new_total
            self._stats.totals.copilot_lines -= excess

        self._mark_dirty()
        return True

    def clear_all(self) -> bool:
        """Reset every counter and force an immediate persistence flush; always a change."""
        self._stats.file_stats.clear()
        self._stats.totals = LineStats()
        self._stats.last_updated = self._clock()
        self._pending_attribution = 0
        LOGGER.info("Cleared all line statistics.")
        if self._sink is not None:
            self._sink.flush_now(self._stats, force=True)
        return True

    def _mark_dirty(self) -> None:
        self._stats.last_updated = self._clock()
        if self._sink is not None:
            self._sink.mark_dirty(self._stats)
