"""Persistence lifecycle for line statistics: quick-reload slot plus debounced snapshot."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import orjson

from .repository import QUICK_RELOAD_KEY, QuickReloadError, QuickReloadRepository
from .schemas import TrackingStats, stats_to_payload
from .snapshot import WorkspaceSnapshot

LOGGER = logging.getLogger(__name__)
DEFAULT_DEBOUNCE_SECONDS = 5.0


class DebounceTimer:
    """Polled one-shot timer with cancel-and-reschedule semantics."""

    def __init__(
        self,
        delay_seconds: float,
        callback: Callable[[], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._delay_seconds = delay_seconds
        self._callback = callback
        self._clock = clock
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def schedule(self) -> None:
        """Cancel any pending deadline and start a fresh delay."""
        self._deadline = self._clock() + self._delay_seconds

    def cancel(self) -> None:
        self._deadline = None

    def fire_if_due(self) -> bool:
        """Run the callback once the deadline has passed; return True if it ran."""
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        self._callback()
        return True


class StatsSnapshotStore:
    """Write stats to the quick-reload slot on every change and to disk after a quiet period.

    The durable write is skipped when the serialized stats equal the last
    successfully written content, unless forced. Write failures are logged and
    left for the next trigger to retry.
    """

    def __init__(
        self,
        snapshot: WorkspaceSnapshot,
        quick_reload: QuickReloadRepository | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        initial_stats: TrackingStats | None = None,
        quick_reload_key: str = QUICK_RELOAD_KEY,
    ) -> None:
        self._snapshot = snapshot
        self._quick_reload = quick_reload
        self._quick_reload_key = quick_reload_key
        self._timer = DebounceTimer(debounce_seconds, self._flush_pending, clock)
        self._pending_stats: TrackingStats | None = None
        self._last_saved: bytes | None = _serialize(initial_stats) if initial_stats is not None else None
        self.durable_writes = 0

    @property
    def snapshot(self) -> WorkspaceSnapshot:
        return self._snapshot

    @property
    def has_pending_flush(self) -> bool:
        """Return True while a debounced durable write is scheduled."""
        return self._timer.pending

    def mark_dirty(self, stats: TrackingStats) -> None:
        """Write the quick-reload slot now and (re)schedule the durable write."""
        self._write_quick_reload(stats)
        self._pending_stats = stats
        self._timer.schedule()

    def poll(self) -> bool:
        """Run the debounced durable write when its quiet period has elapsed."""
        return self._timer.fire_if_due()

    def flush_now(self, stats: TrackingStats, force: bool = False) -> bool:
        """Cancel any pending write and write immediately; return True if written."""
        self._timer.cancel()
        self._pending_stats = None
        if force:
            self._write_quick_reload(stats)
        return self._write_durable(stats, force=force)

    def close(self) -> None:
        """Write out any pending debounced change."""
        if self._timer.pending:
            self._timer.cancel()
            self._flush_pending()

    def _flush_pending(self) -> None:
        stats = self._pending_stats
        self._pending_stats = None
        if stats is not None:
            self._write_durable(stats, force=False)

    def _write_durable(self, stats: TrackingStats, force: bool) -> bool:
        if self._snapshot.path is None:
            LOGGER.debug("No workspace root; skipping durable stats write.")
            return False

        current = _serialize(stats)
        if not force and current == self._last_saved:
            return False

        try:
            self._snapshot.write(stats)
        except OSError as exc:
            LOGGER.error("Failed to save stats to %s: %s", self._snapshot.path, exc)
            return False

        self._last_saved = current
        self.durable_writes += 1
        return True

    def _write_quick_reload(self, stats: TrackingStats) -> None:
        if self._quick_reload is None:
            return
        try:
            self._quick_reload.put(stats_to_payload(stats), self._quick_reload_key)
        except QuickReloadError as exc:
            LOGGER.error("Failed to update quick-reload stats: %s", exc)


def _serialize(stats: TrackingStats) -> bytes:
    return orjson.dumps(stats_to_payload(stats))
