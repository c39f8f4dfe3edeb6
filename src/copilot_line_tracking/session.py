"""Editing-session orchestration: route host events through classification and accounting."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from .attribution.classifier import ChangeClassifier
from .attribution.file_filter import FileTrackingFilter, normalize_path
from .attribution.line_counter import count_non_empty_lines, document_total_lines
from .attribution.schemas import (
    ConfigurationChangeEvent,
    DocumentOpenEvent,
    HostEvent,
    SuggestionRequestEvent,
    TextEditEvent,
)
from .config import TrackingConfig
from .stats.engine import AccountingEngine
from .stats.render import format_status_text
from .stats.repository import QuickReloadError, QuickReloadRepository, quick_reload_key_for
from .stats.schemas import SnapshotFormatError, TrackingStats, stats_from_payload
from .stats.snapshot import WorkspaceSnapshot
from .stats.store import StatsSnapshotStore

LOGGER = logging.getLogger(__name__)


@dataclass
class SessionCounters:
    """Event counters accumulated by one tracking session."""

    events_processed: int = 0
    edits_tracked: int = 0
    edits_skipped_untracked: int = 0
    opens_tracked: int = 0
    opens_skipped_untracked: int = 0
    suggestions_requested: int = 0
    configuration_changes: int = 0
    ai_edits: int = 0
    ai_lines_classified: int = 0


class TrackingSession:
    """One editing session: a classifier, an accounting engine and its persistence."""

    def __init__(
        self,
        engine: AccountingEngine,
        store: StatsSnapshotStore,
        config: TrackingConfig | None = None,
        classifier: ChangeClassifier | None = None,
    ) -> None:
        self._engine = engine
        self._store = store
        self._config = config or TrackingConfig()
        self._classifier = classifier or ChangeClassifier()
        self._filter = FileTrackingFilter(self._config.tracked_extensions, snapshot_path=store.snapshot.path)
        self.counters = SessionCounters()

    @classmethod
    def open(
        cls,
        workspace_root: Path | None,
        quick_reload: QuickReloadRepository | None = None,
        config: TrackingConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> TrackingSession:
        """Restore stats, falling back to empty stats, without writing anything.

        The starting stats count as already saved, so an unreadable snapshot is
        left in place until the first real change replaces it.
        """
        config = config or TrackingConfig()
        snapshot = WorkspaceSnapshot(workspace_root, file_name=config.snapshot_file_name, clock=wall_clock)
        restored = restore_stats(quick_reload, snapshot)
        stats = restored if restored is not None else TrackingStats(last_updated=wall_clock())
        store = StatsSnapshotStore(
            snapshot,
            quick_reload=quick_reload,
            debounce_seconds=config.debounce_seconds,
            clock=clock,
            initial_stats=stats,
            quick_reload_key=quick_reload_key_for(workspace_root),
        )
        engine = AccountingEngine(stats=stats, sink=store, clock=wall_clock)
        return cls(engine=engine, store=store, config=config)

    @property
    def engine(self) -> AccountingEngine:
        return self._engine

    @property
    def store(self) -> StatsSnapshotStore:
        return self._store

    @property
    def classifier(self) -> ChangeClassifier:
        return self._classifier

    @property
    def config(self) -> TrackingConfig:
        return self._config

    @property
    def file_filter(self) -> FileTrackingFilter:
        return self._filter

    def handle_event(self, event: HostEvent) -> None:
        """Dispatch one host event; events must be delivered one at a time."""
        if isinstance(event, TextEditEvent):
            self.handle_edit(event)
        elif isinstance(event, DocumentOpenEvent):
            self.handle_open(event)
        elif isinstance(event, SuggestionRequestEvent):
            self.handle_suggestion_request(event)
        elif isinstance(event, ConfigurationChangeEvent):
            self.handle_configuration_change(event)
        else:
            raise TypeError(f"Unsupported host event: {type(event).__name__}.")
        self.counters.events_processed += 1

    def handle_edit(self, event: TextEditEvent) -> None:
        """Classify inserted spans, then attribute AI lines before refreshing totals."""
        path = normalize_path(event.document.path)
        if not self._filter.should_track(path):
            self.counters.edits_skipped_untracked += 1
            return

        ai_lines = 0
        is_ai_edit = False
        for change in event.changes:
            if self._classifier.classify(change.text):
                is_ai_edit = True
                ai_lines += count_non_empty_lines(change.text)

        if is_ai_edit:
            self.counters.ai_edits += 1
            self.counters.ai_lines_classified += ai_lines

        self._engine.apply_ai_lines(path, ai_lines)
        self._engine.update_totals(path, document_total_lines(event.document))
        self.counters.edits_tracked += 1
        self._store.poll()

    def handle_open(self, event: DocumentOpenEvent) -> None:
        path = normalize_path(event.document.path)
        if not self._filter.should_track(path):
            self.counters.opens_skipped_untracked += 1
            return
        self._engine.update_totals(path, document_total_lines(event.document))
        self.counters.opens_tracked += 1
        self._store.poll()

    def handle_suggestion_request(self, event: SuggestionRequestEvent) -> None:
        self._classifier.on_suggestion_requested(event.trigger_kind, event.line_text)
        self.counters.suggestions_requested += 1

    def handle_configuration_change(self, event: ConfigurationChangeEvent) -> None:
        """Swap in the new tracked-extension set; existing records are kept."""
        self._config = self._config.with_tracked_extensions(event.tracked_extensions)
        self._filter = self._filter.with_extensions(event.tracked_extensions)
        self.counters.configuration_changes += 1
        LOGGER.info("Tracked extensions updated: %s", ", ".join(sorted(self._filter.tracked_extensions)))

    def tick(self) -> bool:
        """Give the debounced snapshot write a chance to run between events."""
        return self._store.poll()

    def report(self) -> TrackingStats:
        """Return a read-only copy of the current stats."""
        return self._engine.snapshot()

    def status_text(self) -> str:
        return format_status_text(self._engine.stats.totals)

    def clear(self) -> None:
        """Reset all statistics and write the empty state immediately."""
        self._engine.clear_all()

    def close(self) -> None:
        """Write out any pending debounced change."""
        self._store.close()


def restore_stats(quick_reload: QuickReloadRepository | None, snapshot: WorkspaceSnapshot) -> TrackingStats | None:
    """Load the workspace's stats from the quick-reload slot, falling back to the durable snapshot."""
    if quick_reload is not None:
        try:
            payload = quick_reload.get(quick_reload_key_for(snapshot.workspace_root))
            if payload is not None:
                LOGGER.info("Restored stats from quick-reload state.")
                return stats_from_payload(payload)
        except (QuickReloadError, SnapshotFormatError) as exc:
            LOGGER.warning("Ignoring unusable quick-reload state: %s", exc)

    try:
        restored = snapshot.read()
    except (OSError, ValueError) as exc:
        LOGGER.warning("Ignoring unreadable stats snapshot at %s: %s", snapshot.path, exc)
        return None
    if restored is not None:
        LOGGER.info("Restored stats from %s.", snapshot.path)
    return restored
