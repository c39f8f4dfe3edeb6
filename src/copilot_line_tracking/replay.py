"""Replay recorded host events through a tracking session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from .attribution.errors import EventParseError
from .attribution.events import iter_raw_events, parse_host_event
from .session import TrackingSession

LOGGER = logging.getLogger(__name__)


class ReplayClock:
    """Clock driven by recorded event timestamps.

    Before the first timestamped event the debounce clock stands still and
    wall time falls back to the real current time.
    """

    def __init__(self) -> None:
        self._current: datetime | None = None

    def advance_to(self, timestamp: datetime) -> None:
        """Move the clock forward; earlier timestamps are ignored."""
        if self._current is None or timestamp > self._current:
            self._current = timestamp

    def monotonic(self) -> float:
        if self._current is None:
            return 0.0
        return self._current.timestamp()

    def now(self) -> datetime:
        if self._current is None:
            return datetime.now(UTC)
        return self._current


@dataclass
class ReplayCounters:
    """Replay counters emitted by replay_events()."""

    lines_read: int = 0
    events_replayed: int = 0
    parse_errors: int = 0
    failed_lines: list[int] = field(default_factory=list)


def replay_events(session: TrackingSession, events_file_path: Path, clock: ReplayClock | None = None) -> ReplayCounters:
    """Feed every parseable event in `events_file_path` to `session`, in file order.

    Malformed lines are counted and skipped; they never stop the replay.
    """
    counters = ReplayCounters()
    for line_number, raw_line in iter_raw_events(events_file_path):
        counters.lines_read += 1
        try:
            event = parse_host_event(raw_line, events_file_path, line_number)
        except EventParseError as exc:
            counters.parse_errors += 1
            counters.failed_lines.append(line_number)
            LOGGER.error("Skipping event: %s", exc)
            continue

        if clock is not None and event.timestamp is not None:
            clock.advance_to(event.timestamp)
            # Let a debounce deadline that elapsed between recorded events fire first.
            session.tick()

        session.handle_event(event)
        counters.events_replayed += 1

    return counters
