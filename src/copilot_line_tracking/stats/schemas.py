"""Typed schemas and wire codec for line statistics snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

LOGGER = logging.getLogger(__name__)


class SnapshotFormatError(ValueError):
    """Raised when a persisted stats payload does not match the snapshot format."""


@dataclass
class LineStats:
    """Total and AI-attributed line counters."""

    total_lines: int = 0
    copilot_lines: int = 0

    def __add__(self, other: "LineStats") -> "LineStats":
        """Return a new object with summed counters."""
        return LineStats(
            total_lines=self.total_lines + other.total_lines,
            copilot_lines=self.copilot_lines + other.copilot_lines,
        )

    def __iadd__(self, other: "LineStats") -> "LineStats":
        """Mutate this object by adding counters in-place."""
        self.total_lines += other.total_lines
        self.copilot_lines += other.copilot_lines
        return self

    @property
    def percentage(self) -> float:
        """Return the AI-attributed share of total lines in percent."""
        if self.total_lines <= 0:
            return 0.0
        return self.copilot_lines / self.total_lines * 100


@dataclass
class TrackingStats:
    """Aggregate counters plus one record per tracked file."""

    totals: LineStats = field(default_factory=LineStats)
    last_updated: datetime = field(default_factory=lambda: datetime.now(UTC))
    file_stats: dict[str, LineStats] = field(default_factory=dict)

    def copy(self) -> "TrackingStats":
        """Return a deep copy safe to hand to read-only consumers."""
        return TrackingStats(
            totals=LineStats(self.totals.total_lines, self.totals.copilot_lines),
            last_updated=self.last_updated,
            file_stats={
                path: LineStats(record.total_lines, record.copilot_lines) for path, record in self.file_stats.items()
            },
        )


@dataclass(frozen=True)
class RepositoryStats:
    """Durable snapshot wrapper for one workspace root."""

    stats: TrackingStats
    repository: str
    last_updated: datetime


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as an ISO-8601 UTC string with a `Z` suffix."""
    normalized = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    return normalized.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string into an aware datetime."""
    if not isinstance(value, str):
        raise SnapshotFormatError(f"Invalid lastUpdated: expected str, got {type(value).__name__}.")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise SnapshotFormatError(f"Invalid lastUpdated timestamp '{value}'.") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def stats_to_payload(stats: TrackingStats) -> dict[str, Any]:
    """Serialize stats to the camelCase snapshot mapping."""
    return {
        "totalLines": stats.totals.total_lines,
        "copilotLines": stats.totals.copilot_lines,
        "lastUpdated": format_timestamp(stats.last_updated),
        "fileStats": {
            path: {"totalLines": record.total_lines, "copilotLines": record.copilot_lines}
            for path, record in stats.file_stats.items()
        },
    }


def repository_stats_to_payload(repository_stats: RepositoryStats) -> dict[str, Any]:
    """Serialize the durable snapshot wrapper."""
    return {
        "stats": stats_to_payload(repository_stats.stats),
        "repository": repository_stats.repository,
        "lastUpdated": format_timestamp(repository_stats.last_updated),
    }


def stats_from_payload(payload: Any) -> TrackingStats:
    """Load stats from a bare stats mapping or a durable snapshot wrapper.

    Per-file AI counts above their totals are clamped and the aggregate is
    recomputed from the file records, so loaded stats always satisfy the
    accounting invariants.
    """
    if not isinstance(payload, dict):
        raise SnapshotFormatError(f"Expected stats object, got {type(payload).__name__}.")
    if "stats" in payload and isinstance(payload["stats"], dict):
        payload = payload["stats"]

    raw_file_stats = payload.get("fileStats", {})
    if not isinstance(raw_file_stats, dict):
        raise SnapshotFormatError(f"Invalid fileStats: expected object, got {type(raw_file_stats).__name__}.")

    file_stats: dict[str, LineStats] = {}
    for path, raw_record in raw_file_stats.items():
        if not isinstance(raw_record, dict):
            raise SnapshotFormatError(f"Invalid fileStats entry for {path}: expected object.")
        total_lines = _non_negative_int(raw_record.get("totalLines", 0), f"fileStats[{path}].totalLines")
        copilot_lines = _non_negative_int(raw_record.get("copilotLines", 0), f"fileStats[{path}].copilotLines")
        if copilot_lines > total_lines:
            LOGGER.warning(
                "Clamping copilotLines for %s from %d to total %d on load.", path, copilot_lines, total_lines
            )
            copilot_lines = total_lines
        file_stats[path] = LineStats(total_lines=total_lines, copilot_lines=copilot_lines)

    totals = LineStats()
    for record in file_stats.values():
        totals += record

    stored_total = _non_negative_int(payload.get("totalLines", 0), "totalLines")
    stored_copilot = _non_negative_int(payload.get("copilotLines", 0), "copilotLines")
    if (stored_total, stored_copilot) != (totals.total_lines, totals.copilot_lines):
        LOGGER.warning(
            "Stored aggregate (%d/%d) disagrees with file records (%d/%d); using file records.",
            stored_copilot,
            stored_total,
            totals.copilot_lines,
            totals.total_lines,
        )

    raw_last_updated = payload.get("lastUpdated")
    last_updated = parse_timestamp(raw_last_updated) if raw_last_updated is not None else datetime.now(UTC)
    return TrackingStats(totals=totals, last_updated=last_updated, file_stats=file_stats)


def _non_negative_int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise SnapshotFormatError(f"Invalid {field_name}: expected non-negative int, got {value!r}.")
    return value
