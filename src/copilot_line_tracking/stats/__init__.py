"""Line accounting, persistence and rendering."""

from .engine import AccountingEngine
from .schemas import LineStats, RepositoryStats, SnapshotFormatError, TrackingStats
from .store import DebounceTimer, StatsSnapshotStore

__all__ = [
    "AccountingEngine",
    "DebounceTimer",
    "LineStats",
    "RepositoryStats",
    "SnapshotFormatError",
    "StatsSnapshotStore",
    "TrackingStats",
]
