"""Tests for incremental line accounting."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from copilot_line_tracking.stats.engine import AccountingEngine
from copilot_line_tracking.stats.schemas import LineStats, TrackingStats


class _RecordingSink:
    """Collects persistence requests issued by the engine."""

    def __init__(self) -> None:
        self.dirty_calls = 0
        self.forced_flushes = 0

    def mark_dirty(self, stats: TrackingStats) -> None:
        self.dirty_calls += 1

    def flush_now(self, stats: TrackingStats, force: bool = False) -> bool:
        if force:
            self.forced_flushes += 1
        return True


class _StepClock:
    def __init__(self) -> None:
        self.current = datetime(2026, 2, 15, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def _engine_with(file_stats: dict[str, LineStats]) -> tuple[AccountingEngine, _RecordingSink]:
    totals = LineStats()
    for record in file_stats.values():
        totals += record
    sink = _RecordingSink()
    stats = TrackingStats(totals=totals, file_stats=file_stats)
    return AccountingEngine(stats=stats, sink=sink, clock=_StepClock()), sink


def _assert_invariants(engine: AccountingEngine) -> None:
    stats = engine.stats
    assert stats.totals.total_lines == sum(record.total_lines for record in stats.file_stats.values())
    assert stats.totals.copilot_lines == sum(record.copilot_lines for record in stats.file_stats.values())
    for record in [stats.totals, *stats.file_stats.values()]:
        assert 0 <= record.copilot_lines <= record.total_lines


def test_pending_attribution_is_granted_on_first_content() -> None:
    """AI lines seen before a file has content are granted when its total becomes positive."""
    engine, _ = _engine_with({})

    assert engine.apply_ai_lines("f", 3) is False
    assert engine.pending_attribution == 3
    assert engine.update_totals("f", 5) is True

    assert engine.file_stats("f") == LineStats(total_lines=5, copilot_lines=3)
    assert engine.pending_attribution == 0
    _assert_invariants(engine)


def test_pending_attribution_is_capped_at_new_total() -> None:
    engine, _ = _engine_with({})

    engine.apply_ai_lines("f", 10)
    engine.update_totals("f", 4)

    assert engine.file_stats("f") == LineStats(total_lines=4, copilot_lines=4)
    assert engine.pending_attribution == 6
    _assert_invariants(engine)


def test_clamp_on_shrink_reduces_file_and_aggregate() -> None:
    engine, _ = _engine_with({"f": LineStats(10, 8), "g": LineStats(4, 1)})
    aggregate_before = engine.stats.totals.copilot_lines

    engine.update_totals("f", 5)

    assert engine.file_stats("f") == LineStats(total_lines=5, copilot_lines=5)
    assert engine.stats.totals.copilot_lines == aggregate_before - 3
    assert engine.stats.totals.total_lines == 9
    _assert_invariants(engine)


def test_overflowing_attribution_is_dropped() -> None:
    engine, sink = _engine_with({"f": LineStats(5, 5)})
    last_updated = engine.stats.last_updated

    assert engine.apply_ai_lines("f", 2) is False

    assert engine.file_stats("f") == LineStats(total_lines=5, copilot_lines=5)
    assert engine.stats.last_updated == last_updated
    assert sink.dirty_calls == 0


def test_attribution_within_total_is_committed() -> None:
    engine, sink = _engine_with({"f": LineStats(10, 2)})

    assert engine.apply_ai_lines("f", 3) is True

    assert engine.file_stats("f") == LineStats(total_lines=10, copilot_lines=5)
    assert engine.stats.totals.copilot_lines == 5
    assert sink.dirty_calls == 1
    _assert_invariants(engine)


def test_zero_count_is_a_no_op() -> None:
    engine, sink = _engine_with({})

    assert engine.apply_ai_lines("f", 0) is False
    assert engine.pending_attribution == 0
    assert engine.file_stats("f") is None
    assert sink.dirty_calls == 0


def test_update_totals_is_idempotent() -> None:
    """A repeated total causes no state change and no persistence trigger."""
    engine, sink = _engine_with({})
    engine.update_totals("f", 7)
    dirty_after_first = sink.dirty_calls
    snapshot = engine.snapshot()

    assert engine.update_totals("f", 7) is False
    assert sink.dirty_calls == dirty_after_first
    assert engine.snapshot() == snapshot


def test_first_observation_with_zero_lines_creates_record_without_dirtying() -> None:
    engine, sink = _engine_with({})

    assert engine.update_totals("f", 0) is False
    assert engine.file_stats("f") == LineStats()
    assert sink.dirty_calls == 0


def test_clear_all_resets_and_forces_flush_even_when_empty() -> None:
    engine, sink = _engine_with({})

    assert engine.clear_all() is True
    assert sink.forced_flushes == 1

    engine.apply_ai_lines("g", 2)
    engine.update_totals("f", 6)
    engine.clear_all()

    assert engine.stats.file_stats == {}
    assert engine.stats.totals == LineStats()
    assert engine.pending_attribution == 0
    assert sink.forced_flushes == 2


def test_negative_inputs_are_rejected() -> None:
    engine, _ = _engine_with({})

    with pytest.raises(ValueError):
        engine.apply_ai_lines("f", -1)
    with pytest.raises(ValueError):
        engine.update_totals("f", -1)


def test_invariants_hold_across_mixed_sequence() -> None:
    engine, _ = _engine_with({})
    steps = [
        ("ai", "a", 4),
        ("total", "a", 3),
        ("total", "b", 10),
        ("ai", "b", 6),
        ("ai", "b", 6),
        ("total", "b", 2),
        ("total", "a", 0),
        ("ai", "a", 1),
        ("total", "a", 8),
        ("total", "c", 1),
    ]
    for kind, path, value in steps:
        if kind == "ai":
            engine.apply_ai_lines(path, value)
        else:
            engine.update_totals(path, value)
        _assert_invariants(engine)
