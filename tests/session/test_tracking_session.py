"""Integration tests for event sequencing through a tracking session."""

from __future__ import annotations

from pathlib import Path

import orjson

from copilot_line_tracking.attribution.schemas import (
    ConfigurationChangeEvent,
    DocumentOpenEvent,
    DocumentSnapshot,
    SuggestionRequestEvent,
    TextChange,
    TextEditEvent,
    TriggerKind,
)
from copilot_line_tracking.config import TrackingConfig
from copilot_line_tracking.session import TrackingSession
from copilot_line_tracking.stats.repository import QuickReloadRepository
from copilot_line_tracking.stats.schemas import LineStats


class _ManualClock:
    def __init__(self) -> None:
        self.current = 0.0

    def __call__(self) -> float:
        return self.current


def _edit(path: Path, line_count: int, *texts: str) -> TextEditEvent:
    return TextEditEvent(
        document=DocumentSnapshot(path=str(path), line_count=line_count),
        changes=tuple(TextChange(text=text) for text in texts),
    )


def _open(path: Path, line_count: int) -> DocumentOpenEvent:
    return DocumentOpenEvent(document=DocumentSnapshot(path=str(path), line_count=line_count))


def _key(path: Path) -> str:
    return str(path.resolve())


def test_accepted_suggestion_is_attributed_to_file(tmp_path: Path) -> None:
    session = TrackingSession.open(tmp_path, clock=_ManualClock())
    source = tmp_path / "app.py"

    session.handle_event(_open(source, 10))
    session.handle_event(SuggestionRequestEvent(trigger_kind=TriggerKind.AUTOMATIC, line_text="def handler("))
    session.handle_event(_edit(source, 13, "def handler(event):\n    return event\n\n"))
    session.handle_event(_edit(source, 13, "x"))

    assert session.engine.file_stats(_key(source)) == LineStats(total_lines=13, copilot_lines=2)
    assert session.counters.ai_edits == 1
    assert session.counters.ai_lines_classified == 2
    assert session.status_text() == "Copilot: 15.4%"


def test_suggestion_into_empty_buffer_uses_pending_attribution(tmp_path: Path) -> None:
    """AI lines inserted before the file has measured content are granted on first content."""
    session = TrackingSession.open(tmp_path, clock=_ManualClock())
    source = tmp_path / "new.ts"

    session.handle_event(SuggestionRequestEvent(trigger_kind=TriggerKind.AUTOMATIC, line_text=""))
    session.handle_event(_edit(source, 4, "a();\nb();\nc();\n"))

    assert session.engine.file_stats(_key(source)) == LineStats(total_lines=4, copilot_lines=3)
    assert session.engine.pending_attribution == 0


def test_manual_typing_only_changes_totals(tmp_path: Path) -> None:
    session = TrackingSession.open(tmp_path, clock=_ManualClock())
    source = tmp_path / "notes.md"

    session.handle_event(_open(source, 1))
    session.handle_event(_edit(source, 1, "h"))
    session.handle_event(_edit(source, 2, "ello world"))

    assert session.engine.file_stats(_key(source)) == LineStats(total_lines=2, copilot_lines=0)


def test_untracked_paths_never_create_records_or_persist(tmp_path: Path) -> None:
    session = TrackingSession.open(tmp_path, clock=_ManualClock())
    writes_after_open = session.store.durable_writes

    session.handle_event(_open(tmp_path / "node_modules" / "pkg" / "index.js", 50))
    session.handle_event(_edit(tmp_path / ".copilot-stats.json", 30, "{\n}\n"))
    session.handle_event(_edit(tmp_path / "image.png", 3, "abc;"))
    session.close()

    assert session.engine.stats.file_stats == {}
    assert session.counters.opens_skipped_untracked == 1
    assert session.counters.edits_skipped_untracked == 2
    assert session.store.durable_writes == writes_after_open


def test_configuration_change_updates_tracked_extensions(tmp_path: Path) -> None:
    session = TrackingSession.open(tmp_path, config=TrackingConfig(tracked_extensions=(".py",)))
    rust_file = tmp_path / "main.rs"

    session.handle_event(_open(rust_file, 5))
    assert session.engine.file_stats(_key(rust_file)) is None

    session.handle_event(ConfigurationChangeEvent(tracked_extensions=(".rs",)))
    session.handle_event(_open(rust_file, 5))

    assert session.engine.file_stats(_key(rust_file)) == LineStats(total_lines=5, copilot_lines=0)
    assert session.config.tracked_extensions == (".rs",)


def test_durable_snapshot_is_debounced(tmp_path: Path) -> None:
    clock = _ManualClock()
    session = TrackingSession.open(tmp_path, clock=clock)
    snapshot_path = tmp_path / ".copilot-stats.json"
    source = tmp_path / "app.py"
    initial_writes = session.store.durable_writes

    session.handle_event(_open(source, 3))
    clock.current += 2
    session.handle_event(_edit(source, 4, "y"))
    assert session.store.durable_writes == initial_writes

    clock.current += 5
    assert session.tick() is True

    payload = orjson.loads(snapshot_path.read_bytes())
    assert payload["stats"]["fileStats"][_key(source)] == {"totalLines": 4, "copilotLines": 0}
    assert session.store.durable_writes == initial_writes + 1


def test_session_restores_from_quick_reload(tmp_path: Path) -> None:
    repository = QuickReloadRepository(tmp_path / "state.duckdb")
    repository.ensure_schema()
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    source = workspace / "app.py"
    try:
        first = TrackingSession.open(workspace, quick_reload=repository, clock=_ManualClock())
        first.handle_event(_open(source, 8))
        first.handle_event(_edit(source, 10, "one();\ntwo();\n"))
        expected = first.report()

        second = TrackingSession.open(workspace, quick_reload=repository, clock=_ManualClock())
    finally:
        repository.close()

    assert second.report().file_stats == expected.file_stats
    assert second.report().totals == expected.totals
    assert second.engine.pending_attribution == 0


def test_session_restores_from_durable_snapshot_without_quick_reload(tmp_path: Path) -> None:
    source = tmp_path / "app.py"
    first = TrackingSession.open(tmp_path, clock=_ManualClock())
    first.handle_event(_open(source, 6))
    first.close()

    second = TrackingSession.open(tmp_path)

    assert second.engine.file_stats(_key(source)) == LineStats(total_lines=6, copilot_lines=0)


def test_clear_resets_and_writes_snapshot(tmp_path: Path) -> None:
    session = TrackingSession.open(tmp_path, clock=_ManualClock())
    source = tmp_path / "app.py"
    session.handle_event(_open(source, 6))

    session.clear()

    payload = orjson.loads((tmp_path / ".copilot-stats.json").read_bytes())
    assert payload["stats"]["totalLines"] == 0
    assert payload["stats"]["fileStats"] == {}
    assert session.store.has_pending_flush is False


def test_open_leaves_unreadable_snapshot_untouched(tmp_path: Path) -> None:
    """A damaged snapshot survives reopening until a real change is recorded."""
    source = tmp_path / "app.py"
    first = TrackingSession.open(tmp_path, clock=_ManualClock())
    first.handle_event(_open(source, 100))
    first.close()

    snapshot_path = tmp_path / ".copilot-stats.json"
    damaged = snapshot_path.read_bytes()[:40]
    snapshot_path.write_bytes(damaged)

    second = TrackingSession.open(tmp_path, clock=_ManualClock())
    second.close()

    assert second.engine.stats.file_stats == {}
    assert second.store.durable_writes == 0
    assert snapshot_path.read_bytes() == damaged


def test_open_does_not_create_snapshot_for_new_workspace(tmp_path: Path) -> None:
    session = TrackingSession.open(tmp_path, clock=_ManualClock())
    session.close()

    assert not (tmp_path / ".copilot-stats.json").exists()
    assert session.store.durable_writes == 0


def test_quick_reload_state_is_kept_per_workspace(tmp_path: Path) -> None:
    """Sessions of different workspace roots sharing one state file never see each other's records."""
    repository = QuickReloadRepository(tmp_path / "state.duckdb")
    repository.ensure_schema()
    first_root = tmp_path / "a"
    second_root = tmp_path / "b"
    first_root.mkdir()
    second_root.mkdir()
    try:
        first = TrackingSession.open(first_root, quick_reload=repository, clock=_ManualClock())
        first.handle_event(_open(first_root / "x.py", 40))
        first.close()

        second = TrackingSession.open(second_root, quick_reload=repository, clock=_ManualClock())
        second.handle_event(_open(second_root / "y.py", 7))
        second.close()

        reopened = TrackingSession.open(first_root, quick_reload=repository, clock=_ManualClock())
    finally:
        repository.close()

    second_payload = orjson.loads((second_root / ".copilot-stats.json").read_bytes())
    assert list(second_payload["stats"]["fileStats"]) == [_key(second_root / "y.py")]
    assert second_payload["stats"]["totalLines"] == 7
    assert reopened.engine.stats.totals == LineStats(total_lines=40, copilot_lines=0)
