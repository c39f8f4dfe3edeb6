"""Parsing helpers for recorded host event streams (JSONL)."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import orjson

from .errors import EventParseError, UnknownEventTypeError
from .schemas import (
    ConfigurationChangeEvent,
    DocumentOpenEvent,
    DocumentSnapshot,
    HostEvent,
    SuggestionRequestEvent,
    TextChange,
    TextEditEvent,
    TextRange,
    TriggerKind,
)


def iter_raw_events(events_file_path: Path) -> Iterator[tuple[int, bytes]]:
    """Yield non-blank raw JSONL lines with their line numbers."""
    with events_file_path.open("rb") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            if not raw_line.strip():
                continue
            yield line_number, raw_line


def parse_host_event(raw_line: bytes | str, events_file_path: Path, line_number: int) -> HostEvent:
    """Parse one JSONL line into a typed host event."""
    try:
        payload = orjson.loads(raw_line)
    except orjson.JSONDecodeError as exc:
        raise EventParseError(f"Malformed JSON in {events_file_path} at line {line_number}: {exc}.") from exc
    if not isinstance(payload, dict):
        raise EventParseError(
            f"Expected JSON object in {events_file_path} at line {line_number}, got {type(payload).__name__}."
        )

    event_type = payload.get("type")
    timestamp = _parse_optional_timestamp(payload.get("timestamp"), events_file_path, line_number)

    if event_type == "edit":
        changes_value = payload.get("changes")
        if not isinstance(changes_value, list):
            raise EventParseError(
                f"Invalid changes in {events_file_path} at line {line_number}: "
                f"expected list, got {type(changes_value).__name__}."
            )
        return TextEditEvent(
            document=_parse_document(payload, events_file_path, line_number),
            changes=tuple(_parse_change(change, events_file_path, line_number) for change in changes_value),
            timestamp=timestamp,
        )

    if event_type == "open":
        return DocumentOpenEvent(document=_parse_document(payload, events_file_path, line_number), timestamp=timestamp)

    if event_type == "suggestion":
        raw_trigger = payload.get("triggerKind", TriggerKind.AUTOMATIC.value)
        try:
            trigger_kind = TriggerKind(raw_trigger)
        except ValueError as exc:
            raise EventParseError(
                f"Invalid triggerKind '{raw_trigger}' in {events_file_path} at line {line_number}."
            ) from exc
        line_text = _require_str(payload.get("lineText", ""), "lineText", events_file_path, line_number)
        return SuggestionRequestEvent(trigger_kind=trigger_kind, line_text=line_text, timestamp=timestamp)

    if event_type == "configuration":
        extensions_value = payload.get("trackedExtensions")
        if not isinstance(extensions_value, list) or not all(isinstance(ext, str) for ext in extensions_value):
            raise EventParseError(
                f"Invalid trackedExtensions in {events_file_path} at line {line_number}: expected list of str."
            )
        return ConfigurationChangeEvent(tracked_extensions=tuple(extensions_value), timestamp=timestamp)

    raise UnknownEventTypeError(f"Unsupported event type {event_type!r} in {events_file_path} at line {line_number}.")


def _parse_document(payload: dict[str, Any], events_file_path: Path, line_number: int) -> DocumentSnapshot:
    path = _require_str(payload.get("path"), "path", events_file_path, line_number)
    line_count = payload.get("lineCount")
    if not isinstance(line_count, int) or isinstance(line_count, bool) or line_count < 0:
        raise EventParseError(
            f"Invalid lineCount in {events_file_path} at line {line_number}: expected non-negative int, "
            f"got {line_count!r}."
        )
    return DocumentSnapshot(path=path, line_count=line_count)


def _parse_change(value: Any, events_file_path: Path, line_number: int) -> TextChange:
    if not isinstance(value, dict):
        raise EventParseError(
            f"Invalid change in {events_file_path} at line {line_number}: "
            f"expected object, got {type(value).__name__}."
        )
    text = _require_str(value.get("text"), "changes[].text", events_file_path, line_number)
    raw_range = value.get("range")
    if raw_range is None:
        return TextChange(text=text)
    if (
        not isinstance(raw_range, list)
        or len(raw_range) != 2
        or not all(isinstance(item, int) and not isinstance(item, bool) for item in raw_range)
    ):
        raise EventParseError(
            f"Invalid changes[].range in {events_file_path} at line {line_number}: expected [startLine, endLine]."
        )
    return TextChange(text=text, range=TextRange(start_line=raw_range[0], end_line=raw_range[1]))


def _require_str(value: Any, field_name: str, events_file_path: Path, line_number: int) -> str:
    if not isinstance(value, str):
        raise EventParseError(
            f"Invalid {field_name} in {events_file_path} at line {line_number}: "
            f"expected str, got {type(value).__name__}."
        )
    return value


def _parse_optional_timestamp(value: Any, events_file_path: Path, line_number: int) -> datetime | None:
    """Parse an optional RFC3339-style timestamp into an aware datetime."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise EventParseError(
            f"Invalid timestamp in {events_file_path} at line {line_number}: "
            f"expected str or null, got {type(value).__name__}."
        )

    normalized = value.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise EventParseError(f"Invalid timestamp '{value}' in {events_file_path} at line {line_number}.") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
