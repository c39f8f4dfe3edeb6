"""Typed host event schemas consumed by the tracking session."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TriggerKind(str, Enum):
    """How the suggestion provider was invoked."""

    AUTOMATIC = "automatic"
    INVOKE = "invoke"


@dataclass(frozen=True)
class TextRange:
    """Zero-based line range replaced by one change."""

    start_line: int
    end_line: int


@dataclass(frozen=True)
class TextChange:
    """One (range, inserted text) pair from an edit event."""

    text: str
    range: TextRange | None = None


@dataclass(frozen=True)
class DocumentSnapshot:
    """Document identity and its host-reported line count after the event."""

    path: str
    line_count: int


@dataclass(frozen=True)
class TextEditEvent:
    """Content changes applied to one document."""

    document: DocumentSnapshot
    changes: tuple[TextChange, ...]
    timestamp: datetime | None = None


@dataclass(frozen=True)
class DocumentOpenEvent:
    """A document was opened by the host."""

    document: DocumentSnapshot
    timestamp: datetime | None = None


@dataclass(frozen=True)
class SuggestionRequestEvent:
    """The inline suggestion provider was asked for completions."""

    trigger_kind: TriggerKind
    line_text: str
    timestamp: datetime | None = None


@dataclass(frozen=True)
class ConfigurationChangeEvent:
    """The tracked-extension setting changed."""

    tracked_extensions: tuple[str, ...] = field(default_factory=tuple)
    timestamp: datetime | None = None


HostEvent = TextEditEvent | DocumentOpenEvent | SuggestionRequestEvent | ConfigurationChangeEvent
