"""Line counting helpers for attribution and total-line deltas."""

from __future__ import annotations

from .schemas import DocumentSnapshot


def count_non_empty_lines(text: str) -> int:
    """Count lines of `text` whose stripped form is non-empty."""
    return sum(1 for line in text.splitlines() if line.strip())


def document_total_lines(document: DocumentSnapshot) -> int:
    """Return the host-reported total line count, blank lines included."""
    return document.line_count
