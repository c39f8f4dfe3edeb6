"""Tests for line delta counting."""

from __future__ import annotations

from copilot_line_tracking.attribution.line_counter import count_non_empty_lines, document_total_lines
from copilot_line_tracking.attribution.schemas import DocumentSnapshot


def test_count_non_empty_lines_skips_blank_and_whitespace_lines() -> None:
    assert count_non_empty_lines("a\n\n   \nb\r\nc\n") == 3


def test_count_non_empty_lines_empty_string_is_zero() -> None:
    assert count_non_empty_lines("") == 0


def test_document_total_lines_counts_blank_lines() -> None:
    """Totals come from the host and are not filtered for emptiness."""
    assert document_total_lines(DocumentSnapshot(path="/repo/a.py", line_count=12)) == 12
