"""Heuristic classification of inserted text as suggestion-originated or typed."""

from __future__ import annotations

import logging
from enum import Enum

from .schemas import TriggerKind

LOGGER = logging.getLogger(__name__)
STATEMENT_TERMINATORS: tuple[str, ...] = (";", "}", ")", "]", '"', "'")


class ClassifierState(str, Enum):
    """Suggestion lifecycle state for one editing session."""

    IDLE = "idle"
    SUGGESTION_OFFERED = "suggestion_offered"


class ChangeClassifier:
    """Decide whether inserted text came from an accepted suggestion.

    The decision is priority ordered:

    1. A pending automatic suggestion is assumed accepted by the next insertion.
    2. Otherwise, an insertion containing the last offered line text is AI-originated.
    3. Otherwise, multi-line insertions and insertions ending like a complete
       statement are AI-originated. This fallback over-attributes pasted or
       hand-typed statements and is accepted as such.
    """

    def __init__(self) -> None:
        self._last_offered_suggestion_text: str | None = None
        self._is_accepting_suggestion = False

    @property
    def state(self) -> ClassifierState:
        """Return the current suggestion lifecycle state."""
        if self._is_accepting_suggestion:
            return ClassifierState.SUGGESTION_OFFERED
        return ClassifierState.IDLE

    @property
    def last_offered_suggestion_text(self) -> str | None:
        return self._last_offered_suggestion_text

    @property
    def is_accepting_suggestion(self) -> bool:
        return self._is_accepting_suggestion

    def on_suggestion_requested(self, trigger_kind: TriggerKind, line_text: str) -> None:
        """Record an automatic suggestion offer for the current line."""
        if trigger_kind is not TriggerKind.AUTOMATIC:
            return
        # An empty line would match every later insertion.
        self._last_offered_suggestion_text = line_text or None
        self._is_accepting_suggestion = True
        LOGGER.debug("Suggestion offered for line %r.", line_text)

    def classify(self, inserted_text: str) -> bool:
        """Return True when `inserted_text` is judged AI-originated."""
        if not inserted_text:
            return False

        if self._is_accepting_suggestion:
            self._is_accepting_suggestion = False
            return True

        offered = self._last_offered_suggestion_text
        if offered is not None and offered in inserted_text:
            self._last_offered_suggestion_text = None
            return True

        return _looks_like_generated_code(inserted_text)

    def reset(self) -> None:
        """Drop all transient suggestion context."""
        self._last_offered_suggestion_text = None
        self._is_accepting_suggestion = False


def _looks_like_generated_code(text: str) -> bool:
    """Apply the multi-line / complete-statement shape heuristic."""
    if "\n" in text or "\r" in text:
        return True
    return text.strip().endswith(STATEMENT_TERMINATORS)
