"""Attribute edited lines to Copilot suggestions or manual typing and keep running totals."""

from .session import SessionCounters, TrackingSession

__all__ = ["SessionCounters", "TrackingSession"]
