"""Custom exceptions for host event handling failures."""


class AttributionError(Exception):
    """Base exception for attribution errors."""


class EventParseError(AttributionError):
    """Raised when a recorded host event cannot be parsed."""


class UnknownEventTypeError(EventParseError):
    """Raised when a recorded host event has an unsupported `type`."""
