"""
Error types raised by the event collector.

Every error that crosses the HTTP boundary derives from EventCollectorError
and knows its status code and response body.
"""

from typing import Any, Dict, List, Optional


class EventCollectorError(Exception):
    """Base class for request-scoped failures."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class EventValidationError(EventCollectorError):
    """Input failed one or more field rules.

    Args:
        violations: One entry per violated rule, each with ``field``,
            ``rule`` and ``message`` keys
    """

    status_code = 400
    message = "Validation failed"

    def __init__(self, violations: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message)
        self.violations = violations

    @property
    def fields(self) -> List[str]:
        return [v["field"] for v in self.violations]

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["details"] = self.violations
        return body


class UnknownEventType(EventValidationError):
    """The eventType discriminant is missing or not recognised."""

    message = "Unknown event type"

    def __init__(self, event_type: Any):
        self.event_type = event_type
        super().__init__([{
            "field": "eventType",
            "rule": "union_tag_invalid",
            "message": f"Unknown event type: {event_type!r}",
        }])


class InvalidTimestamp(EventCollectorError):
    """Event time lies outside the accepted window."""

    status_code = 400
    message = "Event timestamp is invalid or out of acceptable range"

    def __init__(self, timestamp: str):
        super().__init__()
        self.timestamp = timestamp


class StoreError(EventCollectorError):
    """The event store rejected or failed an operation."""

    status_code = 500
    message = "Event store error"


class StoreUnavailable(StoreError):
    """The event store could not be reached or the pool is exhausted."""

    status_code = 503
    message = "Event store unavailable"
