"""
Event Types for the Event Collector

Defines the recognised eventType tags as an enum.
"""

from enum import Enum


class EventType(str, Enum):
    """Allowed event types."""

    PAGE_VIEW = "pageView"
    CLICK = "click"
    CUSTOM = "custom"

    @classmethod
    def is_valid(cls, event_type) -> bool:
        """Check if an event type string is valid."""
        try:
            cls(event_type)
            return True
        except (ValueError, TypeError):
            return False

    @classmethod
    def get_allowed_types(cls) -> set[str]:
        """Get all allowed event type strings."""
        return {e.value for e in cls}
