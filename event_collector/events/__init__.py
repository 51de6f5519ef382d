"""
Events Subsystem

Validation, enrichment, persistence and querying of analytics events.
The service and blueprint are built by ``events.factory.create_events_module``.
"""

from .event_types import EventType
from .validation import validate_event, validate_query

__all__ = ['EventType', 'validate_event', 'validate_query']
