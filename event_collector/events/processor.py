"""
Event Processor

Orchestrates the write path (timestamp check, enrichment, persistence) and
serves the read paths over the events repository.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ..errors import InvalidTimestamp
from ..storage.repository import EventsRepository
from .enrichment import EnrichmentService
from .models import Event, EventQuery, EventStatistics, PaginatedResponse, StoredEvent
from .query import build_event_filter

logger = logging.getLogger(__name__)


class EventProcessor:
    """Main event processing service."""

    def __init__(self, repository: EventsRepository, enrichment_service: Optional[EnrichmentService] = None):
        """Initialize the event processor.

        Args:
            repository: Event store
            enrichment_service: Metadata enrichment; a default EnrichmentService if omitted
        """
        self.repository = repository
        self.enrichment_service = enrichment_service or EnrichmentService()

    def process_event(
        self,
        event: Event,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> StoredEvent:
        """Check, enrich and persist a validated event.

        Args:
            event: Validated event
            ip_address: Client IP address
            user_agent: Client User-Agent header

        Returns:
            The stored record

        Raises:
            InvalidTimestamp: the event time is outside the accepted window
            StoreError: the insert failed; nothing was persisted
        """
        if not self.enrichment_service.validate_timestamp(event.timestamp):
            logger.warning(
                f"Event timestamp out of acceptable range: type={event.event_type}, timestamp={event.timestamp}"
            )
            raise InvalidTimestamp(event.timestamp)

        enriched = self.enrichment_service.enrich_event(event, ip_address, user_agent)

        stored = self.repository.create_event(
            event_type=event.event_type,
            user_id=event.user_id,
            session_id=event.session_id,
            timestamp=event.occurred_at,
            raw_data=event.to_payload(),
            enriched_data=enriched.metadata.to_dict(),
            ip_address=ip_address,
            user_agent=user_agent,
        )

        logger.info(
            f"Event processed successfully: id={stored.id}, type={event.event_type}, "
            f"user={event.user_id}, session={event.session_id}"
        )
        return stored

    def get_events(self, query: EventQuery) -> PaginatedResponse:
        """List stored events matching a validated query."""
        logger.info(f"Retrieving events: {query.model_dump(exclude_none=True)}")
        event_filter, window = build_event_filter(query)
        return self.repository.find_events(event_filter, window)

    def get_event_by_id(self, event_id: str) -> Optional[StoredEvent]:
        """Get one event, or None if no event has that id."""
        logger.info(f"Retrieving event by ID: {event_id}")
        return self.repository.find_event_by_id(event_id)

    def get_statistics(self) -> EventStatistics:
        """Aggregate counts over the whole store, stamped with the snapshot time."""
        logger.info("Retrieving event statistics")
        snapshot_time = datetime.now(timezone.utc)
        stats = self.repository.get_statistics()

        return EventStatistics(
            total_events=stats["total_events"],
            events_by_type=stats["events_by_type"],
            unique_users=stats["unique_users"],
            unique_sessions=stats["unique_sessions"],
            timestamp=snapshot_time.isoformat().replace("+00:00", "Z"),
        )
