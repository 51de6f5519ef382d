"""
Events Repository

The store capability the processor depends on: insert-and-return, filtered
paginated scan, count, lookup by id and aggregate statistics.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from ..errors import StoreError, StoreUnavailable
from ..events.models import PaginatedResponse, StoredEvent, to_utc
from ..events.query import EventFilter, PaginationWindow
from .database import Database
from .models import EventRecord

logger = logging.getLogger(__name__)


def _store_error(error: SQLAlchemyError, message: str) -> StoreError:
    """Map a SQLAlchemy failure onto the store error taxonomy."""
    if isinstance(error, (OperationalError, DisconnectionError, PoolTimeoutError)):
        return StoreUnavailable(message)
    return StoreError(message)


class EventsRepository:
    """SQLAlchemy-backed event store."""

    def __init__(self, database: Database, statistics_workers: int = 4):
        """Initialize the repository.

        Args:
            database: Store handle providing pooled sessions
            statistics_workers: Threads used to run the statistics queries side by side
        """
        self.database = database
        self.statistics_workers = statistics_workers

    def create_event(
        self,
        event_type: str,
        user_id: Optional[str],
        session_id: Optional[str],
        timestamp: datetime,
        raw_data: Dict[str, Any],
        enriched_data: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> StoredEvent:
        """Insert one event in a single transaction and return the stored row.

        Raises:
            StoreError: the insert failed; nothing was written
        """
        record = EventRecord(
            id=str(uuid.uuid4()),
            event_type=event_type,
            user_id=user_id,
            session_id=session_id,
            timestamp=to_utc(timestamp),
            raw_data=raw_data,
            enriched_data=enriched_data,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        with self.database.session() as session:
            try:
                session.add(record)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Failed to create event: type={event_type}, error={e}")
                raise _store_error(e, "Failed to create event") from e

        logger.info(f"Event created: id={record.id}, type={event_type}")
        return record.to_stored_event()

    def count_events(self, event_filter: EventFilter) -> int:
        """Count events matching the filter."""
        with self.database.session() as session:
            try:
                return self._count(session, event_filter)
            except SQLAlchemyError as e:
                logger.error(f"Failed to count events: error={e}")
                raise _store_error(e, "Failed to count events") from e

    def find_events(self, event_filter: EventFilter, window: PaginationWindow) -> PaginatedResponse:
        """Return one window of matching events, newest first, with the total match count."""
        conditions = [clause.apply(EventRecord) for clause in event_filter.clauses]
        statement = (
            select(EventRecord)
            .where(*conditions)
            .order_by(EventRecord.timestamp.desc(), EventRecord.id.desc())
            .limit(window.limit)
            .offset(window.offset)
        )

        with self.database.session() as session:
            try:
                total = self._count(session, event_filter)
                records = session.scalars(statement).all()
            except SQLAlchemyError as e:
                logger.error(f"Failed to find events: error={e}")
                raise _store_error(e, "Failed to find events") from e

            events = [record.to_stored_event() for record in records]

        return PaginatedResponse(
            data=events,
            total=total,
            limit=window.limit,
            offset=window.offset,
            has_more=window.has_more(total),
        )

    def find_event_by_id(self, event_id: str) -> Optional[StoredEvent]:
        """Look up one event. Returns None when the id is unknown."""
        with self.database.session() as session:
            try:
                record = session.get(EventRecord, event_id)
            except SQLAlchemyError as e:
                logger.error(f"Failed to find event by ID: id={event_id}, error={e}")
                raise _store_error(e, "Failed to find event") from e
            return record.to_stored_event() if record is not None else None

    def get_statistics(self) -> Dict[str, Any]:
        """Run the four aggregate queries concurrently and combine them.

        Any failing query fails the whole call.

        Returns:
            Dictionary with total_events, events_by_type, unique_users and unique_sessions
        """
        queries: Dict[str, Callable[[Session], Any]] = {
            "total_events": lambda s: s.scalar(select(func.count()).select_from(EventRecord)),
            "events_by_type": lambda s: {
                event_type: count
                for event_type, count in s.execute(
                    select(EventRecord.event_type, func.count()).group_by(EventRecord.event_type)
                )
            },
            "unique_users": lambda s: s.scalar(
                select(func.count(EventRecord.user_id.distinct())).where(EventRecord.user_id.is_not(None))
            ),
            "unique_sessions": lambda s: s.scalar(
                select(func.count(EventRecord.session_id.distinct())).where(EventRecord.session_id.is_not(None))
            ),
        }

        results: Dict[str, Any] = {}
        try:
            with ThreadPoolExecutor(max_workers=self.statistics_workers) as executor:
                futures = {
                    executor.submit(self._run_query, query): name for name, query in queries.items()
                }
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get statistics: error={e}")
            raise _store_error(e, "Failed to get statistics") from e

        return results

    def _run_query(self, query: Callable[[Session], Any]) -> Any:
        with self.database.session() as session:
            return query(session)

    @staticmethod
    def _count(session: Session, event_filter: EventFilter) -> int:
        conditions: List[Any] = [clause.apply(EventRecord) for clause in event_filter.clauses]
        return session.scalar(select(func.count()).select_from(EventRecord).where(*conditions)) or 0
