"""
ORM mapping for the events table.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..events.models import StoredEvent, to_utc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class EventRecord(Base):
    """One accepted event. Rows are written once and never updated."""

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    raw_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    enriched_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        Index("idx_events_event_type", "event_type"),
        Index("idx_events_user_id", "user_id"),
        Index("idx_events_session_id", "session_id"),
        Index("idx_events_timestamp", "timestamp"),
    )

    def to_stored_event(self) -> StoredEvent:
        """Convert the row into the domain record. SQLite drops tzinfo, so times are re-tagged as UTC."""
        return StoredEvent(
            id=self.id,
            event_type=self.event_type,
            user_id=self.user_id,
            session_id=self.session_id,
            timestamp=to_utc(self.timestamp),
            raw_data=self.raw_data,
            enriched_data=self.enriched_data,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
            created_at=to_utc(self.created_at),
            updated_at=to_utc(self.updated_at),
        )
