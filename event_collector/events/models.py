"""
Data Models for the Event Collector

Pydantic models describe the three inbound event variants and the query
parameters; plain dataclasses describe what comes back out of the store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import AfterValidator, AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .event_types import EventType


_URL_ADAPTER = TypeAdapter(AnyUrl)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken to be UTC.
    """
    # Accept 'Z' by replacing with +00:00
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalise a datetime to aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise PydanticCustomError("url", "Invalid url")
    # Keep the caller's exact string so raw payloads round-trip unchanged
    return value


def _check_timestamp(value: str) -> str:
    try:
        if "T" not in value:
            raise ValueError(value)
        parse_timestamp(value)
    except (ValueError, OverflowError):
        raise PydanticCustomError("datetime", "Invalid ISO 8601 datetime")
    return value


def _check_utc_datetime(value: datetime) -> datetime:
    try:
        return to_utc(value)
    except OverflowError:
        raise PydanticCustomError("datetime", "Datetime is out of range once converted to UTC")


Url = Annotated[str, AfterValidator(_check_url)]
Timestamp = Annotated[str, AfterValidator(_check_timestamp)]
UtcDatetime = Annotated[datetime, AfterValidator(_check_utc_datetime)]


class EventModel(BaseModel):
    """Base for inbound event shapes: camelCase on the wire, no type coercion."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="ignore",
    )


class PageInfo(EventModel):
    """Page a page view happened on."""
    url: Url
    title: str = Field(min_length=1, max_length=500)
    referrer: Optional[Url] = None


class DeviceInfo(EventModel):
    """Client device details."""
    user_agent: Optional[str] = Field(default=None, max_length=1000)
    screen_resolution: Optional[str] = Field(default=None, pattern=r"^\d+x\d+$")


class Position(EventModel):
    """Click coordinates in pixels."""
    x: int = Field(ge=0)
    y: int = Field(ge=0)


class ElementInfo(EventModel):
    """Element that received a click."""
    id: Optional[str] = Field(default=None, max_length=255)
    text: Optional[str] = Field(default=None, max_length=500)
    position: Optional[Position] = None


class ClickPageInfo(EventModel):
    url: Url


class BaseEvent(EventModel):
    """Fields shared by every event variant."""
    timestamp: Timestamp
    session_id: str = Field(min_length=1, max_length=255)
    user_id: Optional[str] = Field(default=None, max_length=255)

    @property
    def occurred_at(self) -> datetime:
        """Event-supplied time as an aware UTC datetime."""
        return parse_timestamp(self.timestamp)

    def to_payload(self) -> Dict[str, Any]:
        """The event as the client sent it, minus unrecognised properties."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class PageViewEvent(BaseEvent):
    event_type: Literal["pageView"]
    page: PageInfo
    device: Optional[DeviceInfo] = None


class ClickEvent(BaseEvent):
    event_type: Literal["click"]
    element: ElementInfo
    page: Optional[ClickPageInfo] = None


class CustomEvent(BaseEvent):
    event_type: Literal["custom"]
    event_name: str = Field(min_length=1, max_length=100)
    properties: Optional[Dict[str, Any]] = None


Event = Annotated[
    Union[PageViewEvent, ClickEvent, CustomEvent],
    Field(discriminator="event_type"),
]

EVENT_VARIANTS: Dict[EventType, type] = {
    EventType.PAGE_VIEW: PageViewEvent,
    EventType.CLICK: ClickEvent,
    EventType.CUSTOM: CustomEvent,
}


class MetadataModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BrowserInfo(MetadataModel):
    name: Optional[str] = None
    version: Optional[str] = None
    os: Optional[str] = None


class GeoInfo(MetadataModel):
    country: Optional[str] = None
    city: Optional[str] = None


class EventMetadata(MetadataModel):
    """Server-derived envelope attached to every accepted event."""
    received_at: str
    ip_address: Optional[str] = None
    browser: Optional[BrowserInfo] = None
    geo: Optional[GeoInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EnrichedEvent(MetadataModel):
    event: Event
    metadata: EventMetadata


class EventQuery(BaseModel):
    """Filters and pagination for listing stored events.

    Query strings arrive as text, so this model coerces ("5" -> 5).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    event_type: Optional[EventType] = None
    user_id: Optional[str] = Field(default=None, max_length=255)
    session_id: Optional[str] = Field(default=None, max_length=255)
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    limit: int = Field(default=10, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return to_utc(value).isoformat().replace("+00:00", "Z")


@dataclass
class StoredEvent:
    """Persisted, immutable form of an accepted event."""

    id: str
    event_type: str
    timestamp: datetime
    raw_data: Dict[str, Any]
    created_at: datetime
    updated_at: datetime
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    enriched_data: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization. Absent optionals are omitted."""
        data = {
            "id": self.id,
            "eventType": self.event_type,
            "userId": self.user_id,
            "sessionId": self.session_id,
            "timestamp": _isoformat(self.timestamp),
            "rawData": self.raw_data,
            "enrichedData": self.enriched_data,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class PaginatedResponse:
    """One page of stored events together with its window metadata."""

    data: List[StoredEvent]
    total: int
    limit: int
    offset: int
    has_more: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": [event.to_dict() for event in self.data],
            "pagination": {
                "total": self.total,
                "limit": self.limit,
                "offset": self.offset,
                "hasMore": self.has_more,
            },
        }


@dataclass
class EventStatistics:
    """Aggregate snapshot of the store."""

    total_events: int
    unique_users: int
    unique_sessions: int
    timestamp: str
    events_by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalEvents": self.total_events,
            "eventsByType": self.events_by_type,
            "uniqueUsers": self.unique_users,
            "uniqueSessions": self.unique_sessions,
            "timestamp": self.timestamp,
        }
