"""
Event Enrichment

Derives server-side metadata for an accepted event: receipt time, browser
details from the user agent, and a location from the client IP.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import BrowserInfo, EnrichedEvent, Event, EventMetadata, GeoInfo, parse_timestamp, to_utc

logger = logging.getLogger(__name__)


class UserAgentParseError(ValueError):
    """The user agent string carries no recognisable product token."""


# Order matters: Edge and Opera also advertise Chrome, Chrome also advertises Safari
_BROWSER_PATTERNS = [
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/([\d.]+)")),
    ("Opera", re.compile(r"(?:OPR|Opera)/([\d.]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
]
_PRODUCT_TOKEN = re.compile(r"([A-Za-z][\w.-]*)/([\w.]+)")


def _detect_os(user_agent: str) -> str:
    if "Windows" in user_agent:
        return "Windows"
    if "iPhone" in user_agent or "iPad" in user_agent:
        return "iOS"
    if "Mac OS X" in user_agent or "Macintosh" in user_agent:
        return "macOS"
    if "Android" in user_agent:
        return "Android"
    if "Linux" in user_agent:
        return "Linux"
    return "Other"


def parse_user_agent(user_agent: str) -> BrowserInfo:
    """Parse a user agent string into browser name, version and OS.

    Known browsers are matched first; otherwise the first ``product/version``
    token is used (e.g. ``curl/8.4.0``).

    Raises:
        UserAgentParseError: no product token could be found
    """
    for name, pattern in _BROWSER_PATTERNS:
        match = pattern.search(user_agent)
        if match:
            return BrowserInfo(name=name, version=match.group(1), os=_detect_os(user_agent))

    match = _PRODUCT_TOKEN.search(user_agent)
    if not match:
        raise UserAgentParseError(f"Unrecognised user agent: {user_agent[:100]!r}")

    name, version = match.groups()
    if name == "Mozilla":
        # Bare Mozilla/5.0 without an engine-specific browser token
        name, version = "Other", None
    return BrowserInfo(name=name, version=version, os=_detect_os(user_agent))


class GeoLocator(ABC):
    """Resolves an IP address to a location. Subclass to plug in a real lookup."""

    @abstractmethod
    def lookup(self, ip_address: str) -> Optional[GeoInfo]:
        """Return the location for an address, or None if it cannot be resolved."""


class MockGeoLocator(GeoLocator):
    """Placeholder lookup: local addresses get a fixed location, others Unknown."""

    LOCAL_PREFIXES = ("127.", "192.168.")

    def lookup(self, ip_address: str) -> Optional[GeoInfo]:
        if ip_address.startswith(self.LOCAL_PREFIXES) or ip_address == "::1":
            return GeoInfo(country="Netherlands", city="Amsterdam")
        return GeoInfo(country="Unknown", city="Unknown")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnrichmentService:
    """Builds the metadata envelope and checks event time acceptability."""

    def __init__(
        self,
        geo_locator: Optional[GeoLocator] = None,
        future_tolerance: timedelta = timedelta(minutes=5),
        max_age: timedelta = timedelta(days=30),
    ):
        """Initialize the enrichment service.

        Args:
            geo_locator: IP lookup; defaults to MockGeoLocator
            future_tolerance: How far ahead of server time an event may be
            max_age: How far behind server time an event may be
        """
        self.geo_locator = geo_locator or MockGeoLocator()
        self.future_tolerance = future_tolerance
        self.max_age = max_age

    def enrich_event(
        self,
        event: Event,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> EnrichedEvent:
        """Attach receipt time, browser and geo metadata to an event.

        Never raises for bad client metadata: an unparseable user agent just
        leaves ``browser`` unset.
        """
        metadata = EventMetadata(
            received_at=_utcnow().isoformat().replace("+00:00", "Z"),
            ip_address=ip_address,
        )

        if user_agent:
            try:
                metadata.browser = parse_user_agent(user_agent)
            except UserAgentParseError as e:
                logger.warning(f"Failed to parse user agent: {e}")

        if ip_address:
            metadata.geo = self.geo_locator.lookup(ip_address)

        logger.debug(
            f"Event enriched: type={event.event_type}, "
            f"has_geo={metadata.geo is not None}, has_browser={metadata.browser is not None}"
        )

        return EnrichedEvent(event=event, metadata=metadata)

    def validate_timestamp(self, timestamp: str, now: Optional[datetime] = None) -> bool:
        """Check an event time falls within [now - max_age, now + future_tolerance].

        Both boundaries are accepted. Unparseable timestamps are rejected.

        Args:
            timestamp: ISO 8601 event time
            now: Reference server time; defaults to the current time
        """
        try:
            event_time = parse_timestamp(timestamp)
        except (TypeError, ValueError, OverflowError):
            return False

        now = to_utc(now) if now else _utcnow()
        if event_time > now + self.future_tolerance:
            return False
        if event_time < now - self.max_age:
            return False
        return True
