"""
Factory for creating the events module.
"""
from datetime import timedelta
from typing import Optional

from config_manager import EventsConfig
from ..storage.database import Database
from ..storage.repository import EventsRepository
from .enrichment import EnrichmentService, GeoLocator
from .processor import EventProcessor
from .routes import create_events_blueprint


def create_events_module(
    database: Database,
    config: EventsConfig,
    geo_locator: Optional[GeoLocator] = None,
) -> dict:
    """Create the events module with service and routes.

    Args:
        database: Event store handle
        config: Event processing settings
        geo_locator: Optional IP lookup replacing the built-in placeholder

    Returns:
        Dictionary containing the service and blueprint
    """
    repository = EventsRepository(database, statistics_workers=config.statistics_workers)
    enrichment_service = EnrichmentService(
        geo_locator=geo_locator,
        future_tolerance=timedelta(minutes=config.future_tolerance_minutes),
        max_age=timedelta(days=config.max_age_days),
    )
    event_processor = EventProcessor(repository, enrichment_service)

    blueprint = create_events_blueprint(
        event_processor,
        reject_unknown_fields=config.reject_unknown_fields,
    )

    return {
        "service": event_processor,
        "blueprint": blueprint
    }
