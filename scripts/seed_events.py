#!/usr/bin/env python3
"""
Seed script for the event store.

Submits a small set of realistic sample events through the normal
validation and processing pipeline, so every seeded row is enriched
exactly as a live event would be.

Usage:
    python scripts/seed_events.py [--reset] [--database-url URL]
"""

import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import delete

sys.path.insert(0, str(Path(__file__).parent.parent))

from config_manager import config_manager  # noqa: E402
from event_collector.errors import EventCollectorError  # noqa: E402
from event_collector.events.factory import create_events_module  # noqa: E402
from event_collector.events.validation import validate_event  # noqa: E402
from event_collector.storage.database import Database  # noqa: E402
from event_collector.storage.models import EventRecord  # noqa: E402

SEED_IP = "192.168.1.1"
SEED_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"


def _ago(minutes: int) -> str:
    moment = datetime.now(timezone.utc) - timedelta(minutes=minutes)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sample_events() -> list:
    """Sample events timestamped relative to now."""
    return [
        {
            "eventType": "pageView",
            "timestamp": _ago(60),
            "userId": "user_001",
            "sessionId": "session_001",
            "page": {
                "url": "https://nn.nl/insurance/car",
                "title": "Car Insurance - NN",
                "referrer": "https://google.com",
            },
            "device": {"screenResolution": "1920x1080"},
        },
        {
            "eventType": "pageView",
            "timestamp": _ago(50),
            "userId": "user_001",
            "sessionId": "session_001",
            "page": {
                "url": "https://nn.nl/insurance/car/quote",
                "title": "Get a Quote - NN",
                "referrer": "https://nn.nl/insurance/car",
            },
        },
        {
            "eventType": "click",
            "timestamp": _ago(45),
            "userId": "user_001",
            "sessionId": "session_001",
            "element": {
                "id": "cta-button",
                "text": "Get Quote",
                "position": {"x": 500, "y": 300},
            },
            "page": {"url": "https://nn.nl/insurance/car"},
        },
        {
            "eventType": "custom",
            "timestamp": _ago(30),
            "userId": "user_002",
            "sessionId": "session_002",
            "eventName": "form_submitted",
            "properties": {
                "formId": "insurance-quote-form",
                "vehicleType": "car",
                "coverage": "comprehensive",
            },
        },
        {
            "eventType": "pageView",
            "timestamp": _ago(20),
            "userId": "user_003",
            "sessionId": "session_003",
            "page": {
                "url": "https://nn.nl/insurance/home",
                "title": "Home Insurance - NN",
            },
        },
    ]


def seed(database: Database, reset: bool = False) -> dict:
    """
    Insert the sample events.

    Args:
        database: Connected event store
        reset: Delete all existing events first

    Returns:
        Store statistics after seeding
    """
    if reset:
        with database.session() as session:
            session.execute(delete(EventRecord))
            session.commit()
        print("🧹 Cleared existing events")

    processor = create_events_module(database, config_manager.get_events_config())["service"]
    for payload in sample_events():
        event = validate_event(payload)
        stored = processor.process_event(event, ip_address=SEED_IP, user_agent=SEED_USER_AGENT)
        print(f"   Inserted event: {stored.id} ({stored.event_type})")

    return processor.get_statistics().to_dict()


def main():
    parser = argparse.ArgumentParser(description="Seed the event store with sample events")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete all existing events before seeding"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override the configured database URL"
    )

    args = parser.parse_args()

    db_config = config_manager.get_database_config()
    if args.database_url:
        db_config.url = args.database_url

    print("🚀 Event Store Seeder")
    print("=" * 50)

    database = Database(db_config)
    try:
        database.connect()
        stats = seed(database, reset=args.reset)
    except EventCollectorError as e:
        print(f"❌ Error seeding database: {e.message}")
        sys.exit(1)
    finally:
        database.disconnect()

    print()
    print("📊 Statistics:")
    print(f"   - Total events: {stats['totalEvents']}")
    print(f"   - Events by type: {stats['eventsByType']}")
    print(f"   - Unique users: {stats['uniqueUsers']}")
    print(f"   - Unique sessions: {stats['uniqueSessions']}")
    print("\n✅ Database seeded successfully!")


if __name__ == "__main__":
    main()
