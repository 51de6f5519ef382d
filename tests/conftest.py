"""
Shared fixtures: a throwaway SQLite event store per test, the Flask app
wired to it, and builders for valid event payloads.
"""

from datetime import datetime, timedelta, timezone

import pytest

from config_manager import ConfigManager, DatabaseConfig
from event_collector.main import create_app
from event_collector.storage.database import Database
from event_collector.storage.repository import EventsRepository


def iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def hours_ago(hours: float) -> str:
    return iso(datetime.now(timezone.utc) - timedelta(hours=hours))


@pytest.fixture
def database(tmp_path):
    """Connected SQLite store in a temporary file."""
    db = Database(DatabaseConfig(
        url=f"sqlite:///{tmp_path / 'events.db'}",
        pool_size=5,
        pool_timeout=2.0,
        echo=False,
    ))
    db.connect()
    yield db
    db.disconnect()


@pytest.fixture
def repository(database):
    return EventsRepository(database, statistics_workers=4)


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Default configuration, unaffected by the developer's environment."""
    for name in (
        "APP_ENV", "EVENT_REJECT_UNKNOWN_FIELDS", "TRUST_PROXY", "DATABASE_URL",
        "CORS_ORIGIN", "MAX_CONTENT_LENGTH", "RATE_LIMIT_ENABLED",
        "RATE_LIMIT_WINDOW_MS", "RATE_LIMIT_MAX_REQUESTS",
    ):
        monkeypatch.delenv(name, raising=False)
    return ConfigManager(str(tmp_path / "no_such_config.json"))


@pytest.fixture
def app(config, database):
    app = create_app(config, database=database)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def page_view_payload():
    """Builder for a valid pageView payload one hour old."""
    def build(**overrides):
        payload = {
            "eventType": "pageView",
            "timestamp": hours_ago(1),
            "sessionId": "s1",
            "page": {
                "url": "https://nn.nl/insurance/car",
                "title": "Car Insurance - NN",
            },
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def click_payload():
    """Builder for a valid click payload one hour old."""
    def build(**overrides):
        payload = {
            "eventType": "click",
            "timestamp": hours_ago(1),
            "sessionId": "s1",
            "element": {
                "id": "cta-button",
                "text": "Get Quote",
                "position": {"x": 500, "y": 300},
            },
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def custom_payload():
    """Builder for a valid custom payload one hour old."""
    def build(**overrides):
        payload = {
            "eventType": "custom",
            "timestamp": hours_ago(1),
            "sessionId": "s2",
            "eventName": "form_submitted",
            "properties": {"formId": "insurance-quote-form", "coverage": "comprehensive"},
        }
        payload.update(overrides)
        return payload
    return build
