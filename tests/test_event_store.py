"""
Tests for the SQLAlchemy event store.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from config_manager import DatabaseConfig
from event_collector.errors import StoreError, StoreUnavailable
from event_collector.events.query import EventFilter, FilterClause, FilterOperator, PaginationWindow
from event_collector.storage.database import Database

BASE = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def _insert(repository, count, event_type="click", user_id="u1", session_id="s1", start=BASE):
    """Insert ``count`` events one minute apart, oldest first."""
    return [
        repository.create_event(
            event_type=event_type,
            user_id=user_id,
            session_id=session_id,
            timestamp=start + timedelta(minutes=i),
            raw_data={"eventType": event_type, "n": i},
        )
        for i in range(count)
    ]


class TestCreateAndFind:
    """Test insert and lookup."""

    def test_create_assigns_id_and_times(self, repository):
        stored = repository.create_event(
            event_type="pageView",
            user_id="u1",
            session_id="s1",
            timestamp=BASE,
            raw_data={"eventType": "pageView", "page": {"url": "https://nn.nl", "title": "NN"}},
            enriched_data={"receivedAt": "2025-01-15T12:00:01Z"},
            ip_address="127.0.0.1",
            user_agent="curl/8.4.0",
        )

        assert len(stored.id) == 36
        assert stored.created_at is not None
        assert stored.updated_at is not None
        assert stored.timestamp == BASE

    def test_round_trip(self, repository):
        raw_data = {"eventType": "custom", "eventName": "x", "properties": {"a": [1, 2], "b": None}}
        stored = repository.create_event(
            event_type="custom",
            user_id=None,
            session_id="s1",
            timestamp=BASE,
            raw_data=raw_data,
            ip_address="::1",
        )

        found = repository.find_event_by_id(stored.id)

        assert found.raw_data == raw_data
        assert found.user_id is None
        assert found.ip_address == "::1"
        assert found.timestamp == BASE
        assert found.timestamp.tzinfo is not None

    def test_ids_are_unique(self, repository):
        ids = {event.id for event in _insert(repository, 5)}
        assert len(ids) == 5

    def test_unknown_id(self, repository):
        assert repository.find_event_by_id("00000000-0000-0000-0000-000000000000") is None

    def test_to_dict_shape(self, repository):
        stored = _insert(repository, 1, user_id=None)[0]

        data = repository.find_event_by_id(stored.id).to_dict()

        assert data["eventType"] == "click"
        assert data["timestamp"] == "2025-01-15T12:00:00Z"
        assert "userId" not in data
        assert data["rawData"] == {"eventType": "click", "n": 0}


class TestFindEvents:
    """Test filtered, paginated listing."""

    def test_newest_first(self, repository):
        _insert(repository, 5)

        page = repository.find_events(EventFilter(), PaginationWindow(limit=10, offset=0))

        timestamps = [event.timestamp for event in page.data]
        assert timestamps == sorted(timestamps, reverse=True)
        assert page.data[0].raw_data["n"] == 4

    @pytest.mark.parametrize("limit,offset", [(3, 0), (3, 6), (5, 5), (10, 0), (3, 9), (2, 4)])
    def test_window_sizes(self, repository, limit, offset):
        _insert(repository, 7)

        page = repository.find_events(EventFilter(), PaginationWindow(limit=limit, offset=offset))

        assert len(page.data) == min(limit, max(0, 7 - offset))
        assert page.total == 7
        assert page.has_more == (offset + limit < 7)

    def test_pages_do_not_overlap(self, repository):
        _insert(repository, 6)

        first = repository.find_events(EventFilter(), PaginationWindow(limit=3, offset=0))
        second = repository.find_events(EventFilter(), PaginationWindow(limit=3, offset=3))

        assert not {e.id for e in first.data} & {e.id for e in second.data}

    def test_event_type_filter(self, repository):
        _insert(repository, 3, event_type="click")
        _insert(repository, 2, event_type="pageView")
        event_filter = EventFilter((FilterClause("event_type", FilterOperator.EQ, "click"),))

        page = repository.find_events(event_filter, PaginationWindow(limit=5, offset=0))

        assert page.total == 3
        assert all(event.event_type == "click" for event in page.data)
        assert page.has_more is False

    def test_user_and_session_filters(self, repository):
        _insert(repository, 2, user_id="u1", session_id="s1")
        _insert(repository, 3, user_id="u2", session_id="s2")
        event_filter = EventFilter((
            FilterClause("user_id", FilterOperator.EQ, "u2"),
            FilterClause("session_id", FilterOperator.EQ, "s2"),
        ))

        assert repository.count_events(event_filter) == 3

    def test_date_range_is_inclusive(self, repository):
        _insert(repository, 10)
        event_filter = EventFilter((
            FilterClause("timestamp", FilterOperator.GTE, BASE + timedelta(minutes=2)),
            FilterClause("timestamp", FilterOperator.LTE, BASE + timedelta(minutes=5)),
        ))

        page = repository.find_events(event_filter, PaginationWindow(limit=100, offset=0))

        assert sorted(event.raw_data["n"] for event in page.data) == [2, 3, 4, 5]

    def test_results_satisfy_filter(self, repository):
        """Everything the store returns also passes the in-memory filter."""
        _insert(repository, 4, event_type="click", user_id="u1")
        _insert(repository, 4, event_type="custom", user_id="u2")
        event_filter = EventFilter((
            FilterClause("user_id", FilterOperator.EQ, "u2"),
            FilterClause("timestamp", FilterOperator.GTE, BASE + timedelta(minutes=1)),
        ))

        page = repository.find_events(event_filter, PaginationWindow(limit=100, offset=0))

        assert page.total == 3
        assert all(event_filter.matches(event) for event in page.data)

    def test_empty_store(self, repository):
        page = repository.find_events(EventFilter(), PaginationWindow())
        assert page.data == []
        assert page.total == 0
        assert page.has_more is False


class TestStatistics:
    """Test aggregate statistics."""

    def test_empty_store(self, repository):
        stats = repository.get_statistics()
        assert stats == {
            "total_events": 0,
            "events_by_type": {},
            "unique_users": 0,
            "unique_sessions": 0,
        }

    def test_counts(self, repository):
        _insert(repository, 3, event_type="click", user_id="u1", session_id="s1")
        _insert(repository, 2, event_type="pageView", user_id="u2", session_id="s1")
        _insert(repository, 1, event_type="custom", user_id=None, session_id="s2")

        stats = repository.get_statistics()

        assert stats["total_events"] == 6
        assert stats["events_by_type"] == {"click": 3, "pageView": 2, "custom": 1}
        assert sum(stats["events_by_type"].values()) == stats["total_events"]
        assert stats["unique_users"] == 2
        assert stats["unique_sessions"] == 2


class TestStoreFailures:
    """Store failures surface as store errors, never as raw SQLAlchemy exceptions."""

    def test_missing_table(self, repository, database):
        with database.engine.begin() as connection:
            connection.execute(text("DROP TABLE events"))

        with pytest.raises(StoreError):
            repository.find_event_by_id("anything")
        with pytest.raises(StoreError):
            _insert(repository, 1)
        with pytest.raises(StoreError):
            repository.get_statistics()

    def test_unreachable_database(self, tmp_path):
        config = DatabaseConfig(url=f"sqlite:///{tmp_path / 'missing_dir' / 'events.db'}")
        database = Database(config)

        with pytest.raises(StoreUnavailable):
            database.connect()
        assert database.health_check() is False

    def test_health_check(self, database):
        assert database.health_check() is True
