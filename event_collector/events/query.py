"""
Query filter builder.

Translates an EventQuery into a backend-neutral filter (a conjunction of
typed clauses) and a pagination window. Clause fields are StoredEvent
attribute names, which the SQL store also uses as column names, so one
filter can be evaluated in memory or compiled into a WHERE clause.
"""

import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Tuple

from .models import EventQuery, to_utc


FILTERABLE_FIELDS = ("event_type", "user_id", "session_id", "timestamp")


class FilterOperator(Enum):
    """Comparison a clause applies between a field and its value."""

    EQ = "eq"
    GTE = "gte"
    LTE = "lte"

    @property
    def function(self) -> Callable[[Any, Any], Any]:
        return _OPERATOR_FUNCTIONS[self]


# Python operators also build SQLAlchemy column expressions
_OPERATOR_FUNCTIONS = {
    FilterOperator.EQ: operator.eq,
    FilterOperator.GTE: operator.ge,
    FilterOperator.LTE: operator.le,
}


@dataclass(frozen=True)
class FilterClause:
    field: str
    operator: FilterOperator
    value: Any

    def __post_init__(self):
        if self.field not in FILTERABLE_FIELDS:
            raise ValueError(f"Field {self.field!r} is not filterable")

    def apply(self, target: Any) -> Any:
        """Apply the clause to an object exposing ``field`` as an attribute."""
        return self.operator.function(getattr(target, self.field), self.value)

    def matches(self, event) -> bool:
        """Evaluate the clause against an in-memory StoredEvent."""
        if getattr(event, self.field) is None:
            return False
        return bool(self.apply(event))


@dataclass(frozen=True)
class EventFilter:
    """Conjunction of clauses. An empty filter matches everything."""

    clauses: Tuple[FilterClause, ...] = ()

    def matches(self, event) -> bool:
        return all(clause.matches(event) for clause in self.clauses)


@dataclass(frozen=True)
class PaginationWindow:
    limit: int = 10
    offset: int = 0

    def has_more(self, total: int) -> bool:
        """Whether rows exist past this window, judged by the total match count."""
        return self.offset + self.limit < total


def build_event_filter(query: EventQuery) -> Tuple[EventFilter, PaginationWindow]:
    """Build the filter and window for a validated query.

    Results are always ordered newest first by event timestamp; ordering is
    the store's job and is not part of the filter.
    """
    clauses = []
    if query.event_type is not None:
        clauses.append(FilterClause("event_type", FilterOperator.EQ, query.event_type.value))
    if query.user_id is not None:
        clauses.append(FilterClause("user_id", FilterOperator.EQ, query.user_id))
    if query.session_id is not None:
        clauses.append(FilterClause("session_id", FilterOperator.EQ, query.session_id))
    if query.start_date is not None:
        clauses.append(FilterClause("timestamp", FilterOperator.GTE, to_utc(query.start_date)))
    if query.end_date is not None:
        clauses.append(FilterClause("timestamp", FilterOperator.LTE, to_utc(query.end_date)))

    return EventFilter(tuple(clauses)), PaginationWindow(limit=query.limit, offset=query.offset)
