"""
Event and query validation.

Turns untyped request input into typed models, collecting every violated
rule rather than stopping at the first.
"""

import inspect
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, get_args

from pydantic import BaseModel, ValidationError

from ..errors import EventValidationError, UnknownEventType
from .event_types import EventType
from .models import EVENT_VARIANTS, Event, EventQuery


def _violations(exc: ValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into field/rule/message entries."""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]) or "body",
            "rule": error["type"],
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def _nested_model(annotation: Any) -> Optional[type]:
    if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
        return annotation
    for arg in get_args(annotation):
        if inspect.isclass(arg) and issubclass(arg, BaseModel):
            return arg
    return None


def _unknown_fields(model: type, data: Mapping[str, Any], path: Tuple[str, ...] = ()) -> Iterator[str]:
    """Yield dotted paths of properties the model does not define."""
    known = {}
    for name, info in model.model_fields.items():
        known[info.alias or name] = info
        known[name] = info

    for key, value in data.items():
        info = known.get(key)
        if info is None:
            yield ".".join(path + (str(key),))
            continue
        nested = _nested_model(info.annotation)
        if nested is not None and isinstance(value, Mapping):
            yield from _unknown_fields(nested, value, path + (str(key),))


def validate_event(payload: Any, reject_unknown_fields: bool = False) -> Event:
    """Validate a raw payload against the variant its eventType names.

    Args:
        payload: Decoded JSON body
        reject_unknown_fields: Report unrecognised properties as violations
            instead of ignoring them

    Returns:
        A PageViewEvent, ClickEvent or CustomEvent

    Raises:
        UnknownEventType: eventType is missing or not one of the known tags
        EventValidationError: one or more field rules were violated
    """
    if not isinstance(payload, Mapping):
        raise EventValidationError([{
            "field": "body",
            "rule": "dict_type",
            "message": "Request body must be a JSON object",
        }])

    event_type = payload.get("eventType")
    if not EventType.is_valid(event_type):
        raise UnknownEventType(event_type)

    model = EVENT_VARIANTS[EventType(event_type)]
    violations: List[Dict[str, str]] = []
    event = None
    try:
        event = model.model_validate(dict(payload))
    except ValidationError as exc:
        violations.extend(_violations(exc))

    if reject_unknown_fields:
        violations.extend(
            {
                "field": field_path,
                "rule": "extra_forbidden",
                "message": "Extra inputs are not permitted",
            }
            for field_path in _unknown_fields(model, payload)
        )

    if violations:
        raise EventValidationError(violations)
    return event


def validate_query(args: Mapping[str, Any]) -> EventQuery:
    """Validate list-query parameters.

    Args:
        args: Query-string mapping; for multi-valued keys the first value wins

    Raises:
        EventValidationError: a parameter is malformed or out of range
    """
    params = {key: value for key, value in args.items() if value not in (None, "")}
    try:
        return EventQuery.model_validate(params)
    except ValidationError as exc:
        raise EventValidationError(_violations(exc), message="Invalid query parameters")
