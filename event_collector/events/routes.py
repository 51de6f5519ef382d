"""
Event Routes

Flask routes for ingesting and querying events.
"""

import logging

from flask import Blueprint, jsonify, request

from ..errors import EventValidationError
from .processor import EventProcessor
from .validation import validate_event, validate_query

logger = logging.getLogger(__name__)


def create_events_blueprint(event_processor: EventProcessor, reject_unknown_fields: bool = False) -> Blueprint:
    """Create a Flask blueprint for the events API.

    Args:
        event_processor: Service handling event writes and reads
        reject_unknown_fields: Treat unrecognised event properties as violations

    Returns:
        Flask blueprint mounted at /api/events
    """
    bp = Blueprint('events', __name__, url_prefix='/api/events')

    @bp.route("", methods=["POST"], strict_slashes=False)
    def create_event():
        """Validate, enrich and store one event."""
        payload = request.get_json(silent=True)
        if payload is None:
            raise EventValidationError([{
                "field": "body",
                "rule": "json_invalid",
                "message": "Request body must be valid JSON",
            }])

        event = validate_event(payload, reject_unknown_fields=reject_unknown_fields)
        stored = event_processor.process_event(
            event,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )

        stored_dict = stored.to_dict()
        return jsonify({
            "success": True,
            "data": {
                "id": stored_dict["id"],
                "eventType": stored_dict["eventType"],
                "timestamp": stored_dict["timestamp"],
            },
        }), 201

    @bp.route("", methods=["GET"], strict_slashes=False)
    def list_events():
        """List events with optional filters and pagination."""
        query = validate_query(request.args)
        result = event_processor.get_events(query)
        return jsonify({"success": True, **result.to_dict()})

    @bp.route("/statistics", methods=["GET"])
    def get_statistics():
        """Aggregate statistics over all stored events."""
        stats = event_processor.get_statistics()
        return jsonify({"success": True, "data": stats.to_dict()})

    @bp.route("/<event_id>", methods=["GET"])
    def get_event(event_id: str):
        """Get one event by id."""
        event = event_processor.get_event_by_id(event_id)
        if event is None:
            return jsonify({"success": False, "error": "Event not found"}), 404
        return jsonify({"success": True, "data": event.to_dict()})

    return bp
