"""
Health Check Routes
"""

import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify

from ..storage.database import Database


def create_health_blueprint(database: Database) -> Blueprint:
    """Create a blueprint reporting process uptime and store reachability.

    Args:
        database: Event store handle to probe

    Returns:
        Flask blueprint mounted at /health
    """
    bp = Blueprint('health', __name__, url_prefix='/health')
    started_at = time.monotonic()

    @bp.route("", methods=["GET"], strict_slashes=False)
    def health_check():
        """Report healthy (200) or unhealthy (503)."""
        start = time.monotonic()
        database_ok = database.health_check()
        elapsed_ms = int((time.monotonic() - start) * 1000)

        return jsonify({
            "status": "healthy" if database_ok else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "uptime": round(time.monotonic() - started_at, 3),
            "checks": {"database": database_ok},
            "responseTime": f"{elapsed_ms}ms",
        }), 200 if database_ok else 503

    return bp
