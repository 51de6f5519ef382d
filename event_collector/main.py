"""
Flask application factory for the Event Collector API.
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

import config_manager as config_module
from config_manager import ConfigManager, HttpConfig
from . import __version__
from .errors import EventCollectorError, StoreError
from .events.enrichment import GeoLocator
from .events.factory import create_events_module
from .health.routes import create_health_blueprint
from .storage.database import Database

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[ConfigManager] = None,
    database: Optional[Database] = None,
    geo_locator: Optional[GeoLocator] = None,
) -> Flask:
    """Build the Flask app with its event store wired in.

    Args:
        config: Configuration source; the global ConfigManager if omitted
        database: Connected store handle; one is built and connected from
            config if omitted. The caller owns its shutdown either way.
        geo_locator: Optional IP lookup replacing the built-in placeholder

    Returns:
        Configured Flask application
    """
    config = config or config_module.config_manager
    app_config = config.get_app_config()
    http_config = config.get_http_config()

    app = Flask(__name__)
    app.config["DEBUG"] = app_config.debug
    app.config["MAX_CONTENT_LENGTH"] = http_config.max_content_length
    if app_config.trust_proxy:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=1,     # client IP from X-Forwarded-For
            x_proto=1,
            x_host=1)

    if database is None:
        database = Database(config.get_database_config())
        database.connect()
    app.extensions["event_collector.database"] = database

    _register_request_logging(app)
    CORS(
        app,
        origins=http_config.cors_origin,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"])
    limiter = _create_limiter(app, http_config)

    events_module = create_events_module(database, config.get_events_config(), geo_locator)
    app.extensions["event_collector.processor"] = events_module["service"]
    limiter.limit(http_config.rate_limit)(events_module["blueprint"])
    app.register_blueprint(events_module["blueprint"])
    app.register_blueprint(create_health_blueprint(database))

    _register_error_handlers(app, expose_internal_errors=not app_config.is_production)

    @app.route("/", methods=["GET"])
    def index():
        """Describe the API."""
        return jsonify({
            "name": "Event Collector API",
            "version": __version__,
            "description": "API for collecting and validating marketing/analytics events",
            "endpoints": {
                "health": "/health",
                "events": "/api/events",
                "statistics": "/api/events/statistics",
            },
        })

    return app


def _create_limiter(app: Flask, http_config: HttpConfig) -> Limiter:
    """Per-client-IP limiter; only blueprints it is applied to are limited."""
    return Limiter(
        get_remote_address,
        app=app,
        storage_uri="memory://",
        headers_enabled=True,
        enabled=http_config.rate_limit_enabled,
    )


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def log_request():
        logger.info(
            f"Incoming request: method={request.method}, path={request.path}, "
            f"ip={request.remote_addr}, user_agent={request.headers.get('User-Agent')}"
        )


def _register_error_handlers(app: Flask, expose_internal_errors: bool) -> None:
    @app.errorhandler(EventCollectorError)
    def handle_collector_error(error: EventCollectorError):
        body = error.to_dict()
        if isinstance(error, StoreError):
            logger.error(
                f"Store error: method={request.method}, path={request.path}, "
                f"error={error.message}, cause={error.__cause__!r}"
            )
            if expose_internal_errors and error.__cause__ is not None:
                body["cause"] = type(error.__cause__).__name__
        else:
            logger.info(f"Request rejected: path={request.path}, error={error.message}")
        return jsonify(body), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"success": False, "error": "Resource not found", "path": request.path}), 404

    @app.errorhandler(429)
    def handle_rate_limited(error):
        logger.warning(f"Rate limit exceeded: ip={request.remote_addr}, path={request.path}")
        return jsonify({
            "success": False,
            "error": "Too many requests from this IP, please try again later.",
        }), 429

    @app.errorhandler(413)
    def handle_too_large(error):
        return jsonify({"success": False, "error": "Request body too large"}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"success": False, "error": error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception(f"Unhandled error: method={request.method}, path={request.path}")
        message = f"{type(error).__name__}: {error}" if expose_internal_errors else "Internal server error"
        return jsonify({"success": False, "error": message}), 500
