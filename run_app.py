#!/usr/bin/env python3
"""
Runner script for the Event Collector API.
Builds the event store once, serves the Flask app, and closes the store on exit.
"""

import logging

from config_manager import config_manager
from event_collector.logging_config import setup_logging, stop_logging
from event_collector.main import create_app
from event_collector.storage.database import Database

logger = logging.getLogger("event_collector")


def main() -> None:
    app_config = config_manager.get_app_config()
    setup_logging(config_manager.get_logging_config().level, debug=app_config.debug)

    database = Database(config_manager.get_database_config())
    try:
        database.connect()
        app = create_app(config_manager, database=database)

        logger.info(
            f"Server is running on {app_config.host}:{app_config.port} "
            f"(environment={app_config.environment})"
        )
        app.run(
            host=app_config.host,
            port=app_config.port,
            debug=app_config.debug,
            threaded=True,
            use_reloader=False
        )
    finally:
        logger.info("Shutting down")
        database.disconnect()
        stop_logging()


if __name__ == "__main__":
    main()
