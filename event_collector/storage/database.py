"""
Event store connection management.

A Database owns one SQLAlchemy engine (and so one bounded connection pool)
for the lifetime of the process. It is created at startup and passed to
whatever needs it; there is no global instance.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config_manager import DatabaseConfig
from ..errors import StoreUnavailable
from .models import Base

logger = logging.getLogger(__name__)


def _create_engine(config: DatabaseConfig) -> Engine:
    if config.url in ("sqlite://", "sqlite:///:memory:"):
        # An in-memory database only exists on a single shared connection
        return create_engine(
            config.url,
            echo=config.echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if config.url.startswith("sqlite"):
        return create_engine(
            config.url,
            echo=config.echo,
            connect_args={"check_same_thread": False, "timeout": config.pool_timeout},
        )
    return create_engine(
        config.url,
        echo=config.echo,
        pool_size=config.pool_size,
        pool_timeout=config.pool_timeout,
        pool_pre_ping=True,
    )


class Database:
    """Process-scoped handle on the event store."""

    def __init__(self, config: DatabaseConfig):
        """Create the engine. No connection is opened until connect() or first use.

        Args:
            config: Database URL and pool settings
        """
        self.config = config
        self.engine = _create_engine(config)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def connect(self) -> None:
        """Create missing tables and verify the store is reachable.

        Raises:
            StoreUnavailable: the database cannot be reached
        """
        try:
            Base.metadata.create_all(self.engine)
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to database: {e}")
            raise StoreUnavailable() from e
        logger.info(f"Database connection successful: {self.engine.url.render_as_string(hide_password=True)}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session bound to a pooled connection, closing it afterwards."""
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def health_check(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def disconnect(self) -> None:
        """Dispose of the pool and close all connections."""
        self.engine.dispose()
        logger.info("Database connection closed")
