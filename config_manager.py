"""
Configuration management for the Event Collector API.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool
    environment: str
    trust_proxy: bool

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@dataclass
class DatabaseConfig:
    """Event store connection settings."""
    url: str
    pool_size: int
    pool_timeout: float
    echo: bool


@dataclass
class EventsConfig:
    """Event validation and processing settings."""
    future_tolerance_minutes: int
    max_age_days: int
    reject_unknown_fields: bool
    statistics_workers: int


@dataclass
class HttpConfig:
    """HTTP surface settings: CORS, body size and rate limiting."""
    cors_origin: str
    max_content_length: int
    rate_limit_enabled: bool
    rate_limit_window_ms: int
    rate_limit_max_requests: int

    @property
    def rate_limit(self) -> str:
        """Limit string for the events API, e.g. "100 per 900 second"."""
        window_seconds = max(1, self.rate_limit_window_ms // 1000)
        return f"{self.rate_limit_max_requests} per {window_seconds} second"


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "event_collector_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 3000,
                "debug": False,
                "environment": "development",
                "trust_proxy": False
            },
            "database": {
                "url": "sqlite:///event_collector.db",
                "pool_size": 20,
                "pool_timeout": 2.0,
                "echo": False
            },
            "events": {
                "future_tolerance_minutes": 5,
                "max_age_days": 30,
                "reject_unknown_fields": False,
                "statistics_workers": 4
            },
            "http": {
                "cors_origin": "*",
                "max_content_length": 10 * 1024 * 1024,
                "rate_limit_enabled": True,
                "rate_limit_window_ms": 15 * 60 * 1000,
                "rate_limit_max_requests": 100
            },
            "logging": {
                "level": "INFO"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = _env_flag(os.getenv("APP_DEBUG"))

        if os.getenv("APP_ENV"):
            self._config["app"]["environment"] = os.getenv("APP_ENV")

        if os.getenv("TRUST_PROXY"):
            self._config["app"]["trust_proxy"] = _env_flag(os.getenv("TRUST_PROXY"))

        # Database settings
        if os.getenv("DATABASE_URL"):
            self._config["database"]["url"] = os.getenv("DATABASE_URL")

        if os.getenv("DB_POOL_SIZE"):
            self._config["database"]["pool_size"] = int(os.getenv("DB_POOL_SIZE"))

        if os.getenv("DB_POOL_TIMEOUT"):
            self._config["database"]["pool_timeout"] = float(os.getenv("DB_POOL_TIMEOUT"))

        if os.getenv("DB_ECHO"):
            self._config["database"]["echo"] = _env_flag(os.getenv("DB_ECHO"))

        # Event processing settings
        if os.getenv("EVENT_FUTURE_TOLERANCE_MINUTES"):
            self._config["events"]["future_tolerance_minutes"] = int(os.getenv("EVENT_FUTURE_TOLERANCE_MINUTES"))

        if os.getenv("EVENT_MAX_AGE_DAYS"):
            self._config["events"]["max_age_days"] = int(os.getenv("EVENT_MAX_AGE_DAYS"))

        if os.getenv("EVENT_REJECT_UNKNOWN_FIELDS"):
            self._config["events"]["reject_unknown_fields"] = _env_flag(os.getenv("EVENT_REJECT_UNKNOWN_FIELDS"))

        if os.getenv("STATISTICS_WORKERS"):
            self._config["events"]["statistics_workers"] = int(os.getenv("STATISTICS_WORKERS"))

        # HTTP settings
        if os.getenv("CORS_ORIGIN"):
            self._config["http"]["cors_origin"] = os.getenv("CORS_ORIGIN")

        if os.getenv("MAX_CONTENT_LENGTH"):
            self._config["http"]["max_content_length"] = int(os.getenv("MAX_CONTENT_LENGTH"))

        if os.getenv("RATE_LIMIT_ENABLED"):
            self._config["http"]["rate_limit_enabled"] = _env_flag(os.getenv("RATE_LIMIT_ENABLED"))

        if os.getenv("RATE_LIMIT_WINDOW_MS"):
            self._config["http"]["rate_limit_window_ms"] = int(os.getenv("RATE_LIMIT_WINDOW_MS"))

        if os.getenv("RATE_LIMIT_MAX_REQUESTS"):
            self._config["http"]["rate_limit_max_requests"] = int(os.getenv("RATE_LIMIT_MAX_REQUESTS"))

        # Logging settings
        if os.getenv("LOG_LEVEL"):
            self._config["logging"]["level"] = os.getenv("LOG_LEVEL").upper()

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"],
            environment=app_config["environment"],
            trust_proxy=app_config["trust_proxy"]
        )

    def get_database_config(self) -> DatabaseConfig:
        """Get event store configuration."""
        db_config = self._config["database"]
        return DatabaseConfig(
            url=db_config["url"],
            pool_size=db_config["pool_size"],
            pool_timeout=db_config["pool_timeout"],
            echo=db_config["echo"]
        )

    def get_events_config(self) -> EventsConfig:
        """Get event processing configuration."""
        events_config = self._config["events"]
        return EventsConfig(
            future_tolerance_minutes=events_config["future_tolerance_minutes"],
            max_age_days=events_config["max_age_days"],
            reject_unknown_fields=events_config["reject_unknown_fields"],
            statistics_workers=events_config["statistics_workers"]
        )

    def get_http_config(self) -> HttpConfig:
        """Get HTTP surface configuration."""
        http_config = self._config["http"]
        return HttpConfig(
            cors_origin=http_config["cors_origin"],
            max_content_length=http_config["max_content_length"],
            rate_limit_enabled=http_config["rate_limit_enabled"],
            rate_limit_window_ms=http_config["rate_limit_window_ms"],
            rate_limit_max_requests=http_config["rate_limit_max_requests"]
        )

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        return LoggingConfig(level=self._config["logging"]["level"])

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()


# Global configuration instance
config_manager = ConfigManager()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_database_config() -> DatabaseConfig:
    """Get event store configuration."""
    return config_manager.get_database_config()


def get_events_config() -> EventsConfig:
    """Get event processing configuration."""
    return config_manager.get_events_config()


def get_http_config() -> HttpConfig:
    """Get HTTP surface configuration."""
    return config_manager.get_http_config()


def get_logging_config() -> LoggingConfig:
    """Get logging configuration."""
    return config_manager.get_logging_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()
