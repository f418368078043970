"""Configuration settings for the work session engine."""
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)

# Marker rendered when the next stitch would finish the pattern
DEFAULT_END_MARKER = "END"


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///stitchmap.db"))
    echo: bool = field(default_factory=lambda: os.getenv("DATABASE_ECHO", "false").lower() == "true")


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = field(default_factory=lambda: os.getenv("LOG_DIR", None))
    rotation: str = field(default_factory=lambda: os.getenv("LOG_ROTATION", "midnight"))
    interval: int = field(default_factory=lambda: int(os.getenv("LOG_INTERVAL", "1")))
    backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "7")))


@dataclass
class SessionSettings:
    """Work session settings."""
    completed_page_size: int = field(default_factory=lambda: int(os.getenv("COMPLETED_PAGE_SIZE", "5")))
    end_marker: str = field(default_factory=lambda: os.getenv("SESSION_END_MARKER", DEFAULT_END_MARKER))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    enabled: bool = field(default_factory=lambda: os.getenv("METRICS_ENABLED", "false").lower() == "true")
    port: int = field(default_factory=lambda: int(os.getenv("METRICS_PORT", "9090")))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_session_settings() -> SessionSettings:
    """Get work session settings."""
    return SessionSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    session: SessionSettings = field(default_factory=get_session_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.database.url:
            raise ValueError("DATABASE_URL is required")

        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ValueError(f"LOG_LEVEL {self.logging.level!r} is not a logging level")

        if self.session.completed_page_size < 1:
            raise ValueError("COMPLETED_PAGE_SIZE must be positive")

        if not self.session.end_marker:
            raise ValueError("SESSION_END_MARKER cannot be empty")

        if not 0 < self.monitoring.port < 65536:
            raise ValueError("METRICS_PORT must be between 1 and 65535")


# Create global settings instance
settings = Settings()
settings.validate()
