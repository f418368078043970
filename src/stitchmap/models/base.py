"""Base model configuration."""
from datetime import UTC, datetime
from typing import Any, Dict, Generator

from sqlalchemy import Column, DateTime, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from stitchmap.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """Extra engine options for the configured database URL."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        # Share the single in-memory database between all sessions
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {}


# Create SQLAlchemy engine
engine = create_engine(
    settings.database.url,
    echo=settings.database.echo,
    **_engine_options(settings.database.url),
)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign keys on SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base class
Base = declarative_base()


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the timezone)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database."""
    # Register the mapped classes before creating tables
    import stitchmap.models.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_db() -> None:
    """Drop all tables."""
    Base.metadata.drop_all(bind=engine)
