"""Database configuration and session management."""

import asyncio
import logging
import os

from sqlalchemy import inspect, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from reelhouse.config import get_settings

settings = get_settings()

# The database runs next to the API; asyncpg should not go looking for
# client SSL material under the home directory.
os.environ.setdefault("PGSSLMODE", "disable")

_engine_options = {"echo": settings.debug, "pool_pre_ping": True}
if settings.async_database_url.startswith("postgresql"):
    _engine_options.update(pool_size=10, max_overflow=20)

# Create async engine
engine = create_async_engine(settings.async_database_url, **_engine_options)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()
logger = logging.getLogger(__name__)


def _is_transient_database_startup_error(exc: BaseException) -> bool:
    """Return whether an exception is likely transient during DB startup."""
    if isinstance(exc, (ConnectionRefusedError, OperationalError)):
        return True

    if isinstance(exc, DBAPIError):
        original_error = getattr(exc, "orig", None)
        if original_error is None:
            return True

        transient_error_names = {
            "CannotConnectNowError",
            "ConnectionDoesNotExistError",
            "ConnectionFailureError",
            "ConnectionRefusedError",
            "TooManyConnectionsError",
        }
        if original_error.__class__.__name__ in transient_error_names:
            return True

        message = str(original_error).lower()
        transient_message_markers = (
            "starting up",
            "in recovery mode",
            "cannot connect now",
            "connection refused",
        )
        if any(marker in message for marker in transient_message_markers):
            return True

    return False


def _existing_columns(sync_conn) -> dict:
    inspector = inspect(sync_conn)
    return {
        table: {column["name"] for column in inspector.get_columns(table)}
        for table in inspector.get_table_names()
    }


async def _apply_schema_migrations(conn) -> None:
    """Add columns declared after a table was first created.

    ``create_all`` never alters existing tables, so databases created by an
    earlier release get the missing columns here. Each step is skipped when
    its column already exists.
    """
    migrations = [
        ("content", "imdb_id", "ALTER TABLE content ADD COLUMN imdb_id VARCHAR(20)"),
        ("content", "omdb_ratings", "ALTER TABLE content ADD COLUMN omdb_ratings JSON"),
        ("content", "omdb_updated_at", "ALTER TABLE content ADD COLUMN omdb_updated_at TIMESTAMP"),
    ]
    existing = await conn.run_sync(_existing_columns)
    for table, column, ddl in migrations:
        if table in existing and column not in existing[table]:
            logger.info("Adding column %s.%s", table, column)
            await conn.execute(text(ddl))


async def init_db() -> None:
    """Create tables, waiting for the database to accept connections.

    Retries with exponential backoff while the error looks like the database
    is still starting; any other error is raised immediately.
    """
    # Register all models on the metadata before create_all.
    import reelhouse.models  # noqa: F401

    max_attempts = 30
    initial_retry_delay_seconds = 1.0

    for attempt in range(1, max_attempts + 1):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
                await _apply_schema_migrations(conn)
            return
        except (ConnectionRefusedError, OperationalError, DBAPIError) as exc:
            if not _is_transient_database_startup_error(exc) or attempt == max_attempts:
                raise

            retry_delay = initial_retry_delay_seconds * (2 ** (attempt - 1))
            logger.warning(
                "Database initialization attempt failed; retrying",
                extra={
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "exception_class": exc.__class__.__name__,
                    "retry_delay_seconds": retry_delay,
                },
            )
            await asyncio.sleep(retry_delay)


async def get_db() -> AsyncSession:
    """Get database session dependency."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
