"""Async SQLAlchemy session factory."""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings, get_settings


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    Make SQLite behave like the production database for our purposes.

    Foreign keys are off by default in SQLite, so ON DELETE CASCADE would be
    ignored. The driver's implicit transaction handling also breaks SAVEPOINT,
    so BEGIN is emitted explicitly.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    if settings.is_sqlite:
        engine = create_async_engine(settings.database_url, echo=False)
        configure_sqlite(engine)
        return engine

    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


def is_missing_table_error(error: Exception, table_name: str) -> bool:
    """
    Check whether a database error means `table_name` does not exist yet.

    Covers SQLite ("no such table: x") and PostgreSQL ('relation "x" does not exist').
    """
    if not isinstance(error, DBAPIError):
        return False
    message = str(error.orig if error.orig is not None else error).lower()
    return (
        f"no such table: {table_name}" in message
        or f'relation "{table_name}" does not exist' in message
    )


settings = get_settings()

engine = build_engine(settings)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Yield an async database session.

    Uses unit-of-work pattern: services use flush() for refreshing objects,
    commit happens once here at request end. This ensures atomic transactions
    per request - if anything fails, all changes are rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
