"""Pytest fixtures for testing."""
import os

# Must be set before any app import triggers Settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from collections.abc import AsyncGenerator  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.config import Settings  # noqa: E402
from db.session import configure_sqlite  # noqa: E402
from models.base import Base  # noqa: E402

TEST_APP_URL = "http://app.example"
TEST_EXTENSION_ORIGIN = "chrome-extension://test-extension-id"


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings for tests: SQLite, no API token, storage in a temp dir, no external services."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        api_token=None,
        app_url=TEST_APP_URL,
        extension_origin=TEST_EXTENSION_ORIGIN,
        screenshot_api_url=None,
        screenshot_api_key=None,
        storage_dir=str(tmp_path / "media"),
        storage_public_url="http://test/media",
        openai_api_key="test-key",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory SQLite engine with the schema."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_connection(async_engine: AsyncEngine) -> AsyncGenerator[AsyncConnection]:
    """
    Create a connection with a transaction that will be rolled back after the test.

    This provides test isolation - each test runs in its own transaction
    that is rolled back, so tests don't affect each other.
    """
    async with async_engine.connect() as connection:
        transaction = await connection.begin()
        try:
            yield connection
        finally:
            await transaction.rollback()


@pytest.fixture
async def db_session(db_connection: AsyncConnection) -> AsyncGenerator[AsyncSession]:
    """
    Create an async session bound to the test transaction.

    Uses savepoints so the session's flush/commit work within the outer
    test transaction.
    """
    session_factory = async_sessionmaker(
        bind=db_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(
    db_session: AsyncSession,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient]:
    """
    Create a test client with database session and settings overrides.

    Requests carry a same-origin Origin header, so write endpoints are
    authorized through the same-origin rule unless a test says otherwise.
    """
    from api.main import app
    from core.config import get_settings
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Origin": "http://test"},
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
