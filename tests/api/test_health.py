"""Tests for the health check endpoint."""
from unittest.mock import AsyncMock

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession


async def test_health_check(client: AsyncClient) -> None:
    """Test the health endpoint with a working database."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "healthy"}


async def test_health_check_database_down(
    client: AsyncClient, db_session: AsyncSession, monkeypatch,
) -> None:
    """Test that a database failure reports degraded instead of erroring."""
    monkeypatch.setattr(
        db_session,
        "execute",
        AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("down"))),
    )
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "degraded", "database": "unhealthy"}
