"""Integration-test fixtures.

These tests need a migrated PostgreSQL and a Redis (`alembic upgrade head`)
and are skipped unless RUN_INTEGRATION=1.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import os
from collections.abc import Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from tests.integration.helpers import unique_user

# Not collected at all unless explicitly asked for
if os.environ.get("RUN_INTEGRATION") != "1":
    collect_ignore_glob = ["test_*.py"]


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def register_and_login(client: AsyncClient) -> Callable[[], Awaitable[tuple[str, dict]]]:
    """Factory: register a fresh user, return (user_id, auth headers)."""

    async def _make() -> tuple[str, dict]:
        user = unique_user()
        reg = await client.post("/api/v1/auth/register", json=user)
        login = await client.post(
            "/api/v1/auth/login", json={"email": user["email"], "password": user["password"]}
        )
        token = login.json()["data"]["access_token"]
        return reg.json()["data"]["user_id"], {"Authorization": f"Bearer {token}"}

    return _make
