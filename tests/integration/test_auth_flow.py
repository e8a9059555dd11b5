"""Integration tests for auth flow (requires running PG + Redis)."""

import pytest
from httpx import AsyncClient

from tests.integration.helpers import unique_user

pytestmark = pytest.mark.asyncio(loop_scope="session")


class TestRegister:
    async def test_register_success(self, client: AsyncClient) -> None:
        user = unique_user()
        resp = await client.post("/api/v1/auth/register", json=user)
        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["email"] == user["email"]
        assert "user_id" in body["data"]
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_register_duplicate_email_any_case(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        resp = await client.post(
            "/api/v1/auth/register", json={**user, "email": user["email"].upper()}
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 1001

    async def test_register_weak_password(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/auth/register", json={**unique_user(), "password": "short"}
        )
        assert resp.status_code == 422


class TestLoginAndRefresh:
    async def test_login_then_refresh(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)

        login = await client.post(
            "/api/v1/auth/login", json={"email": user["email"], "password": user["password"]}
        )
        assert login.status_code == 200
        data = login.json()["data"]
        assert data["token_type"] == "Bearer"
        assert data["user"]["first_name"] == "Test"

        refreshed = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]}
        )
        assert refreshed.status_code == 200
        assert refreshed.json()["data"]["access_token"]

    async def test_wrong_password(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        resp = await client.post(
            "/api/v1/auth/login", json={"email": user["email"], "password": "WrongPass9"}
        )
        assert resp.status_code == 401
        assert resp.json()["code"] == 1002
