"""HTTP-level tests for the market router (no DB, no Redis).

Services are swapped for the in-memory repository; auth and the DB session
are replaced through FastAPI dependency overrides.
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.am_common.database import get_db_session
from src.am_gateway.auth.dependencies import get_current_user
from src.am_gateway.user.db_models import UserModel
from src.am_market.api import router as market_router
from src.am_market.application.bid_service import BidService
from src.am_market.application.listing_service import ListingService
from src.am_market.application.query_service import MarketQueryService
from src.main import app
from tests.unit.fakes import (
    ALICE,
    SELLER,
    FakeClock,
    InMemoryMarketRepository,
    make_listed_post,
    make_post,
)


def _user(user_id: str) -> UserModel:
    user = UserModel()
    user.id = uuid.UUID(user_id)
    user.is_banned = False
    return user


@pytest.fixture
def market(monkeypatch):
    repo = InMemoryMarketRepository()
    clock = FakeClock()
    monkeypatch.setattr(market_router, "_listings", ListingService(repo=repo, clock=clock))
    monkeypatch.setattr(market_router, "_bids", BidService(repo=repo, clock=clock))
    monkeypatch.setattr(market_router, "_queries", MarketQueryService(repo=repo, clock=clock))

    async def _session():
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _session
    yield repo
    app.dependency_overrides.clear()


def _login_as(user_id: str) -> None:
    app.dependency_overrides[get_current_user] = lambda: _user(user_id)


class TestPublicViews:
    async def test_listings_envelope(self, client, market) -> None:
        market.add_post(make_listed_post("1"))

        resp = await client.get("/api/v1/market")

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["items"][0]["current_price"] == "100.00"
        assert body["data"]["pagination"] == {"page": 1, "page_size": 12, "total": 1, "pages": 1}

    async def test_bad_status_filter(self, client, market) -> None:
        resp = await client.get("/api/v1/market", params={"status": "sold"})
        assert resp.status_code == 422

    async def test_page_size_bounds(self, client, market) -> None:
        resp = await client.get("/api/v1/market", params={"page_size": 101})
        assert resp.status_code == 422

    async def test_stats_route_not_shadowed(self, client, market) -> None:
        resp = await client.get("/api/v1/market/stats")

        assert resp.status_code == 200
        assert resp.json()["data"]["highest_sale"] is None

    async def test_detail_not_found_envelope(self, client, market) -> None:
        resp = await client.get("/api/v1/market/auctions/nope")

        assert resp.status_code == 404
        assert resp.json()["code"] == 2001
        assert resp.json()["data"] is None


class TestAuthenticatedFlows:
    async def test_requires_token(self, client, market) -> None:
        resp = await client.post("/api/v1/market/1/bids", json={"amount": "10"})
        assert resp.status_code == 401

    async def test_list_bid_and_detail(self, client, market) -> None:
        market.add_post(make_post("1"))

        _login_as(SELLER)
        listed = await client.post(
            "/api/v1/market/1/list",
            json={"starting_price": "100", "duration_hours": 24},
        )
        assert listed.status_code == 200
        assert listed.json()["data"]["is_in_market"] is True

        _login_as(ALICE)
        bid = await client.post("/api/v1/market/1/bids", json={"amount": "150.00"})
        assert bid.status_code == 201
        assert bid.json()["data"]["replaced"] is False

        low = await client.post("/api/v1/market/1/bids", json={"amount": "150.00"})
        assert low.status_code == 400
        assert low.json()["code"] == 4003

        detail = await client.get("/api/v1/market/auctions/1")
        data = detail.json()["data"]
        assert data["leader"]["bidder_id"] == ALICE
        assert data["current_price_display"] == "$150.00"

        mine = await client.get("/api/v1/market/my-bids")
        assert mine.json()["data"]["items"][0]["is_winning"] is True

    async def test_self_bid_forbidden(self, client, market) -> None:
        market.add_post(make_listed_post("1"))
        _login_as(SELLER)

        resp = await client.post("/api/v1/market/1/bids", json={"amount": "500"})

        assert resp.status_code == 403
        assert resp.json()["code"] == 4001

    async def test_unlist_blocked_by_bids(self, client, market) -> None:
        market.add_post(make_listed_post("1", ends_in=timedelta(hours=2)))
        _login_as(ALICE)
        await client.post("/api/v1/market/1/bids", json={"amount": "101"})

        _login_as(SELLER)
        resp = await client.delete("/api/v1/market/1/list")

        assert resp.status_code == 400
        assert resp.json()["code"] == 3003

    async def test_invalid_listing_terms(self, client, market) -> None:
        market.add_post(make_post("1"))
        _login_as(SELLER)

        resp = await client.post(
            "/api/v1/market/1/list", json={"starting_price": "0", "duration_hours": 1}
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == 3004


async def test_health(client) -> None:
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"
