# tests/unit/test_market_persistence.py
"""Unit tests for MarketRepository / PostRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.am_common.errors import InternalError
from src.am_market.domain.models import Bid
from src.am_market.infrastructure.persistence import MarketRepository
from src.am_post.infrastructure.persistence import PostRepository

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_post_row(**kwargs):
    """Build a mock posts row with all required fields."""
    row = MagicMock()
    row.id = kwargs.get("id", "1001")
    row.author_id = kwargs.get("author_id", "11111111-1111-1111-1111-111111111111")
    row.title = "Harbour at dusk"
    row.description = None
    row.image_url = "https://img.example.com/h.jpg"
    row.image_key = None
    row.category = "painting"
    row.is_in_market = kwargs.get("is_in_market", True)
    row.starting_price = kwargs.get("starting_price", Decimal("100.00"))
    row.reserve_price = None
    row.auction_end_at = kwargs.get("auction_end_at", NOW)
    row.created_at = NOW
    row.updated_at = NOW
    return row


def _make_bid_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", "5001")
    row.post_id = kwargs.get("post_id", "1001")
    row.bidder_id = kwargs.get("bidder_id", "22222222-2222-2222-2222-222222222222")
    row.amount = kwargs.get("amount", Decimal("150.00"))
    row.created_at = NOW
    row.updated_at = None
    row.bidder_name = kwargs.get("bidder_name", "Ada Lovelace")
    return row


def _fetchone(db, row) -> None:
    result = MagicMock()
    result.fetchone.return_value = row
    db.execute = AsyncMock(return_value=result)


def _sql(db) -> str:
    return str(db.execute.call_args.args[0])


@pytest.fixture
def db():
    return MagicMock()


class TestPostLocking:
    async def test_lock_post_uses_for_update(self, db):
        _fetchone(db, _make_post_row())

        post = await MarketRepository().lock_post(db, "1001")

        assert post.id == "1001"
        assert "FOR UPDATE" in _sql(db)

    async def test_get_post_returns_none_when_missing(self, db):
        _fetchone(db, None)

        assert await PostRepository().get_post(db, "nope") is None

    async def test_author_id_is_stringified(self, db):
        import uuid

        author = uuid.UUID("11111111-1111-1111-1111-111111111111")
        _fetchone(db, _make_post_row(author_id=author))

        post = await PostRepository().get_post(db, "1001")

        assert post.author_id == str(author)


class TestSetMarketFields:
    async def test_passes_all_fields(self, db):
        _fetchone(db, _make_post_row())

        post = await MarketRepository().set_market_fields(
            db, "1001", True, Decimal("100.00"), None, NOW
        )

        params = db.execute.call_args.args[1]
        assert params == {
            "post_id": "1001",
            "is_in_market": True,
            "starting_price": Decimal("100.00"),
            "reserve_price": None,
            "auction_end_at": NOW,
        }
        assert post.starting_price == Decimal("100.00")

    async def test_missing_row_is_internal_error(self, db):
        _fetchone(db, None)

        with pytest.raises(InternalError):
            await MarketRepository().set_market_fields(db, "1001", False, None, None, None)


class TestBids:
    async def test_get_highest_amount(self, db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = Decimal("151.00")
        db.execute = AsyncMock(return_value=result)

        amount = await MarketRepository().get_highest_amount(db, "1001")

        assert amount == Decimal("151.00")
        assert "MAX(amount)" in _sql(db)

    async def test_insert_bid(self, db):
        _fetchone(db, _make_bid_row())
        bid = Bid(
            id="5001", post_id="1001",
            bidder_id="22222222-2222-2222-2222-222222222222",
            amount=Decimal("150.00"), created_at=NOW,
        )

        saved = await MarketRepository().insert_bid(db, bid)

        assert saved.amount == Decimal("150.00")
        assert db.execute.call_args.args[1]["created_at"] == NOW

    async def test_update_keeps_row_identity(self, db):
        _fetchone(db, _make_bid_row(amount=Decimal("200.00")))

        updated = await MarketRepository().update_bid_amount(db, "5001", Decimal("200.00"))

        assert updated.id == "5001"
        assert "UPDATE bids" in _sql(db)
        assert "created_at" not in _sql(db).split("SET")[1].split("WHERE")[0]

    async def test_update_missing_row_is_internal_error(self, db):
        _fetchone(db, None)

        with pytest.raises(InternalError):
            await MarketRepository().update_bid_amount(db, "5001", Decimal("1"))

    async def test_list_bids_newest_first_with_names(self, db):
        result = MagicMock()
        result.fetchall.return_value = [_make_bid_row(id="2"), _make_bid_row(id="1")]
        db.execute = AsyncMock(return_value=result)

        bids = await MarketRepository().list_bids_for_post(db, "1001")

        assert [b.id for b in bids] == ["2", "1"]
        assert bids[0].bidder_name == "Ada Lovelace"
        assert "ORDER BY b.created_at DESC" in _sql(db)


class TestReadViews:
    async def test_list_listings_maps_top_bid(self, db):
        row = _make_post_row()
        row.top_bid_id = "5001"
        row.top_bidder_id = "22222222-2222-2222-2222-222222222222"
        row.top_amount = Decimal("175.00")
        row.top_bidder_name = "Alice Neel"
        row.author_name = "Mary Cassatt"
        row.bid_count = 4
        result = MagicMock()
        result.fetchall.return_value = [row]
        db.execute = AsyncMock(return_value=result)

        listings = await MarketRepository().list_listings(db, "active", None, NOW, 12, 0)

        assert listings[0].top_bid.amount == Decimal("175.00")
        assert listings[0].bid_count == 4
        assert listings[0].top_bid.bidder_name == "Alice Neel"
        assert listings[0].author_name == "Mary Cassatt"
        assert "JOIN users au ON au.id = p.author_id" in _sql(db)
        assert "JOIN users lu ON lu.id = lb.bidder_id" in _sql(db)
        params = db.execute.call_args.args[1]
        assert params["status"] == "active"
        assert params["limit"] == 12 and params["offset"] == 0

    async def test_listing_without_bids(self, db):
        row = _make_post_row()
        row.top_bid_id = None
        row.bid_count = 0
        row.author_name = None
        result = MagicMock()
        result.fetchall.return_value = [row]
        db.execute = AsyncMock(return_value=result)

        listings = await MarketRepository().list_listings(db, "ended", "painting", NOW, 12, 0)

        assert listings[0].top_bid is None

    async def test_leader_ordering_in_sql(self, db):
        result = MagicMock()
        result.fetchall.return_value = []
        db.execute = AsyncMock(return_value=result)

        await MarketRepository().list_listings(db, "active", None, NOW, 12, 0)

        assert "ORDER BY lb.amount DESC, lb.created_at ASC, lb.id ASC" in _sql(db)

    async def test_market_counts(self, db):
        row = MagicMock(active_auctions=3, ended_auctions=2, total_bids=11)
        _fetchone(db, row)

        counts = await MarketRepository().get_market_counts(db, NOW)

        assert (counts.active_auctions, counts.ended_auctions, counts.total_bids) == (3, 2, 11)

    async def test_most_bid_ended_none(self, db):
        _fetchone(db, None)

        assert await MarketRepository().get_most_bid_ended_listing(db, NOW) is None
