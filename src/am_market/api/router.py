"""am_market REST endpoints.

GET    /market                      paginated listings (public)
GET    /market/stats                market-wide counts + highest sale (public)
GET    /market/my-bids              the caller's standing bids (auth)
GET    /market/auctions/{post_id}   auction detail with bid history (public)
POST   /market/{post_id}/list       put an own post up for auction (auth)
DELETE /market/{post_id}/list       withdraw a listing with no bids (auth)
POST   /market/{post_id}/bids       place or raise a bid (auth)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.am_common.database import get_db_session
from src.am_common.enums import BidStatus, ListingStatus
from src.am_common.response import ApiResponse, respond
from src.am_gateway.auth.dependencies import get_current_user
from src.am_gateway.user.db_models import UserModel
from src.am_market.application.bid_service import BidService
from src.am_market.application.listing_service import ListingService
from src.am_market.application.query_service import MarketQueryService
from src.am_market.application.schemas import ListPostRequest, PlaceBidRequest

router = APIRouter(prefix="/market", tags=["market"])

_listings = ListingService()
_bids = BidService()
_queries = MarketQueryService()


# Static paths first so "/stats" and "/my-bids" never match "/{post_id}/..."


@router.get("")
async def list_market(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: ListingStatus = Query(ListingStatus.ACTIVE),
    category: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=100),
) -> ApiResponse:
    result = await _queries.get_market_listings(
        db,
        status=status,
        page=page,
        page_size=page_size or settings.MARKET_PAGE_SIZE_DEFAULT,
        category=category,
    )
    return respond(request, result)


@router.get("/stats")
async def market_stats(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _queries.get_market_stats(db)
    return respond(request, result)


@router.get("/my-bids")
async def my_bids(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: BidStatus = Query(BidStatus.ALL),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=100),
) -> ApiResponse:
    result = await _queries.get_user_bids(
        db,
        str(current_user.id),
        status=status,
        page=page,
        page_size=page_size or settings.MY_BIDS_PAGE_SIZE_DEFAULT,
    )
    return respond(request, result)


@router.get("/auctions/{post_id}")
async def auction_detail(
    post_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _queries.get_auction_detail(db, post_id)
    return respond(request, result)


@router.post("/{post_id}/list")
async def list_post(
    post_id: str,
    body: ListPostRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _listings.list_post(
        db,
        post_id,
        str(current_user.id),
        body.starting_price,
        body.reserve_price,
        body.duration_hours,
    )
    return respond(request, result, "Post listed in market")


@router.delete("/{post_id}/list")
async def unlist_post(
    post_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _listings.unlist_post(db, post_id, str(current_user.id))
    return respond(request, result, "Post removed from market")


@router.post("/{post_id}/bids", status_code=status.HTTP_201_CREATED)
async def place_bid(
    post_id: str,
    body: PlaceBidRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _bids.place_bid(db, post_id, str(current_user.id), body.amount)
    return respond(request, result, "Bid placed")
