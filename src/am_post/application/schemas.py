"""Pydantic schemas for am_post.

PostResponse is also the "updated post record" returned by the market
list/unlist endpoints, so it carries the market fields.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.am_common.money import amount_to_display
from src.am_post.domain.models import Post


class CreatePostRequest(BaseModel):
    title: str = Field(..., max_length=200)
    description: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2048)
    image_key: str | None = Field(None, max_length=512)
    category: str | None = Field(None, max_length=64)


class PostResponse(BaseModel):
    id: str
    author_id: str
    title: str
    description: str | None
    image_url: str | None
    image_key: str | None
    category: str | None
    is_in_market: bool
    starting_price: Decimal | None
    starting_price_display: str | None
    reserve_price: Decimal | None
    reserve_price_display: str | None
    auction_end_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, p: Post) -> "PostResponse":
        return cls(
            id=p.id,
            author_id=p.author_id,
            title=p.title,
            description=p.description,
            image_url=p.image_url,
            image_key=p.image_key,
            category=p.category,
            is_in_market=p.is_in_market,
            starting_price=p.starting_price,
            starting_price_display=amount_to_display(p.starting_price),
            reserve_price=p.reserve_price,
            reserve_price_display=amount_to_display(p.reserve_price),
            auction_end_at=p.auction_end_at,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )


class DeletePostResponse(BaseModel):
    post_id: str
    deleted: bool = True
