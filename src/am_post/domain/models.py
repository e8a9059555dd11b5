"""Domain models for am_post: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Post:
    id: str
    author_id: str
    title: str
    description: str | None
    image_url: str | None
    image_key: str | None
    category: str | None
    # Market fields: all null unless is_in_market (reserve_price may stay null)
    is_in_market: bool = False
    starting_price: Decimal | None = None
    reserve_price: Decimal | None = None
    auction_end_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_authored_by(self, user_id: str) -> bool:
        # UUIDs may arrive with either case
        return self.author_id.lower() == str(user_id).lower()
