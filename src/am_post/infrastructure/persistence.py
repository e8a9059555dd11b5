"""PostRepository: raw text() SQL over the posts table.

POST_COLUMNS and row_to_post are shared with am_market, which reads and
locks the same rows.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_post.domain.models import Post

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

POST_COLUMNS = """
    id, author_id, title, description, image_url, image_key, category,
    is_in_market, starting_price, reserve_price, auction_end_at,
    created_at, updated_at
"""

_INSERT_POST_SQL = text(f"""
    INSERT INTO posts (id, author_id, title, description, image_url, image_key, category)
    VALUES (:id, :author_id, :title, :description, :image_url, :image_key, :category)
    RETURNING {POST_COLUMNS}
""")

_GET_POST_SQL = text(f"""
    SELECT {POST_COLUMNS}
    FROM posts WHERE id = :post_id
""")

_LOCK_POST_SQL = text(f"""
    SELECT {POST_COLUMNS}
    FROM posts WHERE id = :post_id
    FOR UPDATE
""")

_COUNT_BIDS_SQL = text("SELECT COUNT(*) FROM bids WHERE post_id = :post_id")

# bids go with the post (FK ON DELETE CASCADE)
_DELETE_POST_SQL = text("DELETE FROM posts WHERE id = :post_id")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def row_to_post(row: Any) -> Post:
    """Convert a DB result row to a Post domain object."""
    return Post(
        id=row.id,
        author_id=str(row.author_id),
        title=row.title,
        description=row.description,
        image_url=row.image_url,
        image_key=row.image_key,
        category=row.category,
        is_in_market=row.is_in_market,
        starting_price=row.starting_price,
        reserve_price=row.reserve_price,
        auction_end_at=row.auction_end_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PostRepository:
    """Concrete implementation of PostRepositoryProtocol."""

    async def insert_post(self, db: AsyncSession, post: Post) -> Post:
        result = await db.execute(
            _INSERT_POST_SQL,
            {
                "id": post.id,
                "author_id": post.author_id,
                "title": post.title,
                "description": post.description,
                "image_url": post.image_url,
                "image_key": post.image_key,
                "category": post.category,
            },
        )
        return row_to_post(result.fetchone())

    async def get_post(self, db: AsyncSession, post_id: str) -> Post | None:
        result = await db.execute(_GET_POST_SQL, {"post_id": post_id})
        row = result.fetchone()
        return row_to_post(row) if row else None

    async def lock_post(self, db: AsyncSession, post_id: str) -> Post | None:
        """SELECT ... FOR UPDATE; the row stays locked until the caller commits."""
        result = await db.execute(_LOCK_POST_SQL, {"post_id": post_id})
        row = result.fetchone()
        return row_to_post(row) if row else None

    async def count_bids(self, db: AsyncSession, post_id: str) -> int:
        result = await db.execute(_COUNT_BIDS_SQL, {"post_id": post_id})
        return int(result.scalar_one())

    async def delete_post(self, db: AsyncSession, post_id: str) -> None:
        await db.execute(_DELETE_POST_SQL, {"post_id": post_id})
