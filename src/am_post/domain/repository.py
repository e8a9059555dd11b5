"""PostRepository Protocol: interface contract for the posts table."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_post.domain.models import Post


class PostRepositoryProtocol(Protocol):
    async def insert_post(self, db: AsyncSession, post: Post) -> Post: ...

    async def get_post(self, db: AsyncSession, post_id: str) -> Post | None: ...

    async def lock_post(self, db: AsyncSession, post_id: str) -> Post | None: ...

    async def count_bids(self, db: AsyncSession, post_id: str) -> int: ...

    async def delete_post(self, db: AsyncSession, post_id: str) -> None: ...
