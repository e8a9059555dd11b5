"""PostApplicationService: create / read / delete posts.

Only the parts of post management the auction engine depends on live here.
Writes commit on success and roll back on any exception.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.errors import (
    InvalidPostError,
    ListingHasBidsError,
    NotPostOwnerError,
    PostNotFoundError,
)
from src.am_common.id_generator import generate_id
from src.am_post.application.schemas import CreatePostRequest, DeletePostResponse, PostResponse
from src.am_post.domain.models import Post
from src.am_post.domain.repository import PostRepositoryProtocol
from src.am_post.infrastructure.persistence import PostRepository

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class PostApplicationService:
    def __init__(self, repo: PostRepositoryProtocol | None = None) -> None:
        self._repo: PostRepositoryProtocol = repo or PostRepository()

    async def create_post(
        self, db: AsyncSession, author_id: str, req: CreatePostRequest
    ) -> PostResponse:
        title = _clean(req.title)
        if title is None:
            raise InvalidPostError("title is required")
        image_url = _clean(req.image_url)
        image_key = _clean(req.image_key)
        if image_url is None and image_key is None:
            raise InvalidPostError("image_url or image_key is required")

        post = Post(
            id=generate_id(),
            author_id=author_id,
            title=title,
            description=_clean(req.description),
            image_url=image_url,
            image_key=image_key,
            category=_clean(req.category),
        )
        try:
            saved = await self._repo.insert_post(db, post)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Post %s created by %s", saved.id, author_id)
        return PostResponse.from_domain(saved)

    async def get_post(self, db: AsyncSession, post_id: str) -> PostResponse:
        post = await self._repo.get_post(db, post_id)
        if post is None:
            raise PostNotFoundError(post_id)
        return PostResponse.from_domain(post)

    async def delete_post(
        self, db: AsyncSession, post_id: str, author_id: str
    ) -> DeletePostResponse:
        """Delete a post and, via cascade, its bids.

        A listed post that already has bids cannot be deleted: that would
        withdraw the auction, which unlisting forbids too.
        """
        try:
            post = await self._repo.lock_post(db, post_id)
            if post is None:
                raise PostNotFoundError(post_id)
            if not post.is_authored_by(author_id):
                raise NotPostOwnerError(post_id)
            if post.is_in_market and await self._repo.count_bids(db, post_id) > 0:
                raise ListingHasBidsError(post_id)
            await self._repo.delete_post(db, post_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Post %s deleted by %s", post_id, author_id)
        return DeletePostResponse(post_id=post_id)
