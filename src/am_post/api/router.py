"""am_post REST endpoints.

POST   /posts            create (auth)
GET    /posts/{post_id}  read (public)
DELETE /posts/{post_id}  delete, author only (auth)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.database import get_db_session
from src.am_common.response import ApiResponse, respond
from src.am_gateway.auth.dependencies import get_current_user
from src.am_gateway.user.db_models import UserModel
from src.am_post.application.schemas import CreatePostRequest
from src.am_post.application.service import PostApplicationService

router = APIRouter(prefix="/posts", tags=["posts"])

_service = PostApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    body: CreatePostRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_post(db, str(current_user.id), body)
    return respond(request, result, "Post created successfully")


@router.get("/{post_id}")
async def get_post(
    post_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_post(db, post_id)
    return respond(request, result)


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.delete_post(db, post_id, str(current_user.id))
    return respond(request, result, "Post deleted successfully")
