"""
Post API Routes

Minimal write surface; every write keeps the vector index in step.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.swagger_responses import combined_responses
from app.core.db import get_session
from app.core.dependencies import get_current_user, get_post_indexer
from app.models.user import User
from app.schemas.post import PostCreate, PostResponse, PostUpdate
from app.services.indexing_service import PostIndexer
from app.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])

_POST_EXAMPLE = {
    "id": "uuid-xxx",
    "content": "The quick brown fox jumps over the lazy dog",
    "image": "",
    "owner_id": 1,
    "likes_count": 0,
    "comments_count": 0,
    "created_at": "2025-01-15T10:30:00Z",
    "updated_at": "2025-01-15T10:30:00Z",
}


def get_post_service(
    session: AsyncSession = Depends(get_session),
    indexer: PostIndexer = Depends(get_post_indexer),
) -> PostService:
    """
    Dependency: Get PostService instance
    """
    return PostService(session=session, indexer=indexer)


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
    responses=combined_responses(
        status_code=201,
        data_example=_POST_EXAMPLE,
        include_errors=[401, 422, 500],
    ),
)
async def create_post(
    data: PostCreate,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    """Store a post and schedule its indexing."""
    return await service.create_post(current_user.id, data)


@router.put(
    "/{post_id}",
    response_model=PostResponse,
    summary="Update post",
    responses=combined_responses(
        status_code=200,
        data_example=_POST_EXAMPLE,
        include_errors=[401, 403, 404, 422, 500],
    ),
)
async def update_post(
    post_id: UUID,
    data: PostUpdate,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    """Update own post; re-indexed only when content changes."""
    return await service.update_post(post_id, current_user.id, data)


@router.delete(
    "/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete post",
    responses=combined_responses(status_code=204, include_errors=[401, 403, 404, 500]),
)
async def delete_post(
    post_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
) -> Response:
    await service.delete_post(post_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
