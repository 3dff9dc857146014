"""
Post Schemas
Minimal request/response models for the post collaborator endpoints
"""

from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseResponseSchema, BaseSchema


class PostCreate(BaseSchema):
    content: str = Field(min_length=1, max_length=5000)
    image: str = Field(default="", max_length=500)


class PostUpdate(BaseSchema):
    content: str | None = Field(default=None, min_length=1, max_length=5000)
    image: str | None = Field(default=None, max_length=500)


class PostResponse(BaseResponseSchema):
    """
    Stored post
    """

    id: UUID
    content: str
    image: str
    owner_id: int
    likes_count: int
    comments_count: int
