"""
Search Schemas
Pydantic models for the RAG search and reindex endpoints
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseSchema


class SearchRequest(BaseSchema):
    """
    Body of POST /ai/search

    Missing, null and blank queries are rejected by the search gateway
    (400, not 422).
    """

    query: str | None = None


class PostOwner(BaseSchema):
    """Author fields exposed alongside search hits."""

    id: int
    name: str = ""
    email: str
    profile_image: str = Field(default="", serialization_alias="profileImage")


class SearchPost(BaseSchema):
    """Hydrated post returned by RAG or keyword search."""

    id: UUID
    content: str
    image: str = ""
    owner: PostOwner
    likes_count: int = Field(default=0, serialization_alias="likesCount")
    comments_count: int = Field(default=0, serialization_alias="commentsCount")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")
    relevance_score: float | None = Field(default=None, serialization_alias="relevanceScore")


class SearchSource(BaseSchema):
    """Vector candidate that survived hydration."""

    post_id: str = Field(serialization_alias="postId")
    content: str
    score: float


class RagSearchResponse(BaseSchema):
    """
    RAG result envelope.

    Relevant case: ``posts`` populated, ``answer`` absent.
    No-match / rejected case: ``no_results`` True with an explanatory ``answer``.
    """

    answer: str | None = None
    sources: list[SearchSource] = Field(default_factory=list)
    posts: list[SearchPost] | None = None
    processing_time: int = Field(default=0, serialization_alias="processingTime")
    no_results: bool = Field(default=False, serialization_alias="noResults")


class FallbackSearchResponse(BaseSchema):
    """Keyword search result used when the RAG pipeline is unavailable."""

    posts: list[SearchPost] = Field(default_factory=list)
    fallback: bool = True


class ReindexResponse(BaseSchema):
    """Outcome of a bulk reindex."""

    message: str
    indexed: int = Field(ge=0)
    total: int = Field(ge=0)
