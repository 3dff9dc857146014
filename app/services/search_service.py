"""
Search gateway

Entry point for authenticated search requests: per-user rate limiting,
input validation, RAG availability check with keyword fallback, and
mapping of unexpected pipeline failures to a generic search error.
"""

from __future__ import annotations

from typing import Union

from app.core.config import settings
from app.core.exceptions import (
    RateLimitExceededError,
    SearchFailedError,
    ServiceUnavailableError,
    ValidationError,
)
from app.core.logging import get_logger, metrics_counter
from app.repositories.post_repository import PostRepository
from app.schemas.search import FallbackSearchResponse, RagSearchResponse, SearchPost
from app.services.rag_service import RagSearchService
from app.services.rate_limit import RateLimiterProtocol

logger = get_logger(__name__)

SearchResult = Union[RagSearchResponse, FallbackSearchResponse]


class SearchGateway:
    """Request-scoped search facade used by the /ai/search route."""

    def __init__(
        self,
        *,
        rag_service: RagSearchService,
        rate_limiter: RateLimiterProtocol,
        post_repository: PostRepository,
        fallback_enabled: bool | None = None,
        fallback_limit: int | None = None,
        min_term_length: int | None = None,
    ) -> None:
        self.rag_service = rag_service
        self.rate_limiter = rate_limiter
        self.post_repository = post_repository
        self.fallback_enabled = (
            settings.search_fallback_enabled if fallback_enabled is None else fallback_enabled
        )
        self.fallback_limit = fallback_limit or settings.search_fallback_limit
        self.min_term_length = min_term_length or settings.search_fallback_min_term_length

    async def smart_search(self, user_id: int | str, raw_query: str | None) -> SearchResult:
        """
        Search posts for one user request.

        Raises:
            RateLimitExceededError: Budget for the current window is used up
            ValidationError: Query missing or blank
            ServiceUnavailableError: LLM unavailable and fallback disabled
            SearchFailedError: Any other failure inside the pipeline
        """
        if not self.rate_limiter.allow(str(user_id)):
            logger.warning("search_rate_limited", user_id=str(user_id))
            metrics_counter("search_rate_limited")
            raise RateLimitExceededError("Rate limit exceeded")

        if not raw_query or not raw_query.strip():
            raise ValidationError("Query is required")

        if not self.rag_service.is_available():
            if not self.fallback_enabled:
                raise ServiceUnavailableError("AI service unavailable")
            logger.info("search_fallback_used", user_id=str(user_id))
            metrics_counter("search_fallback")
            try:
                return await self.keyword_search(raw_query)
            except Exception as exc:
                logger.error("keyword_search_failed", error_type=type(exc).__name__, error=str(exc))
                raise SearchFailedError() from exc

        try:
            return await self.rag_service.rag_search(raw_query)
        except Exception as exc:
            logger.error(
                "rag_search_failed",
                user_id=str(user_id),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            metrics_counter("search_failure", error_type=type(exc).__name__)
            raise SearchFailedError() from exc

    async def keyword_search(self, raw_query: str) -> FallbackSearchResponse:
        """Substring match on whitespace-split terms of at least min_term_length chars."""

        terms = [term for term in raw_query.split() if len(term) >= self.min_term_length]
        if not terms:
            return FallbackSearchResponse(posts=[])

        posts = await self.post_repository.search_by_keywords(terms, limit=self.fallback_limit)
        return FallbackSearchResponse(posts=[SearchPost.model_validate(post) for post in posts])
