from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.exceptions import (
    LLMTimeoutError,
    RateLimitExceededError,
    SearchFailedError,
    ServiceUnavailableError,
    ValidationError,
)
from app.schemas.search import FallbackSearchResponse, RagSearchResponse
from app.services.rag_service import RagSearchService
from app.services.rate_limit import InMemoryRateLimiter
from app.services.search_service import SearchGateway


class DenyAllLimiter:
    def allow(self, key: str) -> bool:
        return False


def _rag(*, available: bool = True, result=None, error: Exception | None = None) -> MagicMock:
    rag = MagicMock()
    rag.is_available.return_value = available
    rag.rag_search = AsyncMock(return_value=result, side_effect=error)
    return rag


def _gateway(rag, post_repository, *, limiter=None, fallback_enabled: bool = True) -> SearchGateway:
    return SearchGateway(
        rag_service=rag,
        rate_limiter=limiter or InMemoryRateLimiter(max_requests=15, window_seconds=60),
        post_repository=post_repository,
        fallback_enabled=fallback_enabled,
        fallback_limit=20,
        min_term_length=3,
    )


@pytest.mark.asyncio
async def test_rate_limited_user_is_rejected(post_repository) -> None:
    rag = _rag()
    gateway = _gateway(rag, post_repository, limiter=DenyAllLimiter())

    with pytest.raises(RateLimitExceededError):
        await gateway.smart_search(1, "hello")

    rag.rag_search.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("query", [None, "", "   \n"])
async def test_blank_query_is_rejected(post_repository, query) -> None:
    gateway = _gateway(_rag(), post_repository)

    with pytest.raises(ValidationError) as exc_info:
        await gateway.smart_search(1, query)

    assert exc_info.value.message == "Query is required"


@pytest.mark.asyncio
async def test_fallback_never_touches_vector_pipeline(post_repository, make_post) -> None:
    post_repository.add(make_post("Brown bread recipe", likes=2))
    post_repository.add(make_post("Fox sighting downtown", likes=5))
    post_repository.add(make_post("Unrelated news"))

    embedding_service = MagicMock()
    embedding_service.embed = AsyncMock()
    vectorstore = MagicMock()
    vectorstore.search = AsyncMock()
    llm = MagicMock()
    llm.is_available.return_value = False
    rag = RagSearchService(
        embedding_service=embedding_service,
        vectorstore=vectorstore,
        llm_client=llm,
        post_repository=post_repository,
    )
    gateway = _gateway(rag, post_repository)

    result = await gateway.smart_search(1, "a brown fox")

    assert isinstance(result, FallbackSearchResponse)
    assert result.fallback is True
    assert [p.content for p in result.posts] == ["Fox sighting downtown", "Brown bread recipe"]
    assert post_repository.keyword_calls == [["brown", "fox"]]
    embedding_service.embed.assert_not_awaited()
    vectorstore.search.assert_not_awaited()


@pytest.mark.asyncio
async def test_fallback_with_only_short_terms_returns_nothing(post_repository, make_post) -> None:
    post_repository.add(make_post("an ox"))
    gateway = _gateway(_rag(available=False), post_repository)

    result = await gateway.smart_search(1, "an ox")

    assert result.posts == []
    assert post_repository.keyword_calls == []


@pytest.mark.asyncio
async def test_strict_mode_reports_unavailable(post_repository) -> None:
    gateway = _gateway(_rag(available=False), post_repository, fallback_enabled=False)

    with pytest.raises(ServiceUnavailableError):
        await gateway.smart_search(1, "hello")


@pytest.mark.asyncio
async def test_pipeline_failure_becomes_generic_search_error(post_repository) -> None:
    gateway = _gateway(_rag(error=LLMTimeoutError("took too long")), post_repository)

    with pytest.raises(SearchFailedError) as exc_info:
        await gateway.smart_search(1, "hello")

    assert exc_info.value.message == "Search failed"
    assert isinstance(exc_info.value.__cause__, LLMTimeoutError)


@pytest.mark.asyncio
async def test_rag_result_is_returned_unchanged(post_repository) -> None:
    expected = RagSearchResponse(answer="none", sources=[], no_results=True, processing_time=3)
    rag = _rag(result=expected)
    gateway = _gateway(rag, post_repository)

    result = await gateway.smart_search(7, "hello there")

    assert result is expected
    rag.rag_search.assert_awaited_once_with("hello there")


@pytest.mark.asyncio
async def test_sixteenth_search_in_a_minute_is_limited(post_repository) -> None:
    rag = _rag(result=RagSearchResponse(sources=[], no_results=True))
    gateway = _gateway(rag, post_repository)

    for _ in range(15):
        await gateway.smart_search(1, "hello")

    with pytest.raises(RateLimitExceededError):
        await gateway.smart_search(1, "hello")

    await gateway.smart_search(2, "hello")
    assert rag.rag_search.await_count == 16
