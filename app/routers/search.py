"""
AI search API Routes

Semantic post search (RAG with keyword fallback) and bulk reindex.
"""

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.swagger_responses import combined_responses
from app.core.db import get_session
from app.core.dependencies import get_current_user, get_post_indexer, get_rate_limiter
from app.core.logging import get_logger
from app.llm.embedder import get_embedding_service
from app.llm.factory import get_llm_client_instance
from app.models.user import User
from app.repositories.post_repository import PostRepository
from app.schemas.search import ReindexResponse, SearchRequest
from app.services.indexing_service import PostIndexer
from app.services.rag_service import RagSearchService
from app.services.rate_limit import RateLimiterProtocol
from app.services.search_service import SearchGateway
from app.vectorstore.factory import get_post_vectorstore

logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["ai-search"])


def get_search_gateway(
    session: AsyncSession = Depends(get_session),
    rate_limiter: RateLimiterProtocol = Depends(get_rate_limiter),
) -> SearchGateway:
    """
    Dependency: request-scoped SearchGateway over process-wide singletons
    """
    post_repository = PostRepository(session)
    rag_service = RagSearchService(
        embedding_service=get_embedding_service(),
        vectorstore=get_post_vectorstore(),
        llm_client=get_llm_client_instance(),
        post_repository=post_repository,
    )
    return SearchGateway(
        rag_service=rag_service,
        rate_limiter=rate_limiter,
        post_repository=post_repository,
    )


@router.post(
    "/search",
    summary="Semantic post search",
    responses=combined_responses(
        status_code=200,
        data_example={
            "sources": [
                {"postId": "uuid-1", "content": "The quick brown fox...", "score": 0.91}
            ],
            "posts": [
                {
                    "id": "uuid-1",
                    "content": "The quick brown fox...",
                    "image": "",
                    "owner": {"id": 1, "name": "Jane", "email": "jane@example.com", "profileImage": ""},
                    "likesCount": 3,
                    "commentsCount": 1,
                    "createdAt": "2025-01-15T10:30:00Z",
                    "updatedAt": "2025-01-15T10:30:00Z",
                    "relevanceScore": 0.91,
                }
            ],
            "processingTime": 412,
            "noResults": False,
        },
        include_errors=[400, 401, 429, 500, 503],
    ),
)
async def search_posts(
    data: SearchRequest,
    current_user: User = Depends(get_current_user),
    gateway: SearchGateway = Depends(get_search_gateway),
) -> JSONResponse:
    """
    Search posts by meaning.

    **Behaviour:**
    1. Per-user rate limit (429 when exceeded)
    2. Blank query rejected (400)
    3. LLM not configured: keyword search with ``fallback: true``,
       or 503 when fallback is disabled
    4. Otherwise embed -> vector search -> LLM relevance check

    No match or an irrelevant match is still 200 with ``noResults: true``
    and an explanatory ``answer``.
    """
    result = await gateway.smart_search(current_user.id, data.query)
    return JSONResponse(content=jsonable_encoder(result, by_alias=True, exclude_none=True))


@router.post(
    "/reindex",
    response_model=ReindexResponse,
    summary="Rebuild the post vector index",
    responses=combined_responses(
        status_code=200,
        data_example={"message": "Reindexed 42/42 posts", "indexed": 42, "total": 42},
        include_errors=[401, 500],
    ),
)
async def reindex_posts(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    indexer: PostIndexer = Depends(get_post_indexer),
) -> ReindexResponse:
    """
    Re-embed every stored post. Posts that fail are skipped and reported
    as ``total - indexed``.
    """
    posts = await PostRepository(session).list_for_indexing()
    logger.info("reindex_requested", user_id=current_user.id, total=len(posts))

    report = await indexer.reindex_all(posts)
    return ReindexResponse(message=report.message, indexed=report.indexed, total=report.total)
