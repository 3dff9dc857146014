"""
RAG Search Orchestrator

Query-time pipeline: sanitize -> embed -> vector search -> hydrate from
the primary post store -> LLM relevance gate -> response. Calls are issued
sequentially per query; independent queries run concurrently.
"""

from __future__ import annotations

import re
import time
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import LLMUnavailableError
from app.core.logging import get_logger, measure_latency
from app.llm.embedder import EmbeddingService
from app.llm.prompts import build_relevance_prompts, is_relevant_verdict
from app.llm.protocol import LLMClientProtocol
from app.models.post import Post
from app.repositories.post_repository import PostRepository
from app.schemas.search import RagSearchResponse, SearchPost, SearchSource
from app.vectorstore.protocol import SimilarityCandidate, VectorStoreProtocol

logger = get_logger(__name__)

NO_MATCH_ANSWER = "I couldn't find relevant posts to answer this question."
NOT_RELEVANT_ANSWER = (
    "The search found some posts, but they don't seem relevant to your question. "
    "Try rephrasing your query."
)

_UNSAFE_CHARS = re.compile(r"[<>\"'\\]")


def sanitize_query(raw_query: str, max_length: int | None = None) -> str:
    """Strip < > " ' \\, collapse whitespace, trim and truncate."""

    max_length = max_length or settings.search_max_query_length
    stripped = _UNSAFE_CHARS.sub("", raw_query or "")
    return " ".join(stripped.split())[:max_length]


class RagSearchService:
    """Coordinates embedding, vector retrieval, hydration and LLM gating."""

    def __init__(
        self,
        *,
        embedding_service: EmbeddingService,
        vectorstore: VectorStoreProtocol,
        llm_client: LLMClientProtocol,
        post_repository: PostRepository,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
        max_query_length: int | None = None,
    ) -> None:
        self.embedding_service = embedding_service
        self.vectorstore = vectorstore
        self.llm_client = llm_client
        self.post_repository = post_repository
        self.top_k = top_k or settings.search_top_k
        self.similarity_threshold = (
            settings.search_similarity_threshold
            if similarity_threshold is None
            else similarity_threshold
        )
        self.max_query_length = max_query_length or settings.search_max_query_length

    def is_available(self) -> bool:
        """RAG needs a configured LLM; embedding and vector failures surface per call."""
        return self.llm_client.is_available()

    @measure_latency("rag_search")
    async def rag_search(self, raw_query: str) -> RagSearchResponse:
        """
        Run the RAG pipeline for one query.

        Returns:
            ``posts`` populated when the LLM judges the candidates relevant,
            otherwise ``no_results`` with an explanatory ``answer``.

        Raises:
            LLMUnavailableError: No LLM credential configured
            EmbeddingError / VectorStoreError / LLMError: dependency failures
        """
        start = time.perf_counter()

        def elapsed_ms() -> int:
            return int(round((time.perf_counter() - start) * 1000))

        query = sanitize_query(raw_query, self.max_query_length)
        if not query:
            return RagSearchResponse(sources=[], no_results=True, processing_time=elapsed_ms())

        if not self.llm_client.is_available():
            raise LLMUnavailableError("LLM API key not configured")

        query_embedding = await self.embedding_service.embed(query)
        candidates = await self.vectorstore.search(
            query_embedding,
            self.top_k,
            self.similarity_threshold,
        )
        logger.info(
            "rag_candidates_retrieved",
            query_length=len(query),
            candidates=len(candidates),
            top_k=self.top_k,
            threshold=self.similarity_threshold,
        )

        if not candidates:
            return self._no_results(NO_MATCH_ANSWER, elapsed_ms())

        hydrated = await self._hydrate(candidates)
        if not hydrated:
            # every candidate pointed at a deleted post
            return self._no_results(NO_MATCH_ANSWER, elapsed_ms())

        sources = [
            SearchSource(post_id=c.external_id, content=c.content_preview, score=c.score)
            for c, _ in hydrated
        ]

        system_prompt, user_prompt = build_relevance_prompts(
            query,
            [(post.owner.name if post.owner else "", c.content_preview) for c, post in hydrated],
        )
        verdict = await self.llm_client.classify_relevance(system_prompt, user_prompt)
        relevant = is_relevant_verdict(verdict)

        logger.info(
            "rag_relevance_evaluated",
            candidates=len(hydrated),
            relevant=relevant,
            verdict=verdict.strip()[:40],
        )

        if not relevant:
            return self._no_results(NOT_RELEVANT_ANSWER, elapsed_ms())

        posts = [
            SearchPost.model_validate(post).model_copy(update={"relevance_score": c.score})
            for c, post in hydrated
        ]
        return RagSearchResponse(posts=posts, sources=sources, processing_time=elapsed_ms())

    async def _hydrate(
        self, candidates: list[SimilarityCandidate]
    ) -> list[tuple[SimilarityCandidate, Post]]:
        """Pair candidates with stored posts, preserving rank; dangling ids are dropped."""

        ids: list[UUID] = []
        for candidate in candidates:
            try:
                ids.append(UUID(candidate.external_id))
            except ValueError:
                logger.warning("rag_candidate_invalid_id", external_id=candidate.external_id)

        posts = await self.post_repository.get_by_ids(ids)
        post_map = {str(post.id): post for post in posts}

        hydrated = [(c, post_map[c.external_id]) for c in candidates if c.external_id in post_map]
        dropped = len(candidates) - len(hydrated)
        if dropped:
            logger.info("rag_dangling_candidates_dropped", dropped=dropped)
        return hydrated

    @staticmethod
    def _no_results(answer: str, processing_time: int) -> RagSearchResponse:
        return RagSearchResponse(
            answer=answer,
            sources=[],
            no_results=True,
            processing_time=processing_time,
        )
