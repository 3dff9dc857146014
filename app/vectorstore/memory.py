"""
In-memory VectorStore Implementation
Dict-backed cosine store for development and tests.
"""

import math
from datetime import datetime, timezone
from typing import NamedTuple, Sequence

from app.core.config import settings
from app.core.exceptions import DimensionMismatchError
from app.core.logging import get_logger
from app.vectorstore.protocol import SimilarityCandidate

logger = get_logger(__name__)


class PostVectorRecord(NamedTuple):
    external_id: str
    content_preview: str
    embedding: tuple[float, ...]
    updated_at: datetime


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorStore:
    """
    In-memory post vector store with the same contract as PGVectorStore.
    """

    def __init__(self, dimension: int | None = None, preview_length: int | None = None):
        self.dimension = dimension or settings.vectorstore_dimension
        self.preview_length = preview_length or settings.content_preview_length
        self._records: dict[str, PostVectorRecord] = {}
        logger.info("memory_vectorstore_initialized", dimension=self.dimension)

    @property
    def is_available(self) -> bool:
        return True

    async def init_schema(self) -> bool:
        return True

    async def upsert(
        self,
        external_id: str,
        content_preview: str,
        embedding: Sequence[float],
    ) -> None:
        self._check_dimension(embedding)
        self._records[external_id] = PostVectorRecord(
            external_id=external_id,
            content_preview=content_preview[: self.preview_length],
            embedding=tuple(float(v) for v in embedding),
            updated_at=datetime.now(timezone.utc),
        )
        logger.debug("post_vector_upserted", external_id=external_id)

    async def delete(self, external_id: str) -> None:
        if self._records.pop(external_id, None) is not None:
            logger.debug("post_vector_deleted", external_id=external_id)

    async def search(
        self,
        query_embedding: Sequence[float],
        top_k: int,
        min_score: float,
    ) -> list[SimilarityCandidate]:
        self._check_dimension(query_embedding)

        results = []
        for record in self._records.values():
            score = cosine_similarity(query_embedding, record.embedding)
            if score >= min_score:
                results.append(
                    SimilarityCandidate(
                        external_id=record.external_id,
                        content_preview=record.content_preview,
                        score=score,
                    )
                )

        results.sort(key=lambda c: c.score, reverse=True)
        return results[:top_k]

    async def count(self) -> int:
        return len(self._records)

    def get(self, external_id: str) -> PostVectorRecord | None:
        return self._records.get(external_id)

    def _check_dimension(self, embedding: Sequence[float]) -> None:
        if len(embedding) != self.dimension:
            raise DimensionMismatchError(
                f"Expected {self.dimension} dimensions, got {len(embedding)}"
            )
