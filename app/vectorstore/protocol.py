"""
VectorStore Protocol (Interface)
Defines contract for all post VectorStore implementations
"""

from typing import Protocol, NamedTuple, Sequence


class SimilarityCandidate(NamedTuple):
    """
    Single vector search result

    Attributes:
        external_id: Post id in the primary store
        content_preview: Truncated post text stored alongside the vector
        score: Cosine similarity normalized as ``1 - cosine_distance``
    """

    external_id: str
    content_preview: str
    score: float


class VectorStoreProtocol(Protocol):
    """
    Protocol for VectorStore implementations

    One record per external_id (upsert semantics). Concurrent writes for
    different ids rely on the engine's row-level concurrency.
    """

    @property
    def is_available(self) -> bool:
        """False once schema initialization has failed."""
        ...

    async def init_schema(self) -> bool:
        """
        Idempotently create extension, table and index.

        Never raises; returns False and leaves the store in degraded
        (search-unavailable) mode on failure.
        """
        ...

    async def upsert(
        self,
        external_id: str,
        content_preview: str,
        embedding: Sequence[float],
    ) -> None:
        """
        Insert or replace the record for external_id

        Raises:
            DimensionMismatchError: embedding length != configured dimension
            VectorIndexError: If the write fails
        """
        ...

    async def delete(self, external_id: str) -> None:
        """
        Delete the record for external_id (no-op when absent)
        """
        ...

    async def search(
        self,
        query_embedding: Sequence[float],
        top_k: int,
        min_score: float,
    ) -> list[SimilarityCandidate]:
        """
        Similarity search

        Returns:
            At most top_k candidates with score >= min_score, highest first.
            Empty list when nothing clears the threshold.

        Raises:
            VectorStoreUnavailableError: Schema never initialized
            VectorSearchError: If search fails
        """
        ...

    async def count(self) -> int:
        """Number of indexed records"""
        ...
