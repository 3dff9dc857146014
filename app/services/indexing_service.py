"""
Post Indexer

Keeps the post vector index in step with the primary post store. Indexing
is best-effort: every failure (empty text, dimension mismatch, model load,
storage) is logged and counted, never raised into the post write path.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Iterable
from uuid import UUID

from app.core.logging import get_logger, metrics_counter
from app.llm.embedder import EmbeddingService
from app.vectorstore.protocol import VectorStoreProtocol

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReindexReport:
    indexed: int
    total: int

    @property
    def skipped(self) -> int:
        return self.total - self.indexed

    @property
    def message(self) -> str:
        return f"Reindexed {self.indexed}/{self.total} posts"


class PostIndexer:
    """Drives EmbeddingService + VectorStore for post lifecycle events."""

    def __init__(
        self,
        *,
        embedding_service: EmbeddingService,
        vectorstore: VectorStoreProtocol,
    ) -> None:
        self.embedding_service = embedding_service
        self.vectorstore = vectorstore
        self._tasks: set[asyncio.Task] = set()

    async def index_post(self, post_id: UUID | str, content: str) -> bool:
        """
        Embed content and upsert it under post_id.

        Returns:
            True when the record was written. Failures return False.
        """
        external_id = str(post_id)
        try:
            embedding = await self.embedding_service.embed(content)
            await self.vectorstore.upsert(external_id, content, embedding)
        except Exception as exc:  # noqa: BLE001 - indexing never reaches the caller
            logger.error(
                "post_index_failed",
                post_id=external_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            metrics_counter("post_index_failure", operation="index")
            return False

        logger.info("post_indexed", post_id=external_id)
        return True

    async def remove_index(self, post_id: UUID | str) -> bool:
        """Delete the vector record for post_id. Failures return False."""
        external_id = str(post_id)
        try:
            await self.vectorstore.delete(external_id)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "post_index_remove_failed",
                post_id=external_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            metrics_counter("post_index_failure", operation="remove")
            return False

        logger.info("post_index_removed", post_id=external_id)
        return True

    def schedule_index(self, post_id: UUID | str, content: str) -> asyncio.Task:
        """Fire-and-forget ``index_post``; the caller does not await it."""
        return self._spawn(self.index_post(post_id, content))

    def schedule_remove(self, post_id: UUID | str) -> asyncio.Task:
        """Fire-and-forget ``remove_index``."""
        return self._spawn(self.remove_index(post_id))

    async def wait_pending(self) -> None:
        """Await every scheduled task still running (shutdown, tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def reindex_all(self, posts: Iterable[tuple[UUID | str, str]]) -> ReindexReport:
        """
        Re-embed every (post_id, content) pair sequentially.

        Per-post failures are counted as skipped; the batch always completes.
        """
        indexed = 0
        total = 0
        for post_id, content in posts:
            total += 1
            if await self.index_post(post_id, content):
                indexed += 1

        report = ReindexReport(indexed=indexed, total=total)
        logger.info("post_reindex_complete", indexed=indexed, total=total, skipped=report.skipped)
        return report

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        # keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
