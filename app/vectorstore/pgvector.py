"""
PGVector VectorStore implementation.

Uses PostgreSQL + pgvector extension to persist one embedding row per
post. Similarity is cosine (``<=>``), reported as ``1 - distance`` and
served by an ivfflat ``vector_cosine_ops`` index.
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import Any, Callable, Sequence

from sqlalchemy import text as sa_text, bindparam, Float, Integer, String
from pgvector.sqlalchemy import Vector
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import settings
from app.core.db import get_async_engine
from app.core.exceptions import (
    DimensionMismatchError,
    VectorIndexError,
    VectorSearchError,
    VectorStoreUnavailableError,
)
from app.core.logging import get_logger
from app.vectorstore.protocol import VectorStoreProtocol, SimilarityCandidate

logger = get_logger(__name__)


class PGVectorStore(VectorStoreProtocol):
    """PostgreSQL + pgvector-backed post VectorStore.

    Shares the bounded SQLAlchemy engine pool with the primary store.
    No application-level locking around writes: concurrent upserts for
    different posts are isolated by row locks.
    """

    def __init__(
        self,
        engine: AsyncEngine | None = None,
        *,
        table_name: str | None = None,
        dimension: int | None = None,
        preview_length: int | None = None,
        ivfflat_lists: int | None = None,
        init_retry_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine or get_async_engine()
        self.dimension = dimension or settings.vectorstore_dimension
        self.preview_length = preview_length or settings.content_preview_length
        self.ivfflat_lists = ivfflat_lists or settings.pgvector_ivfflat_lists
        self.init_retry_seconds = (
            settings.pgvector_init_retry_seconds
            if init_retry_seconds is None
            else init_retry_seconds
        )
        self.table_name = self._validate_table_name(table_name or settings.pgvector_table_posts)
        self._clock = clock
        self._init_lock = asyncio.Lock()
        self._last_init_attempt: float | None = None
        self._available = False

    @property
    def is_available(self) -> bool:
        return self._available

    async def init_schema(self) -> bool:
        async with self._init_lock:
            return await self._run_init()

    async def upsert(
        self,
        external_id: str,
        content_preview: str,
        embedding: Sequence[float],
    ) -> None:
        await self._ensure_available()
        self._check_dimension(embedding)

        upsert_sql = f"""
            INSERT INTO {self.table_name}
                (external_id, content_preview, embedding, updated_at)
            VALUES
                (:external_id, :content_preview, CAST(:embedding AS vector), NOW())
            ON CONFLICT (external_id) DO UPDATE SET
                content_preview = EXCLUDED.content_preview,
                embedding = EXCLUDED.embedding,
                updated_at = NOW()
        """

        stmt = sa_text(upsert_sql).bindparams(
            bindparam("external_id", type_=String()),
            bindparam("content_preview", type_=String()),
            bindparam("embedding", type_=Vector(self.dimension)),
        )
        params: dict[str, Any] = {
            "external_id": external_id,
            "content_preview": content_preview[: self.preview_length],
            "embedding": list(embedding),
        }

        try:
            async with self.engine.begin() as conn:
                await conn.execute(stmt, params)
        except Exception as exc:  # noqa: BLE001
            raise VectorIndexError(f"Failed to upsert vector for {external_id}: {exc}") from exc

        logger.info("pgvector_upserted", table=self.table_name, external_id=external_id)

    async def delete(self, external_id: str) -> None:
        await self._ensure_available()
        stmt = sa_text(f"DELETE FROM {self.table_name} WHERE external_id = :external_id")
        try:
            async with self.engine.begin() as conn:
                await conn.execute(stmt, {"external_id": external_id})
        except Exception as exc:  # noqa: BLE001
            raise VectorIndexError(f"Failed to delete vector for {external_id}: {exc}") from exc

        logger.info("pgvector_deleted", table=self.table_name, external_id=external_id)

    async def search(
        self,
        query_embedding: Sequence[float],
        top_k: int,
        min_score: float,
    ) -> list[SimilarityCandidate]:
        await self._ensure_available()
        self._check_dimension(query_embedding)

        search_sql = f"""
            SELECT
                external_id,
                content_preview,
                1 - (embedding <=> CAST(:embedding AS vector)) AS score
            FROM {self.table_name}
            WHERE 1 - (embedding <=> CAST(:embedding AS vector)) >= :min_score
            ORDER BY embedding <=> CAST(:embedding AS vector)
            LIMIT :limit
        """

        stmt = sa_text(search_sql).bindparams(
            bindparam("embedding", type_=Vector(self.dimension)),
            bindparam("min_score", type_=Float()),
            bindparam("limit", type_=Integer()),
        )
        params = {
            "embedding": list(query_embedding),
            "min_score": min_score,
            "limit": top_k,
        }

        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt, params)
                rows = result.fetchall()
        except Exception as exc:  # noqa: BLE001
            raise VectorSearchError(f"Vector search failed: {exc}") from exc

        return [
            SimilarityCandidate(
                external_id=row.external_id,
                content_preview=row.content_preview,
                score=float(row.score) if row.score is not None else 0.0,
            )
            for row in rows
        ]

    async def count(self) -> int:
        await self._ensure_available()
        async with self.engine.connect() as conn:
            result = await conn.execute(sa_text(f"SELECT COUNT(*) FROM {self.table_name}"))
            return int(result.scalar_one())

    # Internal helpers -------------------------------------------------

    async def _run_init(self) -> bool:
        """Caller holds ``_init_lock``."""
        self._last_init_attempt = self._clock()
        try:
            await self._create_extension_and_table()
        except Exception as exc:  # noqa: BLE001 - degraded mode, never fatal
            self._available = False
            logger.error(
                "pgvector_init_failed",
                table=self.table_name,
                error=str(exc),
                retry_after_seconds=self.init_retry_seconds,
            )
        else:
            self._available = True
        return self._available

    def _retry_due(self) -> bool:
        if self._last_init_attempt is None:
            return True
        return self._clock() - self._last_init_attempt >= self.init_retry_seconds

    async def _ensure_available(self) -> None:
        # a failed init is retried on use, at most once per init_retry_seconds
        if not self._available and self._retry_due():
            async with self._init_lock:
                if not self._available and self._retry_due():
                    if await self._run_init():
                        logger.info("pgvector_recovered", table=self.table_name)
        if not self._available:
            raise VectorStoreUnavailableError(
                f"Vector table {self.table_name} is not initialized; search disabled"
            )

    async def _create_extension_and_table(self) -> None:
        create_table_sql = f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                id SERIAL PRIMARY KEY,
                external_id VARCHAR(64) UNIQUE NOT NULL,
                content_preview VARCHAR({self.preview_length}) NOT NULL,
                embedding VECTOR({self.dimension}) NOT NULL,
                created_at TIMESTAMPTZ DEFAULT NOW(),
                updated_at TIMESTAMPTZ DEFAULT NOW()
            )
        """

        embedding_idx = (
            f"CREATE INDEX IF NOT EXISTS idx_{self.table_name}_embedding "
            f"ON {self.table_name} USING ivfflat (embedding vector_cosine_ops) "
            f"WITH (lists = {int(self.ivfflat_lists)})"
        )

        async with self.engine.begin() as conn:
            await conn.execute(sa_text("CREATE EXTENSION IF NOT EXISTS vector"))
            await self._recreate_table_if_incompatible(conn)
            await conn.execute(sa_text(create_table_sql))
            await conn.execute(sa_text(embedding_idx))
            logger.info("pgvector_table_ready", table=self.table_name, dimension=self.dimension)

    async def _recreate_table_if_incompatible(self, conn: Any) -> None:
        """Drop the table when its vector dimension differs and it is empty.

        A populated table with a different dimension is a misconfiguration;
        raise instead of migrating destructively.
        """

        dim_sql = sa_text(
            """
            SELECT atttypmod
            FROM pg_attribute
            WHERE attrelid = to_regclass(:table)
              AND attname = 'embedding'
              AND NOT attisdropped
            """
        )
        result = await conn.execute(dim_sql, {"table": self.table_name})
        existing_dim = result.scalar_one_or_none()
        if existing_dim is None or existing_dim == self.dimension:
            return

        count_res = await conn.execute(sa_text(f"SELECT COUNT(*) FROM {self.table_name}"))
        row_count = count_res.scalar_one()
        if row_count == 0:
            logger.warning(
                "pgvector_incompatible_dimension_dropped",
                table=self.table_name,
                existing_dimension=existing_dim,
                dimension=self.dimension,
            )
            await conn.execute(sa_text(f"DROP TABLE {self.table_name}"))
            return

        raise RuntimeError(
            f"Existing table {self.table_name} stores {existing_dim}-d vectors but "
            f"{self.dimension} is configured. Reindex into a new table or migrate manually."
        )

    def _check_dimension(self, embedding: Sequence[float]) -> None:
        if len(embedding) != self.dimension:
            raise DimensionMismatchError(
                f"Expected {self.dimension} dimensions, got {len(embedding)}"
            )

    @staticmethod
    def _validate_table_name(table_name: str) -> str:
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", table_name):
            raise ValueError(f"Unsafe table name: {table_name}")
        return table_name
