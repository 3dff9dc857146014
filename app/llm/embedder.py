"""
Sentence Embedding Service

Loads a sentence-transformers model once per process and exposes an
async-safe ``embed()``. Blocking model work (download, load, encode) runs
in the default threadpool executor so the event loop is never stalled.

Lifecycle: UNLOADED -> LOADING (one shared future) -> READY.
Every caller that arrives while the model is loading awaits the same
future, so the model is downloaded and loaded exactly once. A failed load
drops back to UNLOADED and the next caller starts a fresh attempt.
"""

from __future__ import annotations

import asyncio
import enum
import time
from typing import Any, Callable, Optional

from sentence_transformers import SentenceTransformer

from app.core.config import settings
from app.core.exceptions import (
    DimensionMismatchError,
    EmbeddingError,
    EmbeddingModelLoadError,
    EmptyInputError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

ModelFactory = Callable[[], Any]


class EmbeddingState(str, enum.Enum):
    """Model lifecycle state"""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


def normalize_text(text: str, max_chars: int) -> str:
    """Collapse whitespace, trim and truncate to max_chars."""

    return " ".join(text.split())[:max_chars]


class EmbeddingService:
    """
    Process-wide text embedding provider.

    Key Features:
    - One shared in-flight load for concurrent callers
    - Never unloaded once READY
    - Semaphore bounds concurrent encode calls on the threadpool
    - Output length checked against ``vectorstore_dimension``
    """

    def __init__(
        self,
        *,
        model_name: str | None = None,
        device: str | None = None,
        dimension: int | None = None,
        max_input_chars: int | None = None,
        max_concurrency: int | None = None,
        load_timeout_seconds: float | None = None,
        model_factory: ModelFactory | None = None,
    ) -> None:
        self.model_name = model_name or settings.embedding_model
        self.device = device or settings.embedding_device
        self.dimension = dimension or settings.vectorstore_dimension
        self.max_input_chars = max_input_chars or settings.embedding_max_input_chars
        self.max_concurrency = max_concurrency or settings.embedding_max_concurrency
        self.load_timeout_seconds = (
            load_timeout_seconds or settings.embedding_load_timeout_seconds
        )
        self._model_factory = model_factory or self._default_model_factory

        self._model: Optional[Any] = None
        self._load_future: Optional[asyncio.Future] = None
        self._semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info(
            "embedding_service_created",
            model_name=self.model_name,
            device=self.device,
            dimension=self.dimension,
            max_concurrency=self.max_concurrency,
        )

    @property
    def state(self) -> EmbeddingState:
        if self._model is not None:
            return EmbeddingState.READY
        if self._load_future is not None and not self._load_future.done():
            return EmbeddingState.LOADING
        return EmbeddingState.UNLOADED

    @property
    def is_ready(self) -> bool:
        return self.state is EmbeddingState.READY

    async def preload(self) -> None:
        """
        Load the model ahead of the first request.

        Safe to call any number of times and concurrently with ``embed``.

        Raises:
            EmbeddingModelLoadError: If model loading fails
        """
        await self._ensure_loaded()

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Args:
            text: Raw text; normalized before encoding

        Returns:
            Embedding vector of exactly ``dimension`` floats

        Raises:
            EmptyInputError: Text is empty after normalization
            DimensionMismatchError: Model output length != configured dimension
            EmbeddingModelLoadError: Model could not be loaded
            EmbeddingError: Encoding failed
        """
        normalized = normalize_text(text or "", self.max_input_chars)
        if not normalized:
            raise EmptyInputError("Empty text cannot be embedded")

        model = await self._ensure_loaded()
        embedding = await self._encode_async(model, normalized)

        if len(embedding) != self.dimension:
            logger.error(
                "embedding_dimension_mismatch",
                model_name=self.model_name,
                expected=self.dimension,
                actual=len(embedding),
            )
            raise DimensionMismatchError(
                f"Expected {self.dimension} dimensions, got {len(embedding)}"
            )

        logger.debug("text_embedded", text_length=len(normalized), embedding_dim=len(embedding))
        return embedding

    # Private helper methods ------------------------------------------------

    async def _ensure_loaded(self) -> Any:
        if self._model is not None:
            return self._model

        if self._load_future is None:
            self._load_future = asyncio.ensure_future(self._load_model())

        future = self._load_future
        try:
            # shield: a cancelled caller must not cancel the shared load
            return await asyncio.shield(future)
        except Exception:
            if self._load_future is future:
                self._load_future = None
            raise

    async def _load_model(self) -> Any:
        t0 = time.perf_counter()
        logger.info("embedding_model_loading", model_name=self.model_name, device=self.device)

        loop = asyncio.get_running_loop()
        try:
            model = await asyncio.wait_for(
                loop.run_in_executor(None, self._model_factory),
                timeout=self.load_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("embedding_model_load_timeout", model_name=self.model_name)
            raise EmbeddingModelLoadError(
                f"Timeout loading embedding model {self.model_name}"
            ) from e
        except Exception as e:
            logger.error("embedding_model_load_failed", model_name=self.model_name, error=str(e))
            raise EmbeddingModelLoadError(
                f"Failed to load embedding model {self.model_name}: {e}"
            ) from e

        self._model = model
        logger.info(
            "embedding_model_loaded",
            model_name=self.model_name,
            dimension=self.dimension,
            elapsed_seconds=f"{time.perf_counter() - t0:.2f}",
        )
        return model

    async def _encode_async(self, model: Any, text: str) -> list[float]:
        loop = asyncio.get_running_loop()

        async with self._semaphore:
            try:
                output = await loop.run_in_executor(
                    None,
                    lambda: model.encode(text, normalize_embeddings=True),
                )
            except Exception as e:
                logger.error("embedding_encode_failed", error=str(e), text_length=len(text))
                raise EmbeddingError(f"Failed to embed text: {e}") from e

        values = output.tolist() if hasattr(output, "tolist") else list(output)
        return [float(v) for v in values]

    def _default_model_factory(self) -> SentenceTransformer:
        return SentenceTransformer(self.model_name, device=self.device)


_embedding_service: EmbeddingService | None = None


def get_embedding_service() -> EmbeddingService:
    """Get or create the process-wide EmbeddingService instance."""
    global _embedding_service
    if _embedding_service is None:
        _embedding_service = EmbeddingService()
    return _embedding_service
