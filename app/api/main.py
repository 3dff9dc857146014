"""
FastAPI Application Factory

Creates and configures FastAPI application
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.core.db import close_db, init_db
from app.core.dependencies import get_post_indexer
from app.llm.embedder import get_embedding_service
from app.llm.factory import close_llm_client, get_llm_client_instance
from app.vectorstore.factory import get_post_vectorstore

# Import routers
from app.routers import posts, search
from app.api.error_handlers import register_exception_handlers
from app.api.response_middleware import SuccessEnvelopeMiddleware

logger = get_logger(__name__)


async def warmup_embedding_service() -> None:
    """Background task: load the embedding model before the first request."""
    t0 = time.perf_counter()
    try:
        logger.info(
            "embedding_service_background_warmup_start",
            model=settings.embedding_model,
            device=settings.embedding_device,
        )
        await get_embedding_service().preload()
        logger.info(
            "embedding_service_background_warmup_complete",
            model=settings.embedding_model,
            elapsed_seconds=f"{time.perf_counter() - t0:.2f}",
        )
    except Exception as e:
        # the next embed() call retries the load
        logger.error(
            "embedding_service_background_warmup_failed",
            error=str(e),
            elapsed_seconds=f"{time.perf_counter() - t0:.2f}",
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events

    Startup:
        - Configure logging
        - Create primary tables (development only)
        - Initialize the vector table; failure leaves search degraded
        - Schedule embedding model warmup as a background task

    Shutdown:
        - Drain pending index tasks
        - Close the LLM HTTP client
        - Close database connections
    """
    # Startup
    configure_logging()
    logger.info("application_startup", environment=settings.environment)

    if settings.environment == "development":
        logger.info("initializing_database_tables")
        try:
            await init_db()
        except Exception as exc:  # noqa: BLE001
            logger.error("database_init_failed", error=str(exc))

    vector_ready = await get_post_vectorstore().init_schema()
    if not vector_ready:
        logger.warning("vectorstore_degraded", reason="schema_init_failed")

    warmup_task = asyncio.create_task(warmup_embedding_service())

    yield

    # Shutdown
    logger.info("application_shutdown")
    if not warmup_task.done():
        warmup_task.cancel()
    await get_post_indexer().wait_pending()
    await close_llm_client()
    await close_db()


def create_app() -> FastAPI:
    """
    Create FastAPI application

    Returns:
        Configured FastAPI app instance

    Usage:
        app = create_app()
        uvicorn.run(app, host="0.0.0.0", port=8000)
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Semantic post search backend",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Success envelope middleware
    app.add_middleware(SuccessEnvelopeMiddleware)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        search.router,
        prefix=settings.api_v1_prefix,
    )
    app.include_router(
        posts.router,
        prefix=settings.api_v1_prefix,
    )

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint

        Returns:
            Status dict with search dependency readiness
        """
        return {
            "status": "ok",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "embedding": get_embedding_service().state.value,
            "vectorstore": get_post_vectorstore().is_available,
            "llm": get_llm_client_instance().is_available(),
        }

    logger.info("fastapi_app_created", routes=len(app.routes))

    return app


# Application instance
app = create_app()
