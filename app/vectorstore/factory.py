"""
VectorStore Factory
Creates appropriate VectorStore implementation based on configuration
"""

from app.vectorstore.protocol import VectorStoreProtocol
from app.vectorstore.memory import InMemoryVectorStore
from app.vectorstore.pgvector import PGVectorStore
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def get_vectorstore() -> VectorStoreProtocol:
    """
    Get VectorStore implementation based on configuration

    Returns:
        VectorStore implementation

    Raises:
        ValueError: If vectorstore_type is not supported
    """
    vectorstore_type = settings.vectorstore_type

    logger.info(
        "vectorstore_factory",
        vectorstore_type=vectorstore_type,
        dimension=settings.vectorstore_dimension,
    )

    if vectorstore_type == "memory":
        return InMemoryVectorStore()

    if vectorstore_type == "pgvector":
        return PGVectorStore()

    raise ValueError(
        f"Unsupported vectorstore_type: {vectorstore_type}. "
        "Supported types: memory, pgvector"
    )


# Singleton instance for dependency injection
_post_vectorstore: VectorStoreProtocol | None = None


def get_post_vectorstore() -> VectorStoreProtocol:
    """
    Get singleton post VectorStore instance
    """
    global _post_vectorstore
    if _post_vectorstore is None:
        _post_vectorstore = get_vectorstore()
    return _post_vectorstore
