"""
LLM Client Factory
Creates appropriate LLM client based on configuration
"""

from app.llm.protocol import LLMClientProtocol
from app.llm.mock import MockLLMClient
from app.llm.openai import OpenAIChatClient
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def get_llm_client() -> LLMClientProtocol:
    """
    Get LLM client implementation based on configuration

    Returns:
        LLM client implementation

    Raises:
        ValueError: If llm_provider is not supported

    Usage:
        llm_client = get_llm_client()
        if llm_client.is_available():
            verdict = await llm_client.classify_relevance(system, user)
    """
    provider = settings.llm_provider

    logger.info("llm_factory", provider=provider, model=settings.llm_model)

    if provider == "mock":
        return MockLLMClient(model=settings.llm_model)

    if provider == "openai":
        return OpenAIChatClient()

    raise ValueError(
        f"Unsupported llm_provider: {provider}. "
        f"Supported providers: mock, openai"
    )


# Singleton instance for dependency injection
_llm_client: LLMClientProtocol | None = None


def get_llm_client_instance() -> LLMClientProtocol:
    """
    Get singleton LLM client instance

    Returns:
        LLM client instance
    """
    global _llm_client
    if _llm_client is None:
        _llm_client = get_llm_client()
    return _llm_client


async def close_llm_client() -> None:
    """Close the singleton's HTTP resources, if it was ever created."""
    global _llm_client
    if _llm_client is None:
        return
    client, _llm_client = _llm_client, None
    await client.aclose()
    logger.info("llm_client_closed")
