"""
LLM Client Protocol (Interface)
Defines contract for all LLM implementations
"""

from typing import Protocol, NamedTuple


class LLMResponse(NamedTuple):
    """
    LLM response container

    Attributes:
        content: Generated text content
        usage: Token usage info (prompt_tokens, completion_tokens, total_tokens)
        model: Model name used
    """

    content: str
    usage: dict | None = None
    model: str | None = None


class LLMClientProtocol(Protocol):
    """
    Protocol for LLM client implementations

    The search pipeline uses the LLM only as a binary relevance classifier.
    Implementations perform no retries.
    """

    def is_available(self) -> bool:
        """
        Whether the client is configured (credential present).

        Callers must check this before ``complete``/``classify_relevance``.
        """
        ...

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """
        Generate completion from LLM

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (defaults to settings)
            max_tokens: Maximum tokens to generate (defaults to settings)

        Returns:
            LLM response

        Raises:
            LLMUnavailableError: No credential configured
            LLMTimeoutError: Call exceeded the configured timeout
            LLMProviderError: Provider returned a non-success status
        """
        ...

    async def classify_relevance(self, system_prompt: str, user_prompt: str) -> str:
        """
        Single chat completion returning the raw verdict text.

        Raises:
            Same as ``complete``
        """
        ...

    async def aclose(self) -> None:
        """Release transport resources. Called once at shutdown."""
        ...
