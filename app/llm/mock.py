"""
Mock LLM Client
For development and testing without actual LLM API calls
"""

import asyncio

from app.llm.protocol import LLMResponse
from app.core.logging import get_logger

logger = get_logger(__name__)


class MockLLMClient:
    """
    Mock LLM client that returns a fixed relevance verdict.
    """

    def __init__(self, model: str = "mock-model", verdict: str = "RELEVANT"):
        self.model = model
        self.verdict = verdict
        logger.info("mock_llm_initialized", model=model, verdict=verdict)

    def is_available(self) -> bool:
        return True

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        # Simulate API latency
        await asyncio.sleep(0.01)

        logger.debug("llm_complete_called", prompt_length=len(prompt))

        return LLMResponse(
            content=self.verdict,
            usage={
                "prompt_tokens": len(prompt) // 4,
                "completion_tokens": 1,
                "total_tokens": len(prompt) // 4 + 1,
            },
            model=self.model,
        )

    async def classify_relevance(self, system_prompt: str, user_prompt: str) -> str:
        response = await self.complete(prompt=user_prompt, system_prompt=system_prompt)
        return response.content

    async def aclose(self) -> None:
        return None
