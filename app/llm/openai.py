"""
OpenAI Chat Completion Client

Talks to an OpenAI-compatible ``/chat/completions`` endpoint. A hard
timeout is enforced with ``asyncio.wait_for``; on expiry the in-flight
httpx request is cancelled and ``LLMTimeoutError`` is raised.
"""

from __future__ import annotations

import asyncio
import time

import httpx

from app.core.config import settings
from app.core.exceptions import (
    LLMProviderError,
    LLMTimeoutError,
    LLMUnavailableError,
)
from app.core.logging import get_logger, log_llm_call
from app.llm.protocol import LLMClientProtocol, LLMResponse

logger = get_logger(__name__)


class OpenAIChatClient(LLMClientProtocol):
    """OpenAI chat-completion client (no retries)."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        self.model = model or settings.llm_model
        self.timeout_seconds = timeout_seconds or settings.llm_timeout_seconds
        self._client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            # the asyncio deadline below is authoritative; this only backstops it
            timeout=self.timeout_seconds + 5.0,
        )
        logger.info(
            "openai_llm_initialized",
            base_url=self.base_url,
            model=self.model,
            available=self.is_available(),
        )

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        if not self.is_available():
            raise LLMUnavailableError("OpenAI API key not configured")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": settings.llm_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or settings.llm_max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        t0 = time.perf_counter()
        try:
            resp = await asyncio.wait_for(
                self._client.post("/chat/completions", json=payload, headers=headers),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            latency_ms = (time.perf_counter() - t0) * 1000
            log_llm_call(
                operation="chat_completion",
                model=self.model,
                latency_ms=latency_ms,
                error="timeout",
            )
            raise LLMTimeoutError(
                f"LLM call exceeded {self.timeout_seconds:.0f}s timeout"
            ) from exc
        except httpx.HTTPError as exc:
            latency_ms = (time.perf_counter() - t0) * 1000
            log_llm_call(
                operation="chat_completion",
                model=self.model,
                latency_ms=latency_ms,
                error=str(exc),
            )
            raise LLMProviderError(f"OpenAI request failed: {exc}") from exc

        latency_ms = (time.perf_counter() - t0) * 1000

        if resp.status_code >= 400:
            log_llm_call(
                operation="chat_completion",
                model=self.model,
                latency_ms=latency_ms,
                error=f"status {resp.status_code}",
            )
            raise LLMProviderError(f"OpenAI API error: {resp.status_code}")

        data = resp.json()
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        usage = data.get("usage")

        log_llm_call(
            operation="chat_completion",
            model=data.get("model", self.model),
            latency_ms=latency_ms,
            tokens=usage,
        )
        return LLMResponse(content=content, usage=usage, model=data.get("model", self.model))

    async def classify_relevance(self, system_prompt: str, user_prompt: str) -> str:
        response = await self.complete(prompt=user_prompt, system_prompt=system_prompt)
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenAIChatClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()
