import asyncio
import json

import httpx
import pytest

from app.core.exceptions import LLMProviderError, LLMTimeoutError, LLMUnavailableError
from app.llm.openai import OpenAIChatClient


def _client(handler, *, api_key: str = "sk-test", timeout_seconds: float = 5.0) -> OpenAIChatClient:
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="https://llm.test/v1",
    )
    return OpenAIChatClient(
        api_key=api_key,
        base_url="https://llm.test/v1",
        model="gpt-test",
        timeout_seconds=timeout_seconds,
        http_client=http_client,
    )


@pytest.mark.asyncio
async def test_complete_returns_first_choice_content() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "model": "gpt-test",
                "choices": [{"message": {"role": "assistant", "content": "RELEVANT"}}],
                "usage": {"prompt_tokens": 10, "completion_tokens": 1, "total_tokens": 11},
            },
        )

    async with _client(handler) as client:
        verdict = await client.classify_relevance("system text", "user text")

    assert verdict == "RELEVANT"
    request = seen[0]
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-test"
    assert body["messages"] == [
        {"role": "system", "content": "system text"},
        {"role": "user", "content": "user text"},
    ]


@pytest.mark.asyncio
async def test_non_success_status_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "boom"}})

    async with _client(handler) as client:
        with pytest.raises(LLMProviderError) as exc_info:
            await client.complete("prompt")

    assert "500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_api_key_is_unavailable_and_sends_nothing() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json={})

    async with _client(handler, api_key="") as client:
        assert client.is_available() is False
        with pytest.raises(LLMUnavailableError):
            await client.complete("prompt")

    assert calls == 0


@pytest.mark.asyncio
async def test_slow_provider_raises_timeout() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1.0)
        return httpx.Response(200, json={})

    async with _client(handler, timeout_seconds=0.05) as client:
        with pytest.raises(LLMTimeoutError):
            await client.complete("prompt")


@pytest.mark.asyncio
async def test_missing_choices_yield_empty_content() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": []})

    async with _client(handler) as client:
        response = await client.complete("prompt")

    assert response.content == ""


@pytest.mark.asyncio
async def test_aclose_closes_http_client() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = OpenAIChatClient(api_key="sk-test", http_client=http_client)

    await client.aclose()

    assert http_client.is_closed
