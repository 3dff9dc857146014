import pytest

from app.llm import factory
from app.llm.mock import MockLLMClient


class RecordingLLMClient(MockLLMClient):
    def __init__(self) -> None:
        super().__init__(model="recording")
        self.closed = 0

    async def aclose(self) -> None:
        self.closed += 1


@pytest.mark.asyncio
async def test_close_llm_client_closes_and_resets_singleton(monkeypatch) -> None:
    client = RecordingLLMClient()
    monkeypatch.setattr(factory, "_llm_client", client)

    await factory.close_llm_client()
    await factory.close_llm_client()

    assert client.closed == 1
    assert factory._llm_client is None


@pytest.mark.asyncio
async def test_close_llm_client_without_instance_is_noop(monkeypatch) -> None:
    monkeypatch.setattr(factory, "_llm_client", None)

    await factory.close_llm_client()

    assert factory._llm_client is None


def test_singleton_is_created_once(monkeypatch) -> None:
    monkeypatch.setattr(factory, "_llm_client", None)
    monkeypatch.setattr(factory.settings, "llm_provider", "mock")

    first = factory.get_llm_client_instance()

    assert isinstance(first, MockLLMClient)
    assert factory.get_llm_client_instance() is first
