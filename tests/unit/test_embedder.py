import asyncio
import time

import pytest

from app.core.exceptions import DimensionMismatchError, EmbeddingModelLoadError, EmptyInputError
from app.llm.embedder import EmbeddingService, EmbeddingState, normalize_text


class FakeModel:
    """Stands in for SentenceTransformer; records what it was asked to encode."""

    def __init__(self, dimension: int = 384) -> None:
        self.dimension = dimension
        self.inputs: list[str] = []

    def encode(self, text: str, normalize_embeddings: bool = True) -> list[float]:
        self.inputs.append(text)
        return [0.1] * self.dimension


class CountingFactory:
    """Model factory that counts loads and can fail the first N attempts."""

    def __init__(self, model: FakeModel, *, fail_times: int = 0, delay: float = 0.0) -> None:
        self.model = model
        self.fail_times = fail_times
        self.delay = delay
        self.calls = 0

    def __call__(self) -> FakeModel:
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.calls <= self.fail_times:
            raise RuntimeError("model download failed")
        return self.model


def _service(factory: CountingFactory, **kwargs) -> EmbeddingService:
    return EmbeddingService(
        model_name="test-model",
        device="cpu",
        dimension=kwargs.pop("dimension", 384),
        model_factory=factory,
        **kwargs,
    )


def test_normalize_text_collapses_whitespace_and_truncates() -> None:
    assert normalize_text("  hello \n\t world  ", 512) == "hello world"
    assert normalize_text("abcdefgh", 5) == "abcde"
    assert normalize_text("   ", 512) == ""


@pytest.mark.asyncio
async def test_concurrent_first_calls_share_one_model_load() -> None:
    factory = CountingFactory(FakeModel(), delay=0.05)
    service = _service(factory)

    results = await asyncio.gather(*(service.embed(f"text {i}") for i in range(10)))

    assert factory.calls == 1
    assert service.state is EmbeddingState.READY
    assert all(len(vector) == 384 for vector in results)


@pytest.mark.asyncio
async def test_empty_input_rejected_without_loading_model() -> None:
    factory = CountingFactory(FakeModel())
    service = _service(factory)

    with pytest.raises(EmptyInputError):
        await service.embed("   \n\t ")

    assert factory.calls == 0
    assert service.state is EmbeddingState.UNLOADED


@pytest.mark.asyncio
async def test_text_is_normalized_before_encoding() -> None:
    model = FakeModel()
    service = _service(CountingFactory(model), max_input_chars=11)

    await service.embed("  hello \n\n  world and more  ")

    assert model.inputs == ["hello world"]


@pytest.mark.asyncio
async def test_dimension_mismatch_is_rejected() -> None:
    service = _service(CountingFactory(FakeModel(dimension=256)), dimension=384)

    with pytest.raises(DimensionMismatchError):
        await service.embed("some text")


@pytest.mark.asyncio
async def test_failed_load_is_retried_by_next_caller() -> None:
    factory = CountingFactory(FakeModel(), fail_times=1)
    service = _service(factory)

    with pytest.raises(EmbeddingModelLoadError):
        await service.embed("first")

    assert service.state is EmbeddingState.UNLOADED

    vector = await service.embed("second")

    assert len(vector) == 384
    assert factory.calls == 2
    assert service.is_ready


@pytest.mark.asyncio
async def test_preload_is_idempotent() -> None:
    factory = CountingFactory(FakeModel())
    service = _service(factory)

    await service.preload()
    await service.preload()
    await service.embed("after preload")

    assert factory.calls == 1
