import pytest

from app.core.exceptions import DimensionMismatchError
from app.vectorstore.memory import InMemoryVectorStore, cosine_similarity


@pytest.fixture
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore(dimension=3, preview_length=10)


def test_cosine_similarity_handles_zero_vectors() -> None:
    assert cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]) == pytest.approx(0.0)
    assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 0.0, 0.0]) == 0.0


@pytest.mark.asyncio
async def test_record_is_its_own_best_match(store: InMemoryVectorStore) -> None:
    await store.upsert("p1", "first", [0.2, 0.9, 0.1])
    await store.upsert("p2", "second", [0.9, 0.1, 0.0])

    results = await store.search([0.2, 0.9, 0.1], top_k=5, min_score=0.7)

    assert results[0].external_id == "p1"
    assert results[0].score == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_deleted_record_is_never_returned(store: InMemoryVectorStore) -> None:
    await store.upsert("p1", "first", [1.0, 0.0, 0.0])
    await store.delete("p1")
    await store.delete("missing")

    assert await store.search([1.0, 0.0, 0.0], top_k=5, min_score=0.0) == []
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_upsert_keeps_one_record_per_id(store: InMemoryVectorStore) -> None:
    await store.upsert("p1", "old text", [1.0, 0.0, 0.0])
    await store.upsert("p1", "new text", [0.0, 1.0, 0.0])

    assert await store.count() == 1
    record = store.get("p1")
    assert record is not None
    assert record.content_preview == "new text"
    assert record.embedding == (0.0, 1.0, 0.0)


@pytest.mark.asyncio
async def test_search_applies_threshold_order_and_top_k(store: InMemoryVectorStore) -> None:
    await store.upsert("exact", "a", [1.0, 0.0, 0.0])
    await store.upsert("close", "b", [0.9, 0.3, 0.0])
    await store.upsert("far", "c", [0.0, 0.0, 1.0])

    results = await store.search([1.0, 0.0, 0.0], top_k=5, min_score=0.7)
    assert [c.external_id for c in results] == ["exact", "close"]
    assert results[0].score >= results[1].score

    limited = await store.search([1.0, 0.0, 0.0], top_k=1, min_score=0.0)
    assert [c.external_id for c in limited] == ["exact"]


@pytest.mark.asyncio
async def test_preview_is_truncated(store: InMemoryVectorStore) -> None:
    await store.upsert("p1", "x" * 50, [1.0, 0.0, 0.0])

    results = await store.search([1.0, 0.0, 0.0], top_k=1, min_score=0.0)

    assert results[0].content_preview == "x" * 10


@pytest.mark.asyncio
async def test_wrong_dimension_is_rejected(store: InMemoryVectorStore) -> None:
    with pytest.raises(DimensionMismatchError):
        await store.upsert("p1", "text", [1.0, 0.0])

    with pytest.raises(DimensionMismatchError):
        await store.search([1.0, 0.0, 0.0, 0.0], top_k=1, min_score=0.0)
