from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest

from app.core.exceptions import DimensionMismatchError, VectorStoreUnavailableError
from app.vectorstore.pgvector import PGVectorStore


class FakeResult:
    def __init__(self, scalar=None, rows=()) -> None:
        self._scalar = scalar
        self._rows = list(rows)

    def scalar_one_or_none(self):
        return self._scalar

    def scalar_one(self):
        return self._scalar

    def fetchall(self):
        return self._rows


class FakeConnection:
    def __init__(self, engine: "FakeEngine") -> None:
        self.engine = engine

    async def execute(self, stmt, params=None) -> FakeResult:
        sql = " ".join(str(stmt).split())
        self.engine.statements.append((sql, params))
        if "FROM pg_attribute" in sql:
            return FakeResult(scalar=self.engine.existing_dimension)
        if sql.startswith("SELECT COUNT(*)"):
            return FakeResult(scalar=self.engine.row_count)
        if "ORDER BY embedding" in sql:
            return FakeResult(rows=self.engine.search_rows)
        return FakeResult()


class FakeEngine:
    """AsyncEngine stand-in: records SQL, can refuse the first N connections."""

    def __init__(
        self,
        *,
        fail_first: int = 0,
        existing_dimension: int | None = None,
        row_count: int = 0,
        search_rows=(),
    ) -> None:
        self.fail_first = fail_first
        self.existing_dimension = existing_dimension
        self.row_count = row_count
        self.search_rows = list(search_rows)
        self.begins = 0
        self.statements: list[tuple[str, dict | None]] = []

    @asynccontextmanager
    async def begin(self):
        self.begins += 1
        if self.begins <= self.fail_first:
            raise OSError("connection refused")
        yield FakeConnection(self)

    @asynccontextmanager
    async def connect(self):
        yield FakeConnection(self)

    def executed(self, fragment: str) -> list[tuple[str, dict | None]]:
        return [entry for entry in self.statements if fragment in entry[0]]


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _store(engine: FakeEngine, **kwargs) -> PGVectorStore:
    return PGVectorStore(
        engine=engine,
        table_name="post_vectors",
        dimension=3,
        preview_length=kwargs.pop("preview_length", 10),
        ivfflat_lists=10,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_init_schema_is_idempotent() -> None:
    engine = FakeEngine()
    store = _store(engine)

    assert await store.init_schema() is True
    assert await store.init_schema() is True

    assert store.is_available is True
    assert len(engine.executed("CREATE EXTENSION IF NOT EXISTS vector")) == 2
    assert len(engine.executed("CREATE TABLE IF NOT EXISTS post_vectors")) == 2
    assert len(engine.executed("USING ivfflat (embedding vector_cosine_ops)")) == 2


@pytest.mark.asyncio
async def test_failed_init_degrades_without_raising() -> None:
    store = _store(FakeEngine(fail_first=1), clock=FakeClock())

    assert await store.init_schema() is False
    assert store.is_available is False


@pytest.mark.asyncio
async def test_store_recovers_once_database_is_reachable() -> None:
    engine = FakeEngine(fail_first=1)
    clock = FakeClock()
    store = _store(engine, init_retry_seconds=5.0, clock=clock)
    assert await store.init_schema() is False

    clock.now += 5.0
    await store.upsert("p1", "hello", [1.0, 0.0, 0.0])

    assert store.is_available is True
    assert engine.begins == 3
    assert len(engine.executed("INSERT INTO post_vectors")) == 1


@pytest.mark.asyncio
async def test_init_retries_are_throttled() -> None:
    engine = FakeEngine(fail_first=5)
    clock = FakeClock()
    store = _store(engine, init_retry_seconds=5.0, clock=clock)
    assert await store.init_schema() is False

    clock.now += 1.0
    with pytest.raises(VectorStoreUnavailableError):
        await store.search([1.0, 0.0, 0.0], top_k=5, min_score=0.7)
    assert engine.begins == 1

    clock.now += 5.0
    with pytest.raises(VectorStoreUnavailableError):
        await store.delete("p1")
    assert engine.begins == 2


@pytest.mark.asyncio
async def test_first_use_initializes_schema() -> None:
    engine = FakeEngine()
    store = _store(engine)

    assert await store.search([1.0, 0.0, 0.0], top_k=5, min_score=0.7) == []

    assert store.is_available is True
    assert len(engine.executed("CREATE TABLE IF NOT EXISTS post_vectors")) == 1


@pytest.mark.asyncio
async def test_upsert_truncates_preview_and_uses_conflict_update() -> None:
    engine = FakeEngine()
    store = _store(engine, preview_length=10)
    await store.init_schema()

    await store.upsert("p1", "x" * 50, [1.0, 0.0, 0.0])

    sql, params = engine.executed("INSERT INTO post_vectors")[0]
    assert "ON CONFLICT (external_id) DO UPDATE" in sql
    assert params["content_preview"] == "x" * 10
    assert params["external_id"] == "p1"
    assert params["embedding"] == [1.0, 0.0, 0.0]


@pytest.mark.asyncio
async def test_wrong_dimension_is_rejected_before_sql() -> None:
    engine = FakeEngine()
    store = _store(engine)
    await store.init_schema()

    with pytest.raises(DimensionMismatchError):
        await store.upsert("p1", "text", [1.0, 0.0])
    with pytest.raises(DimensionMismatchError):
        await store.search([1.0, 0.0, 0.0, 0.0], top_k=5, min_score=0.7)

    assert engine.executed("INSERT INTO post_vectors") == []
    assert engine.executed("ORDER BY embedding") == []


@pytest.mark.asyncio
async def test_search_maps_rows_to_candidates() -> None:
    engine = FakeEngine(
        search_rows=[
            SimpleNamespace(external_id="p1", content_preview="hello", score=0.93),
            SimpleNamespace(external_id="p2", content_preview="world", score=0.71),
        ]
    )
    store = _store(engine)
    await store.init_schema()

    results = await store.search([1.0, 0.0, 0.0], top_k=2, min_score=0.7)

    assert [(c.external_id, c.score) for c in results] == [("p1", 0.93), ("p2", 0.71)]
    sql, params = engine.executed("ORDER BY embedding")[0]
    assert "1 - (embedding <=> CAST(:embedding AS vector)) >= :min_score" in sql
    assert params["limit"] == 2
    assert params["min_score"] == 0.7


@pytest.mark.asyncio
async def test_empty_table_with_other_dimension_is_recreated() -> None:
    engine = FakeEngine(existing_dimension=256, row_count=0)
    store = _store(engine)

    assert await store.init_schema() is True

    assert len(engine.executed("DROP TABLE post_vectors")) == 1


@pytest.mark.asyncio
async def test_populated_table_with_other_dimension_is_not_dropped() -> None:
    engine = FakeEngine(existing_dimension=256, row_count=5)
    store = _store(engine)

    assert await store.init_schema() is False

    assert store.is_available is False
    assert engine.executed("DROP TABLE") == []
    assert engine.executed("CREATE TABLE IF NOT EXISTS post_vectors") == []


def test_unsafe_table_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        PGVectorStore(engine=FakeEngine(), table_name="posts; DROP TABLE users")
