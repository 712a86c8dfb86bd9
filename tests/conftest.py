"""Shared fixtures: configuration, an in-memory Supabase double, fake embeddings."""

import math
from typing import Any

import pytest

from src.video_qa.config import VideoQAConfig
from src.video_qa.errors import EmbeddingFailure
from src.video_qa.vector_index import VectorIndexService


class FakeResponse:
    """Mimics the ``.data`` attribute of a postgrest response."""

    def __init__(self, data: list[dict[str, Any]]):
        self.data = data


class FakeQuery:
    """Chainable table query supporting select/insert/delete, eq and order."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self._op = "select"
        self._payload: list[dict[str, Any]] = []
        self._filters: list[tuple[str, Any]] = []
        self._order: tuple[str, bool] | None = None

    def select(self, columns: str = "*") -> "FakeQuery":
        self._op = "select"
        return self

    def insert(self, rows: dict[str, Any] | list[dict[str, Any]]) -> "FakeQuery":
        self._op = "insert"
        self._payload = rows if isinstance(rows, list) else [rows]
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> FakeResponse:
        self.db.calls.append((self._op, self.table_name))
        if (self._op, self.table_name) in self.db.fail_on:
            raise RuntimeError(f"{self._op} on {self.table_name} failed")

        rows = self.db.tables.setdefault(self.table_name, [])

        if self._op == "insert":
            inserted = [dict(row) for row in self._payload]
            rows.extend(inserted)
            return FakeResponse(inserted)

        if self._op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.db.tables[self.table_name] = [row for row in rows if not self._matches(row)]
            return FakeResponse(removed)

        data = [dict(row) for row in rows if self._matches(row)]
        if self._order:
            column, desc = self._order
            data.sort(key=lambda row: str(row.get(column, "")), reverse=desc)
        return FakeResponse(data)


class FakeRpc:
    """Cosine-similarity search over the chunks table of one collection."""

    def __init__(self, db: "FakeSupabase", name: str, params: dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.calls.append(("rpc", self.name))
        if ("rpc", self.name) in self.db.fail_on:
            raise RuntimeError(f"rpc {self.name} failed")

        query = self.params["query_embedding"]
        rows = [
            row
            for row in self.db.tables.get(self.db.chunks_table, [])
            if row["collection_name"] == self.params["collection"]
        ]
        scored = [
            {
                "chunk_index": row["chunk_index"],
                "content": row["content"],
                "video_id": row["video_id"],
                "session_id": row["session_id"],
                "metadata": row["metadata"],
                "similarity": cosine_similarity(query, row["embedding"]),
            }
            for row in rows
        ]
        scored.sort(key=lambda row: row["similarity"], reverse=True)
        return FakeResponse(scored[: self.params["match_count"]])


class FakeSupabase:
    """In-memory stand-in for ``supabase.Client``.

    ``fail_on`` holds ``(operation, table)`` or ``("rpc", function)`` pairs
    whose next execution raises.
    """

    def __init__(self, chunks_table: str = "collection_chunks"):
        self.chunks_table = chunks_table
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.fail_on: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)


def fake_embedding(text: str) -> list[float]:
    """Letter-frequency vector: identical texts get identical vectors."""
    vector = [0.0] * 27
    for char in text.lower():
        index = ord(char) - ord("a") if "a" <= char <= "z" else 26
        vector[index] += 1.0
    return vector


def cosine_similarity(a: list[float], b: list[float]) -> float:
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return sum(x * y for x, y in zip(a, b, strict=True)) / norm


class FakeEmbeddingService:
    """Deterministic embedding service with an on/off failure switch."""

    def __init__(self) -> None:
        self.fail = False
        self.calls: list[str] = []

    async def embed_text(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingFailure("Failed to generate embeddings.")
        return fake_embedding(text)

    async def embed_batch(
        self, texts: list[str], batch_size: int | None = None
    ) -> list[list[float]]:
        return [await self.embed_text(text) for text in texts]


@pytest.fixture
def config() -> VideoQAConfig:
    """Create test configuration with every secret set."""
    return VideoQAConfig(
        environment="development",
        supadata_api_key="test_supadata_key",
        transcript_languages=["en", "en-US", "en-GB"],
        chunk_size=40,
        chunk_overlap=10,
        retrieval_k=3,
        embedding_provider="openai",
        embedding_base_url="https://api.openai.com/v1",
        embedding_api_key="test_embedding_key",
        embedding_model="text-embedding-3-small",
        embedding_batch_size=5,
        supabase_url="https://test.supabase.co",
        supabase_key="test_supabase_key",
        collections_table="video_collections",
        chunks_table="collection_chunks",
        match_function="match_collection_chunks",
        llm_choice="gpt-4o-mini",
        llm_api_key="test_llm_key",
        llm_temperature=0.2,
    )


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def vector_index(
    config: VideoQAConfig,
    fake_embeddings: FakeEmbeddingService,
    fake_supabase: FakeSupabase,
) -> VectorIndexService:
    """Vector index wired to the in-memory Supabase double."""
    return VectorIndexService(config, fake_embeddings, client=fake_supabase)  # type: ignore[arg-type]
