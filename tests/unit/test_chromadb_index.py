"""Unit tests for the ChromaDB vector index.

Each test uses a persistent ChromaDB client rooted in ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.interfaces.vector_index_provider import IndexMatch
from src.providers.vector_index.chromadb_index import ChromaDBVectorIndex, _where_clause
from src.utils.errors import VectorIndexError


@pytest.fixture()
def index(tmp_path: Path) -> ChromaDBVectorIndex:
    return ChromaDBVectorIndex(persist_directory=str(tmp_path / "chroma"), collection_name="test_index")


async def _seed(index: ChromaDBVectorIndex) -> None:
    await index.upsert("c1", [1.0, 0.0, 0.0], {"agent_id": "a", "document_id": "d1"})
    await index.upsert("c2", [0.8, 0.6, 0.0], {"agent_id": "a", "document_id": "d2"})
    await index.upsert("c3", [1.0, 0.0, 0.0], {"agent_id": "b", "document_id": "d3"})


class TestWhereClause:
    def test_single_key_passes_through(self) -> None:
        assert _where_clause({"agent_id": "a"}) == {"agent_id": "a"}

    def test_multiple_keys_use_and(self) -> None:
        assert _where_clause({"agent_id": "a", "document_id": "d"}) == {
            "$and": [{"agent_id": "a"}, {"document_id": "d"}]
        }


class TestChromaDBVectorIndex:
    def test_provider_name(self, index: ChromaDBVectorIndex) -> None:
        assert index.get_provider_name() == "chromadb"

    @pytest.mark.asyncio
    async def test_query_empty_collection(self, index: ChromaDBVectorIndex) -> None:
        assert await index.query([1.0, 0.0, 0.0], 5, {"agent_id": "a"}) == []

    @pytest.mark.asyncio
    async def test_query_filters_by_agent_and_ranks(self, index: ChromaDBVectorIndex) -> None:
        await _seed(index)

        matches = await index.query([1.0, 0.0, 0.0], 5, {"agent_id": "a"})

        assert [m.id for m in matches] == ["c1", "c2"]
        assert matches[0].score == pytest.approx(1.0, abs=1e-4)
        assert matches[1].score == pytest.approx(0.8, abs=1e-4)
        assert all(isinstance(m, IndexMatch) for m in matches)

    @pytest.mark.asyncio
    async def test_upsert_replaces_vector(self, index: ChromaDBVectorIndex) -> None:
        await index.upsert("c1", [1.0, 0.0], {"agent_id": "a", "document_id": "d1"})
        await index.upsert("c1", [0.0, 1.0], {"agent_id": "a", "document_id": "d1"})

        matches = await index.query([0.0, 1.0], 5, {"agent_id": "a"})
        assert [m.id for m in matches] == ["c1"]
        assert matches[0].score == pytest.approx(1.0, abs=1e-4)

    @pytest.mark.asyncio
    async def test_delete_by_filter_counts(self, index: ChromaDBVectorIndex) -> None:
        await _seed(index)

        assert await index.delete({"agent_id": "a", "document_id": "d1"}) == 1
        assert await index.list_ids({"agent_id": "a"}) == {"c2"}
        assert await index.delete({"agent_id": "a"}) == 1
        assert await index.delete({"agent_id": "a"}) == 0
        assert await index.list_ids({"agent_id": "b"}) == {"c3"}

    @pytest.mark.asyncio
    async def test_delete_ids(self, index: ChromaDBVectorIndex) -> None:
        await _seed(index)

        await index.delete_ids(["c1", "c3", "unknown"])
        await index.delete_ids([])

        assert await index.list_ids({"agent_id": "a"}) == {"c2"}
        assert await index.list_ids({"agent_id": "b"}) == set()

    @pytest.mark.asyncio
    async def test_backend_errors_are_wrapped(self, index: ChromaDBVectorIndex) -> None:
        index._collection = MagicMock()
        index._collection.upsert.side_effect = RuntimeError("disk full")

        with pytest.raises(VectorIndexError, match="disk full"):
            await index.upsert("c1", [1.0], {"agent_id": "a", "document_id": "d1"})
