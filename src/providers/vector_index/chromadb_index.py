"""ChromaDB vector index adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorIndexProvider`
for the split vector store.  The collection uses cosine space and stores only
vectors plus the ``agent_id`` / ``document_id`` filter keys; chunk content
and metadata live in the relational repository.

ChromaDB's client is synchronous, so every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

# Disable ChromaDB telemetry before importing chromadb.  ChromaDB's bundled
# PostHog client raises "capture() takes 1 positional argument but 3 were
# given" against newer posthog releases.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from src.interfaces.vector_index_provider import IndexMatch, IVectorIndexProvider
from src.utils.errors import VectorIndexError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that is never called.

    Vectors are always supplied by the caller; without this ChromaDB loads
    its default ONNX model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError("Vectors are pre-computed; ChromaDB embedding is never used.")

    def name(self) -> str:
        return "noop_precomputed"


def _where_clause(where: dict[str, str]) -> dict[str, Any]:
    """Translate an equality map into ChromaDB's ``where`` syntax."""
    if len(where) == 1:
        return dict(where)
    return {"$and": [{key: value} for key, value in where.items()]}


class ChromaDBVectorIndex(IVectorIndexProvider):
    """External vector index backed by a persistent ChromaDB collection."""

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "agent_knowledge",
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections created by older ChromaDB versions reject a different
        # embedding function; reopen without one in that case.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IVectorIndexProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, vector_id: str, vector: list[float], metadata: dict[str, str]) -> None:
        try:
            await asyncio.to_thread(
                self._collection.upsert,
                ids=[vector_id],
                embeddings=[vector],
                metadatas=[metadata],
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def query(
        self,
        vector: list[float],
        top_k: int,
        where: dict[str, str],
    ) -> list[IndexMatch]:
        try:
            total = await asyncio.to_thread(self._collection.count)
            if total == 0 or top_k <= 0:
                return []
            results = await asyncio.to_thread(
                self._collection.query,
                query_embeddings=[vector],
                n_results=min(top_k, total),
                where=_where_clause(where),
                include=["distances"],
            )
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []
        ids = results["ids"][0]
        distances = results["distances"][0] if results.get("distances") else [0.0] * len(ids)
        matches = [
            IndexMatch(id=vector_id, score=max(0.0, min(1.0, 1.0 - distance)))
            for vector_id, distance in zip(ids, distances, strict=True)
        ]
        logger.debug("chromadb_query", results_count=len(matches), where=where)
        return matches

    async def delete(self, where: dict[str, str]) -> int:
        try:
            existing = await asyncio.to_thread(self._collection.get, where=_where_clause(where), include=[])
            count = len(existing["ids"]) if existing["ids"] else 0
            if count > 0:
                await asyncio.to_thread(self._collection.delete, where=_where_clause(where))
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_delete", where=where, deleted_count=count)
        return count

    async def delete_ids(self, vector_ids: list[str]) -> None:
        if not vector_ids:
            return
        try:
            await asyncio.to_thread(self._collection.delete, ids=list(vector_ids))
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB delete by id failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def list_ids(self, where: dict[str, str]) -> set[str]:
        try:
            existing = await asyncio.to_thread(self._collection.get, where=_where_clause(where), include=[])
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB get failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return set(existing["ids"] or [])

    def get_provider_name(self) -> str:
        return "chromadb"
