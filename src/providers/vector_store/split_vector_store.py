"""Split vector store: vectors in an external index, rows in SQLite.

Storing a chunk is two writes with no spanning transaction: the row
(without its vector) goes to the relational repository first, then the
vector is upserted into the index under the chunk id.  If the second write
fails the row stays behind without a vector and is simply never returned by
search.  The reverse divergence (vectors whose rows are gone, e.g. after a
partially failed delete) is repaired by :meth:`SplitVectorStore.reconcile`.

Search is also two steps:

    1. query the index, filtered by ``agent_id``; keep scores >= threshold
    2. batch-fetch the rows by id and merge content with the index score

Ids the index returns but the repository does not (orphans, or chunks of an
inactive document) are dropped silently.  Result order is the index order.
"""

from __future__ import annotations

from src.interfaces.rag_repository import IRAGRepository
from src.interfaces.vector_index_provider import IVectorIndexProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import DocumentChunk, RetrievedChunk
from src.utils.logging import get_logger


class SplitVectorStore(IVectorStoreProvider):
    """Vector store combining an external vector index with the relational repository."""

    def __init__(self, repository: IRAGRepository, index: IVectorIndexProvider) -> None:
        self._repository = repository
        self._index = index
        self._logger = get_logger(__name__)

    async def store(self, chunk: DocumentChunk) -> None:
        await self._repository.store_chunks_metadata_only([chunk])
        await self._index.upsert(
            chunk.id,
            chunk.embedding,
            {"agent_id": chunk.agent_id, "document_id": chunk.document_id},
        )

    async def search(
        self,
        agent_id: str,
        query_embedding: list[float],
        top_k: int,
        threshold: float,
    ) -> list[RetrievedChunk]:
        matches = await self._index.query(query_embedding, top_k, {"agent_id": agent_id})
        matches = [m for m in matches if m.score >= threshold][:top_k]
        if not matches:
            return []

        rows = await self._repository.get_chunk_rows(agent_id, [m.id for m in matches])
        results = [
            rows[m.id].model_copy(update={"score": m.score})
            for m in matches
            if m.id in rows
        ]
        self._logger.info(
            "split_search",
            agent_id=agent_id,
            index_matches=len(matches),
            dropped=len(matches) - len(results),
            results_count=len(results),
        )
        return results

    async def delete(self, agent_id: str) -> int:
        vectors = await self._index.delete({"agent_id": agent_id})
        rows = await self._repository.delete_chunks_by_agent(agent_id)
        self._logger.info("split_delete", agent_id=agent_id, vectors_deleted=vectors, rows_deleted=rows)
        return rows

    async def delete_document(self, agent_id: str, document_id: str) -> int:
        await self._index.delete({"agent_id": agent_id, "document_id": document_id})
        return await self._repository.delete_chunks_by_document(agent_id, document_id)

    async def reconcile(self, agent_id: str) -> int:
        """Remove index vectors of *agent_id* whose chunk rows no longer exist.

        Idempotent.  Returns the number of vectors removed.
        """
        index_ids = await self._index.list_ids({"agent_id": agent_id})
        row_ids = await self._repository.get_chunk_ids_by_agent(agent_id)
        orphans = sorted(index_ids - row_ids)
        await self._index.delete_ids(orphans)
        self._logger.info("split_reconcile", agent_id=agent_id, orphans_removed=len(orphans))
        return len(orphans)

    def get_provider_name(self) -> str:
        return f"sqlite+{self._index.get_provider_name()}"
