"""Unified vector store: content, metadata and vector in one SQLite row.

A store is a single insert, so a chunk's content and its vector can never
diverge.  Search runs entirely in SQL through the repository's
``cosine_distance`` function.
"""

from __future__ import annotations

import structlog

from src.interfaces.rag_repository import IRAGRepository
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import DocumentChunk, RetrievedChunk

logger = structlog.get_logger(logger_name=__name__)


class UnifiedVectorStore(IVectorStoreProvider):
    """Vector store whose vectors live in the relational chunk table."""

    def __init__(self, repository: IRAGRepository) -> None:
        self._repository = repository

    async def store(self, chunk: DocumentChunk) -> None:
        await self._repository.store_chunks([chunk])

    async def search(
        self,
        agent_id: str,
        query_embedding: list[float],
        top_k: int,
        threshold: float,
    ) -> list[RetrievedChunk]:
        """Chunks of *agent_id* under active documents with similarity strictly above *threshold*."""
        results = await self._repository.search_similar(agent_id, query_embedding, top_k, threshold)
        logger.info(
            "unified_search",
            agent_id=agent_id,
            top_k=top_k,
            threshold=threshold,
            results_count=len(results),
            top_score=results[0].score if results else 0.0,
        )
        return results

    async def delete(self, agent_id: str) -> int:
        count = await self._repository.delete_chunks_by_agent(agent_id)
        logger.info("unified_delete", agent_id=agent_id, deleted_count=count)
        return count

    async def delete_document(self, agent_id: str, document_id: str) -> int:
        return await self._repository.delete_chunks_by_document(agent_id, document_id)

    def get_provider_name(self) -> str:
        return "sqlite_unified"
