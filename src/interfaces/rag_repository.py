"""Abstract base class for the relational knowledge-base store.

Holds training documents and chunk rows.  The chunk table carries an
optional embedding column: the unified vector store fills it and searches
it with the store's cosine-distance function; the split vector store leaves
it empty and keeps vectors in an external index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import DocumentChunk, RetrievedChunk, TrainingDocument


# Concrete implementation: SQLiteRAGRepository (src/providers/repository/)
class IRAGRepository(ABC):
    """Contract for document and chunk persistence, always scoped by agent."""

    # -- documents -------------------------------------------------------

    @abstractmethod
    async def create_training_document(self, document: TrainingDocument) -> None:
        """Insert a new training document row."""

    @abstractmethod
    async def update_training_document(self, document: TrainingDocument) -> None:
        """Persist every mutable field of *document* (title, flags, timestamps)."""

    @abstractmethod
    async def get_training_document(self, agent_id: str, document_id: str) -> TrainingDocument | None:
        """Return one document of *agent_id*, or ``None``."""

    @abstractmethod
    async def get_training_documents_by_agent(self, agent_id: str) -> list[TrainingDocument]:
        """Return every document of *agent_id* with its chunks (without vectors)."""

    @abstractmethod
    async def delete_training_document(self, agent_id: str, document_id: str) -> bool:
        """Delete one document and its chunk rows.  ``False`` if it did not exist."""

    @abstractmethod
    async def delete_training_documents_by_agent(self, agent_id: str) -> int:
        """Delete every document (and chunk row) of *agent_id*."""

    # -- chunks ----------------------------------------------------------

    @abstractmethod
    async def store_chunks(self, chunks: list[DocumentChunk]) -> None:
        """Insert chunk rows including their embeddings."""

    @abstractmethod
    async def store_chunks_metadata_only(self, chunks: list[DocumentChunk]) -> None:
        """Insert chunk rows without embeddings."""

    @abstractmethod
    async def get_chunk_rows(self, agent_id: str, chunk_ids: list[str]) -> dict[str, RetrievedChunk]:
        """Return ``{chunk_id: RetrievedChunk}`` for rows of *agent_id* under an active document."""

    @abstractmethod
    async def search_similar(
        self,
        agent_id: str,
        embedding: list[float],
        top_k: int,
        threshold: float,
    ) -> list[RetrievedChunk]:
        """Cosine-similarity search over stored embeddings of *agent_id*."""

    @abstractmethod
    async def delete_chunks_by_agent(self, agent_id: str) -> int:
        """Delete every chunk row of *agent_id*.  Returns the count."""

    @abstractmethod
    async def delete_chunks_by_document(self, agent_id: str, document_id: str) -> int:
        """Delete every chunk row of one document.  Returns the count."""

    @abstractmethod
    async def get_chunk_ids_by_agent(self, agent_id: str) -> set[str]:
        """Return the ids of every chunk row of *agent_id*."""
