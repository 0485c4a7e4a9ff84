"""Abstract base class for vector-store providers.

Defines the contract for persisting embedded chunks and searching them by
similarity.  Two materially different variants exist:

* **unified** — one relational table holds content, metadata, and vector.
  A store is a single write, so content and vector never diverge.
* **split** — vectors live in an external index, rows in the relational
  store.  A store is two writes with no spanning transaction.

The variant is chosen once at construction time (see ``src/main.py``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import DocumentChunk, RetrievedChunk


# Concrete implementations: UnifiedVectorStore, SplitVectorStore
# Located in: src/providers/vector_store/
class IVectorStoreProvider(ABC):
    """Contract for vector stores used by the RAG service."""

    @abstractmethod
    async def store(self, chunk: DocumentChunk) -> None:
        """Persist one embedded chunk (its ``id`` must already be assigned).

        Raises
        ------
        src.utils.errors.StorageError
            If the relational write fails.
        src.utils.errors.VectorIndexError
            If the external index write fails (split variant only).
        """

    @abstractmethod
    async def search(
        self,
        agent_id: str,
        query_embedding: list[float],
        top_k: int,
        threshold: float,
    ) -> list[RetrievedChunk]:
        """Return up to *top_k* chunks of *agent_id* most similar to the query.

        Results are ordered by descending similarity and every score clears
        *threshold*.  Chunks of other agents are never returned.
        """

    @abstractmethod
    async def delete(self, agent_id: str) -> int:
        """Delete every chunk owned by *agent_id*.  Returns the row count removed."""

    @abstractmethod
    async def delete_document(self, agent_id: str, document_id: str) -> int:
        """Delete every chunk of one document of *agent_id*.  Returns the row count removed."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite_unified"``."""

    async def store_many(self, chunks: list[DocumentChunk]) -> int:
        """Store *chunks* one at a time in list order.  Returns the number stored.

        Stops at the first failure; chunks before it stay stored.
        """
        for chunk in chunks:
            await self.store(chunk)
        return len(chunks)

    async def reconcile(self, agent_id: str) -> int:
        """Repair divergence between vectors and chunk rows of *agent_id*.

        Returns the number of entries removed.  Stores that keep both in one
        row cannot diverge and return ``0``.
        """
        return 0
