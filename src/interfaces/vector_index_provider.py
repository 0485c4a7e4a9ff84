"""Abstract base class for external vector indexes.

Used only by the split vector store.  The index holds vectors keyed by chunk
id plus a minimal metadata filter (agent id, document id); content and full
metadata stay in the relational store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class IndexMatch:
    """One nearest-neighbour hit: the chunk id and its cosine similarity."""

    id: str
    score: float


# Concrete implementation: ChromaDBVectorIndex (src/providers/vector_index/)
class IVectorIndexProvider(ABC):
    """Contract for an external nearest-neighbour index."""

    @abstractmethod
    async def upsert(self, vector_id: str, vector: list[float], metadata: dict[str, str]) -> None:
        """Insert or replace the vector stored under *vector_id*."""

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        where: dict[str, str],
    ) -> list[IndexMatch]:
        """Return up to *top_k* matches whose metadata equals *where*, best first."""

    @abstractmethod
    async def delete(self, where: dict[str, str]) -> int:
        """Delete every vector whose metadata equals *where*.  Returns the count."""

    @abstractmethod
    async def delete_ids(self, vector_ids: list[str]) -> None:
        """Delete the given vector ids (missing ids are ignored)."""

    @abstractmethod
    async def list_ids(self, where: dict[str, str]) -> set[str]:
        """Return every vector id whose metadata equals *where*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""
