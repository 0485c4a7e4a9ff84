"""Abstract base class for text-embedding service providers.

Defines the contract for turning an ordered list of strings into an ordered
list of fixed-dimension vectors.  Implementations wrap Cohere's multilingual
embedding API or any OpenAI-compatible embeddings endpoint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import EmbeddingInputType


# Concrete implementations:
#   CohereEmbeddingProvider  — embed-multilingual-v3.0 (1024 dims), default
#   OpenAIEmbeddingProvider  — any OpenAI-compatible embeddings endpoint
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by ingestion and retrieval.

    The input type distinguishes stored passages from search queries.
    Callers must embed documents with ``SEARCH_DOCUMENT`` and questions with
    ``SEARCH_QUERY``; mixing them degrades ranking.
    """

    @abstractmethod
    async def embed(
        self,
        texts: list[str],
        input_type: EmbeddingInputType = EmbeddingInputType.SEARCH_DOCUMENT,
    ) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            Strings to embed, sent to the backend in a single request.
            Backends cap the number of items per request (Cohere: 96);
            exceeding it is a backend error, not checked here.
        input_type:
            ``SEARCH_DOCUMENT`` at ingest time, ``SEARCH_QUERY`` at query time.

        Returns
        -------
        list[list[float]]
            One vector per input, in input order.

        Raises
        ------
        src.utils.errors.EmbeddingError
            If the API call fails.  No partial result is returned.
        """

    @abstractmethod
    async def embed_single(
        self,
        text: str,
        input_type: EmbeddingInputType = EmbeddingInputType.SEARCH_QUERY,
    ) -> list[float]:
        """Embed one string (typically a search query)."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Example values: ``1024`` (Cohere ``embed-multilingual-v3.0``),
        ``1536`` (OpenAI ``text-embedding-3-small``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has the credentials it needs."""
