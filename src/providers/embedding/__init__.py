"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
Chunks are embedded in ``search_document`` mode at ingest time and queries
in ``search_query`` mode at retrieval time.

Two implementations of IEmbeddingProvider:
    1. CohereEmbeddingProvider — embed-multilingual-v3.0 (1024 dims).
       Default; native document/query input types.
    2. OpenAIEmbeddingProvider — any OpenAI-compatible embeddings endpoint.
       E5-family models get ``passage: `` / ``query: `` prefixes.
"""

from src.providers.embedding.cohere_embedding_provider import CohereEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["CohereEmbeddingProvider", "OpenAIEmbeddingProvider"]
