"""External vector index implementations (ChromaDB)."""

from src.providers.vector_index.chromadb_index import ChromaDBVectorIndex

__all__ = ["ChromaDBVectorIndex"]
