"""Vector store implementations.

Two variants of IVectorStoreProvider, selected by ``VECTOR_DB_TYPE``:
    sqlite   → UnifiedVectorStore: vectors in the SQLite chunk table,
               searched with the ``cosine_distance`` SQL function.
    chromadb → SplitVectorStore: vectors in ChromaDB, rows in SQLite.

To add another external index (Qdrant, Pinecone), implement
IVectorIndexProvider and wrap it in SplitVectorStore in main.py.
"""

from src.providers.vector_store.split_vector_store import SplitVectorStore
from src.providers.vector_store.unified_vector_store import UnifiedVectorStore

__all__ = ["SplitVectorStore", "UnifiedVectorStore"]
