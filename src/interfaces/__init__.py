"""Public interface definitions for all external service providers.

Every backend the knowledge-base subsystem talks to (embedding API, media
converters, relational store, vector index) is accessed exclusively through
the abstract base classes defined in this package.  Concrete adapters
implement these interfaces and are selected at construction time in
``src/main.py``, so services never import a vendor SDK directly and unit
tests can inject ``MagicMock(spec=...)`` fakes.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider         →  CohereEmbeddingProvider,
                                  OpenAIEmbeddingProvider
    IMediaProcessor            →  OpenAIMediaProcessor, GoogleMediaProcessor,
                                  LocalMediaProcessor, FallbackMediaProcessor
    IRAGRepository             →  SQLiteRAGRepository
    IVectorIndexProvider       →  ChromaDBVectorIndex
    IVectorStoreProvider       →  UnifiedVectorStore, SplitVectorStore
    IAgentConfigProvider       →  supplied by the host application
"""

from src.interfaces.agent_config_provider import IAgentConfigProvider
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.media_processor import IMediaProcessor, MediaInput, read_media
from src.interfaces.rag_repository import IRAGRepository
from src.interfaces.vector_index_provider import IndexMatch, IVectorIndexProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IAgentConfigProvider",
    "IEmbeddingProvider",
    "IMediaProcessor",
    "IRAGRepository",
    "IVectorIndexProvider",
    "IVectorStoreProvider",
    "IndexMatch",
    "MediaInput",
    "read_media",
]
