"""Composition root for the agent knowledge base.

Selects concrete providers from :class:`~src.config.settings.Settings` and
wires them into the services.  Everything is chosen once, at construction
time: the embedding backend, the media processor chain, and the vector
store variant.

Typical use::

    components = build_rag_components()
    try:
        await components["rag_service"].process_document(...)
    finally:
        await close_rag_components(components)
"""

from __future__ import annotations

from typing import Any

import httpx

from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.media_processor import IMediaProcessor
from src.interfaces.rag_repository import IRAGRepository
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.providers.embedding.cohere_embedding_provider import CohereEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.media.fallback_media_processor import FallbackMediaProcessor
from src.providers.media.google_media_processor import GoogleMediaProcessor
from src.providers.media.local_media_processor import LocalMediaProcessor
from src.providers.media.openai_media_processor import OpenAIMediaProcessor
from src.providers.repository.sqlite_rag_repository import SQLiteRAGRepository
from src.providers.vector_store.split_vector_store import SplitVectorStore
from src.providers.vector_store.unified_vector_store import UnifiedVectorStore
from src.services.ingestion.content_processor import ContentProcessor
from src.services.rag_retriever import RAGRetriever
from src.services.rag_service import RAGService
from src.services.training_service import TrainingService
from src.utils.errors import ConfigurationError
from src.utils.logging import get_logger

_logger = get_logger(__name__)

_DEFAULT_HTTP_TIMEOUT = 60.0


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_embedding_provider(app_settings: Settings, http_client: httpx.AsyncClient) -> IEmbeddingProvider:
    """Return the embedding provider named by ``EMBEDDING_PROVIDER``.

    Raises
    ------
    ConfigurationError
        If the name is unknown or the provider has no API key.
    """
    name = app_settings.embedding_provider.lower()
    provider: IEmbeddingProvider
    if name == "cohere":
        provider = CohereEmbeddingProvider(settings=app_settings, http_client=http_client)
    elif name == "openai":
        provider = OpenAIEmbeddingProvider(settings=app_settings)
    else:
        raise ConfigurationError(message=f"Unknown embedding provider: {name!r}")

    if not provider.is_available():
        raise ConfigurationError(
            message=f"Embedding provider {name!r} has no API key configured",
            provider_name=provider.get_provider_name(),
        )
    _logger.info("embedding_provider_selected", provider=provider.get_provider_name())
    return provider


def build_media_processor(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
) -> IMediaProcessor | None:
    """Build the media fallback chain from ``MEDIA_PROCESSOR_PRIORITY``.

    Only processors with credentials (or local tool paths) configured are
    included, in priority order.  Returns ``None`` when none is configured,
    which disables media ingestion.
    """
    processors: list[IMediaProcessor] = []
    for name in app_settings.get_available_media_processors():
        if name == "openai":
            processors.append(OpenAIMediaProcessor(settings=app_settings))
        elif name == "google":
            processors.append(GoogleMediaProcessor(settings=app_settings, http_client=http_client))
        elif name == "local":
            processors.append(LocalMediaProcessor(settings=app_settings, http_client=http_client))

    unknown = set(app_settings.media_processor_priority) - {"openai", "google", "local"}
    if unknown:
        _logger.warning("media_processor_unknown", names=sorted(unknown))

    if not processors:
        _logger.warning("media_processing_disabled", reason="no media processor configured")
        return None

    _logger.info(
        "media_processor_chain",
        processors=[p.get_provider_name() for p in processors],
    )
    return FallbackMediaProcessor(processors)


def build_vector_store(app_settings: Settings, repository: IRAGRepository) -> IVectorStoreProvider:
    """Return the vector store variant named by ``VECTOR_DB_TYPE``.

    ``sqlite`` → unified store; ``chromadb`` → split store (ChromaDB vectors,
    SQLite rows).
    """
    db_type = app_settings.vector_db_type.lower()
    if db_type == "sqlite":
        store: IVectorStoreProvider = UnifiedVectorStore(repository)
    elif db_type == "chromadb":
        # Only the split variant needs chromadb.
        from src.providers.vector_index.chromadb_index import ChromaDBVectorIndex

        index = ChromaDBVectorIndex(
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
        )
        store = SplitVectorStore(repository, index)
    else:
        raise ConfigurationError(message=f"Unknown vector store type: {db_type!r}")

    _logger.info("vector_store_selected", vector_store=store.get_provider_name())
    return store


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def build_rag_service(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    repository: IRAGRepository | None = None,
    config: dict | None = None,
) -> RAGService:
    """Construct a fully wired :class:`RAGService`.

    Retrieval defaults come from the merged *config* when given, else from
    *app_settings*.
    """
    retrieval = (config or {}).get("retrieval", {})
    repository = repository or SQLiteRAGRepository(app_settings.database_path)
    embedding_provider = build_embedding_provider(app_settings, http_client)
    content_processor = ContentProcessor(
        embedding_provider=embedding_provider,
        media_processor=build_media_processor(app_settings, http_client),
    )
    return RAGService(
        repository=repository,
        vector_store=build_vector_store(app_settings, repository),
        embedding_provider=embedding_provider,
        content_processor=content_processor,
        default_top_k=retrieval.get("top_k", app_settings.rag_top_k),
        default_threshold=retrieval.get("threshold", app_settings.rag_threshold),
    )


def build_rag_components(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
) -> dict[str, Any]:
    """Construct every knowledge-base service with injected dependencies.

    ``config/config.yaml`` is merged with the settings through
    :func:`~src.config.loader.load_config`; a missing file leaves the
    settings alone in charge.

    Returns
    -------
    dict
        Service instances keyed by role name.  Pass the dict to
        :func:`close_rag_components` on shutdown.
    """
    s = custom_settings or Settings()
    config = load_config(config_path, s)
    timeout = float(config.get("http", {}).get("timeout_seconds", _DEFAULT_HTTP_TIMEOUT))
    http_client = httpx.AsyncClient(timeout=timeout)
    rag_service = build_rag_service(s, http_client, config=config)
    _logger.info("rag_components_built", app=config.get("app", {}).get("name"), http_timeout=timeout)
    return {
        "rag_service": rag_service,
        "rag_retriever": RAGRetriever(rag_service),
        "training_service": TrainingService(rag_service),
        "http_client": http_client,
        "settings": s,
        "config": config,
    }


async def close_rag_components(components: dict[str, Any]) -> None:
    """Release the shared HTTP client."""
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
