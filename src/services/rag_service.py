"""RAG orchestration service for per-agent knowledge bases.

Ties the ingestion pipeline to storage and retrieval:

    ingest:  (media -> text) -> chunk -> embed(search_document) -> store
    query:   embed(search_query) -> vector search -> context string

Every operation is scoped by ``agent_id``.  Ingestion is not transactional:
a failure part-way through leaves the document row (with ``processed_at``
unset) and any chunks stored before the failure; nothing is rolled back.
"""

from __future__ import annotations

import uuid

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.media_processor import MediaInput, read_media
from src.interfaces.rag_repository import IRAGRepository
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import (
    DocumentType,
    EmbeddingInputType,
    RAGQuery,
    RAGResponse,
    TrainingDocument,
    utc_now,
)
from src.services.ingestion.chunker import coerce_document_type
from src.services.ingestion.content_processor import ContentProcessor
from src.utils.errors import DocumentNotFoundError, ValidationError
from src.utils.logging import get_logger

_DEFAULT_TOP_K = 5
_DEFAULT_THRESHOLD = 0.7


def _require_agent_id(agent_id: str) -> str:
    if not agent_id or not agent_id.strip():
        raise ValidationError(message="agent_id is required")
    return agent_id


class RAGService:
    """Ingests documents into and retrieves context from an agent's knowledge base.

    Parameters
    ----------
    repository:
        Relational store for training documents (and chunk rows).
    vector_store:
        Unified or split vector store; chosen at construction time.
    embedding_provider:
        Embeds queries.  Documents are embedded by the content processor.
    content_processor:
        Chunking, document embedding and media-to-text conversion.
    default_top_k / default_threshold:
        Used when a :class:`RAGQuery` leaves ``top_k`` / ``threshold`` at 0.
    """

    def __init__(
        self,
        repository: IRAGRepository,
        vector_store: IVectorStoreProvider,
        embedding_provider: IEmbeddingProvider,
        content_processor: ContentProcessor,
        default_top_k: int = _DEFAULT_TOP_K,
        default_threshold: float = _DEFAULT_THRESHOLD,
    ) -> None:
        self._repository = repository
        self._vector_store = vector_store
        self._embedding_provider = embedding_provider
        self._content_processor = content_processor
        self._default_top_k = default_top_k
        self._default_threshold = default_threshold
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def process_document(
        self,
        agent_id: str,
        title: str,
        document_type: DocumentType | str,
        content: str,
        source_url: str | None = None,
        *,
        mime_type: str | None = None,
        file_size: int | None = None,
    ) -> TrainingDocument:
        """Create a training document, chunk and embed *content*, and store the chunks.

        Chunks are stored one at a time in chunk-index order.  On success the
        document's ``processed_at`` is set and the returned document carries
        its stored chunks.

        Raises
        ------
        ValidationError
            If *agent_id* is empty.
        UnsupportedDocumentTypeError
            If *document_type* is unknown.
        EmbeddingError, StorageError, VectorIndexError
            From the embedder or the stores; already-stored chunks remain.
        """
        _require_agent_id(agent_id)
        doc_type = coerce_document_type(document_type)

        document = TrainingDocument(
            id=str(uuid.uuid4()),
            agent_id=agent_id,
            title=title,
            document_type=doc_type,
            source_url=source_url,
            mime_type=mime_type,
            file_size=file_size,
        )
        await self._repository.create_training_document(document)

        chunks = await self._content_processor.process(document, content)

        now = utc_now()
        for chunk in chunks:
            chunk.id = str(uuid.uuid4())
            chunk.created_at = now
            chunk.updated_at = now

        await self._vector_store.store_many(chunks)

        document.processed_at = utc_now()
        document.updated_at = document.processed_at
        await self._repository.update_training_document(document)
        document.chunks = chunks

        self._logger.info(
            "document_processed",
            agent_id=agent_id,
            document_id=document.id,
            document_type=doc_type.value,
            num_chunks=len(chunks),
            vector_store=self._vector_store.get_provider_name(),
        )
        return document

    async def process_media_file(
        self,
        agent_id: str,
        title: str,
        document_type: DocumentType | str,
        data: MediaInput,
        mime_type: str,
        source_url: str | None = None,
    ) -> TrainingDocument:
        """Convert media to text, then ingest it like :meth:`process_document`.

        Raises
        ------
        MediaProcessorNotConfiguredError
            If the service has no media processor.
        MediaProcessingError
            If conversion fails (``AllMediaProcessorsFailedError`` for a chain).
        """
        _require_agent_id(agent_id)
        payload = read_media(data)
        text = await self._content_processor.media_to_text(payload, document_type, mime_type)
        self._logger.info(
            "media_converted",
            agent_id=agent_id,
            document_type=coerce_document_type(document_type).value,
            mime_type=mime_type,
            bytes=len(payload),
            chars=len(text),
        )
        return await self.process_document(
            agent_id,
            title,
            document_type,
            text,
            source_url,
            mime_type=mime_type,
            file_size=len(payload),
        )

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def query(self, rag_query: RAGQuery) -> RAGResponse:
        """Return the chunks most similar to the query, plus a joined context string.

        Zero ``top_k`` / ``threshold`` fall back to the service defaults
        (5 / 0.7).  At most ``top_k`` chunks are returned, each scoring
        above the threshold, ordered by descending similarity.
        """
        _require_agent_id(rag_query.agent_id)
        top_k = rag_query.top_k or self._default_top_k
        threshold = rag_query.threshold or self._default_threshold

        embeddings = await self._embedding_provider.embed([rag_query.query], EmbeddingInputType.SEARCH_QUERY)
        chunks = await self._vector_store.search(rag_query.agent_id, embeddings[0], top_k, threshold)

        self._logger.info(
            "rag_query",
            agent_id=rag_query.agent_id,
            top_k=top_k,
            threshold=threshold,
            results_count=len(chunks),
        )
        return RAGResponse(
            context="\n\n".join(chunk.content for chunk in chunks),
            chunks=chunks,
            query=rag_query.query,
        )

    # ------------------------------------------------------------------
    # Listing / deletion
    # ------------------------------------------------------------------

    async def get_agent_documents(self, agent_id: str) -> list[TrainingDocument]:
        """Return every training document of *agent_id*, with its chunks."""
        _require_agent_id(agent_id)
        return await self._repository.get_training_documents_by_agent(agent_id)

    async def delete_agent_documents(self, agent_id: str) -> int:
        """Delete every chunk (through the vector store) and document of *agent_id*.

        Returns the number of documents removed.
        """
        _require_agent_id(agent_id)
        chunks_removed = await self._vector_store.delete(agent_id)
        documents_removed = await self._repository.delete_training_documents_by_agent(agent_id)
        self._logger.info(
            "agent_documents_deleted",
            agent_id=agent_id,
            chunks_removed=chunks_removed,
            documents_removed=documents_removed,
        )
        return documents_removed

    async def delete_document(self, agent_id: str, document_id: str) -> None:
        """Delete one document of *agent_id* and its chunks.

        Raises
        ------
        DocumentNotFoundError
            If the agent has no document with that id.
        """
        _require_agent_id(agent_id)
        document = await self._repository.get_training_document(agent_id, document_id)
        if document is None:
            raise DocumentNotFoundError(message=f"Document {document_id} not found for agent {agent_id}")
        await self._vector_store.delete_document(agent_id, document_id)
        await self._repository.delete_training_document(agent_id, document_id)
        self._logger.info("document_deleted", agent_id=agent_id, document_id=document_id)

    async def reconcile(self, agent_id: str) -> int:
        """Remove vectors of *agent_id* that no longer have a chunk row."""
        _require_agent_id(agent_id)
        return await self._vector_store.reconcile(agent_id)
