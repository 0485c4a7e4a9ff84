"""Turns a training document's raw content into embedded, unsaved chunks.

Two responsibilities:

* :meth:`ContentProcessor.process` — chunk the text with the
  :class:`~src.services.ingestion.chunker.Chunker`, embed every chunk in one
  ``search_document`` call, and pair chunk *i* with vector *i*.
* :meth:`ContentProcessor.media_to_text` — route non-text media to the
  configured :class:`~src.interfaces.media_processor.IMediaProcessor`.

Chunks come back without ids or timestamps; the RAG service assigns those
right before storage.
"""

from __future__ import annotations

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.media_processor import IMediaProcessor, MediaInput
from src.models.rag import DocumentChunk, DocumentType, EmbeddingInputType, TrainingDocument
from src.services.ingestion.chunker import Chunker, coerce_document_type
from src.utils.errors import (
    EmbeddingError,
    MediaProcessorNotConfiguredError,
    UnsupportedDocumentTypeError,
)

logger = structlog.get_logger(logger_name=__name__)


class ContentProcessor:
    """Chunks and embeds document content; converts media to text.

    Parameters
    ----------
    embedding_provider:
        Used for the single batch embed per document.
    media_processor:
        Optional; without one :meth:`media_to_text` raises
        :class:`MediaProcessorNotConfiguredError`.
    chunker:
        Defaults to a fresh :class:`Chunker`.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        media_processor: IMediaProcessor | None = None,
        chunker: Chunker | None = None,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._media_processor = media_processor
        self._chunker = chunker or Chunker()

    @property
    def has_media_processor(self) -> bool:
        return self._media_processor is not None

    async def process(self, document: TrainingDocument, raw_content: str) -> list[DocumentChunk]:
        """Chunk and embed *raw_content* for *document*.

        Returns an empty list (without calling the embedder) when the
        content yields no chunks.

        Raises
        ------
        EmbeddingError
            If the embedder fails or returns a different number of vectors
            than chunks.
        """
        texts = self._chunker.chunk(raw_content, document.document_type)
        if not texts:
            logger.info("content_yielded_no_chunks", document_id=document.id, agent_id=document.agent_id)
            return []

        embeddings = await self._embedding_provider.embed(texts, EmbeddingInputType.SEARCH_DOCUMENT)
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                message=f"Embedder returned {len(embeddings)} vectors for {len(texts)} chunks",
                provider_name=self._embedding_provider.get_provider_name(),
            )

        metadata = self._chunker.metadata_for(document)
        chunks = [
            DocumentChunk(
                document_id=document.id,
                agent_id=document.agent_id,
                content=text,
                chunk_index=index,
                metadata=dict(metadata),
                embedding=vector,
            )
            for index, (text, vector) in enumerate(zip(texts, embeddings))
        ]
        logger.info(
            "content_processed",
            document_id=document.id,
            document_type=document.document_type.value,
            num_chunks=len(chunks),
        )
        return chunks

    async def media_to_text(
        self,
        data: MediaInput,
        document_type: DocumentType | str,
        mime_type: str,
    ) -> str:
        """Convert a media payload to text with the configured media processor.

        Raises
        ------
        MediaProcessorNotConfiguredError
            If no media processor was supplied.
        UnsupportedDocumentTypeError
            If *document_type* is not image, audio, video or pdf.
        """
        if self._media_processor is None:
            raise MediaProcessorNotConfiguredError()

        doc_type = coerce_document_type(document_type)
        if doc_type is DocumentType.IMAGE:
            return await self._media_processor.process_image(data, mime_type)
        if doc_type is DocumentType.AUDIO:
            return await self._media_processor.process_audio(data, mime_type)
        if doc_type is DocumentType.VIDEO:
            return await self._media_processor.process_video(data, mime_type)
        if doc_type is DocumentType.PDF:
            return await self._media_processor.process_pdf(data)
        raise UnsupportedDocumentTypeError(
            message=f"No media conversion for document type {doc_type.value!r}",
        )
