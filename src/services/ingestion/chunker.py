"""Document-type-aware text chunking.

Splits extracted text into bounded-size pieces for embedding.  The strategy
depends on the document type:

========================  =============================================
Type                      Strategy
========================  =============================================
``text``                  word accumulation, 500-character target
``pdf``                   word accumulation, 800-character target
``audio`` / ``video``     word accumulation, 600-character target
``faq``                   one chunk per blank-line-separated entry
``image``                 the whole description is one chunk
========================  =============================================

Word accumulation splits on whitespace and appends words to the current
chunk while its joined length stays within the target.  Words are never
broken: a single word longer than the target becomes its own oversize
chunk.  Whitespace runs (including newlines) collapse to one space, so
joining every chunk with a space reproduces the input's word sequence.
"""

from __future__ import annotations

import structlog

from src.models.rag import DocumentType, TrainingDocument
from src.utils.errors import UnsupportedDocumentTypeError

logger = structlog.get_logger(logger_name=__name__)

# Target chunk sizes in characters for word-accumulated types.
_CHUNK_SIZES: dict[DocumentType, int] = {
    DocumentType.TEXT: 500,
    DocumentType.PDF: 800,
    DocumentType.AUDIO: 600,
    DocumentType.VIDEO: 600,
}

# Chunk metadata "type" labels.  Transcripts and image descriptions are
# labelled by what the text is, not by the source format.
_TYPE_LABELS: dict[DocumentType, str] = {
    DocumentType.TEXT: "text",
    DocumentType.PDF: "pdf",
    DocumentType.FAQ: "faq",
    DocumentType.AUDIO: "audio_transcript",
    DocumentType.VIDEO: "video_transcript",
    DocumentType.IMAGE: "image_description",
}

# Types whose chunks record where the source came from.
_SOURCED_TYPES = frozenset({DocumentType.PDF, DocumentType.AUDIO, DocumentType.VIDEO, DocumentType.IMAGE})


def coerce_document_type(value: DocumentType | str) -> DocumentType:
    """Return *value* as a :class:`DocumentType` or raise :class:`UnsupportedDocumentTypeError`."""
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType(value)
    except ValueError as exc:
        raise UnsupportedDocumentTypeError(message=f"Unsupported document type: {value!r}") from exc


class Chunker:
    """Splits text into chunks using the strategy for its document type.

    Pure and deterministic: the same input always yields the same chunks.
    """

    def chunk(self, text: str, document_type: DocumentType | str) -> list[str]:
        """Split *text* according to *document_type*.

        Parameters
        ----------
        text:
            Extracted plain text.
        document_type:
            Selects the strategy (see module docstring).

        Returns
        -------
        list[str]
            Chunk texts in document order.  Empty or whitespace-only input
            yields ``[]`` for every type except ``image``, which always
            yields exactly one chunk.

        Raises
        ------
        UnsupportedDocumentTypeError
            If *document_type* is not a known type.
        """
        doc_type = coerce_document_type(document_type)

        if doc_type is DocumentType.FAQ:
            chunks = self.split_faq(text)
        elif doc_type is DocumentType.IMAGE:
            chunks = [text]
        else:
            chunks = self.split_words(text, _CHUNK_SIZES[doc_type])

        logger.debug("chunking_complete", document_type=doc_type.value, num_chunks=len(chunks))
        return chunks

    @staticmethod
    def split_words(text: str, max_size: int) -> list[str]:
        """Accumulate whitespace-separated words into chunks of at most *max_size* characters."""
        chunks: list[str] = []
        current: list[str] = []
        current_size = 0

        for word in text.split():
            if current and current_size + len(word) + 1 > max_size:
                chunks.append(" ".join(current))
                current = [word]
                current_size = len(word)
            elif current:
                current.append(word)
                current_size += len(word) + 1
            else:
                current = [word]
                current_size = len(word)

        if current:
            chunks.append(" ".join(current))
        return chunks

    @staticmethod
    def split_faq(text: str) -> list[str]:
        """One chunk per blank-line-separated FAQ entry, trimmed; empty entries dropped."""
        return [entry.strip() for entry in text.split("\n\n") if entry.strip()]

    @staticmethod
    def metadata_for(document: TrainingDocument) -> dict[str, str]:
        """Return the metadata attached to every chunk of *document*."""
        metadata = {
            "type": _TYPE_LABELS[document.document_type],
            "title": document.title,
        }
        if document.document_type in _SOURCED_TYPES and document.source_url:
            metadata["source"] = document.source_url
        return metadata
