"""RAG data models for per-agent knowledge bases.

Defines Pydantic v2 models for training documents, document chunks,
retrieval results, and query/response envelopes.

RAG overview:
    1. INGESTION: A source artifact (text, FAQ, PDF, image, audio, video,
       scraped page) becomes a :class:`TrainingDocument`.  Non-text media
       is converted to text first.
    2. CHUNKING: The text is split into bounded-size :class:`DocumentChunk`
       objects using a strategy chosen by the document type.
    3. EMBEDDING: Each chunk is embedded into a fixed-dimension vector.
    4. STORAGE: Chunks + vectors are persisted by a vector store (unified
       SQLite table, or SQLite rows + ChromaDB vectors).
    5. RETRIEVAL: A question is embedded and the most similar chunks of
       the *same agent* are returned as :class:`RetrievedChunk` objects.

Every document and chunk carries its owning ``agent_id``; every read,
search, and delete is scoped by it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class DocumentType(str, Enum):
    """Kinds of source artifact an agent can be trained on."""

    TEXT = "text"
    PDF = "pdf"
    FAQ = "faq"
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"


class EmbeddingInputType(str, Enum):
    """Embedding mode.  Documents and queries are embedded differently."""

    SEARCH_DOCUMENT = "search_document"
    SEARCH_QUERY = "search_query"


# ---------------------------------------------------------------------------
# DocumentChunk — the fundamental unit of the knowledge base.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """One retrieval unit belonging to a :class:`TrainingDocument`.

    Chunks come out of the content processor without ``id`` or timestamps;
    the RAG service assigns both right before storage.
    """

    id: str = Field(default="", description="Unique identifier (UUID) for this chunk.")
    document_id: str = Field(description="Identifier of the parent training document.")
    agent_id: str = Field(description="Identifier of the owning agent.")
    content: str = Field(description="The chunk's textual content.")
    chunk_index: int = Field(default=0, ge=0, description="Zero-based position within the document.")
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description='String metadata: always "type" and "title", optionally "source".',
    )
    embedding: list[float] = Field(
        default_factory=list,
        description="Embedding vector; same dimensionality for every chunk of an agent.",
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# TrainingDocument — one logical source artifact.
# ---------------------------------------------------------------------------
class TrainingDocument(BaseModel):
    """A source artifact an agent was trained on.

    Created before chunking with ``processed_at`` unset.  Once every chunk
    has been stored, ``processed_at`` is set.  A document whose ingestion
    failed part-way stays visible with ``processed_at`` still ``None``.
    """

    id: str
    agent_id: str
    title: str
    document_type: DocumentType
    source_url: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    mime_type: str | None = None
    is_active: bool = True
    processed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    # Only populated by listing calls (get_agent_documents).
    chunks: list[DocumentChunk] = Field(default_factory=list)

    @property
    def is_processed(self) -> bool:
        return self.processed_at is not None


# ---------------------------------------------------------------------------
# RetrievedChunk — a search result.
# ---------------------------------------------------------------------------
class RetrievedChunk(BaseModel):
    """A chunk returned from a similarity search, with its score."""

    model_config = ConfigDict(frozen=True)

    content: str
    metadata: dict[str, str] = Field(default_factory=dict)
    score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Cosine similarity between the query and this chunk (higher = closer).",
    )
    document_id: str = ""
    document_type: DocumentType | None = None


# ---------------------------------------------------------------------------
# Query / response envelopes.
# ---------------------------------------------------------------------------
class RAGQuery(BaseModel):
    """A retrieval request.  Zero ``top_k``/``threshold`` mean "use defaults"."""

    query: str
    agent_id: str
    top_k: int = Field(default=0, ge=0)
    threshold: float = Field(default=0.0, ge=0.0, le=1.0)


class RAGResponse(BaseModel):
    """Retrieved context for one query."""

    model_config = ConfigDict(frozen=True)

    context: str = Field(default="", description="Chunk contents joined by a blank line.")
    chunks: list[RetrievedChunk] = Field(default_factory=list)
    query: str = ""


# ---------------------------------------------------------------------------
# Crawler boundary types.
# ---------------------------------------------------------------------------
class PageSection(BaseModel):
    """One block of text on a scraped page, tagged with its HTML element."""

    model_config = ConfigDict(frozen=True)

    tag: str = "p"
    text: str = ""


class ScrapedPage(BaseModel):
    """A page produced by the external web crawler."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    sections: list[PageSection] = Field(default_factory=list)


class LegacyTrainingEntry(BaseModel):
    """Pre-RAG training data stored on the agent record: titled text blobs."""

    model_config = ConfigDict(frozen=True)

    is_active: bool = True
    content: list[tuple[str, str]] = Field(
        default_factory=list,
        description="(title, content) pairs.",
    )
