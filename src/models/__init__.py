"""Knowledge-base domain models — re-exports all public model classes.

Other parts of the codebase can import directly from ``src.models``
(e.g. ``from src.models import TrainingDocument``) instead of from the
individual module files.

The models are organized across two submodules:
    - rag.py    — training documents, chunks, retrieval results, query
                  envelopes, and crawler/legacy input types
    - agent.py  — agent configuration snapshot for the chat path

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.agent import AgentConfig
from src.models.rag import (
    DocumentChunk,
    DocumentType,
    EmbeddingInputType,
    LegacyTrainingEntry,
    PageSection,
    RAGQuery,
    RAGResponse,
    RetrievedChunk,
    ScrapedPage,
    TrainingDocument,
    utc_now,
)

__all__ = [
    "AgentConfig",
    "DocumentChunk",
    "DocumentType",
    "EmbeddingInputType",
    "LegacyTrainingEntry",
    "PageSection",
    "RAGQuery",
    "RAGResponse",
    "RetrievedChunk",
    "ScrapedPage",
    "TrainingDocument",
    "utc_now",
]
