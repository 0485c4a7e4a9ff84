"""Utility modules for the knowledge base.

- **errors** -- Exception hierarchy rooted at KnowledgeBaseError; each
  failure category has its own subclass so callers can handle failures
  granularly without broad ``except Exception`` blocks.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **mime** -- magic-byte MIME sniffing, supported-type validation, and
  MIME → document-type mapping for uploads.
"""

from src.utils.errors import (
    AllMediaProcessorsFailedError,
    ConfigurationError,
    DocumentNotFoundError,
    EmbeddingError,
    KnowledgeBaseError,
    MediaNotSupportedError,
    MediaProcessingError,
    MediaProcessorNotConfiguredError,
    NoMediaProcessorsError,
    StorageError,
    UnsupportedDocumentTypeError,
    UnsupportedMediaTypeError,
    ValidationError,
    VectorIndexError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.mime import detect_mime_type, document_type_for_mime, is_supported_mime_type

__all__ = [
    "AllMediaProcessorsFailedError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "EmbeddingError",
    "KnowledgeBaseError",
    "MediaNotSupportedError",
    "MediaProcessingError",
    "MediaProcessorNotConfiguredError",
    "NoMediaProcessorsError",
    "StorageError",
    "UnsupportedDocumentTypeError",
    "UnsupportedMediaTypeError",
    "ValidationError",
    "VectorIndexError",
    "configure_logging",
    "detect_mime_type",
    "document_type_for_mime",
    "get_logger",
    "is_supported_mime_type",
]
