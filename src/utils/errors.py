"""Custom exception hierarchy for the agent knowledge base.

All application exceptions inherit from :class:`KnowledgeBaseError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "cohere", "openai_media", "chromadb") caused the
failure.

The hierarchy is organized by failure category:

    KnowledgeBaseError  (base -- catch-all for any knowledge-base error)
    +-- ValidationError                  (bad input: missing agent id, ...)
    |   +-- UnsupportedDocumentTypeError (no chunking/media strategy for type)
    |   +-- UnsupportedMediaTypeError    (MIME type outside the supported list)
    +-- DocumentNotFoundError            (referenced document absent)
    +-- EmbeddingError                   (embedding API failure)
    +-- MediaProcessingError             (media backend failure)
    |   +-- MediaNotSupportedError       (variant cannot handle this media)
    |   +-- AllMediaProcessorsFailedError
    +-- VectorIndexError                 (external vector index failure)
    +-- StorageError                     (relational store read/write)
    +-- ConfigurationError               (startup / missing config)
        +-- MediaProcessorNotConfiguredError
        +-- NoMediaProcessorsError

Lower layers raise immediately and never retry.  Wrapped backend errors are
chained with ``raise ... from exc`` so the underlying cause stays attached.
"""


class KnowledgeBaseError(Exception):
    """Base exception for all knowledge-base errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[cohere] Embedding API error``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

class ValidationError(KnowledgeBaseError):
    """Raised when caller input is invalid (e.g. empty agent id)."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedDocumentTypeError(ValidationError):
    """Raised when a document type has no chunking or media strategy."""

    def __init__(
        self,
        message: str = "Unsupported document type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedMediaTypeError(ValidationError):
    """Raised when an uploaded file's MIME type cannot be ingested."""

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(KnowledgeBaseError):
    """Raised when a referenced training document does not exist."""

    def __init__(
        self,
        message: str = "Training document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External dependency errors
# ---------------------------------------------------------------------------

class EmbeddingError(KnowledgeBaseError):
    """Raised when the embedding API call fails.  The whole batch is lost."""

    def __init__(
        self,
        message: str = "Failed to generate embeddings",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MediaProcessingError(KnowledgeBaseError):
    """Raised when a media backend fails to convert media to text."""

    def __init__(
        self,
        message: str = "Media processing failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MediaNotSupportedError(MediaProcessingError):
    """Raised when a media processor variant does not handle a media kind.

    The fallback chain treats this like any other failure and moves on to
    the next processor.
    """

    def __init__(
        self,
        message: str = "Media kind not supported by this processor",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AllMediaProcessorsFailedError(MediaProcessingError):
    """Raised when every processor in a fallback chain failed.

    Only the last processor's exception is attached as ``__cause__``.
    """

    def __init__(
        self,
        message: str = "All processors failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorIndexError(KnowledgeBaseError):
    """Raised when the external vector index rejects a read or write."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class StorageError(KnowledgeBaseError):
    """Raised when the relational store fails a read or write."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(KnowledgeBaseError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MediaProcessorNotConfiguredError(ConfigurationError):
    """Raised when media conversion is requested without a media processor."""

    def __init__(
        self,
        message: str = "Media processor not configured",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoMediaProcessorsError(ConfigurationError):
    """Raised by an empty fallback chain on every operation."""

    def __init__(
        self,
        message: str = "No processors available",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
