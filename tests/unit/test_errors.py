"""Unit tests for the knowledge-base exception hierarchy."""

from __future__ import annotations

import pytest

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


class TestKnowledgeBaseError:
    def test_str_includes_provider(self) -> None:
        error = EmbeddingError(message="rate limited", provider_name="cohere")

        assert str(error) == "[cohere] rate limited"
        assert error.message == "rate limited"
        assert error.provider_name == "cohere"

    def test_str_without_provider(self) -> None:
        assert str(StorageError(message="disk full")) == "disk full"

    @pytest.mark.parametrize(
        ("error_cls", "default"),
        [
            (NoMediaProcessorsError, "No processors available"),
            (MediaProcessorNotConfiguredError, "Media processor not configured"),
            (DocumentNotFoundError, "Training document not found"),
        ],
    )
    def test_default_messages(self, error_cls: type[KnowledgeBaseError], default: str) -> None:
        assert error_cls().message == default


class TestHierarchy:
    @pytest.mark.parametrize(
        ("child", "parent"),
        [
            (UnsupportedDocumentTypeError, ValidationError),
            (UnsupportedMediaTypeError, ValidationError),
            (MediaNotSupportedError, MediaProcessingError),
            (AllMediaProcessorsFailedError, MediaProcessingError),
            (MediaProcessorNotConfiguredError, ConfigurationError),
            (NoMediaProcessorsError, ConfigurationError),
            (VectorIndexError, KnowledgeBaseError),
            (DocumentNotFoundError, KnowledgeBaseError),
        ],
    )
    def test_subclassing(self, child: type[Exception], parent: type[Exception]) -> None:
        assert issubclass(child, parent)
        assert issubclass(child, KnowledgeBaseError)
