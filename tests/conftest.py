"""Shared pytest fixtures for the knowledge-base test suite."""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.media_processor import IMediaProcessor
from src.models.rag import DocumentType, EmbeddingInputType, TrainingDocument
from src.providers.repository.sqlite_rag_repository import SQLiteRAGRepository

_WORD_RE = re.compile(r"\w+")


class HashingEmbeddingProvider(IEmbeddingProvider):
    """Deterministic bag-of-words embedder for tests (no network).

    Each lower-cased word is hashed into one of ``dimension`` buckets and the
    resulting count vector is L2-normalised.  Identical texts get identical
    vectors; texts sharing words get positive cosine similarity.
    """

    def __init__(self, dimension: int = 64) -> None:
        self._dimension = dimension
        self.calls: list[tuple[list[str], EmbeddingInputType]] = []

    def vector(self, text: str) -> list[float]:
        counts = [0.0] * self._dimension
        for word in _WORD_RE.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self._dimension
            counts[bucket] += 1.0
        norm = math.sqrt(sum(c * c for c in counts))
        if norm == 0.0:
            counts[0] = 1.0
            return counts
        return [c / norm for c in counts]

    async def embed(
        self,
        texts: list[str],
        input_type: EmbeddingInputType = EmbeddingInputType.SEARCH_DOCUMENT,
    ) -> list[list[float]]:
        self.calls.append((list(texts), input_type))
        return [self.vector(t) for t in texts]

    async def embed_single(
        self,
        text: str,
        input_type: EmbeddingInputType = EmbeddingInputType.SEARCH_QUERY,
    ) -> list[float]:
        return (await self.embed([text], input_type))[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "hashing_test"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        embedding_provider="cohere",
        cohere_api_key="co-test",
        openai_api_key="",
        google_api_key="",
        tesseract_path="",
        whisper_model="",
        ffmpeg_path="",
        vector_db_type="sqlite",
        database_path=str(tmp_path / "knowledge.db"),
        chromadb_persist_dir=str(tmp_path / "chromadb"),
    )


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


@pytest.fixture
def hashing_embedder() -> HashingEmbeddingProvider:
    return HashingEmbeddingProvider()


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    """An IEmbeddingProvider mock returning one 3-dim vector per input."""
    provider = MagicMock(spec=IEmbeddingProvider)

    async def _embed(texts, input_type=EmbeddingInputType.SEARCH_DOCUMENT):
        return [[float(i + 1), 0.0, 0.0] for i in range(len(texts))]

    provider.embed = AsyncMock(side_effect=_embed)
    provider.get_provider_name.return_value = "mock_embedding"
    provider.get_dimension.return_value = 3
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_media_processor() -> MagicMock:
    processor = MagicMock(spec=IMediaProcessor)
    processor.process_image = AsyncMock(return_value="text read from the image")
    processor.process_image_url = AsyncMock(return_value="text read from the image url")
    processor.process_multiple_images = AsyncMock(return_value="first\n\nsecond")
    processor.process_audio = AsyncMock(return_value="audio transcript words")
    processor.process_video = AsyncMock(return_value="video transcript words")
    processor.process_pdf = AsyncMock(return_value="pdf text layer")
    processor.get_provider_name.return_value = "mock_media"
    return processor


@pytest_asyncio.fixture
async def sqlite_repository(tmp_path: Path) -> SQLiteRAGRepository:
    repository = SQLiteRAGRepository(tmp_path / "knowledge.db")
    await repository.initialize()
    return repository


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_document() -> TrainingDocument:
    return TrainingDocument(
        id="doc-1",
        agent_id="agent-1",
        title="Opening hours",
        document_type=DocumentType.TEXT,
    )
