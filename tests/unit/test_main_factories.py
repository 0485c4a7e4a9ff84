"""Unit tests for factory functions in src/main.py.

Tests embedding provider selection, media processor chain assembly,
vector store selection, and full component wiring.  No real network calls
or API keys are required.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from src.config.settings import Settings
from src.interfaces.rag_repository import IRAGRepository
from src.main import (
    build_embedding_provider,
    build_media_processor,
    build_rag_components,
    build_vector_store,
    close_rag_components,
)
from src.providers.embedding.cohere_embedding_provider import CohereEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.media.fallback_media_processor import FallbackMediaProcessor
from src.providers.vector_store.split_vector_store import SplitVectorStore
from src.providers.vector_store.unified_vector_store import UnifiedVectorStore
from src.services.rag_retriever import RAGRetriever
from src.services.rag_service import RAGService
from src.services.training_service import TrainingService
from src.utils.errors import ConfigurationError


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(**overrides) -> Settings:
    """Settings with every credential empty unless overridden."""
    defaults = {
        "_env_file": None,
        "embedding_provider": "cohere",
        "cohere_api_key": "",
        "openai_api_key": "",
        "openai_base_url": "",
        "google_api_key": "",
        "tesseract_path": "",
        "whisper_model": "",
        "ffmpeg_path": "",
        "media_processor_priority": ["openai", "google", "local"],
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture()
def http_client() -> MagicMock:
    return MagicMock(spec=httpx.AsyncClient)


# ======================================================================
# Embedding provider selection
# ======================================================================


class TestBuildEmbeddingProvider:
    def test_cohere(self, http_client: MagicMock) -> None:
        provider = build_embedding_provider(_settings(cohere_api_key="co"), http_client)
        assert isinstance(provider, CohereEmbeddingProvider)

    def test_openai(self, http_client: MagicMock) -> None:
        with patch("src.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"):
            provider = build_embedding_provider(
                _settings(embedding_provider="OpenAI", openai_api_key="sk"), http_client
            )
        assert isinstance(provider, OpenAIEmbeddingProvider)

    def test_missing_key_raises(self, http_client: MagicMock) -> None:
        with pytest.raises(ConfigurationError, match="no API key"):
            build_embedding_provider(_settings(), http_client)

    def test_unknown_provider_raises(self, http_client: MagicMock) -> None:
        with pytest.raises(ConfigurationError, match="Unknown embedding provider"):
            build_embedding_provider(_settings(embedding_provider="word2vec"), http_client)


# ======================================================================
# Media processor chain
# ======================================================================


class TestBuildMediaProcessor:
    def test_none_configured_returns_none(self, http_client: MagicMock) -> None:
        assert build_media_processor(_settings(), http_client) is None

    def test_chain_follows_priority(self, http_client: MagicMock) -> None:
        settings = _settings(
            media_processor_priority=["local", "google", "openai"],
            openai_api_key="sk",
            google_api_key="g",
            tesseract_path="/usr/bin/tesseract",
            whisper_model="base",
            ffmpeg_path="/usr/bin/ffmpeg",
        )
        with patch("src.providers.media.openai_media_processor.openai.AsyncOpenAI"):
            chain = build_media_processor(settings, http_client)

        assert isinstance(chain, FallbackMediaProcessor)
        assert [p.get_provider_name() for p in chain.processors] == [
            "local_media",
            "google_media",
            "openai_media",
        ]

    def test_unconfigured_processors_are_skipped(self, http_client: MagicMock) -> None:
        chain = build_media_processor(_settings(google_api_key="g"), http_client)

        assert [p.get_provider_name() for p in chain.processors] == ["google_media"]


# ======================================================================
# Vector store selection
# ======================================================================


class TestBuildVectorStore:
    def test_sqlite_is_unified(self) -> None:
        store = build_vector_store(_settings(vector_db_type="sqlite"), MagicMock(spec=IRAGRepository))
        assert isinstance(store, UnifiedVectorStore)

    def test_chromadb_is_split(self, tmp_path: Path) -> None:
        settings = _settings(vector_db_type="chromadb", chromadb_persist_dir=str(tmp_path / "chroma"))

        store = build_vector_store(settings, MagicMock(spec=IRAGRepository))

        assert isinstance(store, SplitVectorStore)
        assert store.get_provider_name() == "sqlite+chromadb"

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown vector store type"):
            build_vector_store(_settings(vector_db_type="pinecone"), MagicMock(spec=IRAGRepository))


# ======================================================================
# Full wiring
# ======================================================================


class TestBuildRagComponents:
    @pytest.mark.asyncio
    async def test_components_are_wired(self, tmp_path: Path) -> None:
        settings = _settings(cohere_api_key="co", database_path=str(tmp_path / "kb.db"))

        components = build_rag_components(settings)
        try:
            assert isinstance(components["rag_service"], RAGService)
            assert isinstance(components["rag_retriever"], RAGRetriever)
            assert isinstance(components["training_service"], TrainingService)
            assert components["settings"] is settings
        finally:
            await close_rag_components(components)

        assert components["http_client"].is_closed

    @pytest.mark.asyncio
    async def test_yaml_config_reaches_the_components(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "app:\n  name: kb-under-test\nhttp:\n  timeout_seconds: 7.5\n",
            encoding="utf-8",
        )
        settings = _settings(cohere_api_key="co", database_path=str(tmp_path / "kb.db"), rag_top_k=3)

        components = build_rag_components(settings, config_path=str(config_file))
        try:
            assert components["config"]["app"]["name"] == "kb-under-test"
            assert components["config"]["retrieval"]["top_k"] == 3
            assert components["http_client"].timeout == httpx.Timeout(7.5)
            assert components["rag_service"]._default_top_k == 3
        finally:
            await close_rag_components(components)

    @pytest.mark.asyncio
    async def test_missing_config_file_falls_back_to_defaults(self, tmp_path: Path) -> None:
        settings = _settings(cohere_api_key="co", database_path=str(tmp_path / "kb.db"))

        components = build_rag_components(settings, config_path=str(tmp_path / "absent.yaml"))
        try:
            assert components["http_client"].timeout == httpx.Timeout(60.0)
            assert components["rag_service"]._default_threshold == 0.7
        finally:
            await close_rag_components(components)

    def test_missing_embedding_key_fails_fast(self) -> None:
        with pytest.raises(ConfigurationError):
            build_rag_components(_settings())
