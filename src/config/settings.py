"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (in priority order):
#
#   1. **Environment variables** — e.g., COHERE_API_KEY=abc123
#   2. **.env file** — key=value lines in the project root .env file
#
# Field ``cohere_api_key`` maps to env var ``COHERE_API_KEY``.  Defaults
# below apply when neither source sets a value.
#
# List-valued fields (``media_processor_priority``) accept a JSON list or
# a comma-separated string, e.g. MEDIA_PROCESSOR_PRIORITY=openai,google.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Knowledge-base settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Embeddings ===
    # "cohere" (multilingual, 1024 dims) or "openai" (any OpenAI-compatible API).
    embedding_provider: str = "cohere"
    cohere_api_key: str = ""
    cohere_base_url: str = "https://api.cohere.com"
    cohere_embedding_model: str = "embed-multilingual-v3.0"
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs
    openai_embedding_model: str = ""

    # === Media to text ===
    # Empty key = "not configured" → the processor is left out of the chain.
    openai_vision_model: str = "gpt-4o"
    openai_transcription_model: str = "whisper-1"
    google_api_key: str = ""
    google_speech_language: str = "en-US"
    media_processor_priority: Annotated[list[str], NoDecode] = ["openai", "google"]
    tesseract_path: str = ""
    whisper_model: str = ""
    ffmpeg_path: str = ""

    # === Storage ===
    # "sqlite" = unified store (vectors in the chunk table);
    # "chromadb" = split store (vectors in ChromaDB, rows in SQLite).
    vector_db_type: str = "sqlite"
    database_path: str = "data/knowledge.db"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "agent_knowledge"

    # === Retrieval defaults ===
    rag_top_k: int = 5
    rag_threshold: float = 0.7

    # === Agent config cache ===
    agent_cache_ttl_seconds: int = 300

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("media_processor_priority", mode="before")
    @classmethod
    def _split_priority(cls, value: object) -> object:
        if isinstance(value, str):
            return [part.strip().lower() for part in value.split(",") if part.strip()]
        return value

    def get_available_media_processors(self) -> list[str]:
        """Return processor names from the priority list that have credentials or tools configured."""
        configured = {
            "openai": bool(self.openai_api_key),
            "google": bool(self.google_api_key),
            "local": bool(self.tesseract_path and self.whisper_model and self.ffmpeg_path),
        }
        return [name for name in self.media_processor_priority if configured.get(name)]
