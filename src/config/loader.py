"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  — Static defaults checked into the repo
#   2. .env file           — Local developer overrides (not committed)
#   3. Environment vars    — Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-based values from Settings on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "embedding": {
            "provider": settings.embedding_provider,
            "cohere_model": settings.cohere_embedding_model,
            "openai_model": settings.openai_embedding_model,
        },
        "media": {
            "priority": settings.media_processor_priority,
            "available_processors": settings.get_available_media_processors(),
        },
        "storage": {
            "vector_db_type": settings.vector_db_type,
            "database_path": settings.database_path,
            "chromadb_persist_dir": settings.chromadb_persist_dir,
            "chromadb_collection": settings.chromadb_collection,
        },
        "retrieval": {
            "top_k": settings.rag_top_k,
            "threshold": settings.rag_threshold,
        },
        "agent_cache": {
            "ttl_seconds": settings.agent_cache_ttl_seconds,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
