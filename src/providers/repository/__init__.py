"""Relational knowledge-base repository (SQLite via aiosqlite)."""

from src.providers.repository.sqlite_rag_repository import SQLiteRAGRepository

__all__ = ["SQLiteRAGRepository"]
