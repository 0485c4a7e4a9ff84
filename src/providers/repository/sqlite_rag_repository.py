"""SQLite-backed knowledge-base repository.

Persists training documents and their chunks to a local SQLite database
(default ``data/knowledge.db``) using ``aiosqlite`` for async I/O.

Embeddings are stored as little-endian float32 BLOBs in the chunk table.
Each connection registers a deterministic ``cosine_distance(a, b)`` SQL
function (numpy-backed) so similarity search runs inside the query:

    similarity = 1 - cosine_distance(chunk.embedding, :query)

Chunks reference their document with ``ON DELETE CASCADE``; foreign keys are
enabled per connection.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import aiosqlite
import numpy as np
import structlog

from src.interfaces.rag_repository import IRAGRepository
from src.models.rag import DocumentChunk, DocumentType, RetrievedChunk, TrainingDocument, utc_now
from src.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/knowledge.db")

# SQLite's default limit on bound parameters is 999.
_ID_BATCH_SIZE = 500

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS training_documents (
    id            TEXT    PRIMARY KEY,
    agent_id      TEXT    NOT NULL,
    title         TEXT    NOT NULL,
    document_type TEXT    NOT NULL,
    source_url    TEXT,
    file_size     INTEGER,
    mime_type     TEXT,
    is_active     INTEGER NOT NULL DEFAULT 1,
    processed_at  TEXT,
    created_at    TEXT    NOT NULL,
    updated_at    TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id          TEXT    PRIMARY KEY,
    document_id TEXT    NOT NULL REFERENCES training_documents(id) ON DELETE CASCADE,
    agent_id    TEXT    NOT NULL,
    content     TEXT    NOT NULL,
    chunk_index INTEGER NOT NULL,
    metadata    TEXT    NOT NULL DEFAULT '{}',
    embedding   BLOB,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_agent ON training_documents(agent_id);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_agent ON document_chunks(agent_id);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id);",
]

_DOCUMENT_COLUMNS = (
    "id, agent_id, title, document_type, source_url, file_size, mime_type, "
    "is_active, processed_at, created_at, updated_at"
)

_INSERT_CHUNK_SQL = """\
INSERT INTO document_chunks
    (id, document_id, agent_id, content, chunk_index, metadata, embedding, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SEARCH_SQL = """\
SELECT id, content, metadata, document_id, document_type, distance
FROM (
    SELECT c.id, c.content, c.metadata, c.document_id, d.document_type,
           cosine_distance(c.embedding, ?) AS distance
    FROM document_chunks c
    JOIN training_documents d ON d.id = c.document_id
    WHERE c.agent_id = ? AND d.is_active = 1 AND c.embedding IS NOT NULL
)
WHERE distance IS NOT NULL AND 1.0 - distance > ?
ORDER BY distance ASC
LIMIT ?;
"""


# ---------------------------------------------------------------------------
# Vector helpers
# ---------------------------------------------------------------------------


def encode_embedding(embedding: list[float]) -> bytes:
    """Pack a vector as a float32 BLOB."""
    return np.asarray(embedding, dtype="<f4").tobytes()


def decode_embedding(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype="<f4")


def cosine_distance(a: bytes | None, b: bytes | None) -> float | None:
    """SQL function: ``1 - cos(a, b)``; NULL for missing, mismatched or zero vectors."""
    if a is None or b is None:
        return None
    va = decode_embedding(a)
    vb = decode_embedding(b)
    if va.shape != vb.shape or va.size == 0:
        return None
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return None
    return 1.0 - float(np.dot(va, vb)) / norm


def _clamp_score(value: float) -> float:
    return max(0.0, min(1.0, value))


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class SQLiteRAGRepository(IRAGRepository):
    """SQLite persistence for training documents and chunks."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._initialized = False

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for table_sql in _CREATE_TABLES_SQL:
                    await db.execute(table_sql)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"Failed to initialise knowledge database: {exc}",
                provider_name="sqlite",
            ) from exc
        self._initialized = True
        logger.info("knowledge_db_initialized", path=str(self._db_path))

    @asynccontextmanager
    async def _connect(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """Open a configured connection; any sqlite error becomes :class:`StorageError`."""
        if not self._initialized:
            await self.initialize()
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON;")
                await db.create_function("cosine_distance", 2, cosine_distance, deterministic=True)
                yield db
        except aiosqlite.Error as exc:
            raise StorageError(
                message=f"{operation} failed: {exc}",
                provider_name="sqlite",
            ) from exc

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_training_document(self, document: TrainingDocument) -> None:
        async with self._connect("create_training_document") as db:
            await db.execute(
                f"INSERT INTO training_documents ({_DOCUMENT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    document.id,
                    document.agent_id,
                    document.title,
                    document.document_type.value,
                    document.source_url,
                    document.file_size,
                    document.mime_type,
                    int(document.is_active),
                    _ts(document.processed_at),
                    _ts(document.created_at),
                    _ts(document.updated_at),
                ),
            )
            await db.commit()
        logger.debug("training_document_created", document_id=document.id, agent_id=document.agent_id)

    async def update_training_document(self, document: TrainingDocument) -> None:
        async with self._connect("update_training_document") as db:
            await db.execute(
                "UPDATE training_documents SET title = ?, source_url = ?, file_size = ?, "
                "mime_type = ?, is_active = ?, processed_at = ?, updated_at = ? "
                "WHERE id = ? AND agent_id = ?",
                (
                    document.title,
                    document.source_url,
                    document.file_size,
                    document.mime_type,
                    int(document.is_active),
                    _ts(document.processed_at),
                    _ts(document.updated_at),
                    document.id,
                    document.agent_id,
                ),
            )
            await db.commit()

    async def get_training_document(self, agent_id: str, document_id: str) -> TrainingDocument | None:
        async with self._connect("get_training_document") as db:
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM training_documents WHERE id = ? AND agent_id = ?",
                (document_id, agent_id),
            )
            row = await cursor.fetchone()
        return self._row_to_document(row) if row else None

    async def get_training_documents_by_agent(self, agent_id: str) -> list[TrainingDocument]:
        async with self._connect("get_training_documents_by_agent") as db:
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM training_documents "
                "WHERE agent_id = ? ORDER BY created_at ASC, id ASC",
                (agent_id,),
            )
            doc_rows = await cursor.fetchall()
            cursor = await db.execute(
                "SELECT id, document_id, agent_id, content, chunk_index, metadata, created_at, updated_at "
                "FROM document_chunks WHERE agent_id = ? ORDER BY document_id, chunk_index",
                (agent_id,),
            )
            chunk_rows = await cursor.fetchall()

        chunks_by_doc: dict[str, list[DocumentChunk]] = {}
        for row in chunk_rows:
            chunks_by_doc.setdefault(row["document_id"], []).append(
                DocumentChunk(
                    id=row["id"],
                    document_id=row["document_id"],
                    agent_id=row["agent_id"],
                    content=row["content"],
                    chunk_index=row["chunk_index"],
                    metadata=json.loads(row["metadata"] or "{}"),
                    created_at=_parse_ts(row["created_at"]),
                    updated_at=_parse_ts(row["updated_at"]),
                )
            )

        documents = []
        for row in doc_rows:
            document = self._row_to_document(row)
            document.chunks = chunks_by_doc.get(document.id, [])
            documents.append(document)
        return documents

    async def delete_training_document(self, agent_id: str, document_id: str) -> bool:
        async with self._connect("delete_training_document") as db:
            cursor = await db.execute(
                "DELETE FROM training_documents WHERE id = ? AND agent_id = ?",
                (document_id, agent_id),
            )
            await db.commit()
            deleted = cursor.rowcount > 0
        logger.info("training_document_deleted", agent_id=agent_id, document_id=document_id, deleted=deleted)
        return deleted

    async def delete_training_documents_by_agent(self, agent_id: str) -> int:
        async with self._connect("delete_training_documents_by_agent") as db:
            cursor = await db.execute("DELETE FROM training_documents WHERE agent_id = ?", (agent_id,))
            await db.commit()
            count = cursor.rowcount
        logger.info("training_documents_deleted", agent_id=agent_id, count=count)
        return count

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def store_chunks(self, chunks: list[DocumentChunk]) -> None:
        await self._insert_chunks(chunks, with_embeddings=True)

    async def store_chunks_metadata_only(self, chunks: list[DocumentChunk]) -> None:
        await self._insert_chunks(chunks, with_embeddings=False)

    async def _insert_chunks(self, chunks: list[DocumentChunk], *, with_embeddings: bool) -> None:
        if not chunks:
            return
        now = utc_now()
        rows = [
            (
                c.id,
                c.document_id,
                c.agent_id,
                c.content,
                c.chunk_index,
                json.dumps(c.metadata),
                encode_embedding(c.embedding) if with_embeddings and c.embedding else None,
                _ts(c.created_at or now),
                _ts(c.updated_at or now),
            )
            for c in chunks
        ]
        async with self._connect("store_chunks") as db:
            await db.executemany(_INSERT_CHUNK_SQL, rows)
            await db.commit()

    async def get_chunk_rows(self, agent_id: str, chunk_ids: list[str]) -> dict[str, RetrievedChunk]:
        found: dict[str, RetrievedChunk] = {}
        if not chunk_ids:
            return found
        async with self._connect("get_chunk_rows") as db:
            for start in range(0, len(chunk_ids), _ID_BATCH_SIZE):
                batch = chunk_ids[start : start + _ID_BATCH_SIZE]
                placeholders = ", ".join("?" for _ in batch)
                cursor = await db.execute(
                    "SELECT c.id, c.content, c.metadata, c.document_id, d.document_type "
                    "FROM document_chunks c JOIN training_documents d ON d.id = c.document_id "
                    f"WHERE c.agent_id = ? AND d.is_active = 1 AND c.id IN ({placeholders})",
                    (agent_id, *batch),
                )
                for row in await cursor.fetchall():
                    found[row["id"]] = self._row_to_retrieved(row, score=0.0)
        return found

    async def search_similar(
        self,
        agent_id: str,
        embedding: list[float],
        top_k: int,
        threshold: float,
    ) -> list[RetrievedChunk]:
        async with self._connect("search_similar") as db:
            cursor = await db.execute(
                _SEARCH_SQL,
                (encode_embedding(embedding), agent_id, threshold, top_k),
            )
            rows = await cursor.fetchall()
        return [self._row_to_retrieved(row, score=_clamp_score(1.0 - row["distance"])) for row in rows]

    async def delete_chunks_by_agent(self, agent_id: str) -> int:
        async with self._connect("delete_chunks_by_agent") as db:
            cursor = await db.execute("DELETE FROM document_chunks WHERE agent_id = ?", (agent_id,))
            await db.commit()
            return cursor.rowcount

    async def delete_chunks_by_document(self, agent_id: str, document_id: str) -> int:
        async with self._connect("delete_chunks_by_document") as db:
            cursor = await db.execute(
                "DELETE FROM document_chunks WHERE agent_id = ? AND document_id = ?",
                (agent_id, document_id),
            )
            await db.commit()
            return cursor.rowcount

    async def get_chunk_ids_by_agent(self, agent_id: str) -> set[str]:
        async with self._connect("get_chunk_ids_by_agent") as db:
            cursor = await db.execute("SELECT id FROM document_chunks WHERE agent_id = ?", (agent_id,))
            rows = await cursor.fetchall()
        return {row["id"] for row in rows}

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> TrainingDocument:
        return TrainingDocument(
            id=row["id"],
            agent_id=row["agent_id"],
            title=row["title"],
            document_type=DocumentType(row["document_type"]),
            source_url=row["source_url"],
            file_size=row["file_size"],
            mime_type=row["mime_type"],
            is_active=bool(row["is_active"]),
            processed_at=_parse_ts(row["processed_at"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    @staticmethod
    def _row_to_retrieved(row: aiosqlite.Row, score: float) -> RetrievedChunk:
        return RetrievedChunk(
            content=row["content"],
            metadata=json.loads(row["metadata"] or "{}"),
            score=score,
            document_id=row["document_id"],
            document_type=DocumentType(row["document_type"]),
        )
