"""SQLite-backed vector repository.

Each :class:`VectorTarget` maps to one table in the shared database file,
named after the target's value.  Embeddings are stored as JSON arrays and
ranked in-process with numpy cosine similarity, which is adequate for the
single-tenant corpus sizes this service handles.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from contentdesk.interfaces.vector_store_provider import IVectorStoreProvider
from contentdesk.models.ingestion import VectorMatch, VectorRecord, VectorTarget
from contentdesk.providers.vector_store.similarity import rank
from contentdesk.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/contentdesk.db")


def vector_table_sql(target: VectorTarget) -> list[str]:
    """DDL for a target's table and index.  Table names come only from the enum."""
    table = target.value
    return [
        f"""\
CREATE TABLE IF NOT EXISTS {table} (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id    TEXT    NOT NULL,
    content     TEXT    NOT NULL,
    embedding   TEXT    NOT NULL,
    metadata    TEXT    NOT NULL DEFAULT '{{}}',
    created_at  TEXT    NOT NULL
);
""",
        f"CREATE INDEX IF NOT EXISTS idx_{table}_owner ON {table}(owner_id);",
    ]


class SQLiteVectorStore(IVectorStoreProvider):
    """Vector rows for one target, persisted in SQLite."""

    def __init__(self, target: VectorTarget, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._target = target
        self._table = target.value
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for sql in vector_table_sql(self._target):
                await db.execute(sql)
            await db.commit()
        logger.info("vector_table_initialized", table=self._table, path=str(self._db_path))

    def get_target(self) -> VectorTarget:
        return self._target

    def get_provider_name(self) -> str:
        return f"sqlite:{self._table}"

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def insert(self, record: VectorRecord) -> int:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    f"INSERT INTO {self._table} (owner_id, content, embedding, metadata, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        record.owner_id,
                        record.content,
                        json.dumps(record.embedding),
                        json.dumps(record.metadata),
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
                await db.commit()
                row_id = cursor.lastrowid
        except aiosqlite.Error as exc:
            raise RAGError(
                message=f"Vector insert into {self._table} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        if row_id is None:
            raise RAGError(
                message=f"Vector insert into {self._table} returned no id",
                provider_name=self.get_provider_name(),
            )
        return row_id

    async def delete_by_ids(self, ids: list[int]) -> int:
        if not ids:
            return 0
        placeholders = ",".join("?" for _ in ids)
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                f"DELETE FROM {self._table} WHERE id IN ({placeholders})", tuple(ids)
            )
            await db.commit()
            deleted = cursor.rowcount
        logger.debug("vectors_deleted", table=self._table, requested=len(ids), deleted=deleted)
        return deleted

    async def query(
        self,
        embedding: list[float],
        top_k: int = 10,
        min_similarity: float = 0.0,
        owner_id: str | None = None,
    ) -> list[VectorMatch]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            if owner_id is not None:
                cursor = await db.execute(
                    f"SELECT id, content, embedding, metadata FROM {self._table} WHERE owner_id = ?",
                    (owner_id,),
                )
            else:
                cursor = await db.execute(
                    f"SELECT id, content, embedding, metadata FROM {self._table}"
                )
            rows = await cursor.fetchall()

        vectors = [json.loads(row["embedding"]) for row in rows]
        return [
            VectorMatch(
                id=rows[i]["id"],
                content=rows[i]["content"],
                metadata=json.loads(rows[i]["metadata"]),
                similarity=score,
            )
            for i, score in rank(embedding, vectors, top_k, min_similarity)
        ]

    async def count(self, owner_id: str | None = None) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            if owner_id is not None:
                cursor = await db.execute(
                    f"SELECT COUNT(*) FROM {self._table} WHERE owner_id = ?", (owner_id,)
                )
            else:
                cursor = await db.execute(f"SELECT COUNT(*) FROM {self._table}")
            row = await cursor.fetchone()
        return int(row[0]) if row else 0
