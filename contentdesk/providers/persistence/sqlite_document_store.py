"""SQLite-backed document store.

Persists documents, metadata-field definitions, ingestion tracking
manifests, and links to ``data/contentdesk.db`` via ``aiosqlite``.  The
vector tables live in the same file (see
:mod:`contentdesk.providers.vector_store.sqlite_vector_store`), which lets
:meth:`SQLiteDocumentStore.delete_document_complete` remove a document and
every vector it produced inside one transaction.

Document records live in ``document_records``; the name ``documents`` is
taken by the secondary vector target's table.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from contentdesk.interfaces.document_store import IDocumentStore
from contentdesk.models.document import Document, DocumentPage
from contentdesk.models.ingestion import (
    CompleteDeletion,
    IngestionTracking,
    MetadataFieldDefinition,
    VectorTarget,
)
from contentdesk.models.link import LinkRecord
from contentdesk.providers.vector_store.similarity import rank
from contentdesk.providers.vector_store.sqlite_vector_store import vector_table_sql
from contentdesk.utils.errors import DocumentNotFoundError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/contentdesk.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS document_records (
    id           TEXT PRIMARY KEY,
    owner_id     TEXT NOT NULL,
    filename     TEXT NOT NULL,
    source_kind  TEXT NOT NULL,
    source_url   TEXT,
    transcript   TEXT,
    metadata     TEXT NOT NULL,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS metadata_fields (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id       TEXT    NOT NULL,
    field_name     TEXT    NOT NULL,
    example_value  TEXT,
    enabled        INTEGER NOT NULL DEFAULT 1,
    created_at     TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS ingestion_tracking (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id       TEXT    NOT NULL,
    document_id    TEXT    NOT NULL,
    vector_ids     TEXT    NOT NULL DEFAULT '[]',
    chunk_count    INTEGER NOT NULL DEFAULT 0,
    target         TEXT    NOT NULL,
    external_link  TEXT,
    created_at     TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS links (
    id            TEXT PRIMARY KEY,
    owner_id      TEXT NOT NULL,
    name          TEXT NOT NULL,
    url           TEXT NOT NULL,
    description   TEXT NOT NULL DEFAULT '',
    embedding     TEXT,
    document_ids  TEXT NOT NULL DEFAULT '[]',
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_document_records_owner_created ON document_records(owner_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_metadata_fields_owner ON metadata_fields(owner_id);",
    "CREATE INDEX IF NOT EXISTS idx_tracking_document ON ingestion_tracking(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_links_owner ON links(owner_id);",
]

_DOCUMENT_COLUMNS = (
    "id, owner_id, filename, source_kind, source_url, transcript, metadata, created_at, updated_at"
)


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _document_params(document: Document) -> tuple[Any, ...]:
    return (
        document.id,
        document.owner_id,
        document.filename,
        document.source_kind.value,
        document.source_url,
        document.transcript,
        document.metadata.model_dump_json(),
        _iso(document.created_at),
        _iso(document.updated_at),
    )


def _row_to_document(row: aiosqlite.Row) -> Document:
    data = dict(row)
    data["metadata"] = json.loads(data["metadata"])
    return Document.model_validate(data)


def _row_to_tracking(row: aiosqlite.Row) -> IngestionTracking:
    data = dict(row)
    data["vector_ids"] = json.loads(data["vector_ids"])
    return IngestionTracking.model_validate(data)


def _row_to_field(row: aiosqlite.Row) -> MetadataFieldDefinition:
    data = dict(row)
    data["enabled"] = bool(data["enabled"])
    return MetadataFieldDefinition.model_validate(data)


def _row_to_link(row: aiosqlite.Row) -> LinkRecord:
    data = dict(row)
    data["embedding"] = json.loads(data["embedding"]) if data["embedding"] else None
    data["document_ids"] = json.loads(data["document_ids"])
    return LinkRecord.model_validate(data)


class SQLiteDocumentStore(IDocumentStore):
    """SQLite persistence for everything that is not a vector row."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create all tables (including vector tables) and indices."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for sql in _CREATE_TABLES_SQL:
                await db.execute(sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            for target in VectorTarget:
                for sql in vector_table_sql(target):
                    await db.execute(sql)
            await db.commit()
        logger.info("document_store_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def insert_document(self, document: Document) -> Document:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                f"INSERT INTO document_records ({_DOCUMENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _document_params(document),
            )
            await db.commit()
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM document_records WHERE id = ?", (document_id,)
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def update_document(self, document: Document) -> Document:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "UPDATE document_records SET filename = ?, source_kind = ?, source_url = ?, "
                "transcript = ?, metadata = ?, updated_at = ? WHERE id = ?",
                (
                    document.filename,
                    document.source_kind.value,
                    document.source_url,
                    document.transcript,
                    document.metadata.model_dump_json(),
                    _iso(document.updated_at),
                    document.id,
                ),
            )
            await db.commit()
            updated = cursor.rowcount
        if not updated:
            raise DocumentNotFoundError(f"Document {document.id} not found")
        return document

    async def delete_document(self, document_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("DELETE FROM document_records WHERE id = ?", (document_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def list_documents(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 50,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> DocumentPage:
        clauses = ["owner_id = ?"]
        params: list[Any] = [owner_id]
        if date_from is not None:
            clauses.append("created_at >= ?")
            params.append(_iso(date_from))
        if date_to is not None:
            clauses.append("created_at <= ?")
            params.append(_iso(date_to))
        where = " AND ".join(clauses)

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"SELECT COUNT(*) AS n FROM document_records WHERE {where}", params)
            total_row = await cursor.fetchone()
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM document_records WHERE {where} "
                "ORDER BY created_at DESC LIMIT ? OFFSET ?",
                [*params, limit, (page - 1) * limit],
            )
            rows = await cursor.fetchall()

        return DocumentPage(
            documents=[_row_to_document(r) for r in rows],
            total=total_row["n"] if total_row else 0,
            page=page,
            limit=limit,
        )

    async def delete_document_complete(self, owner_id: str, document_id: str) -> CompleteDeletion:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT source_url FROM document_records WHERE id = ? AND owner_id = ?",
                (document_id, owner_id),
            )
            doc_row = await cursor.fetchone()
            if doc_row is None:
                raise DocumentNotFoundError(f"Document {document_id} not found")

            cursor = await db.execute(
                "SELECT id, vector_ids, target FROM ingestion_tracking WHERE document_id = ?",
                (document_id,),
            )
            manifests = await cursor.fetchall()

            deleted_vectors = 0
            for manifest in manifests:
                ids = json.loads(manifest["vector_ids"])
                if not ids:
                    continue
                table = VectorTarget.from_table_name(manifest["target"]).value
                placeholders = ",".join("?" for _ in ids)
                cursor = await db.execute(
                    f"DELETE FROM {table} WHERE id IN ({placeholders})", tuple(ids)
                )
                deleted_vectors += cursor.rowcount

            cursor = await db.execute(
                "DELETE FROM ingestion_tracking WHERE document_id = ?", (document_id,)
            )
            deleted_tracking = cursor.rowcount
            await db.execute("DELETE FROM document_records WHERE id = ?", (document_id,))
            await db.commit()

        logger.info(
            "document_deleted_complete",
            document_id=document_id,
            deleted_vectors=deleted_vectors,
            deleted_tracking=deleted_tracking,
        )
        return CompleteDeletion(
            document_id=document_id,
            source_url=doc_row["source_url"],
            deleted_vectors=deleted_vectors,
            deleted_tracking=deleted_tracking,
        )

    # ------------------------------------------------------------------
    # Metadata field definitions
    # ------------------------------------------------------------------

    async def list_metadata_fields(
        self, owner_id: str, enabled_only: bool = False
    ) -> list[MetadataFieldDefinition]:
        sql = (
            "SELECT id, owner_id, field_name, example_value, enabled, created_at "
            "FROM metadata_fields WHERE owner_id = ?"
        )
        if enabled_only:
            sql += " AND enabled = 1"
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql + " ORDER BY id ASC", (owner_id,))
            rows = await cursor.fetchall()
        return [_row_to_field(r) for r in rows]

    async def create_metadata_field(
        self, field: MetadataFieldDefinition
    ) -> MetadataFieldDefinition:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "INSERT INTO metadata_fields (owner_id, field_name, example_value, enabled, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    field.owner_id,
                    field.field_name,
                    field.example_value,
                    int(field.enabled),
                    _iso(field.created_at),
                ),
            )
            await db.commit()
            field_id = cursor.lastrowid
        return field.model_copy(update={"id": field_id})

    async def set_metadata_field_enabled(
        self, owner_id: str, field_id: int, enabled: bool
    ) -> MetadataFieldDefinition | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.execute(
                "UPDATE metadata_fields SET enabled = ? WHERE id = ? AND owner_id = ?",
                (int(enabled), field_id, owner_id),
            )
            await db.commit()
            cursor = await db.execute(
                "SELECT id, owner_id, field_name, example_value, enabled, created_at "
                "FROM metadata_fields WHERE id = ? AND owner_id = ?",
                (field_id, owner_id),
            )
            row = await cursor.fetchone()
        return _row_to_field(row) if row else None

    async def delete_metadata_field(self, owner_id: str, field_id: int) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM metadata_fields WHERE id = ? AND owner_id = ?", (field_id, owner_id)
            )
            await db.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Ingestion tracking
    # ------------------------------------------------------------------

    async def insert_tracking(self, tracking: IngestionTracking) -> IngestionTracking:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "INSERT INTO ingestion_tracking "
                "(owner_id, document_id, vector_ids, chunk_count, target, external_link, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    tracking.owner_id,
                    tracking.document_id,
                    json.dumps(tracking.vector_ids),
                    tracking.chunk_count,
                    tracking.target.value,
                    tracking.external_link,
                    _iso(tracking.created_at),
                ),
            )
            await db.commit()
            tracking_id = cursor.lastrowid
        return tracking.model_copy(update={"id": tracking_id})

    async def list_tracking(self, document_id: str) -> list[IngestionTracking]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, owner_id, document_id, vector_ids, chunk_count, target, "
                "external_link, created_at FROM ingestion_tracking "
                "WHERE document_id = ? ORDER BY created_at DESC, id DESC",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_tracking(r) for r in rows]

    async def delete_tracking(self, tracking_ids: list[int]) -> int:
        if not tracking_ids:
            return 0
        placeholders = ",".join("?" for _ in tracking_ids)
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                f"DELETE FROM ingestion_tracking WHERE id IN ({placeholders})", tuple(tracking_ids)
            )
            await db.commit()
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def insert_link(self, link: LinkRecord) -> LinkRecord:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "INSERT INTO links (id, owner_id, name, url, description, embedding, "
                "document_ids, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    link.id,
                    link.owner_id,
                    link.name,
                    link.url,
                    link.description,
                    json.dumps(link.embedding) if link.embedding is not None else None,
                    json.dumps(link.document_ids),
                    _iso(link.created_at),
                    _iso(link.updated_at),
                ),
            )
            await db.commit()
        return link

    async def get_link(self, link_id: str) -> LinkRecord | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT * FROM links WHERE id = ?", (link_id,))
            row = await cursor.fetchone()
        return _row_to_link(row) if row else None

    async def list_links(self, owner_id: str) -> list[LinkRecord]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM links WHERE owner_id = ? ORDER BY created_at DESC", (owner_id,)
            )
            rows = await cursor.fetchall()
        return [_row_to_link(r) for r in rows]

    async def delete_link(self, owner_id: str, link_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM links WHERE id = ? AND owner_id = ?", (link_id, owner_id)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def search_links(
        self,
        embedding: list[float],
        top_k: int = 10,
        min_similarity: float = 0.0,
        owner_id: str | None = None,
    ) -> list[tuple[LinkRecord, float]]:
        sql = "SELECT * FROM links WHERE embedding IS NOT NULL"
        params: tuple[Any, ...] = ()
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params = (owner_id,)
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()

        links = [_row_to_link(r) for r in rows]
        vectors = [link.embedding or [] for link in links]
        return [(links[i], score) for i, score in rank(embedding, vectors, top_k, min_similarity)]
