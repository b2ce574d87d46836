"""Relational persistence providers.

SQLiteDocumentStore keeps documents, metadata-field definitions, ingestion
tracking manifests, and links in data/contentdesk.db, next to the vector
tables, so a document and its vectors can be deleted in one transaction.
"""

from contentdesk.providers.persistence.sqlite_document_store import SQLiteDocumentStore

__all__ = ["SQLiteDocumentStore"]
