"""Vector store implementations.

SQLiteVectorStore persists one VectorTarget per table and ranks rows with
numpy cosine similarity.  VectorStoreRegistry maps each configured target to
its repository; ingestion and deletion resolve targets only through it.

To use another vector database, implement IVectorStoreProvider and register
it with the registry in main.py.
"""

from contentdesk.providers.vector_store.registry import VectorStoreRegistry
from contentdesk.providers.vector_store.sqlite_vector_store import SQLiteVectorStore

__all__ = ["SQLiteVectorStore", "VectorStoreRegistry"]
