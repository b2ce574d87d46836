"""Abstract base class for the relational persistence layer.

Covers every record type that is not a vector row: documents, metadata-field
definitions, ingestion tracking manifests, and links.  The store also
exposes one server-side aggregate operation,
:meth:`IDocumentStore.delete_document_complete`, which removes a document
together with its tracking rows and the vector rows they reference inside a
single transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from contentdesk.models.document import Document, DocumentPage
from contentdesk.models.ingestion import (
    CompleteDeletion,
    IngestionTracking,
    MetadataFieldDefinition,
)
from contentdesk.models.link import LinkRecord


# Concrete implementation: SQLiteDocumentStore (contentdesk/providers/persistence/)
class IDocumentStore(ABC):
    """Contract for document, tracking, field-definition, and link persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist.  Idempotent."""

    # -- Documents -----------------------------------------------------

    @abstractmethod
    async def insert_document(self, document: Document) -> Document:
        """Persist a new document and return it."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Fetch a document by id, or ``None`` if absent."""

    @abstractmethod
    async def update_document(self, document: Document) -> Document:
        """Overwrite the mutable fields of an existing document.

        Raises
        ------
        contentdesk.utils.errors.DocumentNotFoundError
            If no row has ``document.id``.
        """

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a document row.  Returns ``False`` if nothing was deleted."""

    @abstractmethod
    async def list_documents(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 50,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> DocumentPage:
        """Return one page of an owner's documents, newest first."""

    @abstractmethod
    async def delete_document_complete(self, owner_id: str, document_id: str) -> CompleteDeletion:
        """Atomically delete a document, its tracking rows, and their vectors.

        Raises
        ------
        contentdesk.utils.errors.DocumentNotFoundError
            If the document does not exist for *owner_id*.  Nothing is
            deleted in that case.
        """

    # -- Metadata field definitions ------------------------------------

    @abstractmethod
    async def list_metadata_fields(
        self, owner_id: str, enabled_only: bool = False
    ) -> list[MetadataFieldDefinition]:
        """Return an owner's field definitions in creation order."""

    @abstractmethod
    async def create_metadata_field(
        self, field: MetadataFieldDefinition
    ) -> MetadataFieldDefinition:
        """Persist a field definition and return it with its id."""

    @abstractmethod
    async def set_metadata_field_enabled(
        self, owner_id: str, field_id: int, enabled: bool
    ) -> MetadataFieldDefinition | None:
        """Toggle a field definition; ``None`` if it does not exist."""

    @abstractmethod
    async def delete_metadata_field(self, owner_id: str, field_id: int) -> bool:
        """Delete a field definition."""

    # -- Ingestion tracking --------------------------------------------

    @abstractmethod
    async def insert_tracking(self, tracking: IngestionTracking) -> IngestionTracking:
        """Persist a tracking manifest and return it with its id."""

    @abstractmethod
    async def list_tracking(self, document_id: str) -> list[IngestionTracking]:
        """Return every tracking manifest for a document, newest first."""

    @abstractmethod
    async def delete_tracking(self, tracking_ids: list[int]) -> int:
        """Delete tracking manifests by id and return the count removed."""

    # -- Links -----------------------------------------------------------

    @abstractmethod
    async def insert_link(self, link: LinkRecord) -> LinkRecord:
        """Persist a link record."""

    @abstractmethod
    async def get_link(self, link_id: str) -> LinkRecord | None:
        """Fetch a link by id."""

    @abstractmethod
    async def list_links(self, owner_id: str) -> list[LinkRecord]:
        """Return an owner's links, newest first."""

    @abstractmethod
    async def delete_link(self, owner_id: str, link_id: str) -> bool:
        """Delete a link record."""

    @abstractmethod
    async def search_links(
        self,
        embedding: list[float],
        top_k: int = 10,
        min_similarity: float = 0.0,
        owner_id: str | None = None,
    ) -> list[tuple[LinkRecord, float]]:
        """Return links most similar to *embedding* with their similarity."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
