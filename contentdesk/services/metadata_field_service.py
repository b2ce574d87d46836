"""CRUD for user-configured metadata field definitions.

Enabled fields are what the metadata extractor looks for during ingestion;
an ``example_value`` is passed to the LLM as a formatting hint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from contentdesk.models.ingestion import MetadataFieldDefinition
from contentdesk.utils.errors import DocumentNotFoundError

if TYPE_CHECKING:
    from contentdesk.interfaces.document_store import IDocumentStore

logger = structlog.get_logger(logger_name=__name__)


class MetadataFieldService:
    def __init__(self, document_store: IDocumentStore) -> None:
        self._store = document_store

    async def list_fields(self, owner_id: str) -> list[MetadataFieldDefinition]:
        return await self._store.list_metadata_fields(owner_id)

    async def create_field(
        self, owner_id: str, field_name: str, example_value: str | None = None
    ) -> MetadataFieldDefinition:
        field = await self._store.create_metadata_field(
            MetadataFieldDefinition(
                owner_id=owner_id,
                field_name=field_name.strip(),
                example_value=example_value or None,
            )
        )
        logger.info("metadata_field_created", field_id=field.id, field_name=field.field_name)
        return field

    async def set_enabled(
        self, owner_id: str, field_id: int, enabled: bool
    ) -> MetadataFieldDefinition:
        field = await self._store.set_metadata_field_enabled(owner_id, field_id, enabled)
        if field is None:
            raise DocumentNotFoundError(f"Metadata field {field_id} not found")
        logger.info("metadata_field_toggled", field_id=field_id, enabled=enabled)
        return field

    async def delete_field(self, owner_id: str, field_id: int) -> None:
        if not await self._store.delete_metadata_field(owner_id, field_id):
            raise DocumentNotFoundError(f"Metadata field {field_id} not found")
        logger.info("metadata_field_deleted", field_id=field_id)
