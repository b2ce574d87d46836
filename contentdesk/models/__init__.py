"""contentdesk domain models: re-exports all public model classes.

Submodules by concern:
    - document.py  : Document record, lifecycle metadata union, pagination
    - ingestion.py : chunks, vector/tracking records, orchestrator results
    - link.py      : link records and merged search hits
    - job.py       : local job runner bookkeeping
"""

from __future__ import annotations

from contentdesk.models.document import (
    CompletedMetadata,
    Document,
    DocumentMetadata,
    DocumentPage,
    DocumentStatus,
    ErrorMetadata,
    ProcessingMetadata,
    SourceKind,
)
from contentdesk.models.ingestion import (
    BatchDeletionResult,
    Chunk,
    CompleteDeletion,
    DeletionResult,
    DocumentDeletionError,
    EmbeddingOutcome,
    IngestionResult,
    IngestionTracking,
    MetadataFieldDefinition,
    VectorMatch,
    VectorRecord,
    VectorTarget,
)
from contentdesk.models.job import JobRecord, JobStatus
from contentdesk.models.link import LinkRecord, SearchHit

__all__ = [
    "BatchDeletionResult",
    "Chunk",
    "CompleteDeletion",
    "CompletedMetadata",
    "DeletionResult",
    "Document",
    "DocumentDeletionError",
    "DocumentMetadata",
    "DocumentPage",
    "DocumentStatus",
    "EmbeddingOutcome",
    "ErrorMetadata",
    "IngestionResult",
    "IngestionTracking",
    "JobRecord",
    "JobStatus",
    "LinkRecord",
    "MetadataFieldDefinition",
    "ProcessingMetadata",
    "SearchHit",
    "SourceKind",
    "VectorMatch",
    "VectorRecord",
    "VectorTarget",
]
