"""FastAPI routes for contentdesk.

Service dependencies are resolved from ``app.state`` (populated by
``main._build_all``) via ``Depends`` using the ``Annotated`` pattern.
Long-running work (transcription, ingestion, single-document deletion) is
submitted to the :class:`~contentdesk.pipeline.job_runner.LocalJobRunner`
and answered with a job id that clients poll at ``/api/v1/jobs/{job_id}``.

Endpoint                                   Method  Description
-----------------------------------------  ------  -------------------------------
/api/v1/documents/upload                   POST    Multipart upload, then transcribe
/api/v1/documents/register                 POST    Register already-stored blobs
/api/v1/documents/text                     POST    Create a document from pasted text
/api/v1/documents/youtube                  POST    Create a YouTube document
/api/v1/documents                          GET     Paginated document list
/api/v1/documents/{id}                     GET     One document
/api/v1/documents/{id}/transcribe          POST    Start transcription job
/api/v1/documents/{id}/ingest              POST    Start ingestion job
/api/v1/documents/{id}                     DELETE  Start deletion job
/api/v1/documents/delete                   POST    Delete several documents now
/api/v1/blobs/{path}                       GET     Signed blob download
/api/v1/links                              GET/POST
/api/v1/links/{id}                         DELETE
/api/v1/metadata-fields                    GET/POST
/api/v1/metadata-fields/{id}               PATCH/DELETE
/api/v1/search                             POST    Semantic search
/api/v1/jobs, /api/v1/jobs/{id}            GET     Job status
/api/v1/health                             GET     Health check
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, File, Header, HTTPException, Query, Request, UploadFile
from fastapi.responses import FileResponse

from contentdesk import __version__
from contentdesk.api.schemas import (
    CreateLinkRequest,
    CreateMetadataFieldRequest,
    CreateTextDocumentRequest,
    CreateYouTubeDocumentRequest,
    DeleteDocumentsRequest,
    DeleteDocumentsResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentsCreatedResponse,
    HealthResponse,
    IngestRequest,
    JobListResponse,
    JobResponse,
    JobSubmittedResponse,
    LinkResponse,
    MetadataFieldListResponse,
    RegisterUploadsRequest,
    SearchRequest,
    SearchResponse,
    UpdateMetadataFieldRequest,
)
from contentdesk.interfaces.blob_storage_provider import IBlobStorageProvider
from contentdesk.models.ingestion import MetadataFieldDefinition
from contentdesk.pipeline.job_runner import LocalJobRunner
from contentdesk.providers.storage.local_blob_storage import LocalBlobStorageProvider
from contentdesk.services.deletion_service import DeletionService
from contentdesk.services.document_service import DocumentService, UploadedBlob
from contentdesk.services.ingestion.ingestion_service import IngestionService
from contentdesk.services.link_service import LinkService
from contentdesk.services.metadata_field_service import MetadataFieldService
from contentdesk.services.search_service import SearchService
from contentdesk.services.transcription_service import TranscriptionService
from contentdesk.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_MAX_UPLOAD_BYTES = 500 * 1024 * 1024


# ---------------------------------------------------------------------------
# Dependencies (read from app.state)
# ---------------------------------------------------------------------------


def _get_owner_id(
    request: Request,
    x_owner_id: Annotated[str | None, Header()] = None,
) -> str:
    """Owner scope for the request: ``X-Owner-Id`` header, else the configured default."""
    return x_owner_id or request.app.state.default_owner_id


def _get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def _get_transcription_service(request: Request) -> TranscriptionService:
    return request.app.state.transcription_service


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_deletion_service(request: Request) -> DeletionService:
    return request.app.state.deletion_service


def _get_link_service(request: Request) -> LinkService:
    return request.app.state.link_service


def _get_metadata_field_service(request: Request) -> MetadataFieldService:
    return request.app.state.metadata_field_service


def _get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def _get_job_runner(request: Request) -> LocalJobRunner:
    return request.app.state.job_runner


def _get_blob_storage(request: Request) -> IBlobStorageProvider:
    return request.app.state.blob_storage


OwnerDep = Annotated[str, Depends(_get_owner_id)]
DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
TranscriptionDep = Annotated[TranscriptionService, Depends(_get_transcription_service)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
DeletionDep = Annotated[DeletionService, Depends(_get_deletion_service)]
LinkServiceDep = Annotated[LinkService, Depends(_get_link_service)]
MetadataFieldsDep = Annotated[MetadataFieldService, Depends(_get_metadata_field_service)]
SearchDep = Annotated[SearchService, Depends(_get_search_service)]
JobRunnerDep = Annotated[LocalJobRunner, Depends(_get_job_runner)]
BlobStorageDep = Annotated[IBlobStorageProvider, Depends(_get_blob_storage)]


def _submit_transcription(
    runner: LocalJobRunner, transcription: TranscriptionService, owner_id: str, document_id: str
) -> str:
    return runner.submit(
        "transcribe",
        lambda job: transcription.transcribe(owner_id, document_id, job=job),
    )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post("/documents/upload", response_model=DocumentsCreatedResponse, status_code=202)
async def upload_documents(
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
    transcription: TranscriptionDep,
    runner: JobRunnerDep,
    files: Annotated[list[UploadFile], File()],
) -> DocumentsCreatedResponse:
    """Store uploaded files and start one transcription job per file."""
    created = []
    job_ids = []
    for upload in files:
        data = await upload.read()
        if len(data) > _MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail=f"{upload.filename} is too large")
        document = await documents.upload(
            owner_id,
            filename=upload.filename or "upload",
            data=data,
            content_type=upload.content_type,
        )
        created.append(DocumentResponse.from_document(document))
        job_ids.append(_submit_transcription(runner, transcription, owner_id, document.id))
    return DocumentsCreatedResponse(documents=created, job_ids=job_ids)


@router.post("/documents/register", response_model=DocumentsCreatedResponse, status_code=202)
async def register_documents(
    body: RegisterUploadsRequest,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
    transcription: TranscriptionDep,
    runner: JobRunnerDep,
) -> DocumentsCreatedResponse:
    registered = await documents.register_uploads(
        owner_id, [UploadedBlob(**f.model_dump()) for f in body.files]
    )
    job_ids = (
        [_submit_transcription(runner, transcription, owner_id, d.id) for d in registered]
        if body.transcribe
        else []
    )
    return DocumentsCreatedResponse(
        documents=[DocumentResponse.from_document(d) for d in registered], job_ids=job_ids
    )


@router.post("/documents/text", response_model=DocumentResponse, status_code=201)
async def create_text_document(
    body: CreateTextDocumentRequest,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
) -> DocumentResponse:
    document = await documents.create_text_document(owner_id, body.title, body.text)
    return DocumentResponse.from_document(document)


@router.post("/documents/youtube", response_model=DocumentsCreatedResponse, status_code=202)
async def create_youtube_document(
    body: CreateYouTubeDocumentRequest,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
    transcription: TranscriptionDep,
    runner: JobRunnerDep,
) -> DocumentsCreatedResponse:
    document = await documents.create_youtube_document(owner_id, body.url, body.title)
    job_id = _submit_transcription(runner, transcription, owner_id, document.id)
    return DocumentsCreatedResponse(
        documents=[DocumentResponse.from_document(document)], job_ids=[job_id]
    )


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> DocumentListResponse:
    result = await documents.list_documents(
        owner_id, page=page, limit=limit, date_from=date_from, date_to=date_to
    )
    return DocumentListResponse(
        documents=[
            DocumentResponse.from_document(d, include_transcript=False) for d in result.documents
        ],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.post("/documents/delete", response_model=DeleteDocumentsResponse)
async def delete_documents(
    body: DeleteDocumentsRequest,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
) -> DeleteDocumentsResponse:
    result = await documents.delete_documents(owner_id, body.document_ids)
    return DeleteDocumentsResponse(
        success=result.success,
        deleted=result.deleted,
        deleted_vectors=result.deleted_vectors,
        errors=result.errors,
    )


@router.get("/documents/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
) -> DocumentResponse:
    document = await documents.get_document(owner_id, document_id)
    return DocumentResponse.from_document(document)


@router.post(
    "/documents/{document_id}/transcribe", response_model=JobSubmittedResponse, status_code=202
)
async def transcribe_document(
    document_id: str,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
    transcription: TranscriptionDep,
    runner: JobRunnerDep,
) -> JobSubmittedResponse:
    await documents.get_document(owner_id, document_id)
    return JobSubmittedResponse(
        job_id=_submit_transcription(runner, transcription, owner_id, document_id)
    )


@router.post("/documents/{document_id}/ingest", response_model=JobSubmittedResponse, status_code=202)
async def ingest_document(
    document_id: str,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
    ingestion: IngestionDep,
    runner: JobRunnerDep,
    body: IngestRequest | None = None,
) -> JobSubmittedResponse:
    await documents.get_document(owner_id, document_id)
    body = body or IngestRequest()
    job_id = runner.submit(
        "ingest",
        lambda job: ingestion.ingest(
            owner_id,
            document_id,
            target=body.target,
            external_link=body.external_link,
            job=job,
        ),
    )
    return JobSubmittedResponse(job_id=job_id)


@router.delete("/documents/{document_id}", response_model=JobSubmittedResponse, status_code=202)
async def delete_document(
    document_id: str,
    owner_id: OwnerDep,
    documents: DocumentServiceDep,
    deletion: DeletionDep,
    runner: JobRunnerDep,
) -> JobSubmittedResponse:
    await documents.get_document(owner_id, document_id)
    job_id = runner.submit(
        "delete", lambda job: deletion.delete(owner_id, document_id, job=job)
    )
    return JobSubmittedResponse(job_id=job_id)


# ---------------------------------------------------------------------------
# Blobs (signed URL target)
# ---------------------------------------------------------------------------


@router.get("/blobs/{path:path}", include_in_schema=False)
async def download_blob(
    path: str,
    blobs: BlobStorageDep,
    expires: int,
    signature: str,
) -> FileResponse:
    if not isinstance(blobs, LocalBlobStorageProvider) or not blobs.verify(path, expires, signature):
        raise HTTPException(status_code=403, detail="Invalid or expired signature")
    local = blobs.local_path(path)
    if not local.is_file():
        raise HTTPException(status_code=404, detail="Blob not found")
    return FileResponse(str(local))


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


@router.post("/links", response_model=LinkResponse, status_code=201)
async def create_link(
    body: CreateLinkRequest,
    owner_id: OwnerDep,
    links: LinkServiceDep,
) -> LinkResponse:
    link = await links.create_link(
        owner_id,
        name=body.name,
        url=body.url,
        description=body.description,
        document_ids=body.document_ids,
    )
    return LinkResponse.from_link(link)


@router.get("/links", response_model=list[LinkResponse])
async def list_links(owner_id: OwnerDep, links: LinkServiceDep) -> list[LinkResponse]:
    return [LinkResponse.from_link(link) for link in await links.list_links(owner_id)]


@router.delete("/links/{link_id}", status_code=204)
async def delete_link(link_id: str, owner_id: OwnerDep, links: LinkServiceDep) -> None:
    await links.delete_link(owner_id, link_id)


# ---------------------------------------------------------------------------
# Metadata fields
# ---------------------------------------------------------------------------


@router.get("/metadata-fields", response_model=MetadataFieldListResponse)
async def list_metadata_fields(
    owner_id: OwnerDep, fields: MetadataFieldsDep
) -> MetadataFieldListResponse:
    return MetadataFieldListResponse(fields=await fields.list_fields(owner_id))


@router.post("/metadata-fields", response_model=MetadataFieldDefinition, status_code=201)
async def create_metadata_field(
    body: CreateMetadataFieldRequest,
    owner_id: OwnerDep,
    fields: MetadataFieldsDep,
) -> MetadataFieldDefinition:
    return await fields.create_field(owner_id, body.field_name, body.example_value)


@router.patch("/metadata-fields/{field_id}", response_model=MetadataFieldDefinition)
async def update_metadata_field(
    field_id: int,
    body: UpdateMetadataFieldRequest,
    owner_id: OwnerDep,
    fields: MetadataFieldsDep,
) -> MetadataFieldDefinition:
    return await fields.set_enabled(owner_id, field_id, body.enabled)


@router.delete("/metadata-fields/{field_id}", status_code=204)
async def delete_metadata_field(
    field_id: int, owner_id: OwnerDep, fields: MetadataFieldsDep
) -> None:
    await fields.delete_field(owner_id, field_id)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@router.post("/search", response_model=SearchResponse)
async def search(body: SearchRequest, owner_id: OwnerDep, search_service: SearchDep) -> SearchResponse:
    results = await search_service.search(
        owner_id,
        body.query,
        target=body.target,
        threshold=body.threshold,
        count=body.count,
    )
    return SearchResponse(query=body.query, results=results)


# ---------------------------------------------------------------------------
# Jobs & health
# ---------------------------------------------------------------------------


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(runner: JobRunnerDep) -> JobListResponse:
    return JobListResponse(jobs=runner.list_jobs())


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, runner: JobRunnerDep) -> JobResponse:
    record = runner.get(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return JobResponse(job=record)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    providers: dict[str, Any] = getattr(request.app.state, "provider_registry", {})
    return HealthResponse(status="healthy", version=__version__, providers=providers)
