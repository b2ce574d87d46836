"""contentdesk FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from the environment and ``.env``, configures structured
logging, and exposes ``app`` for uvicorn.  The CLI reuses :func:`_build_all`
so both entry points share one object graph.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from contentdesk import __version__
from contentdesk.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from contentdesk.api.routes import router as api_router
from contentdesk.config.settings import Settings
from contentdesk.interfaces.embedding_provider import IEmbeddingProvider
from contentdesk.interfaces.llm_provider import ILLMProvider
from contentdesk.models.ingestion import VectorTarget
from contentdesk.pipeline.job_runner import LocalJobRunner
from contentdesk.providers.audio.pydub_audio_extractor import PydubAudioExtractor
from contentdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from contentdesk.providers.extraction.document_text_extractor import DocumentTextExtractor
from contentdesk.providers.llm.openai_provider import OpenAILLMProvider
from contentdesk.providers.persistence.sqlite_document_store import SQLiteDocumentStore
from contentdesk.providers.storage.local_blob_storage import LocalBlobStorageProvider
from contentdesk.providers.transcript.scrape_creators_provider import (
    ScrapeCreatorsTranscriptProvider,
)
from contentdesk.providers.transcription.assemblyai_provider import AssemblyAIProvider
from contentdesk.providers.vector_store.registry import VectorStoreRegistry
from contentdesk.providers.vector_store.sqlite_vector_store import SQLiteVectorStore
from contentdesk.services.deletion_service import DeletionService
from contentdesk.services.document_service import DocumentService
from contentdesk.services.ingestion.chunker import TextChunker
from contentdesk.services.ingestion.embedding_client import EmbeddingClient
from contentdesk.services.ingestion.ingestion_service import IngestionService
from contentdesk.services.ingestion.metadata_extractor import MetadataExtractor
from contentdesk.services.link_service import LinkService
from contentdesk.services.metadata_field_service import MetadataFieldService
from contentdesk.services.purge_service import PurgeService
from contentdesk.services.search_service import SearchService
from contentdesk.services.transcription_service import TranscriptionService
from contentdesk.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(log_level=settings.log_level, app_env=settings.app_env)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider builders
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """OpenAI (or an OpenAI-compatible endpoint) is the only LLM backend."""
    provider = OpenAILLMProvider(settings=app_settings)
    if not provider.is_available():
        _logger.warning("llm_provider_unconfigured", provider=provider.get_provider_name())
    return provider


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    provider = OpenAIEmbeddingProvider(settings=app_settings)
    if not provider.is_available():
        _logger.warning(
            "embedding_provider_unconfigured", provider=provider.get_provider_name()
        )
    return provider


def _build_vector_stores(app_settings: Settings) -> VectorStoreRegistry:
    """One SQLite repository per known target, all in the shared database file."""
    return VectorStoreRegistry(
        SQLiteVectorStore(target=target, db_path=app_settings.database_path)
        for target in VectorTarget
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``
    (or used directly by the CLI).
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=60.0)

    # -- Persistence --
    document_store = SQLiteDocumentStore(db_path=app_settings.database_path)
    vector_stores = _build_vector_stores(app_settings)
    blob_storage = LocalBlobStorageProvider(
        root_dir=app_settings.blob_storage_dir,
        signing_secret=app_settings.blob_signing_secret,
        public_base_url=app_settings.public_base_url,
    )

    # -- External services --
    llm = _build_llm_provider(app_settings)
    embedding_provider = _build_embedding_provider(app_settings)
    speech_to_text = AssemblyAIProvider(
        http_client=http_client,
        api_key=app_settings.assemblyai_api_key,
        base_url=app_settings.assemblyai_base_url,
    )
    transcript_fetcher = ScrapeCreatorsTranscriptProvider(
        http_client=http_client,
        api_key=app_settings.scrape_creators_api_key,
        base_url=app_settings.scrape_creators_base_url,
    )
    audio_extractor = PydubAudioExtractor()

    # -- Pipeline services --
    ingestion_service = IngestionService(
        document_store=document_store,
        vector_stores=vector_stores,
        chunker=TextChunker(target_chars=app_settings.chunk_target_chars),
        metadata_extractor=MetadataExtractor(
            llm=llm, max_chars=app_settings.metadata_extraction_max_chars
        ),
        embedding_client=EmbeddingClient(
            provider=embedding_provider,
            max_attempts=app_settings.embedding_max_attempts,
            backoff_seconds=app_settings.embedding_backoff_seconds,
        ),
    )
    transcription_service = TranscriptionService(
        document_store=document_store,
        blob_storage=blob_storage,
        speech_to_text=speech_to_text,
        transcript_fetcher=transcript_fetcher,
        text_extractor=DocumentTextExtractor(),
        audio_extractor=audio_extractor,
        poll_interval_seconds=app_settings.transcription_poll_interval_seconds,
        max_poll_attempts=app_settings.transcription_max_poll_attempts,
        signed_url_ttl_seconds=app_settings.signed_url_ttl_seconds,
    )
    deletion_service = DeletionService(
        document_store=document_store,
        vector_stores=vector_stores,
        blob_storage=blob_storage,
    )

    # -- Supporting services --
    document_service = DocumentService(
        document_store=document_store,
        blob_storage=blob_storage,
        deletion_service=deletion_service,
    )
    link_service = LinkService(
        document_store=document_store,
        embedding_provider=embedding_provider,
        vector_stores=vector_stores,
    )
    search_service = SearchService(
        document_store=document_store,
        embedding_provider=embedding_provider,
        vector_stores=vector_stores,
        threshold=app_settings.search_match_threshold,
        count=app_settings.search_match_count,
    )
    purge_service = PurgeService(
        blob_storage=blob_storage,
        max_age_days=app_settings.purge_max_age_days,
        list_limit=app_settings.purge_list_limit,
    )

    job_runner = LocalJobRunner(
        max_attempts=app_settings.job_max_attempts,
        history_limit=app_settings.job_history_limit,
    )

    # -- Provider registry for /health --
    provider_registry: dict[str, bool] = {
        "llm": llm.is_available(),
        "embedding": embedding_provider.is_available(),
        "speech_to_text": speech_to_text.is_available(),
        "transcript_fetch": transcript_fetcher.is_available(),
        "audio_extraction": audio_extractor.is_available(),
        "document_store": True,
        "vector_store": True,
    }

    return {
        "settings": app_settings,
        "http_client": http_client,
        "default_owner_id": app_settings.default_owner_id,
        "document_store": document_store,
        "vector_stores": vector_stores,
        "blob_storage": blob_storage,
        "ingestion_service": ingestion_service,
        "transcription_service": transcription_service,
        "deletion_service": deletion_service,
        "document_service": document_service,
        "link_service": link_service,
        "metadata_field_service": MetadataFieldService(document_store=document_store),
        "search_service": search_service,
        "purge_service": purge_service,
        "job_runner": job_runner,
        "provider_registry": provider_registry,
    }


async def initialize_components(components: dict[str, Any]) -> None:
    """Create all database tables (documents, tracking, links, and vector targets)."""
    await components["document_store"].initialize()


async def close_components(components: dict[str, Any]) -> None:
    await components["job_runner"].shutdown()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    await initialize_components(components)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        configured_providers=settings.get_configured_providers(),
    )

    yield

    await close_components(components)
    _logger.info("app_shutdown", message="Job runner stopped and HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="contentdesk API",
        version=__version__,
        description=(
            "Upload media, documents, or YouTube links; transcribe them to text; "
            "ingest the text as embedded chunks; and search across documents and links."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "contentdesk.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
