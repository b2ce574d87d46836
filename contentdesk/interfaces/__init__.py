"""Public interface definitions for all external collaborators.

Every external service or store is reached only through the abstract base
classes in this package.  Concrete adapters live in ``contentdesk/providers/``
and are assembled in ``contentdesk/main.py``; tests inject in-memory fakes.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementation
    ---------------------------------------------------------------------
    IDocumentStore             ->  SQLiteDocumentStore
    IVectorStoreProvider       ->  SQLiteVectorStore (one per VectorTarget)
    IBlobStorageProvider       ->  LocalBlobStorageProvider
    IEmbeddingProvider         ->  OpenAIEmbeddingProvider
    ILLMProvider               ->  OpenAILLMProvider
    ISpeechToTextProvider      ->  AssemblyAIProvider
    ITranscriptFetchProvider   ->  ScrapeCreatorsTranscriptProvider
    IDocumentTextExtractor     ->  DocumentTextExtractor
    IAudioExtractor            ->  PydubAudioExtractor
    IJobContext                ->  LocalJobContext
"""

from contentdesk.interfaces.blob_storage_provider import BlobInfo, IBlobStorageProvider
from contentdesk.interfaces.document_store import IDocumentStore
from contentdesk.interfaces.embedding_provider import IEmbeddingProvider
from contentdesk.interfaces.job_context import IJobContext
from contentdesk.interfaces.llm_provider import ILLMProvider
from contentdesk.interfaces.speech_to_text_provider import (
    ISpeechToTextProvider,
    SpeechToTextJob,
    SpeechToTextStatus,
)
from contentdesk.interfaces.text_extractor import IAudioExtractor, IDocumentTextExtractor
from contentdesk.interfaces.transcript_fetch_provider import ITranscriptFetchProvider
from contentdesk.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "BlobInfo",
    "IAudioExtractor",
    "IBlobStorageProvider",
    "IDocumentStore",
    "IDocumentTextExtractor",
    "IEmbeddingProvider",
    "IJobContext",
    "ILLMProvider",
    "ISpeechToTextProvider",
    "ITranscriptFetchProvider",
    "IVectorStoreProvider",
    "SpeechToTextJob",
    "SpeechToTextStatus",
]
