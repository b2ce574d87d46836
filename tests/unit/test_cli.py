"""Unit tests for the contentdesk argparse CLI."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from contentdesk.cli.commands import main
from contentdesk.config.settings import Settings
from contentdesk.models.ingestion import IngestionTracking, VectorRecord
from contentdesk.pipeline.job_runner import LocalJobRunner
from contentdesk.services.deletion_service import DeletionService
from contentdesk.services.ingestion.chunker import TextChunker
from contentdesk.services.ingestion.embedding_client import EmbeddingClient
from contentdesk.services.ingestion.ingestion_service import IngestionService
from contentdesk.services.ingestion.metadata_extractor import MetadataExtractor
from contentdesk.services.purge_service import PurgeService
from contentdesk.utils.errors import TranscriptionError

from conftest import OWNER, make_document, no_sleep


def _payload(capsys) -> dict:
    """Parse the JSON document the command printed; logs go to stderr."""
    return json.loads(capsys.readouterr().out)


@pytest.fixture
def components(
    document_store, vector_stores, blob_storage, embedding_provider, mock_llm_provider
):
    transcription = MagicMock()
    transcription.transcribe = AsyncMock(return_value=make_document(transcript="spoken"))
    return {
        "settings": Settings(_env_file=None, database_path="/tmp/cli-test.db"),
        "job_runner": LocalJobRunner(max_attempts=1, sleep=no_sleep),
        "blob_storage": blob_storage,
        "transcription_service": transcription,
        "ingestion_service": IngestionService(
            document_store=document_store,
            vector_stores=vector_stores,
            chunker=TextChunker(),
            metadata_extractor=MetadataExtractor(llm=mock_llm_provider),
            embedding_client=EmbeddingClient(provider=embedding_provider, sleep=no_sleep),
        ),
        "deletion_service": DeletionService(document_store, vector_stores, blob_storage),
        "purge_service": PurgeService(blob_storage),
    }


@pytest.fixture
def run_cli(components):
    """Invoke ``main`` with the app wiring replaced by *components*."""

    def _run(*argv: str) -> int:
        init = AsyncMock()
        close = AsyncMock()
        with patch("contentdesk.main._build_all", return_value=components), \
                patch("contentdesk.main.initialize_components", new=init), \
                patch("contentdesk.main.close_components", new=close), \
                patch("contentdesk.cli.commands.configure_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main(["--owner", OWNER, *argv])
        _run.init_calls = init.await_count
        _run.close_calls = close.await_count
        return exc_info.value.code

    return _run


class TestCommands:
    def test_no_command_prints_help(self, capsys) -> None:
        with patch("contentdesk.cli.commands.configure_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        assert "usage:" in capsys.readouterr().out

    def test_init_db(self, run_cli, capsys) -> None:
        assert run_cli("init-db") == 0
        assert "Database ready: /tmp/cli-test.db" in capsys.readouterr().out
        assert run_cli.init_calls == 1
        assert run_cli.close_calls == 1

    def test_transcribe(self, run_cli, components, capsys) -> None:
        assert run_cli("transcribe", "doc-1") == 0

        payload = _payload(capsys)
        assert payload == {"document_id": "doc-1", "status": "completed", "chars": 6}
        args = components["transcription_service"].transcribe.call_args
        assert args.args == (OWNER, "doc-1")

    def test_ingest_into_secondary_target(
        self, run_cli, document_store, secondary_store, capsys
    ) -> None:
        document_store.documents["doc-1"] = make_document(transcript="Some words to embed.")

        assert run_cli("ingest", "doc-1", "--target", "documents") == 0

        payload = _payload(capsys)
        assert payload["vector_count"] == 1
        assert payload["target"] == "documents"
        assert len(secondary_store.rows) == 1

    def test_single_delete(self, run_cli, document_store, primary_store, capsys) -> None:
        document_store.documents["doc-1"] = make_document(transcript="text")
        primary_store.rows[1] = VectorRecord(owner_id=OWNER, content="x", embedding=[1.0])
        document_store.tracking[1] = IngestionTracking(
            id=1, owner_id=OWNER, document_id="doc-1", vector_ids=[1]
        )

        assert run_cli("delete", "doc-1") == 0

        payload = _payload(capsys)
        assert payload["deleted_vectors"] == 1
        assert document_store.documents == {}

    def test_batch_delete_all_missing_exits_nonzero(self, run_cli, capsys) -> None:
        assert run_cli("delete", "a", "b") == 1

        payload = _payload(capsys)
        assert payload["success"] is False
        assert len(payload["errors"]) == 2

    def test_purge_with_override(self, run_cli, blob_storage, capsys) -> None:
        old = datetime.now(timezone.utc) - timedelta(days=3)
        blob_storage.put("owner-1/old.mp3", b"x", created_at=old)

        assert run_cli("purge", "--max-age-days", "1") == 0
        assert "Removed 1 blob(s)" in capsys.readouterr().out

    def test_application_error_reported_on_stderr(self, run_cli, components, capsys) -> None:
        components["transcription_service"].transcribe = AsyncMock(
            side_effect=TranscriptionError("service down", provider_name="assemblyai")
        )

        assert run_cli("transcribe", "doc-1") == 1
        assert "Error: [assemblyai] service down" in capsys.readouterr().err
        assert run_cli.close_calls == 1
