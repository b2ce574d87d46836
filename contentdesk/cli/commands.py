"""argparse CLI for operating the pipeline outside the web server.

Usage::

    python -m contentdesk.cli init-db
    python -m contentdesk.cli transcribe 6f1c...
    python -m contentdesk.cli ingest 6f1c... --target documents
    python -m contentdesk.cli delete 6f1c... 9a2b...
    python -m contentdesk.cli purge --max-age-days 30
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from contentdesk.config.settings import Settings
from contentdesk.models.ingestion import VectorTarget
from contentdesk.utils.errors import ContentDeskError
from contentdesk.utils.logging import configure_logging


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_init_db(args: argparse.Namespace, components: dict[str, Any]) -> int:  # noqa: ARG001
    from contentdesk.main import initialize_components

    await initialize_components(components)
    print(f"Database ready: {components['settings'].database_path}")
    return 0


async def _handle_transcribe(args: argparse.Namespace, components: dict[str, Any]) -> int:
    service = components["transcription_service"]
    document = await components["job_runner"].run(
        "transcribe",
        lambda job: service.transcribe(args.owner, args.document_id, job=job),
    )
    _print_json(
        {
            "document_id": document.id,
            "status": document.status.value,
            "chars": len(document.transcript or ""),
        }
    )
    return 0


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    service = components["ingestion_service"]
    result = await components["job_runner"].run(
        "ingest",
        lambda job: service.ingest(
            args.owner,
            args.document_id,
            target=VectorTarget(args.target),
            external_link=args.external_link,
            job=job,
        ),
    )
    _print_json(result.model_dump(mode="json"))
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    service = components["deletion_service"]
    if len(args.document_ids) == 1:
        document_id = args.document_ids[0]
        result = await components["job_runner"].run(
            "delete", lambda job: service.delete(args.owner, document_id, job=job)
        )
        _print_json(result.model_dump(mode="json"))
        return 0

    batch = await service.delete_many(args.owner, args.document_ids)
    _print_json({"success": batch.success, **batch.model_dump(mode="json")})
    return 0 if batch.success else 1


async def _handle_purge(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from contentdesk.services.purge_service import PurgeService

    service = components["purge_service"]
    if args.max_age_days is not None:
        settings: Settings = components["settings"]
        service = PurgeService(
            blob_storage=components["blob_storage"],
            max_age_days=args.max_age_days,
            list_limit=settings.purge_list_limit,
        )
    removed = await service.purge()
    print(f"Removed {removed} blob(s)")
    return 0


_HANDLERS = {
    "init-db": _handle_init_db,
    "transcribe": _handle_transcribe,
    "ingest": _handle_ingest,
    "delete": _handle_delete,
    "purge": _handle_purge,
}


# ---------------------------------------------------------------------------
# Parser & entry point
# ---------------------------------------------------------------------------


def _build_parser(default_owner: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m contentdesk.cli",
        description="Operate the contentdesk ingestion pipeline.",
    )
    parser.add_argument(
        "--owner", default=default_owner, help="Owner id to act as (default: configured owner)"
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe one document")
    transcribe_parser.add_argument("document_id")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest one completed document")
    ingest_parser.add_argument("document_id")
    ingest_parser.add_argument(
        "--target",
        choices=[t.value for t in VectorTarget],
        default=VectorTarget.PRIMARY.value,
        help="Vector target table",
    )
    ingest_parser.add_argument("--external-link", default=None, help="Source link to attach")

    delete_parser = subparsers.add_parser("delete", help="Delete one or more documents")
    delete_parser.add_argument("document_ids", nargs="+")

    purge_parser = subparsers.add_parser("purge", help="Remove old blobs from storage")
    purge_parser.add_argument(
        "--max-age-days", type=int, default=None, help="Override the retention window"
    )
    return parser


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    from contentdesk.main import _build_all, close_components, initialize_components

    components = _build_all(app_settings)
    try:
        if args.command != "init-db":
            await initialize_components(components)
        return await _HANDLERS[args.command](args, components)
    finally:
        await close_components(components)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    app_settings = Settings()
    parser = _build_parser(app_settings.default_owner_id)
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except ContentDeskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
