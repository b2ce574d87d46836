"""Structured logging setup using structlog.

One shared processor chain feeds either a coloured ConsoleRenderer
(development) or a JSONRenderer (production).  Output goes to **stderr**:
the CLI writes its JSON results to stdout and the two must not interleave.

The chain also collapses embedding vectors into a short summary, since
chunk records and search payloads occasionally end up in event context and
a 1536-float list would swamp the log line.  Standard-library ``logging``
(uvicorn, aiosqlite, httpx) is bridged through the same formatter; httpx's
per-request INFO lines are lowered to WARNING because transcription polling
issues one request every few seconds for the length of a job.
"""

import logging
import sys

import structlog

_VECTOR_SUMMARY_MIN_LENGTH = 32
_QUIET_LIBRARIES = ("httpx", "httpcore")


def summarize_vectors(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Replace long float lists in *event_dict* with ``"<vector dim=N>"``."""
    for key, value in event_dict.items():
        if (
            isinstance(value, list)
            and len(value) >= _VECTOR_SUMMARY_MIN_LENGTH
            and all(isinstance(item, float) for item in value)
        ):
            event_dict[key] = f"<vector dim={len(value)}>"
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    app_env: str = "development",
    json_output: bool | None = None,
) -> structlog.BoundLogger:
    """Configure structlog for the API process or the CLI.

    Parameters
    ----------
    log_level:
        Minimum level name (DEBUG, INFO, WARNING, ERROR).
    app_env:
        ``"production"`` selects JSON output unless *json_output* says otherwise.
    json_output:
        Force (``True``) or suppress (``False``) JSON rendering.
    """
    use_json = app_env == "production" if json_output is None else json_output

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        summarize_vectors,
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


def bind_job_context(job_id: str, job_name: str) -> None:
    """Bind the running job's identity into the structlog context vars.

    Every log line emitted while the job's task runs carries ``job_id`` and
    ``job_name`` without each service having to pass them explicitly.
    """
    structlog.contextvars.bind_contextvars(job_id=job_id, job_name=job_name)


def clear_job_context() -> None:
    structlog.contextvars.unbind_contextvars("job_id", "job_name")
