"""In-process job runner with step replay and task-level retry.

Provides the durable-execution primitives the orchestrators are written
against:

- :class:`LocalJobContext` records each completed step's result in a per-job
  journal.  When the runner retries the job, completed steps return their
  recorded result instead of executing again, and completed sleeps are
  skipped.
- :class:`LocalJobRunner` schedules jobs as asyncio tasks, retries failed
  jobs up to ``max_attempts`` (stopping early on non-retryable errors such
  as :class:`~contentdesk.utils.errors.DocumentNotFoundError`), and keeps a
  :class:`~contentdesk.models.job.JobRecord` per job for status polling,
  dropping the oldest finished records beyond ``history_limit``.
- :class:`InlineJobContext` runs steps directly with no journal; used when
  an orchestrator is called outside the runner (CLI, tests).

Journals live in memory, so replay covers retries within one process but
not a process restart.  Execution is at-least-once per step.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import structlog

from contentdesk.interfaces.job_context import IJobContext
from contentdesk.models.job import JobRecord, JobStatus
from contentdesk.utils.errors import JobError, is_retryable
from contentdesk.utils.logging import bind_job_context, clear_job_context

logger = structlog.get_logger(logger_name=__name__)

T = TypeVar("T")

JobHandler = Callable[[IJobContext], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[None]]

_DEFAULT_MAX_ATTEMPTS = 3
_DEFAULT_RETRY_DELAY_SECONDS = 1.0
_DEFAULT_HISTORY_LIMIT = 500


class InlineJobContext(IJobContext):
    """Runs every step immediately.  Nothing is recorded or replayed."""

    def __init__(self, job_id: str | None = None, sleep: SleepFn | None = None) -> None:
        self._job_id = job_id or f"inline-{uuid.uuid4()}"
        self._sleep = sleep or asyncio.sleep

    @property
    def job_id(self) -> str:
        return self._job_id

    @property
    def attempt(self) -> int:
        return 1

    async def run(self, step_id: str, fn: Callable[[], Awaitable[T]]) -> T:
        return await fn()

    async def sleep(self, step_id: str, seconds: float) -> None:
        await self._sleep(seconds)


class LocalJobContext(IJobContext):
    """Step context backed by a per-job journal shared across attempts.

    Parameters
    ----------
    job_id:
        Identifier of the job this context belongs to.
    journal:
        Mapping of step id to recorded result.  The runner passes the same
        dict to every attempt of a job.
    attempt:
        1-based attempt number this context runs.
    sleep:
        Awaitable sleep used for :meth:`sleep`.
    """

    def __init__(
        self,
        job_id: str,
        journal: dict[str, Any],
        attempt: int = 1,
        sleep: SleepFn | None = None,
    ) -> None:
        self._job_id = job_id
        self._journal = journal
        self._attempt = attempt
        self._sleep = sleep or asyncio.sleep
        self._seen: set[str] = set()

    @property
    def job_id(self) -> str:
        return self._job_id

    @property
    def attempt(self) -> int:
        return self._attempt

    async def run(self, step_id: str, fn: Callable[[], Awaitable[T]]) -> T:
        self._claim(step_id)
        if step_id in self._journal:
            logger.debug("step_replayed", step=step_id)
            return self._journal[step_id]

        result = await fn()
        self._journal[step_id] = result
        logger.debug("step_completed", step=step_id)
        return result

    async def sleep(self, step_id: str, seconds: float) -> None:
        key = f"sleep:{step_id}"
        self._claim(key)
        if key in self._journal:
            return
        await self._sleep(seconds)
        self._journal[key] = None

    def _claim(self, step_id: str) -> None:
        if step_id in self._seen:
            raise JobError(f"Step id {step_id!r} used twice in job {self._job_id}")
        self._seen.add(step_id)


class LocalJobRunner:
    """Schedules jobs as asyncio tasks with at-least-once, step-replayed retries.

    Parameters
    ----------
    max_attempts:
        Attempts per job before it is marked failed (default 3).
    retry_delay_seconds:
        Base delay between attempts; attempt *n* waits ``n * delay``.
    history_limit:
        Finished job records kept for polling; the oldest are dropped first.
    sleep:
        Awaitable sleep used for retry delays and step sleeps.
    """

    def __init__(
        self,
        max_attempts: int = _DEFAULT_MAX_ATTEMPTS,
        retry_delay_seconds: float = _DEFAULT_RETRY_DELAY_SECONDS,
        history_limit: int = _DEFAULT_HISTORY_LIMIT,
        sleep: SleepFn | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay_seconds
        self._history_limit = history_limit
        self._sleep = sleep or asyncio.sleep
        self._jobs: dict[str, JobRecord] = {}
        self._journals: dict[str, dict[str, Any]] = {}
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, name: str, handler: JobHandler) -> str:
        """Schedule *handler* as a background job and return its id.

        Must be called from within a running event loop.
        """
        job_id = str(uuid.uuid4())
        self._jobs[job_id] = JobRecord(job_id=job_id, name=name)
        task = asyncio.create_task(self._run_detached(job_id, name, handler))
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(job_id, None))
        logger.info("job_submitted", job_id=job_id, job_name=name)
        return job_id

    async def run(self, name: str, handler: JobHandler, job_id: str | None = None) -> Any:
        """Run *handler* to completion in the caller's task.

        Returns the handler's result, or re-raises the final error once
        retries are exhausted or a non-retryable error occurs.
        """
        job_id = job_id or str(uuid.uuid4())
        if job_id not in self._jobs:
            self._jobs[job_id] = JobRecord(job_id=job_id, name=name)
        journal = self._journals.setdefault(job_id, {})

        bind_job_context(job_id, name)
        try:
            for attempt in range(1, self._max_attempts + 1):
                self._update(job_id, status=JobStatus.RUNNING, attempts=attempt)
                context = LocalJobContext(job_id, journal, attempt=attempt, sleep=self._sleep)
                try:
                    result = await handler(context)
                except Exception as exc:
                    retry = is_retryable(exc) and attempt < self._max_attempts
                    logger.warning(
                        "job_attempt_failed",
                        attempt=attempt,
                        max_attempts=self._max_attempts,
                        error=str(exc),
                        error_type=type(exc).__name__,
                        will_retry=retry,
                    )
                    if not retry:
                        self._update(
                            job_id,
                            status=JobStatus.FAILED,
                            error=str(exc),
                            finished_at=datetime.now(timezone.utc),
                        )
                        raise
                    await self._sleep(attempt * self._retry_delay)
                    continue

                self._update(
                    job_id,
                    status=JobStatus.COMPLETED,
                    result=result,
                    error=None,
                    finished_at=datetime.now(timezone.utc),
                )
                logger.info("job_completed", attempts=attempt)
                return result
        finally:
            self._journals.pop(job_id, None)
            clear_job_context()
            self._prune_finished()

        raise JobError(f"Job {job_id} exhausted its attempts")  # pragma: no cover

    def get(self, job_id: str) -> JobRecord | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[JobRecord]:
        return sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)

    async def wait(self, job_id: str) -> JobRecord:
        """Wait for a submitted job to finish and return its final record."""
        if job_id not in self._jobs:
            raise JobError(f"Unknown job {job_id}")
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})
        record = self._jobs.get(job_id)
        if record is None:
            raise JobError(f"Job {job_id} finished and was dropped from history")
        return record

    async def shutdown(self) -> None:
        """Cancel jobs that are still running."""
        pending = list(self._tasks.values())
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("job_runner_shutdown", cancelled=len(pending))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_detached(self, job_id: str, name: str, handler: JobHandler) -> None:
        try:
            await self.run(name, handler, job_id=job_id)
        except Exception as exc:
            # The failure is already on the JobRecord; background tasks have
            # no caller to raise to.
            logger.error("background_job_failed", job_id=job_id, job_name=name, error=str(exc))

    def _prune_finished(self) -> None:
        finished = [
            record
            for record in self._jobs.values()
            if record.status in (JobStatus.COMPLETED, JobStatus.FAILED)
        ]
        excess = len(finished) - self._history_limit
        if excess <= 0:
            return
        finished.sort(key=lambda record: record.finished_at or record.created_at)
        for record in finished[:excess]:
            del self._jobs[record.job_id]
        logger.debug("job_history_pruned", removed=excess)

    def _update(self, job_id: str, **changes: Any) -> None:
        self._jobs[job_id] = self._jobs[job_id].model_copy(update=changes)
