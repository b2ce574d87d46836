"""Background job bookkeeping models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):  # noqa: UP042
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobRecord(BaseModel):
    """Snapshot of a job's state in the local job runner."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    name: str
    status: JobStatus = JobStatus.QUEUED
    attempts: int = Field(default=0, ge=0)
    error: str | None = None
    result: Any = None
    created_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime | None = None
