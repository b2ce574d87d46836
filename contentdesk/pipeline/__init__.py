"""Job execution layer: step contexts and the in-process job runner."""

from contentdesk.pipeline.job_runner import (
    InlineJobContext,
    LocalJobContext,
    LocalJobRunner,
)

__all__ = ["InlineJobContext", "LocalJobContext", "LocalJobRunner"]
