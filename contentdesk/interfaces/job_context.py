"""Abstract base class for the durable step-execution context of a job.

Orchestrators are written as a sequence of named steps run through an
:class:`IJobContext`.  A step whose result has been recorded is not executed
again when the job is retried; its recorded result is returned instead.
Effects inside a step that crashed before completing may repeat, so
execution is at-least-once per step.

Step ids must be unique within one job run and stable across retries
(e.g. ``"poll-status-3"``, never a timestamp).  Include :attr:`IJobContext.attempt`
in the id of a step that must run again on every attempt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


# Concrete implementation: LocalJobContext (contentdesk/pipeline/job_runner.py)
class IJobContext(ABC):
    """Contract handed to orchestrators by the job runner."""

    @property
    @abstractmethod
    def job_id(self) -> str:
        """Identifier of the running job."""

    @property
    @abstractmethod
    def attempt(self) -> int:
        """1-based attempt number of the current run of this job.

        Steps whose remote effect must restart on every attempt (for example
        a submission to an external service) include it in their step id.
        """

    @abstractmethod
    async def run(self, step_id: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run *fn* once as step *step_id* and return its result.

        On replay, returns the recorded result without calling *fn*.
        """

    @abstractmethod
    async def sleep(self, step_id: str, seconds: float) -> None:
        """Suspend the job for *seconds*.  A completed sleep is not repeated."""
