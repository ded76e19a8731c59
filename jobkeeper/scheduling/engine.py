"""
Scheduling engine contract.

The engine owns durable job and trigger state, fires triggers and keeps its
own synchronization. The JobService only queries and commands it through
this interface. Every method may raise EngineError.

What an engine adapter MUST NOT do:
- Translate its failures into OperationFailure (the service's job)
- Cache descriptors on behalf of callers
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from .entities import JobDetail, Trigger
from .identity import GroupMatcher, JobKey


class SchedulerEngine(ABC):
    """
    Abstract scheduling engine.

    Instances are long-lived and shared by concurrent callers; adapters
    must be safe for concurrent invocation.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start firing triggers. Default: nothing to start."""

    def shutdown(self, wait: bool = True) -> None:
        """Stop firing triggers. Default: nothing to stop."""

    @contextmanager
    def read_only(self) -> Iterator[None]:
        """
        Read-consistency hint wrapped around read operations.

        Engines backed by a transactional store can override this to open a
        read-only transaction. The default does nothing.
        """
        yield

    # =========================================================================
    # Queries
    # =========================================================================

    @abstractmethod
    def get_job_keys(self, matcher: GroupMatcher) -> set[JobKey]:
        """Return the keys of all jobs selected by `matcher`."""
        ...

    @abstractmethod
    def get_job_detail(self, key: JobKey) -> Optional[JobDetail]:
        """Return the job definition for `key`, or None if there is none."""
        ...

    @abstractmethod
    def get_triggers_of_job(self, key: JobKey) -> list[Trigger]:
        """Return the triggers bound to `key` (empty if none)."""
        ...

    @abstractmethod
    def check_exists(self, key: JobKey) -> bool:
        """Check whether a job with `key` exists."""
        ...

    # =========================================================================
    # Commands
    # =========================================================================

    @abstractmethod
    def schedule_job(
        self,
        job_detail: JobDetail,
        triggers: Iterable[Trigger],
        replace: bool = False,
    ) -> None:
        """
        Store a job together with its triggers.

        Raises:
            EngineError: If the job exists and `replace` is False, or the
                engine rejects the definition
        """
        ...

    @abstractmethod
    def store_job(self, job_detail: JobDetail, replace: bool = False) -> None:
        """Store a job definition, keeping any triggers already bound to it."""
        ...

    @abstractmethod
    def delete_job(self, key: JobKey) -> bool:
        """Delete a job and its triggers. Returns False if it did not exist."""
        ...

    @abstractmethod
    def delete_jobs(self, keys: list[JobKey]) -> bool:
        """
        Delete several jobs. Returns False if any of them did not exist.

        Not atomic: a failure partway leaves whatever was already deleted
        deleted.
        """
        ...

    @abstractmethod
    def pause_job(self, key: JobKey) -> None:
        """Pause every trigger of the job."""
        ...

    @abstractmethod
    def resume_job(self, key: JobKey) -> None:
        """Resume every trigger of the job."""
        ...
