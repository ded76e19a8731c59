"""
Job Service - group/name addressed job operations over a SchedulerEngine.

Layers:
- JobService: the operation contract consumed by the API
- AbstractJobService: identity resolution, engine calls, error translation
  and logging for every operation except create/update
- SchedulerJobService: create/update by dispatching to the
  JobDefinitionBuilder registered for the descriptor's job type

Every engine failure is logged at ERROR and re-raised as OperationFailure.
Missing jobs on reads are data (None / empty set), never errors. There are
no retries and no locks here; the engine is shared and does its own
synchronization.

Usage:
    service = SchedulerJobService.create(timezone="UTC")
    service.engine.start()
    service.create_job("reports", descriptor)
"""

import functools
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .apscheduler_engine import APSchedulerEngine
from .builders import JobDefinitionBuilder, default_builders
from .descriptors import JobDescriptor
from .engine import SchedulerEngine
from .errors import (
    EngineError,
    InvalidJobDefinitionError,
    JobAlreadyExistsError,
    JobNotFoundError,
    OperationFailure,
    UnknownJobTypeError,
)
from .identity import GroupMatcher, JobKey, match_any_group, match_group, resolve_identity


logger = logging.getLogger(__name__)


def read_only(method):
    """
    Run a read operation inside the engine's read-consistency boundary.

    The boundary is a hint to the engine; this layer does not enforce it.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            with self.engine.read_only():
                return method(self, *args, **kwargs)
        except EngineError as e:
            # Only the boundary itself can leak EngineError; the method translates its own
            logger.error(f"Read boundary for {method.__name__} failed due to error - {e}")
            raise OperationFailure(str(e), cause=e) from None

    wrapper.read_only = True
    return wrapper


class JobService(ABC):
    """Operations on scheduled jobs addressed by (group, name)."""

    @abstractmethod
    def create_job(self, group: str, descriptor: JobDescriptor) -> JobDescriptor:
        """
        Create a job in `group` and return it as stored by the engine.

        Raises:
            OperationFailure: If the engine rejects the job or the identity
                is already taken
        """
        ...

    @abstractmethod
    def find_jobs(self) -> set[JobDescriptor]:
        """Return every job known to the engine (empty set if none)."""
        ...

    @abstractmethod
    def find_group_jobs(self, group: str) -> set[JobDescriptor]:
        """Return every job whose group equals `group` exactly."""
        ...

    @abstractmethod
    def find_job(self, group: str, name: str) -> Optional[JobDescriptor]:
        """Return the job with this identity, or None if there is none."""
        ...

    @abstractmethod
    def update_job(self, group: str, name: str, descriptor: JobDescriptor) -> None:
        """
        Replace the payload of an existing job.

        Raises:
            JobNotFoundError: If no job has this identity (nothing is created)
        """
        ...

    @abstractmethod
    def delete_job(self, group: str, name: str) -> None:
        """Delete a job and its triggers."""
        ...

    @abstractmethod
    def delete_all_jobs(self) -> None:
        """Delete every job in every group. Not atomic."""
        ...

    @abstractmethod
    def pause_job(self, group: str, name: str) -> None:
        """Pause every trigger of a job."""
        ...

    @abstractmethod
    def resume_job(self, group: str, name: str) -> None:
        """Resume every trigger of a job."""
        ...


class AbstractJobService(JobService):
    """
    Shared orchestration for JobService implementations.

    create_job and update_job are left to subclasses because the mapping
    from descriptor to engine definition depends on the job type.
    """

    def __init__(self, engine: SchedulerEngine):
        """
        Args:
            engine: Shared engine instance used by every operation
        """
        self.engine = engine

    # =========================================================================
    # Queries
    # =========================================================================

    @read_only
    def find_jobs(self) -> set[JobDescriptor]:
        return self._find_matching(match_any_group(), "all groups")

    @read_only
    def find_group_jobs(self, group: str) -> set[JobDescriptor]:
        return self._find_matching(match_group(group), f"group {group}")

    @read_only
    def find_job(self, group: str, name: str) -> Optional[JobDescriptor]:
        key = resolve_identity(group, name)
        try:
            descriptor = self._load(key)
        except EngineError as e:
            logger.error(f"Could not find job with key - {key} due to error - {e}")
            raise self._failure(e) from None

        if descriptor is None:
            logger.warning(f"Could not find job with key - {key}")
            return None

        logger.info(f"Found job with key - {key}")
        return descriptor

    # =========================================================================
    # Commands
    # =========================================================================

    def delete_job(self, group: str, name: str) -> None:
        key = resolve_identity(group, name)
        try:
            self.engine.delete_job(key)
        except EngineError as e:
            logger.error(f"Could not delete job with key - {key} due to error - {e}")
            raise self._failure(e) from None
        logger.info(f"Deleted job with key - {key}")

    def delete_all_jobs(self) -> None:
        try:
            keys = self.engine.get_job_keys(match_any_group())
            self.engine.delete_jobs(list(keys))
        except EngineError as e:
            logger.error(f"Could not delete all jobs due to error - {e}")
            raise self._failure(e) from None
        logger.info(f"Deleted all jobs ({len(keys)})")

    def pause_job(self, group: str, name: str) -> None:
        key = resolve_identity(group, name)
        try:
            self.engine.pause_job(key)
        except EngineError as e:
            logger.error(f"Could not pause job with key - {key} due to error - {e}")
            raise self._failure(e) from None
        logger.info(f"Paused job with key - {key}")

    def resume_job(self, group: str, name: str) -> None:
        key = resolve_identity(group, name)
        try:
            self.engine.resume_job(key)
        except EngineError as e:
            logger.error(f"Could not resume job with key - {key} due to error - {e}")
            raise self._failure(e) from None
        logger.info(f"Resumed job with key - {key}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, key: JobKey) -> Optional[JobDescriptor]:
        """Fetch job + triggers and build a snapshot. None if the job is gone."""
        job_detail = self.engine.get_job_detail(key)
        if job_detail is None:
            return None
        return JobDescriptor.from_engine(job_detail, self.engine.get_triggers_of_job(key))

    def _find_matching(self, matcher: GroupMatcher, label: str) -> set[JobDescriptor]:
        descriptors = set()
        try:
            for key in self.engine.get_job_keys(matcher):
                descriptor = self._load(key)
                # Deleted between enumeration and fetch
                if descriptor is not None:
                    descriptors.add(descriptor)
        except EngineError as e:
            logger.error(f"Could not find any jobs due to error - {e}")
            raise self._failure(e) from None

        logger.info(f"Found {len(descriptors)} job(s) in {label}")
        return descriptors

    @staticmethod
    def _failure(error: EngineError) -> OperationFailure:
        return OperationFailure(str(error), cause=error)


class SchedulerJobService(AbstractJobService):
    """
    JobService that delegates create/update to job-type builders.

    Create policy: an existing identity is rejected with
    JobAlreadyExistsError, never replaced.
    """

    def __init__(
        self,
        engine: SchedulerEngine,
        builders: Optional[Iterable[JobDefinitionBuilder]] = None,
    ):
        """
        Args:
            engine: Shared engine instance
            builders: Job-type builders; defaults to email and webhook
        """
        super().__init__(engine)
        if builders is None:
            builders = default_builders()
        self.builders = {b.job_type: b for b in builders}

    @classmethod
    def create(cls, timezone: str = "UTC", max_workers: int = 10) -> "SchedulerJobService":
        """
        Create a service backed by a new APScheduler engine.

        The engine is not started.
        """
        engine = APSchedulerEngine(timezone=timezone, max_workers=max_workers)
        return cls(engine)

    def create_job(self, group: str, descriptor: JobDescriptor) -> JobDescriptor:
        builder = self._builder_for(descriptor.job_type)
        descriptor = descriptor.with_group(group)
        key = resolve_identity(group, descriptor.name)

        try:
            job_detail = builder.build_job_detail(group, descriptor)
            triggers = builder.build_triggers(key, descriptor)
        except ValueError as e:
            logger.error(f"Could not save job with key - {key} due to error - {e}")
            raise InvalidJobDefinitionError(str(e), cause=e) from None

        try:
            if self.engine.check_exists(key):
                logger.error(f"Could not save job with key - {key} as it already exists")
                raise JobAlreadyExistsError(group, descriptor.name)
            self.engine.schedule_job(job_detail, triggers, replace=False)
            created = self._load(key)
        except EngineError as e:
            logger.error(f"Could not save job with key - {key} due to error - {e}")
            raise self._failure(e) from None

        logger.info(f"Job with key - {key} saved successfully")
        return created or JobDescriptor.from_engine(job_detail, triggers)

    def update_job(self, group: str, name: str, descriptor: JobDescriptor) -> None:
        key = resolve_identity(group, name)
        builder = self._builder_for(descriptor.job_type)

        try:
            existing = self.engine.get_job_detail(key)
        except EngineError as e:
            logger.error(f"Could not update job with key - {key} due to error - {e}")
            raise self._failure(e) from None

        if existing is None:
            logger.error(f"Could not find job with key - {key} to update")
            raise JobNotFoundError(group, name)

        if existing.job_type != builder.job_type:
            logger.error(
                f"Could not update job with key - {key}: "
                f"job type {existing.job_type} cannot change to {builder.job_type}"
            )
            raise InvalidJobDefinitionError(
                f"Job type of {key} is {existing.job_type}, not {builder.job_type}"
            )

        try:
            job_detail = builder.merge(existing, descriptor)
        except ValueError as e:
            logger.error(f"Could not update job with key - {key} due to error - {e}")
            raise InvalidJobDefinitionError(str(e), cause=e) from None

        try:
            self.engine.store_job(job_detail, replace=True)
        except EngineError as e:
            logger.error(f"Could not update job with key - {key} due to error - {e}")
            raise self._failure(e) from None

        logger.info(f"Updated job with key - {key}")

    def _builder_for(self, job_type: str) -> JobDefinitionBuilder:
        builder = self.builders.get(job_type)
        if builder is None:
            logger.error(f"No job definition builder for job type '{job_type}'")
            raise UnknownJobTypeError(job_type)
        return builder
