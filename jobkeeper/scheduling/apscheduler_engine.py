"""
APScheduler-backed SchedulerEngine.

Mapping onto APScheduler 3.x:
- One APScheduler job per JobKey. The job id escapes dots in the group so
  that ("a.b", "c") and ("a", "b.c") never collide.
- The job callable is jobkeeper.scheduling.jobs:execute_job, referenced by
  text so persistent job stores can serialize it.
- group/name/job_type/data travel as job kwargs. Description, durability and
  the trigger specs travel in the reserved "meta" kwarg, the way a data map
  carries them on engines that have one.
- Several triggers are combined with OrTrigger; a job needs at least one.
- A job with next_run_time None is paused.

APScheduler lookup/conflict/validation errors are re-raised as EngineError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.job import Job as APSJob
from apscheduler.jobstores.base import ConflictingIdError, JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from .engine import SchedulerEngine
from .entities import JobDetail, Trigger, TriggerState
from .errors import EngineError
from .identity import GroupMatcher, JobKey


logger = logging.getLogger(__name__)

JOB_FUNC_REF = "jobkeeper.scheduling.jobs:execute_job"


def job_id_for(key: JobKey) -> str:
    """APScheduler job id for a key: escaped group, a dot, then the name."""
    group = key.group.replace("\\", "\\\\").replace(".", "\\.")
    return f"{group}.{key.name}"


class APSchedulerEngine(SchedulerEngine):
    """SchedulerEngine over an APScheduler BackgroundScheduler."""

    def __init__(
        self,
        scheduler: Optional[BaseScheduler] = None,
        timezone: str = "UTC",
        max_workers: int = 10,
    ):
        """
        Initialize the engine.

        Args:
            scheduler: Pre-configured APScheduler instance. A
                BackgroundScheduler is created when omitted.
            timezone: Scheduler timezone (ignored when `scheduler` is given)
            max_workers: Thread pool size for job execution
        """
        self.scheduler = scheduler or BackgroundScheduler(
            timezone=timezone,
            executors={"default": ThreadPoolExecutor(max_workers)},
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, paused: bool = False) -> None:
        if not self.scheduler.running:
            self.scheduler.start(paused=paused)
            logger.info("APScheduler engine started")

    def shutdown(self, wait: bool = True) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("APScheduler engine stopped")

    @contextmanager
    def _engine_errors(self, key: Optional[JobKey] = None) -> Iterator[None]:
        """Re-raise APScheduler failures as EngineError."""
        try:
            yield
        except JobLookupError as e:
            raise EngineError(f"No job with key {key}") from e
        except ConflictingIdError as e:
            raise EngineError(f"Job with key {key} already exists") from e
        except (ValueError, TypeError, KeyError) as e:
            # Unknown timezones surface as KeyError subclasses
            raise EngineError(str(e)) from e

    # =========================================================================
    # Queries
    # =========================================================================

    def get_job_keys(self, matcher: GroupMatcher) -> set[JobKey]:
        with self._engine_errors():
            jobs = self.scheduler.get_jobs()

        keys = set()
        for job in jobs:
            key = self._key_of(job)
            if key is not None and matcher.matches(key):
                keys.add(key)
        return keys

    def get_job_detail(self, key: JobKey) -> Optional[JobDetail]:
        job = self._get(key)
        if job is None:
            return None

        meta = job.kwargs.get("meta", {})
        return JobDetail(
            key=key,
            job_type=job.kwargs["job_type"],
            data=dict(job.kwargs.get("data", {})),
            description=meta.get("description"),
            durable=meta.get("durable", False),
        )

    def get_triggers_of_job(self, key: JobKey) -> list[Trigger]:
        job = self._get(key)
        if job is None:
            return []

        specs = job.kwargs.get("meta", {}).get("triggers", [])
        if isinstance(job.trigger, OrTrigger):
            aps_triggers = list(job.trigger.triggers)
        else:
            aps_triggers = [job.trigger]

        # Pending jobs (scheduler not started) have no next_run_time yet
        pending = not hasattr(job, "next_run_time")
        paused = not pending and job.next_run_time is None
        now = datetime.now(timezone.utc)

        triggers = []
        for spec, aps_trigger in zip(specs, aps_triggers):
            if pending or paused:
                next_fire_time = None
            elif len(aps_triggers) == 1:
                next_fire_time = job.next_run_time
            else:
                next_fire_time = aps_trigger.get_next_fire_time(None, now)
                # One-shot triggers keep returning their run date after it passed
                if next_fire_time is not None and next_fire_time < now:
                    next_fire_time = None

            triggers.append(
                Trigger(
                    name=spec["name"],
                    group=spec["group"],
                    job_key=key,
                    cron=spec.get("cron"),
                    fire_time=spec.get("fire_time"),
                    timezone=spec.get("timezone", "UTC"),
                    next_fire_time=next_fire_time,
                    state=TriggerState.PAUSED if paused else TriggerState.NORMAL,
                )
            )
        return triggers

    def check_exists(self, key: JobKey) -> bool:
        return self._get(key) is not None

    # =========================================================================
    # Commands
    # =========================================================================

    def schedule_job(
        self,
        job_detail: JobDetail,
        triggers: Iterable[Trigger],
        replace: bool = False,
    ) -> None:
        key = job_detail.key
        triggers = list(triggers)
        if not triggers:
            raise EngineError(f"Job {key} must have at least one trigger")
        if not replace and self.check_exists(key):
            raise EngineError(f"Job with key {key} already exists")

        with self._engine_errors(key):
            aps_triggers = [self._build_trigger(t) for t in triggers]
            trigger = aps_triggers[0] if len(aps_triggers) == 1 else OrTrigger(aps_triggers)

            self.scheduler.add_job(
                JOB_FUNC_REF,
                trigger=trigger,
                id=job_id_for(key),
                name=str(key),
                kwargs=self._build_kwargs(job_detail, triggers),
                replace_existing=replace,
            )

    def store_job(self, job_detail: JobDetail, replace: bool = False) -> None:
        key = job_detail.key
        job = self._get(key)
        if job is None:
            raise EngineError(f"Job {key} has no triggers; APScheduler cannot store it")
        if not replace:
            raise EngineError(f"Job with key {key} already exists")

        specs = job.kwargs.get("meta", {}).get("triggers", [])
        kwargs = self._build_kwargs(job_detail, [])
        kwargs["meta"]["triggers"] = specs

        with self._engine_errors(key):
            self.scheduler.modify_job(job_id_for(key), kwargs=kwargs)

    def delete_job(self, key: JobKey) -> bool:
        try:
            self.scheduler.remove_job(job_id_for(key))
        except JobLookupError:
            return False
        return True

    def delete_jobs(self, keys: list[JobKey]) -> bool:
        all_found = True
        for key in keys:
            all_found = self.delete_job(key) and all_found
        return all_found

    def pause_job(self, key: JobKey) -> None:
        with self._engine_errors(key):
            self.scheduler.pause_job(job_id_for(key))

    def resume_job(self, key: JobKey) -> None:
        with self._engine_errors(key):
            self.scheduler.resume_job(job_id_for(key))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get(self, key: JobKey) -> Optional[APSJob]:
        job = self.scheduler.get_job(job_id_for(key))
        if job is None or self._key_of(job) != key:
            return None
        return job

    @staticmethod
    def _key_of(job: APSJob) -> Optional[JobKey]:
        """Key of a job created by this engine; None for foreign jobs."""
        kwargs = job.kwargs or {}
        if "group" not in kwargs or "name" not in kwargs:
            return None
        return JobKey(group=kwargs["group"], name=kwargs["name"])

    @staticmethod
    def _build_trigger(trigger: Trigger):
        if trigger.is_cron():
            return CronTrigger.from_crontab(trigger.cron, timezone=trigger.timezone)
        return DateTrigger(run_date=trigger.fire_time, timezone=trigger.timezone)

    @staticmethod
    def _build_kwargs(job_detail: JobDetail, triggers: list[Trigger]) -> dict:
        return {
            "group": job_detail.key.group,
            "name": job_detail.key.name,
            "job_type": job_detail.job_type,
            "data": dict(job_detail.data),
            "meta": {
                "description": job_detail.description,
                "durable": job_detail.durable,
                "triggers": [
                    {
                        "name": t.name,
                        "group": t.group,
                        "cron": t.cron,
                        "fire_time": t.fire_time,
                        "timezone": t.timezone,
                    }
                    for t in triggers
                ],
            },
        }
