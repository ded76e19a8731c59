"""
Job service test fixtures.

InMemoryEngine stands in for the scheduling engine:
- jobs and triggers live in dicts keyed by JobKey
- pause/resume flip trigger state
- any operation can be made to fail with EngineError via fail()
- read_only() entries are counted so the read boundary can be asserted
"""

import dataclasses
import pytest
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from jobkeeper.scheduling import (
    EngineError,
    JobDescriptor,
    JobDetail,
    JobKey,
    SchedulerJobService,
    Trigger,
    TriggerDescriptor,
    TriggerState,
)
from jobkeeper.scheduling.engine import SchedulerEngine


FIXED_NEXT_FIRE = datetime(2026, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


class InMemoryEngine(SchedulerEngine):
    """Dict-backed engine for deterministic service tests."""

    def __init__(self):
        self.jobs: dict[JobKey, JobDetail] = {}
        self.triggers: dict[JobKey, list[Trigger]] = {}
        self.failing: set[str] = set()
        self.read_only_entries = 0

    def fail(self, *operations: str) -> None:
        """Make the named operations raise EngineError."""
        self.failing.update(operations)

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise EngineError(f"{operation} failed: engine unavailable")

    @contextmanager
    def read_only(self):
        self._check("read_only")
        self.read_only_entries += 1
        yield

    def get_job_keys(self, matcher):
        self._check("get_job_keys")
        return {key for key in self.jobs if matcher.matches(key)}

    def get_job_detail(self, key):
        self._check("get_job_detail")
        detail = self.jobs.get(key)
        return dataclasses.replace(detail, data=dict(detail.data)) if detail else None

    def get_triggers_of_job(self, key):
        self._check("get_triggers_of_job")
        return [dataclasses.replace(t) for t in self.triggers.get(key, [])]

    def check_exists(self, key):
        self._check("check_exists")
        return key in self.jobs

    def schedule_job(self, job_detail, triggers, replace=False):
        self._check("schedule_job")
        key = job_detail.key
        if key in self.jobs and not replace:
            raise EngineError(f"Unable to store job {key}: already exists")
        self.jobs[key] = job_detail
        self.triggers[key] = [
            dataclasses.replace(t, next_fire_time=t.fire_time or FIXED_NEXT_FIRE, state=TriggerState.NORMAL)
            for t in triggers
        ]

    def store_job(self, job_detail, replace=False):
        self._check("store_job")
        key = job_detail.key
        if key in self.jobs and not replace:
            raise EngineError(f"Unable to store job {key}: already exists")
        if key not in self.jobs and not job_detail.durable:
            raise EngineError(f"Jobs added with no trigger must be durable: {key}")
        self.jobs[key] = job_detail
        self.triggers.setdefault(key, [])

    def delete_job(self, key):
        self._check("delete_job")
        existed = key in self.jobs
        self.jobs.pop(key, None)
        self.triggers.pop(key, None)
        return existed

    def delete_jobs(self, keys):
        self._check("delete_jobs")
        result = True
        for key in keys:
            result = self.delete_job(key) and result
        return result

    def pause_job(self, key):
        self._check("pause_job")
        self._set_state(key, TriggerState.PAUSED)

    def resume_job(self, key):
        self._check("resume_job")
        self._set_state(key, TriggerState.NORMAL)

    def _set_state(self, key, state):
        self.triggers[key] = [dataclasses.replace(t, state=state) for t in self.triggers.get(key, [])]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def engine() -> InMemoryEngine:
    return InMemoryEngine()


@pytest.fixture
def service(engine: InMemoryEngine) -> SchedulerJobService:
    return SchedulerJobService(engine)


@pytest.fixture
def add_job(engine: InMemoryEngine) -> Callable[..., JobKey]:
    """Factory that puts an email job with one cron trigger straight into the engine."""

    def _add(
        group: str,
        name: str,
        cron: str = "0 9 * * *",
        data: Optional[dict] = None,
        trigger_names: Iterable[str] = ("daily",),
    ) -> JobKey:
        key = JobKey(group=group, name=name)
        detail = JobDetail(
            key=key,
            job_type="email",
            data=data or {"subject": f"{name} report", "message_body": "", "to": ["ops@example.com"], "cc": [], "bcc": []},
        )
        triggers = [
            Trigger(name=trigger_name, group=group, job_key=key, cron=cron)
            for trigger_name in trigger_names
        ]
        engine.schedule_job(detail, triggers)
        return key

    return _add


@pytest.fixture
def scenario_jobs(add_job) -> list[JobKey]:
    """Engine holding (grpA, job1), (grpA, job2), (grpB, job3)."""
    return [
        add_job("grpA", "job1"),
        add_job("grpA", "job2"),
        add_job("grpB", "job3"),
    ]


@pytest.fixture
def email_descriptor() -> JobDescriptor:
    return JobDescriptor(
        group="ignored",
        name="weekly-report",
        job_type="email",
        data={"subject": "Weekly report", "message_body": "See attached", "to": ["ops@example.com"]},
        triggers=frozenset({TriggerDescriptor(name="monday", cron="0 9 * * MON")}),
    )
