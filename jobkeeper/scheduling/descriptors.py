"""
Caller-facing job and trigger descriptors.

A JobDescriptor is a snapshot built fresh from the engine on every read.
It is never cached and never kept in sync with later engine changes.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .entities import JobDetail, Trigger, TriggerState, generate_uuid
from .identity import JobKey


@dataclass(frozen=True)
class TriggerDescriptor:
    """
    Read-only summary of one trigger bound to a job.

    When used as input for create_job, only name/group/cron/fire_time/timezone
    are read; next_fire_time and state are filled in by the engine.
    """

    name: Optional[str] = None
    group: Optional[str] = None
    cron: Optional[str] = None
    fire_time: Optional[datetime] = None
    timezone: str = "UTC"
    next_fire_time: Optional[datetime] = None
    state: Optional[TriggerState] = None

    @classmethod
    def from_trigger(cls, trigger: Trigger) -> "TriggerDescriptor":
        """Project an engine trigger into a descriptor."""
        return cls(
            name=trigger.name,
            group=trigger.group,
            cron=trigger.cron,
            fire_time=trigger.fire_time,
            timezone=trigger.timezone,
            next_fire_time=trigger.next_fire_time,
            state=trigger.state,
        )

    def to_trigger(self, job_key: JobKey) -> Trigger:
        """
        Build the engine trigger for this descriptor.

        Name defaults to a generated UUID and group to the job's group.

        Raises:
            ValueError: If neither or both of cron / fire_time are set, or
                the cron expression does not have five fields, or the
                timezone is unknown
        """
        if bool(self.cron) == (self.fire_time is not None):
            raise ValueError(
                f"Trigger for {job_key} must define exactly one of 'cron' or 'fire_time'"
            )
        if self.cron and len(self.cron.split()) != 5:
            raise ValueError(f"Cron expression must have 5 fields: '{self.cron}'")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: '{self.timezone}'") from None
        return Trigger(
            name=self.name or generate_uuid(),
            group=self.group or job_key.group,
            job_key=job_key,
            cron=self.cron or None,
            fire_time=self.fire_time,
            timezone=self.timezone,
        )


@dataclass(frozen=True)
class JobDescriptor:
    """
    Snapshot of one job and its triggers.

    `data` is the job-type-specific payload and takes no part in hashing;
    identity (group, name) is unique within any result set.
    """

    group: str
    name: str
    job_type: str
    data: dict = field(default_factory=dict, hash=False)
    description: Optional[str] = None
    durable: bool = False
    triggers: frozenset = field(default_factory=frozenset)

    @property
    def key(self) -> JobKey:
        return JobKey(group=self.group, name=self.name)

    def with_group(self, group: str) -> "JobDescriptor":
        """Return a copy addressed to `group`."""
        return replace(self, group=group)

    @classmethod
    def from_engine(
        cls, job_detail: JobDetail, triggers: Iterable[Trigger]
    ) -> "JobDescriptor":
        """Build a descriptor from an engine job record and its triggers."""
        return cls(
            group=job_detail.key.group,
            name=job_detail.key.name,
            job_type=job_detail.job_type,
            data=dict(job_detail.data),
            description=job_detail.description,
            durable=job_detail.durable,
            triggers=frozenset(TriggerDescriptor.from_trigger(t) for t in triggers),
        )
