"""
Job API schemas.

Request/response models for the /api/v1.0 job endpoints and their
conversion to and from JobDescriptor.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from jobkeeper.scheduling.descriptors import JobDescriptor, TriggerDescriptor


class TriggerSchema(BaseModel):
    """A trigger bound to a job."""

    name: Optional[str] = Field(
        default=None,
        description="Trigger name (generated when omitted)"
    )
    group: Optional[str] = Field(
        default=None,
        description="Trigger group (defaults to the job group)"
    )
    cron: Optional[str] = Field(
        default=None,
        description="5-field crontab expression; mutually exclusive with fire_time"
    )
    fire_time: Optional[datetime] = Field(
        default=None,
        description="One-shot fire time; mutually exclusive with cron"
    )
    timezone: str = Field(default="UTC", description="Timezone of the schedule")
    next_fire_time: Optional[datetime] = Field(
        default=None,
        description="Next fire time reported by the engine (read-only)"
    )
    state: Optional[str] = Field(
        default=None,
        description="Trigger state reported by the engine (read-only)"
    )

    def to_descriptor(self) -> TriggerDescriptor:
        return TriggerDescriptor(
            name=self.name,
            group=self.group,
            cron=self.cron,
            fire_time=self.fire_time,
            timezone=self.timezone,
        )


class JobCreateRequest(BaseModel):
    """Request to create a job in a group."""

    name: str = Field(..., min_length=1, description="Job name, unique within its group")
    job_type: str = Field(default="email", description="Job type: 'email' or 'webhook'")
    data: dict = Field(default_factory=dict, description="Job payload (type-specific)")
    description: Optional[str] = None
    durable: bool = False
    triggers: List[TriggerSchema] = Field(default_factory=list)

    def to_descriptor(self, group: str) -> JobDescriptor:
        return JobDescriptor(
            group=group,
            name=self.name,
            job_type=self.job_type,
            data=self.data,
            description=self.description,
            durable=self.durable,
            triggers=frozenset(t.to_descriptor() for t in self.triggers),
        )


class JobUpdateRequest(BaseModel):
    """
    Request to replace the payload of an existing job.

    Description and durable are replaced as sent (omitted means cleared).
    Triggers are kept.
    """

    job_type: str = Field(default="email", description="Must match the stored job type")
    data: dict = Field(default_factory=dict, description="Job payload (type-specific)")
    description: Optional[str] = None
    durable: bool = False

    def to_descriptor(self, group: str, name: str) -> JobDescriptor:
        return JobDescriptor(
            group=group,
            name=name,
            job_type=self.job_type,
            data=self.data,
            description=self.description,
            durable=self.durable,
        )


class JobResponse(BaseModel):
    """A job and its triggers as currently known to the engine."""

    group: str
    name: str
    job_type: str
    data: dict = Field(default_factory=dict)
    description: Optional[str] = None
    durable: bool = False
    triggers: List[TriggerSchema] = Field(default_factory=list)

    @classmethod
    def from_descriptor(cls, descriptor: JobDescriptor) -> "JobResponse":
        triggers = sorted(descriptor.triggers, key=lambda t: t.name or "")
        return cls(
            group=descriptor.group,
            name=descriptor.name,
            job_type=descriptor.job_type,
            data=descriptor.data,
            description=descriptor.description,
            durable=descriptor.durable,
            triggers=[
                TriggerSchema(
                    name=t.name,
                    group=t.group,
                    cron=t.cron,
                    fire_time=t.fire_time,
                    timezone=t.timezone,
                    next_fire_time=t.next_fire_time,
                    state=t.state.value if t.state else None,
                )
                for t in triggers
            ],
        )
