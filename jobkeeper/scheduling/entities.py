"""
Engine-native job and trigger records.

These are the shapes the SchedulerEngine contract speaks in:
- JobDetail: a job definition (type tag, data map, flags)
- Trigger: one schedule binding for a job, plus the engine's view of it

The engine owns both. The service layer only reads them and projects them
into descriptors (see descriptors.py).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from .identity import JobKey


class TriggerState(str, Enum):
    """
    Trigger state as reported by the engine.

    - NONE: Trigger no longer exists
    - NORMAL: Trigger will fire on schedule
    - PAUSED: Trigger is paused and will not fire
    - COMPLETE: Trigger has no remaining fire times
    - ERROR: Engine could not fire the trigger
    - BLOCKED: Trigger is waiting on a running instance
    """

    NONE = "NONE"
    NORMAL = "NORMAL"
    PAUSED = "PAUSED"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"
    BLOCKED = "BLOCKED"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


@dataclass
class JobDetail:
    """
    Job definition as stored by the engine.

    `data` is the job-type-specific payload; its shape is owned by the
    JobDefinitionBuilder registered for `job_type`.
    """

    key: JobKey
    job_type: str
    data: dict = field(default_factory=dict)
    description: Optional[str] = None
    durable: bool = False


@dataclass
class Trigger:
    """
    Schedule binding for one job.

    Exactly one of `cron` / `fire_time` is set. `next_fire_time` and
    `state` are filled in by the engine when the trigger is read back.
    """

    name: str
    group: str
    job_key: JobKey
    cron: Optional[str] = None
    fire_time: Optional[datetime] = None
    timezone: str = "UTC"
    next_fire_time: Optional[datetime] = None
    state: TriggerState = TriggerState.NONE

    def is_cron(self) -> bool:
        """Check if this is a cron trigger (as opposed to a one-shot)."""
        return bool(self.cron)
