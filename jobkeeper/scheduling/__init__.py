"""
Job management core.

- identity: JobKey and group matchers
- entities: engine-native JobDetail / Trigger records
- descriptors: caller-facing JobDescriptor / TriggerDescriptor snapshots
- engine: SchedulerEngine contract, APSchedulerEngine implementation
- builders: job-type strategies for create/update
- service: JobService contract and its implementations
"""

from .identity import (
    JobKey,
    GroupMatcher,
    MatchOperator,
    resolve_identity,
    match_any_group,
    match_group,
)
from .entities import JobDetail, Trigger, TriggerState
from .descriptors import JobDescriptor, TriggerDescriptor
from .errors import (
    EngineError,
    OperationFailure,
    JobNotFoundError,
    JobAlreadyExistsError,
    UnknownJobTypeError,
    InvalidJobDefinitionError,
)
from .engine import SchedulerEngine
from .apscheduler_engine import APSchedulerEngine
from .builders import (
    JobDefinitionBuilder,
    EmailJobBuilder,
    WebhookJobBuilder,
    default_builders,
)
from .service import JobService, AbstractJobService, SchedulerJobService

__all__ = [
    # Identity
    "JobKey",
    "GroupMatcher",
    "MatchOperator",
    "resolve_identity",
    "match_any_group",
    "match_group",
    # Entities
    "JobDetail",
    "Trigger",
    "TriggerState",
    # Descriptors
    "JobDescriptor",
    "TriggerDescriptor",
    # Errors
    "EngineError",
    "OperationFailure",
    "JobNotFoundError",
    "JobAlreadyExistsError",
    "UnknownJobTypeError",
    "InvalidJobDefinitionError",
    # Engine
    "SchedulerEngine",
    "APSchedulerEngine",
    # Builders
    "JobDefinitionBuilder",
    "EmailJobBuilder",
    "WebhookJobBuilder",
    "default_builders",
    # Service
    "JobService",
    "AbstractJobService",
    "SchedulerJobService",
]
