"""
Job definition builders.

Each job type owns the mapping from a caller's JobDescriptor to an engine
JobDetail plus triggers, and the merge policy used by update_job. The
SchedulerJobService picks the builder whose `job_type` matches the
descriptor's tag.

Builders raise ValueError (pydantic's ValidationError included) for bad
payloads; the service turns that into InvalidJobDefinitionError.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .descriptors import JobDescriptor
from .entities import JobDetail, Trigger
from .identity import JobKey


class EmailJobData(BaseModel):
    """Payload of an email job."""

    subject: str = Field(..., min_length=1, description="Message subject")
    message_body: str = Field(default="", description="Plain-text body")
    to: List[str] = Field(..., min_length=1, description="Recipients")
    cc: List[str] = Field(default_factory=list)
    bcc: List[str] = Field(default_factory=list)

    @field_validator("to", "cc", "bcc")
    @classmethod
    def check_addresses(cls, addresses: List[str]) -> List[str]:
        cleaned = [a.strip() for a in addresses]
        for address in cleaned:
            if "@" not in address:
                raise ValueError(f"Invalid email address: {address!r}")
        return cleaned


class WebhookJobData(BaseModel):
    """Payload of a webhook job."""

    url: str = Field(..., pattern=r"^https?://", description="Target URL")
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] = "POST"
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[dict] = None
    timeout: Optional[float] = Field(default=None, gt=0)


class JobDefinitionBuilder(ABC):
    """
    Maps descriptors of one job type to engine definitions.

    Subclasses set `job_type` and implement validate_data().
    """

    job_type: str = ""

    @abstractmethod
    def validate_data(self, data: dict) -> dict:
        """
        Validate and normalize a job payload.

        Raises:
            ValueError: If the payload is invalid for this job type
        """
        ...

    def build_job_detail(self, group: str, descriptor: JobDescriptor) -> JobDetail:
        """Build the engine job definition for `descriptor` under `group`."""
        return JobDetail(
            key=JobKey(group=group, name=descriptor.name),
            job_type=self.job_type,
            data=self.validate_data(descriptor.data),
            description=descriptor.description,
            durable=descriptor.durable,
        )

    def build_triggers(self, job_key: JobKey, descriptor: JobDescriptor) -> list[Trigger]:
        """
        Build engine triggers for every trigger descriptor.

        Raises:
            ValueError: If the descriptor has no triggers or one is invalid
        """
        if not descriptor.triggers:
            raise ValueError(f"Job {job_key} must have at least one trigger")
        ordered = sorted(
            descriptor.triggers,
            key=lambda t: (t.name or "", t.cron or "", str(t.fire_time or "")),
        )
        return [t.to_trigger(job_key) for t in ordered]

    def merge(self, existing: JobDetail, descriptor: JobDescriptor) -> JobDetail:
        """
        Overlay `descriptor`'s payload on an existing definition.

        Known payload fields are replaced; keys the payload model does not
        know about are kept. Description and durability are taken as given,
        so an update can clear them. Triggers are not touched.
        """
        return JobDetail(
            key=existing.key,
            job_type=existing.job_type,
            data={**existing.data, **self.validate_data(descriptor.data)},
            description=descriptor.description,
            durable=descriptor.durable,
        )


class EmailJobBuilder(JobDefinitionBuilder):
    """Builder for email jobs (SMTP send at fire time)."""

    job_type = "email"

    def validate_data(self, data: dict) -> dict:
        return EmailJobData.model_validate(data).model_dump()


class WebhookJobBuilder(JobDefinitionBuilder):
    """Builder for webhook jobs (HTTP request at fire time)."""

    job_type = "webhook"

    def validate_data(self, data: dict) -> dict:
        return WebhookJobData.model_validate(data).model_dump()


def default_builders() -> list[JobDefinitionBuilder]:
    """Builders for every job type jobkeeper ships with."""
    return [EmailJobBuilder(), WebhookJobBuilder()]
