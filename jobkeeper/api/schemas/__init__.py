"""
API request/response schemas.
"""

from .jobs import TriggerSchema, JobCreateRequest, JobUpdateRequest, JobResponse

__all__ = ["TriggerSchema", "JobCreateRequest", "JobUpdateRequest", "JobResponse"]
