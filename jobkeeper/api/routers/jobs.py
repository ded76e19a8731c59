"""
Jobs router.

Group/name addressed job CRUD and lifecycle endpoints. Every handler is a
thin call into the JobService; OperationFailure subclasses map to HTTP
status codes in one place (to_http_exception).
"""

from typing import List

from fastapi import APIRouter, HTTPException, Response, status

from jobkeeper.scheduling.errors import (
    InvalidJobDefinitionError,
    JobAlreadyExistsError,
    JobNotFoundError,
    OperationFailure,
    UnknownJobTypeError,
)
from ..schemas.jobs import JobCreateRequest, JobResponse, JobUpdateRequest
from .._service_state import get_job_service


router = APIRouter()


def to_http_exception(error: OperationFailure) -> HTTPException:
    """Map a service failure to an HTTP error."""
    if isinstance(error, JobNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, JobAlreadyExistsError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, (UnknownJobTypeError, InvalidJobDefinitionError)):
        code = 422
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.message)


def _sorted_responses(descriptors) -> List[JobResponse]:
    ordered = sorted(descriptors, key=lambda d: (d.group, d.name))
    return [JobResponse.from_descriptor(d) for d in ordered]


@router.post(
    "/groups/{group}/jobs",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_job(group: str, request: JobCreateRequest):
    """
    Create a job in a group.

    Returns 409 if the identity is taken, 422 for an unknown job type or an
    invalid payload/trigger.
    """
    service = get_job_service()
    try:
        descriptor = service.create_job(group, request.to_descriptor(group))
    except OperationFailure as e:
        raise to_http_exception(e)
    return JobResponse.from_descriptor(descriptor)


@router.get("/jobs", response_model=List[JobResponse])
async def find_jobs():
    """List every job in every group, sorted by group then name."""
    service = get_job_service()
    try:
        descriptors = service.find_jobs()
    except OperationFailure as e:
        raise to_http_exception(e)
    return _sorted_responses(descriptors)


@router.delete("/jobs", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_jobs():
    """Delete every job in every group."""
    service = get_job_service()
    try:
        service.delete_all_jobs()
    except OperationFailure as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/groups/{group}/jobs", response_model=List[JobResponse])
async def find_group_jobs(group: str):
    """List the jobs of one group."""
    service = get_job_service()
    try:
        descriptors = service.find_group_jobs(group)
    except OperationFailure as e:
        raise to_http_exception(e)
    return _sorted_responses(descriptors)


@router.get("/groups/{group}/jobs/{name}", response_model=JobResponse)
async def find_job(group: str, name: str):
    """Get one job. 404 if the engine has no job with this identity."""
    service = get_job_service()
    try:
        descriptor = service.find_job(group, name)
    except OperationFailure as e:
        raise to_http_exception(e)

    if descriptor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job not found: {group}.{name}",
        )
    return JobResponse.from_descriptor(descriptor)


@router.put("/groups/{group}/jobs/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def update_job(group: str, name: str, request: JobUpdateRequest):
    """Replace the payload of an existing job. 404 if it does not exist."""
    service = get_job_service()
    try:
        service.update_job(group, name, request.to_descriptor(group, name))
    except OperationFailure as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/groups/{group}/jobs/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(group: str, name: str):
    """Delete a job and its triggers."""
    service = get_job_service()
    try:
        service.delete_job(group, name)
    except OperationFailure as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/groups/{group}/jobs/{name}/pause", status_code=status.HTTP_204_NO_CONTENT)
async def pause_job(group: str, name: str):
    """Pause every trigger of a job."""
    service = get_job_service()
    try:
        service.pause_job(group, name)
    except OperationFailure as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/groups/{group}/jobs/{name}/resume", status_code=status.HTTP_204_NO_CONTENT)
async def resume_job(group: str, name: str):
    """Resume every trigger of a job."""
    service = get_job_service()
    try:
        service.resume_job(group, name)
    except OperationFailure as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
