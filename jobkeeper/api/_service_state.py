"""
Job service state management for API integration.

Provides singleton access to the SchedulerJobService instance.
Initialized and started during FastAPI lifespan.

Usage:
    from ._service_state import get_job_service, init_job_service

    # In lifespan:
    init_job_service(timezone="UTC")

    # In routers:
    service = get_job_service()
"""

import logging
from typing import Optional

from jobkeeper.scheduling.service import SchedulerJobService


logger = logging.getLogger(__name__)

# Global job service instance
_job_service: Optional[SchedulerJobService] = None


def init_job_service(timezone: str = "UTC", max_workers: int = 10) -> SchedulerJobService:
    """
    Initialize the job service singleton and start its engine.

    Args:
        timezone: Engine timezone
        max_workers: Job execution thread pool size

    Returns:
        Initialized SchedulerJobService
    """
    global _job_service

    if _job_service is not None:
        return _job_service

    _job_service = SchedulerJobService.create(timezone=timezone, max_workers=max_workers)
    _job_service.engine.start()
    logger.info(f"Job service initialized (timezone={timezone}, max_workers={max_workers})")

    return _job_service


def get_job_service() -> SchedulerJobService:
    """
    Get the job service singleton.

    Raises:
        RuntimeError: If job service not initialized
    """
    if _job_service is None:
        raise RuntimeError(
            "Job service not initialized. "
            "Ensure init_job_service() is called during startup."
        )

    return _job_service


def shutdown_job_service() -> None:
    """Stop the engine and drop the singleton."""
    global _job_service

    if _job_service is not None:
        _job_service.engine.shutdown()
        _job_service = None
