"""
Job service exceptions.

Two layers:
- EngineError is raised by engine adapters when the engine cannot answer a
  query or execute a command.
- OperationFailure is the only failure type the JobService exposes. Engine
  errors are translated into it at the service boundary; the original error
  is kept on `cause` for diagnostics only.

"Not found" on reads is not an error: find_job returns None and the
find_*jobs operations return an empty set.
"""

from typing import Optional


class EngineError(Exception):
    """Raised by a SchedulerEngine when a query or command fails."""
    pass


class OperationFailure(Exception):
    """
    Uniform failure raised by every JobService operation.

    Attributes:
        message: The original engine message text
        cause: The original exception, if any
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class JobNotFoundError(OperationFailure):
    """Raised when updating a job that does not exist."""

    def __init__(self, group: str, name: str):
        self.group = group
        self.name = name
        super().__init__(f"Job not found: {group}.{name}")


class JobAlreadyExistsError(OperationFailure):
    """Raised when creating a job whose identity is already taken."""

    def __init__(self, group: str, name: str):
        self.group = group
        self.name = name
        super().__init__(f"Job already exists: {group}.{name}")


class UnknownJobTypeError(OperationFailure):
    """Raised when no JobDefinitionBuilder is registered for a job type."""

    def __init__(self, job_type: str):
        self.job_type = job_type
        super().__init__(f"Unknown job type: {job_type}")


class InvalidJobDefinitionError(OperationFailure):
    """Raised when a descriptor cannot be mapped to an engine job definition."""
    pass
