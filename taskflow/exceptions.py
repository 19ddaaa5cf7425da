# taskflow/exceptions.py
"""
Domain errors raised by the task and time-tracking services.

Each error carries the HTTP status the API layer answers with, so routers can
let them propagate and the application-level handler renders them.
"""

from fastapi import status


class TaskflowError(Exception):
    """Base class for all domain errors"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(TaskflowError):
    """Unknown task, attachment or time log id"""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class NotAuthorizedError(TaskflowError):
    """Record exists but belongs to another owner"""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "User not authorized"


class ValidationFailure(TaskflowError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class ConflictFailure(TaskflowError):
    """The single-active-timer invariant could not be restored"""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Another timer is already active"


class UpstreamDegraded(TaskflowError):
    """The text-assistant collaborator is unavailable or answered garbage"""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Assistant service unavailable"
