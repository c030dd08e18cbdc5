"""
Service-layer errors and their translation into HTTP responses.
"""

from typing import List

from fastapi import HTTPException
from loguru import logger

from conflicts.errors import InvalidIntervalError
from conflicts.models import CalendarCommitment
from security.policy.errors import PolicyInputError


class PracticeError(Exception):
    """Base class for service errors"""


class NotFoundError(PracticeError):
    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")


class AccessDeniedError(PracticeError):
    """The actor may not perform this action. The message is never shown to clients."""


class RoleChangeDeniedError(AccessDeniedError):
    pass


class SchedulingConflictError(PracticeError):
    """The assignee already has active commitments in the requested slot."""

    def __init__(self, conflicts: List[CalendarCommitment]):
        self.conflicts = conflicts
        super().__init__(f"Scheduling conflict with {len(conflicts)} event(s)")


def to_http_exception(error: Exception) -> HTTPException:
    """
    Map a service or input error to the HTTP response the API returns.

    Denials always get the same generic 403 body; the reason stays in the logs.
    """
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=f"{error.resource} not found")
    if isinstance(error, AccessDeniedError):
        return HTTPException(status_code=403, detail="Insufficient permissions")
    if isinstance(error, SchedulingConflictError):
        return HTTPException(
            status_code=409,
            detail={
                "code": "SCHEDULING_CONFLICT",
                "message": "The assignee already has events in this time slot",
                "conflicts": [c.to_dict() for c in error.conflicts],
            },
        )
    if isinstance(error, (InvalidIntervalError, PolicyInputError)):
        return HTTPException(status_code=422, detail=str(error))

    logger.error(f"[API] Unexpected error: {type(error).__name__}: {error}")
    return HTTPException(status_code=500, detail="Internal server error")
