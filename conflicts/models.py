"""
Plain records the conflict detectors operate on.

Callers load these from storage; the detectors never mutate them.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from conflicts.errors import InvalidIntervalError


@dataclass(frozen=True)
class ClientRecord:
    """
    Identity fields of a client used for conflict-of-interest matching.

    Attributes:
        id: Client identifier
        email: Contact email (optional)
        phone: Contact phone (optional)
        tax_id: National tax identifier, e.g. PAN (optional)
        name: Display name, carried for reporting only
        is_active: Inactive clients never take part in matching
    """
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    tax_id: Optional[str] = None
    name: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "tax_id": self.tax_id,
        }


class CommitmentStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CalendarCommitment:
    """
    A block of an assignee's time, occupying the half-open interval [start, end).
    """
    id: str
    assignee_id: str
    start: datetime
    end: datetime
    status: CommitmentStatus = CommitmentStatus.ACTIVE
    title: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "status", CommitmentStatus(self.status))
        validate_interval(self.start, self.end)

    @property
    def is_active(self) -> bool:
        return self.status is CommitmentStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "assignee_id": self.assignee_id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "status": self.status.value,
        }


def validate_interval(start: datetime, end: datetime) -> None:
    """Raise ``InvalidIntervalError`` unless ``start < end``."""
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise InvalidIntervalError(start, end, "cannot mix naive and timezone-aware datetimes")
    if start >= end:
        raise InvalidIntervalError(start, end, "end must be after start")
