"""
Pydantic schemas for practice API validation and serialization.

These schemas handle:
1. Request validation (what frontend sends)
2. Response serialization (what API returns)
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional, Dict, Any
from datetime import datetime

from security.policy.permissions import Role, parse_role
from security.policy.errors import UnknownRoleError


# ============ Request Schemas ============

class ClientIdentityRequest(BaseModel):
    """
    Identity fields checked for conflicts of interest.

    Example:
        {
            "email": "a.sharma@example.com",
            "phone": "+91-98200-00000",
            "tax_id": "ABCDE1234F"
        }
    """
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    tax_id: Optional[str] = Field(None, max_length=50, description="National tax id, e.g. PAN")
    exclude_id: Optional[str] = Field(
        None,
        description="Client being edited; never reported as its own conflict"
    )


class CreateClientRequest(BaseModel):
    """Request to create a client."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    tax_id: Optional[str] = Field(None, max_length=50)


class UpdateClientRequest(BaseModel):
    """
    Partial client update. Omitted fields keep their stored value.

    Identity fields (email, phone, tax_id) may be sent as null to clear
    them; names and is_active may only be omitted.
    """
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    tax_id: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


def _check_interval(start: Optional[datetime], end: Optional[datetime]):
    if start is None or end is None:
        return
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise ValueError("start_datetime and end_datetime must both carry a timezone or neither")
    if start >= end:
        raise ValueError("end_datetime must be after start_datetime")


class ScheduleCheckRequest(BaseModel):
    """Proposed slot to test against an assignee's calendar."""
    assigned_to: str = Field(..., description="User whose calendar is checked")
    start_datetime: datetime
    end_datetime: datetime
    exclude_event_id: Optional[str] = Field(
        None,
        description="Event being rescheduled; ignored when checking"
    )

    @model_validator(mode="after")
    def validate_interval(self):
        _check_interval(self.start_datetime, self.end_datetime)
        return self


class CreateEventRequest(BaseModel):
    """
    Request to create a calendar event.

    Example:
        {
            "title": "Hearing - Mehta v. State",
            "assigned_to": "550e8400-e29b-41d4-a716-446655440000",
            "start_datetime": "2026-03-02T10:00:00Z",
            "end_datetime": "2026-03-02T11:00:00Z"
        }
    """
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: str
    case_id: Optional[str] = None
    start_datetime: datetime
    end_datetime: datetime

    @model_validator(mode="after")
    def validate_interval(self):
        _check_interval(self.start_datetime, self.end_datetime)
        return self


class UpdateEventRequest(BaseModel):
    """Partial event update. A status of 'cancelled' frees the slot."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    case_id: Optional[str] = None
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    status: Optional[str] = Field(None, pattern="^(active|cancelled)$")

    @model_validator(mode="after")
    def validate_interval(self):
        _check_interval(self.start_datetime, self.end_datetime)
        return self


class RoleChangeRequest(BaseModel):
    """New role for a user."""
    role: Role

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v):
        try:
            return parse_role(v)
        except UnknownRoleError as e:
            raise ValueError(str(e))


# ============ Response Schemas ============

class PermissionsResponse(BaseModel):
    """Role and effective permissions of the caller."""
    user_id: str
    role: str
    hierarchy_level: int
    permissions: List[str]


class AssignableRolesResponse(BaseModel):
    role: str
    assignable_roles: List[str]


class RoleChangeResponse(BaseModel):
    user_id: str
    previous_role: str
    role: str


class ClientConflictGroupResponse(BaseModel):
    """Existing clients sharing one identity value with the candidate."""
    type: str
    field: str
    value: str
    conflicts: List[Dict[str, Any]]


class ClientConflictCheckResponse(BaseModel):
    has_conflicts: bool
    conflicts: List[ClientConflictGroupResponse]


class ClientWriteResponse(BaseModel):
    """Stored client plus any conflicts that were reported (advisory)."""
    client: Dict[str, Any]
    has_conflicts: bool
    conflicts: List[ClientConflictGroupResponse]


class ScheduleCheckResponse(BaseModel):
    has_conflicts: bool
    conflicts: List[Dict[str, Any]]
