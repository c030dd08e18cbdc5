"""
Calendar API endpoints.

Exposed endpoints:
- POST /api/calendar/events/check-conflicts - Check a slot for double-booking
- POST /api/calendar/events - Create event (409 on double-booking)
- PUT /api/calendar/events/{id} - Update event (409 on double-booking)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from auth.actor import Actor
from auth.rbac_dependencies import require_any_permission, require_permission
from practice.database import DatabaseManager
from practice.errors import to_http_exception
from practice.service import CalendarService
from practice.schemas import (
    CreateEventRequest,
    ScheduleCheckRequest,
    ScheduleCheckResponse,
    UpdateEventRequest,
)
from security.policy.permissions import Permission

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.post("/events/check-conflicts", response_model=ScheduleCheckResponse)
async def check_schedule_conflicts(
    request: ScheduleCheckRequest,
    actor: Actor = Depends(require_any_permission(
        [Permission.CALENDAR_CREATE, Permission.CALENDAR_UPDATE]
    )),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    List the assignee's active events overlapping the proposed slot.

    Open to anyone who may book or reschedule events.
    """
    try:
        conflicts = CalendarService.check_conflicts(
            db,
            request.assigned_to,
            request.start_datetime,
            request.end_datetime,
            exclude_event_id=request.exclude_event_id,
        )
        return {
            "has_conflicts": bool(conflicts),
            "conflicts": [c.to_dict() for c in conflicts],
        }
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)


@router.post("/events", status_code=201)
async def create_event(
    request: CreateEventRequest,
    actor: Actor = Depends(require_permission(Permission.CALENDAR_CREATE)),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Create a calendar event.

    Returns 409 with the conflicting events when the assignee is already
    booked in the slot; nothing is written in that case.
    """
    try:
        return CalendarService.create_event(db, actor, request.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)


@router.put("/events/{event_id}")
async def update_event(
    event_id: str,
    request: UpdateEventRequest,
    actor: Actor = Depends(require_permission(Permission.CALENDAR_UPDATE)),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Update a calendar event. The event never conflicts with itself.
    """
    try:
        return CalendarService.update_event(
            db, actor, event_id, request.model_dump(exclude_unset=True, exclude_none=True)
        )
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)
