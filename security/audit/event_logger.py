"""
Audit logging for security-relevant events.

Persisted events (audit_logs table):
  - Role changes
  - Client records created or updated despite reported conflicts

Persisted rows are added to the caller's session, so an audit entry commits
or rolls back together with the change it describes.

Denials (instance access refused, role change refused, double-booking
blocked) end in a rolled-back request, so they are written to the log
stream only.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy.orm import Session

from practice.models import AuditLog


class EventType(str, Enum):
    ACCESS_DENIED = "access_denied"
    ROLE_CHANGED = "role_changed"
    ROLE_CHANGE_DENIED = "role_change_denied"
    CLIENT_CONFLICTS_REPORTED = "client_conflicts_reported"
    SCHEDULING_CONFLICT = "scheduling_conflict"


class AuditLogger:
    """Write audit events through an open SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def log_event(
        self,
        user_id: Optional[str],
        event_type: EventType,
        event_details: Dict[str, Any] = None,
    ) -> AuditLog:
        """Add an audit row to the current transaction."""
        entry = AuditLog(
            user_id=user_id,
            event_type=event_type.value,
            event_details=json.dumps(event_details or {}, default=str),
            status="success",
        )
        self.db.add(entry)
        logger.info(f"[AUDIT] {event_type.value} by user {user_id}")
        return entry

    @staticmethod
    def log_denial(user_id: Optional[str], event_type: EventType, event_details: Dict[str, Any] = None):
        """Record a refused action on the log stream."""
        logger.bind(audit=True, event_type=event_type.value).warning(
            f"[AUDIT] {event_type.value} for user {user_id}: "
            f"{json.dumps(event_details or {}, default=str)}"
        )
