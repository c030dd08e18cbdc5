"""
Business logic for the practice API.

The service layer sits between API endpoints and repositories. Every
operation follows the same order:
- Load the records involved
- Ask the policy layer whether the actor may proceed
- Run the conflict detectors where the operation can create a conflict
- Write, inside the request transaction
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy.orm import Session
from loguru import logger

from auth.actor import Actor
from conflicts.client_conflicts import (
    ClientConflictGroup,
    find_conflicts,
    group_conflicts_by_field,
)
from conflicts.models import CalendarCommitment, ClientRecord, validate_interval
from conflicts.scheduling import find_overlaps
from practice.errors import (
    AccessDeniedError,
    NotFoundError,
    RoleChangeDeniedError,
    SchedulingConflictError,
)
from practice.repository import (
    CalendarRepository,
    CaseRepository,
    ClientRepository,
    DocumentRepository,
    UserRepository,
)
from security.audit.event_logger import AuditLogger, EventType
from security.policy.governance import assignable_roles, can_change_role
from security.policy.permissions import Role, hierarchy_level, parse_role
from security.policy.rbac import (
    CaseAccess,
    can_access_case,
    can_access_document,
    client_owns_case,
)

# Roles whose document access is not narrowed to the cases they can see
_FIRM_WIDE_ROLES = frozenset({Role.SUPER_ADMIN, Role.PARTNER})


def to_utc_naive(value: datetime) -> datetime:
    """Normalize to naive UTC, the form calendar times are stored in."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _deny(actor: Actor, resource: str, resource_id: str):
    """
    Log and raise a read denial.

    Also used for ids that do not exist when the caller could not have seen
    every record of that kind, so the response never tells a missing record
    apart from a forbidden one.
    """
    AuditLogger.log_denial(
        actor.user_id, EventType.ACCESS_DENIED,
        {"role": actor.role.value, "resource": resource, "resource_id": resource_id},
    )
    raise AccessDeniedError(f"{resource.capitalize()} {resource_id} denied for {actor.user_id}")


# ==================== CASES & DOCUMENTS ====================

class CaseService:
    """Case lookups gated by instance-level access."""

    @staticmethod
    def can_view_case(actor: Actor, case: CaseAccess) -> bool:
        """
        Instance check for cases.

        Client-portal users are matched on their linked client; every other
        role goes through ``can_access_case`` alone.
        """
        if can_access_case(actor.role, actor.user_id, case):
            return True
        if actor.role is Role.CLIENT:
            return client_owns_case(actor.client_id, case)
        return False

    @staticmethod
    def get_case(db: Session, actor: Actor, case_id: str) -> Dict[str, Any]:
        case = CaseRepository.get_by_id(db, case_id)
        # Firm-wide roles see every case, so only they learn that an id is unused
        if not case and actor.role in _FIRM_WIDE_ROLES:
            raise NotFoundError("Case", case_id)

        if not case or not CaseService.can_view_case(actor, CaseRepository.to_access(case)):
            _deny(actor, "case", case_id)

        return case.to_dict()


class DocumentService:
    """Document lookups gated by instance-level access."""

    @staticmethod
    def get_document(db: Session, actor: Actor, document_id: str) -> Dict[str, Any]:
        document = DocumentRepository.get_by_id(db, document_id)
        if not document:
            # Partners cannot see confidential documents; only super admins see all
            if actor.role is Role.SUPER_ADMIN:
                raise NotFoundError("Document", document_id)
            _deny(actor, "document", document_id)

        access = DocumentRepository.to_access(document)
        allowed = can_access_document(actor.role, actor.user_id, access)

        # Below partner level the document's case must be visible as well
        if allowed and actor.role not in _FIRM_WIDE_ROLES and access.case_id:
            case = CaseRepository.get_by_id(db, access.case_id)
            allowed = case is not None and CaseService.can_view_case(
                actor, CaseRepository.to_access(case)
            )

        if not allowed:
            _deny(actor, "document", document_id)

        return document.to_dict()


# ==================== CLIENTS ====================

class ClientService:
    """
    Client creation and updates with conflict-of-interest checks.

    Conflicts are advisory: they are reported alongside the result and the
    write still happens.
    """

    @staticmethod
    def check_conflicts(
        db: Session,
        candidate: ClientRecord,
        exclude_id: Optional[str] = None
    ) -> List[ClientConflictGroup]:
        existing = ClientRepository.find_identity_candidates(db, candidate)
        conflicts = find_conflicts(candidate, existing, exclude_id=exclude_id)
        groups = group_conflicts_by_field(candidate, conflicts)

        logger.info(
            f"[CLIENTS] Conflict check: {len(conflicts)} conflicting client(s) "
            f"across {len(groups)} field(s)"
        )
        return groups

    @staticmethod
    def _result(client, groups: List[ClientConflictGroup]) -> Dict[str, Any]:
        return {
            "client": client.to_dict(),
            "conflicts": [group.to_dict() for group in groups],
            "has_conflicts": bool(groups),
        }

    @staticmethod
    def _audit_conflicts(db: Session, actor: Actor, client_id: str, groups: List[ClientConflictGroup]):
        if not groups:
            return
        AuditLogger(db).log_event(
            actor.user_id, EventType.CLIENT_CONFLICTS_REPORTED,
            {
                "client_id": client_id,
                "fields": [group.field_name for group in groups],
                "conflicting_ids": sorted({c.id for g in groups for c in g.clients}),
            },
        )

    @staticmethod
    def create_client(db: Session, actor: Actor, fields: Dict[str, Any]) -> Dict[str, Any]:
        client_id = str(uuid.uuid4())
        candidate = ClientRecord(
            id=client_id,
            email=fields.get("email"),
            phone=fields.get("phone"),
            tax_id=fields.get("tax_id"),
        )
        groups = ClientService.check_conflicts(db, candidate)

        client = ClientRepository.create(db, created_by=actor.user_id, id=client_id, **fields)
        ClientService._audit_conflicts(db, actor, client.id, groups)

        return ClientService._result(client, groups)

    @staticmethod
    def update_client(
        db: Session,
        actor: Actor,
        client_id: str,
        updates: Dict[str, Any]
    ) -> Dict[str, Any]:
        client = ClientRepository.get_by_id(db, client_id)
        if not client:
            raise NotFoundError("Client", client_id)

        merged = ClientRepository.to_record(client)
        candidate = ClientRecord(
            id=client_id,
            email=updates.get("email", merged.email),
            phone=updates.get("phone", merged.phone),
            tax_id=updates.get("tax_id", merged.tax_id),
        )
        groups = ClientService.check_conflicts(db, candidate, exclude_id=client_id)

        client = ClientRepository.update(db, client, **updates)
        ClientService._audit_conflicts(db, actor, client.id, groups)

        return ClientService._result(client, groups)


# ==================== CALENDAR ====================

class CalendarService:
    """
    Calendar writes with double-booking protection.

    Writes lock the assignee's user row first, so two requests booking the
    same person are serialized and the second one sees the first one's event
    when it runs its overlap check.
    """

    @staticmethod
    def check_conflicts(
        db: Session,
        assignee_id: str,
        start: datetime,
        end: datetime,
        exclude_event_id: Optional[str] = None
    ) -> List[CalendarCommitment]:
        start, end = to_utc_naive(start), to_utc_naive(end)
        validate_interval(start, end)

        existing = CalendarRepository.list_active_in_window(db, assignee_id, start, end)
        return find_overlaps(assignee_id, start, end, existing, exclude_event_id=exclude_event_id)

    @staticmethod
    def _reject_conflicts(actor: Actor, assignee_id: str, conflicts: List[CalendarCommitment]):
        AuditLogger.log_denial(
            actor.user_id, EventType.SCHEDULING_CONFLICT,
            {"assignee": assignee_id, "conflicting_ids": [c.id for c in conflicts]},
        )
        raise SchedulingConflictError(conflicts)

    @staticmethod
    def create_event(db: Session, actor: Actor, fields: Dict[str, Any]) -> Dict[str, Any]:
        assignee_id = fields["assigned_to"]
        if UserRepository.lock(db, assignee_id) is None:
            raise NotFoundError("User", assignee_id)

        start = to_utc_naive(fields["start_datetime"])
        end = to_utc_naive(fields["end_datetime"])

        conflicts = CalendarService.check_conflicts(db, assignee_id, start, end)
        if conflicts:
            CalendarService._reject_conflicts(actor, assignee_id, conflicts)

        event = CalendarRepository.create(
            db,
            **{**fields, "start_datetime": start, "end_datetime": end},
            created_by=actor.user_id,
            status="active",
        )
        return event.to_dict()

    @staticmethod
    def update_event(
        db: Session,
        actor: Actor,
        event_id: str,
        updates: Dict[str, Any]
    ) -> Dict[str, Any]:
        event = CalendarRepository.get_by_id(db, event_id)
        if not event:
            raise NotFoundError("Event", event_id)

        assignee_id = updates.get("assigned_to") or event.assigned_to
        if UserRepository.lock(db, assignee_id) is None:
            raise NotFoundError("User", assignee_id)

        start = to_utc_naive(updates.get("start_datetime") or event.start_datetime)
        end = to_utc_naive(updates.get("end_datetime") or event.end_datetime)
        status = updates.get("status") or event.status

        # Cancelling never creates a clash; everything else is re-checked
        if status == "active":
            conflicts = CalendarService.check_conflicts(
                db, assignee_id, start, end, exclude_event_id=event_id
            )
            if conflicts:
                CalendarService._reject_conflicts(actor, assignee_id, conflicts)
        else:
            validate_interval(start, end)

        event = CalendarRepository.update(
            db, event,
            **{**updates, "assigned_to": assignee_id, "start_datetime": start,
               "end_datetime": end, "status": status},
        )
        return event.to_dict()


# ==================== USERS ====================

class UserService:
    """Role management governed by the hierarchy."""

    @staticmethod
    def assignable_roles_for(actor: Actor) -> List[Role]:
        """Assignable roles, most senior first."""
        return sorted(assignable_roles(actor.role), key=hierarchy_level, reverse=True)

    @staticmethod
    def change_role(db: Session, actor: Actor, target_user_id: str, new_role: Role) -> Dict[str, Any]:
        target = UserRepository.get_by_id(db, target_user_id)
        if not target:
            raise NotFoundError("User", target_user_id)

        current_role = parse_role(target.role)
        details = {
            "target_user_id": target_user_id,
            "from": current_role.value,
            "to": new_role.value,
        }

        if target_user_id == actor.user_id or not can_change_role(actor.role, current_role, new_role):
            AuditLogger.log_denial(actor.user_id, EventType.ROLE_CHANGE_DENIED, details)
            raise RoleChangeDeniedError(
                f"{actor.role.value} may not change {current_role.value} to {new_role.value}"
            )

        UserRepository.update_role(db, target, new_role.value)
        AuditLogger(db).log_event(actor.user_id, EventType.ROLE_CHANGED, details)

        return {
            "user_id": target.id,
            "previous_role": current_role.value,
            "role": new_role.value,
        }
