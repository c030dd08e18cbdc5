"""
Data access layer for practice records.

Repositories keep SQL out of the services and translate ORM rows into the
plain records the policy and conflict modules expect (CaseAccess,
DocumentAccess, ClientRecord, CalendarCommitment).
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from loguru import logger

from conflicts.models import CalendarCommitment, ClientRecord
from practice.models import CalendarEvent, Case, Client, Document, User
from security.policy.rbac import CaseAccess, DocumentAccess


class UserRepository:
    """Repository for User database operations."""

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def lock(db: Session, user_id: str) -> Optional[User]:
        """
        Load a user row with ``SELECT ... FOR UPDATE``.

        Used to serialize calendar writes per assignee. SQLite ignores the
        row lock; file-backed SQLite engines open every transaction with
        ``BEGIN IMMEDIATE`` instead (see ``DatabaseManager``).
        """
        return db.query(User).filter(User.id == user_id).with_for_update().first()

    @staticmethod
    def update_role(db: Session, user: User, role: str) -> User:
        user.role = role
        db.flush()
        logger.info(f"[USERS] Role of user {user.id} set to {role}")
        return user


class ClientRepository:
    """Repository for Client database operations."""

    @staticmethod
    def to_record(client: Client) -> ClientRecord:
        return ClientRecord(
            id=client.id,
            email=client.email,
            phone=client.phone,
            tax_id=client.tax_id,
            name=client.display_name,
            is_active=client.is_active,
        )

    @staticmethod
    def get_by_id(db: Session, client_id: str) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def find_identity_candidates(db: Session, candidate: ClientRecord) -> List[ClientRecord]:
        """
        Load active clients sharing at least one identity value with ``candidate``.

        This only narrows the search using the indexed columns; the exact
        matching rules are applied by ``conflicts.find_conflicts``.
        """
        filters = []
        if candidate.email:
            filters.append(Client.email == candidate.email)
        if candidate.phone:
            filters.append(Client.phone == candidate.phone)
        if candidate.tax_id:
            filters.append(Client.tax_id == candidate.tax_id)

        if not filters:
            return []

        rows = (
            db.query(Client)
            .filter(Client.is_active == True)  # noqa: E712
            .filter(or_(*filters))
            .order_by(Client.created_at, Client.id)
            .all()
        )
        return [ClientRepository.to_record(row) for row in rows]

    @staticmethod
    def create(db: Session, created_by: Optional[str] = None, **fields) -> Client:
        client = Client(created_by=created_by, **fields)
        db.add(client)
        db.flush()
        logger.info(f"[CLIENTS] Created client {client.id}")
        return client

    @staticmethod
    def update(db: Session, client: Client, **updates) -> Client:
        for key, value in updates.items():
            if hasattr(client, key):
                setattr(client, key, value)
        db.flush()
        logger.info(f"[CLIENTS] Updated client {client.id}")
        return client


class CaseRepository:
    """Repository for Case database operations."""

    @staticmethod
    def get_by_id(db: Session, case_id: str) -> Optional[Case]:
        return db.query(Case).filter(Case.id == case_id).first()

    @staticmethod
    def to_access(case: Case) -> CaseAccess:
        return CaseAccess(
            case_id=case.id,
            assigned_partner=case.assigned_partner,
            assigned_associates=frozenset(a.user_id for a in case.associates),
            client_id=case.client_id,
        )


class DocumentRepository:
    """Repository for Document database operations."""

    @staticmethod
    def get_by_id(db: Session, document_id: str) -> Optional[Document]:
        return db.query(Document).filter(Document.id == document_id).first()

    @staticmethod
    def to_access(document: Document) -> DocumentAccess:
        return DocumentAccess(
            document_id=document.id,
            case_id=document.case_id,
            uploaded_by=document.uploaded_by,
            is_confidential=bool(document.is_confidential),
        )


class CalendarRepository:
    """Repository for CalendarEvent database operations."""

    @staticmethod
    def to_commitment(event: CalendarEvent) -> CalendarCommitment:
        return CalendarCommitment(
            id=event.id,
            assignee_id=event.assigned_to,
            start=event.start_datetime,
            end=event.end_datetime,
            status=event.status,
            title=event.title,
        )

    @staticmethod
    def get_by_id(db: Session, event_id: str) -> Optional[CalendarEvent]:
        return db.query(CalendarEvent).filter(CalendarEvent.id == event_id).first()

    @staticmethod
    def list_active_in_window(
        db: Session,
        assignee_id: str,
        window_start: datetime,
        window_end: datetime
    ) -> List[CalendarCommitment]:
        """
        Load the assignee's active events that could touch [window_start, window_end).

        The SQL predicate mirrors the half-open overlap test so only plausible
        candidates leave the database; ``conflicts.find_overlaps`` still makes
        the final decision.
        """
        rows = (
            db.query(CalendarEvent)
            .filter(
                CalendarEvent.assigned_to == assignee_id,
                CalendarEvent.status == "active",
                CalendarEvent.start_datetime < window_end,
                CalendarEvent.end_datetime > window_start,
            )
            .order_by(CalendarEvent.start_datetime, CalendarEvent.id)
            .all()
        )
        return [CalendarRepository.to_commitment(row) for row in rows]

    @staticmethod
    def create(db: Session, **fields) -> CalendarEvent:
        event = CalendarEvent(**fields)
        db.add(event)
        db.flush()
        logger.info(f"[CALENDAR] Created event {event.id} for {event.assigned_to}")
        return event

    @staticmethod
    def update(db: Session, event: CalendarEvent, **updates) -> CalendarEvent:
        for key, value in updates.items():
            if hasattr(event, key):
                setattr(event, key, value)
        db.flush()
        logger.info(f"[CALENDAR] Updated event {event.id}")
        return event
