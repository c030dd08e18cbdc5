"""
SQLAlchemy models for the practice data the access engine reads.

Models:
- User: Staff and client-portal accounts with a single role
- Client: Clients of the practice (identity fields indexed for conflict checks)
- Case / CaseAssociate: Matters with an assigned partner and associates
- Document: Case documents with a confidentiality flag
- CalendarEvent: Scheduled commitments per assignee
- AuditLog: Security audit trail
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import uuid

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """User accounts. ``client_id`` links client-portal users to their client."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255))
    role = Column(String(50), nullable=False, default="guest")
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Client(Base):
    """Clients of the practice"""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=_uuid)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    # Identity fields (conflict-of-interest matching)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True, index=True)
    tax_id = Column(String(50), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(String(36), nullable=True)  # users.id
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cases = relationship("Case", back_populates="client")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "tax_id": self.tax_id,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Case(Base):
    """Legal matters"""

    __tablename__ = "cases"

    id = Column(String(36), primary_key=True, default=_uuid)
    case_number = Column(String(50), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    status = Column(String(50), default="open")
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)
    assigned_partner = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client", back_populates="cases")
    associates = relationship("CaseAssociate", cascade="all, delete-orphan", lazy="selectin")
    documents = relationship("Document", back_populates="case")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "case_number": self.case_number,
            "title": self.title,
            "status": self.status,
            "client_id": self.client_id,
            "assigned_partner": self.assigned_partner,
            "assigned_associates": sorted(a.user_id for a in self.associates),
        }


class CaseAssociate(Base):
    """Association table for associates/paralegals assigned to a case"""

    __tablename__ = "case_associates"

    case_id = Column(String(36), ForeignKey("cases.id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True, index=True)
    assigned_at = Column(DateTime, default=datetime.utcnow)


class Document(Base):
    """Documents attached to a case"""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_uuid)
    case_id = Column(String(36), ForeignKey("cases.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    uploaded_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    is_confidential = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    case = relationship("Case", back_populates="documents")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "case_id": self.case_id,
            "title": self.title,
            "uploaded_by": self.uploaded_by,
            "is_confidential": self.is_confidential,
        }


class CalendarEvent(Base):
    """
    Calendar commitments. Times are stored as naive UTC.

    Status is 'active' or 'cancelled'; only active events block the
    assignee's time.
    """

    __tablename__ = "calendar_events"
    __table_args__ = (
        CheckConstraint("end_datetime > start_datetime", name="ck_calendar_events_interval"),
        Index("ix_calendar_events_assignee_window", "assigned_to", "start_datetime", "end_datetime"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    assigned_to = Column(String(36), ForeignKey("users.id"), nullable=False)
    case_id = Column(String(36), ForeignKey("cases.id"), nullable=True)
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    status = Column(String(20), default="active", nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "assigned_to": self.assigned_to,
            "case_id": self.case_id,
            "start_datetime": self.start_datetime.isoformat(),
            "end_datetime": self.end_datetime.isoformat(),
            "status": self.status,
        }


class AuditLog(Base):
    """Security audit log for role changes and access denials"""

    __tablename__ = "audit_logs"

    audit_id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=True, index=True)
    event_type = Column(String(50), nullable=False)
    event_details = Column(Text)  # JSON string
    status = Column(String(20), default="success")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
