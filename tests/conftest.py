"""
Shared fixtures: a fresh in-memory database per test, seeded practice
records, and a TestClient with bearer tokens for each role.
"""

import os

# Must be set before the app modules read their configuration
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["PRACTICE_DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from contextlib import contextmanager
from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from auth.auth_manager import get_auth_manager, reset_auth_manager
from practice.database import DatabaseConfig, DatabaseManager
from practice.models import CalendarEvent, Case, CaseAssociate, Client, Document, User


# ── Helpers ──────────────────────────────────────────────────────────

@contextmanager
def open_session():
    """Short-lived session for arranging or inspecting state around a request."""
    session = DatabaseManager.session()
    try:
        yield session
        session.commit()
    finally:
        session.close()


def auth_header(user_id, role, client_id=None):
    token = get_auth_manager().issue_access_token(user_id, role, client_id=client_id)
    return {"Authorization": f"Bearer {token}"}


# ── Fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def database():
    DatabaseManager.dispose()
    DatabaseManager.initialize(DatabaseConfig("sqlite:///:memory:"))
    yield DatabaseManager
    DatabaseManager.dispose()


@pytest.fixture
def seed(database):
    """
    A small practice:
      - one user per role (client user linked to client "acme")
      - clients acme (active) and dormant (inactive)
      - case c1 for acme: partner p1, associate sa1
      - case c2 for another client: partner p2, nobody else
      - documents: d1 public on c1, d2 confidential on c1, d3 public on c2
      - event e1 for sa1, 2026-03-02 10:00-11:00 UTC
    """
    with open_session() as s:
        s.add_all([
            Client(id="acme", first_name="Acme", last_name="Holdings",
                   email="legal@acme.example", phone="+91-22-5550100", tax_id="AAACA1234A"),
            Client(id="dormant", first_name="Old", last_name="Client",
                   email="old@dormant.example", phone="+91-22-5550199", tax_id="BBBCB9999B",
                   is_active=False),
            Client(id="other", first_name="Other", last_name="Party", email="other@party.example"),
        ])
        s.flush()
        s.add_all([
            User(id="admin", email="admin@firm.example", role="super_admin"),
            User(id="p1", email="p1@firm.example", role="partner"),
            User(id="p2", email="p2@firm.example", role="partner"),
            User(id="sa1", email="sa1@firm.example", role="senior_associate"),
            User(id="sa2", email="sa2@firm.example", role="senior_associate"),
            User(id="ja1", email="ja1@firm.example", role="junior_associate"),
            User(id="pl1", email="pl1@firm.example", role="paralegal"),
            User(id="cu1", email="cu1@acme.example", role="client", client_id="acme"),
            User(id="g1", email="g1@example.com", role="guest"),
        ])
        s.flush()
        s.add_all([
            Case(id="c1", case_number="2026/001", title="Acme v. State",
                 client_id="acme", assigned_partner="p1"),
            Case(id="c2", case_number="2026/002", title="Other v. Acme",
                 client_id="other", assigned_partner="p2"),
        ])
        s.flush()
        s.add(CaseAssociate(case_id="c1", user_id="sa1"))
        s.add_all([
            Document(id="d1", case_id="c1", title="Plaint", uploaded_by="sa1"),
            Document(id="d2", case_id="c1", title="Settlement memo", uploaded_by="p1",
                     is_confidential=True),
            Document(id="d3", case_id="c2", title="Reply", uploaded_by="p2"),
        ])
        s.add(CalendarEvent(
            id="e1", title="Hearing", assigned_to="sa1",
            start_datetime=datetime(2026, 3, 2, 10, 0),
            end_datetime=datetime(2026, 3, 2, 11, 0),
            status="active",
        ))

    return SimpleNamespace(client_ids=["acme", "dormant", "other"], case_ids=["c1", "c2"])


@pytest.fixture
def api(database):
    reset_auth_manager()
    from apps.api.main import app
    return TestClient(app)


@pytest.fixture
def headers():
    """headers("p1", "partner") -> Authorization header for that user."""
    return auth_header
