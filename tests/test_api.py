"""
HTTP tests for the practice API against an in-memory database.
"""

import json
from datetime import datetime, timedelta

import jwt
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from auth.rbac_dependencies import require_all_permissions, require_any_permission
from practice.models import AuditLog, CalendarEvent, Client, User
from security.policy import UnknownPermissionError
from tests.conftest import open_session


# ── Tests: health / auth boundary ────────────────────────────────────

def test_health(api):
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


def test_security_headers_present(api):
    response = api.get("/health")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"] == "no-store"


def test_missing_token_is_401(api, seed):
    assert api.get("/api/cases/c1").status_code == 401


def test_garbage_token_is_401(api, seed):
    response = api.get("/api/cases/c1", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_unknown_role_claim_is_401(api, seed):
    token = jwt.encode(
        {"sub": "p1", "role": "overlord", "exp": datetime.utcnow() + timedelta(minutes=5)},
        "test-secret-key-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )
    response = api.get("/api/users/me/permissions", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_expired_token_is_401(api, seed):
    token = jwt.encode(
        {"sub": "p1", "role": "partner", "exp": datetime.utcnow() - timedelta(minutes=5)},
        "test-secret-key-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )
    response = api.get("/api/users/me/permissions", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


# ── Tests: users ─────────────────────────────────────────────────────

def test_my_permissions(api, seed, headers):
    response = api.get("/api/users/me/permissions", headers=headers("pl1", "paralegal"))
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "paralegal"
    assert body["hierarchy_level"] == 3
    assert "calendar:create" in body["permissions"]
    assert "billing:read" not in body["permissions"]


def test_assignable_roles_most_senior_first(api, seed, headers):
    response = api.get("/api/users/assignable-roles", headers=headers("p1", "partner"))
    assert response.status_code == 200
    assert response.json()["assignable_roles"] == [
        "senior_associate", "junior_associate", "paralegal", "client", "guest",
    ]


def test_assignable_roles_empty_for_junior(api, seed, headers):
    response = api.get("/api/users/assignable-roles", headers=headers("ja1", "junior_associate"))
    assert response.json()["assignable_roles"] == []


def test_partner_promotes_paralegal(api, seed, headers):
    response = api.put(
        "/api/users/pl1/role",
        json={"role": "senior_associate"},
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 200
    assert response.json() == {"user_id": "pl1", "previous_role": "paralegal", "role": "senior_associate"}

    with open_session() as s:
        assert s.get(User, "pl1").role == "senior_associate"
        entry = s.query(AuditLog).filter(AuditLog.event_type == "role_changed").one()
        assert entry.user_id == "p1"
        assert json.loads(entry.event_details)["to"] == "senior_associate"


@pytest.mark.parametrize("actor, role, target, new_role", [
    ("p1", "partner", "p2", "guest"),                  # peer
    ("p1", "partner", "pl1", "partner"),               # not assignable
    ("ja1", "junior_associate", "pl1", "guest"),       # assigns nothing
    ("admin", "super_admin", "admin", "guest"),        # self
])
def test_role_change_denials(api, seed, headers, actor, role, target, new_role):
    response = api.put(f"/api/users/{target}/role", json={"role": new_role}, headers=headers(actor, role))

    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"
    with open_session() as s:
        assert s.query(AuditLog).count() == 0


def test_senior_associate_promotes_guest_to_paralegal(api, seed, headers):
    response = api.put("/api/users/g1/role", json={"role": "paralegal"}, headers=headers("sa1", "senior_associate"))
    assert response.status_code == 200


def test_role_change_unknown_role_is_422(api, seed, headers):
    response = api.put("/api/users/pl1/role", json={"role": "overlord"}, headers=headers("admin", "super_admin"))
    assert response.status_code == 422


def test_role_change_missing_user_is_404(api, seed, headers):
    response = api.put("/api/users/nobody/role", json={"role": "guest"}, headers=headers("admin", "super_admin"))
    assert response.status_code == 404


# ── Tests: clients ───────────────────────────────────────────────────

def test_client_conflict_check_groups_by_field(api, seed, headers):
    response = api.post(
        "/api/clients/check-conflicts",
        json={"email": "legal@acme.example", "phone": "+91-22-5550199"},
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["has_conflicts"] is True
    # The phone belongs to an inactive client, so only the email group remains
    assert [g["field"] for g in body["conflicts"]] == ["email"]
    assert [c["id"] for c in body["conflicts"][0]["conflicts"]] == ["acme"]


def test_client_conflict_check_requires_permission(api, seed, headers):
    response = api.post(
        "/api/clients/check-conflicts",
        json={"email": "legal@acme.example"},
        headers=headers("sa1", "senior_associate"),
    )
    assert response.status_code == 403


def test_client_conflict_check_excludes_self(api, seed, headers):
    response = api.post(
        "/api/clients/check-conflicts",
        json={"email": "legal@acme.example", "exclude_id": "acme"},
        headers=headers("p1", "partner"),
    )
    assert response.json() == {"has_conflicts": False, "conflicts": []}


def test_create_client_reports_conflicts_without_blocking(api, seed, headers):
    response = api.post(
        "/api/clients",
        json={"first_name": "Acme", "last_name": "Subsidiary", "tax_id": "AAACA1234A"},
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["has_conflicts"] is True
    assert body["conflicts"][0]["field"] == "tax_id"
    assert body["conflicts"][0]["conflicts"][0]["id"] == "acme"

    with open_session() as s:
        assert s.get(Client, body["client"]["id"]) is not None
        entry = s.query(AuditLog).filter(AuditLog.event_type == "client_conflicts_reported").one()
        assert json.loads(entry.event_details)["conflicting_ids"] == ["acme"]


def test_create_client_without_conflicts(api, seed, headers):
    response = api.post(
        "/api/clients",
        json={"first_name": "Nina", "last_name": "Das", "email": "nina@das.example"},
        headers=headers("admin", "super_admin"),
    )
    assert response.status_code == 200
    assert response.json()["has_conflicts"] is False
    with open_session() as s:
        assert s.query(AuditLog).count() == 0


def test_update_client_is_not_its_own_conflict(api, seed, headers):
    response = api.put(
        "/api/clients/acme",
        json={"last_name": "Holdings Pvt Ltd", "email": "legal@acme.example"},
        headers=headers("sa1", "senior_associate"),
    )
    assert response.status_code == 200
    assert response.json()["has_conflicts"] is False
    assert response.json()["client"]["last_name"] == "Holdings Pvt Ltd"


def test_update_client_into_conflict(api, seed, headers):
    response = api.put(
        "/api/clients/other",
        json={"phone": "+91-22-5550100"},
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 200
    assert [g["field"] for g in response.json()["conflicts"]] == ["phone"]


def test_update_missing_client_is_404(api, seed, headers):
    response = api.put("/api/clients/ghost", json={"first_name": "X"}, headers=headers("p1", "partner"))
    assert response.status_code == 404


# ── Tests: calendar ──────────────────────────────────────────────────

def event_body(start, end, assigned_to="sa1", title="Client meeting"):
    return {"title": title, "assigned_to": assigned_to, "start_datetime": start, "end_datetime": end}


def test_schedule_check_reports_overlap(api, seed, headers):
    response = api.post(
        "/api/calendar/events/check-conflicts",
        json={"assigned_to": "sa1", "start_datetime": "2026-03-02T10:30:00Z",
              "end_datetime": "2026-03-02T11:30:00Z"},
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 200
    assert [c["id"] for c in response.json()["conflicts"]] == ["e1"]


def test_back_to_back_event_created(api, seed, headers):
    response = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-02T11:00:00Z", "2026-03-02T12:00:00Z"),
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 201
    assert response.json()["start_datetime"] == "2026-03-02T11:00:00"


def test_double_booking_is_409_and_not_written(api, seed, headers):
    response = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-02T10:30:00Z", "2026-03-02T11:30:00Z"),
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["code"] == "SCHEDULING_CONFLICT"
    assert [c["id"] for c in detail["conflicts"]] == ["e1"]

    with open_session() as s:
        assert s.query(CalendarEvent).count() == 1


def test_offset_times_normalized_before_check(api, seed, headers):
    # 16:00-16:30 IST is 10:30-11:00 UTC
    response = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-02T16:00:00+05:30", "2026-03-02T16:30:00+05:30"),
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 409


def test_other_assignee_not_blocked(api, seed, headers):
    response = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-02T10:00:00Z", "2026-03-02T11:00:00Z", assigned_to="sa2"),
        headers=headers("pl1", "paralegal"),
    )
    assert response.status_code == 201


def test_event_create_requires_permission(api, seed, headers):
    response = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-03T10:00:00Z", "2026-03-03T11:00:00Z"),
        headers=headers("ja1", "junior_associate"),
    )
    assert response.status_code == 403


@pytest.mark.parametrize("start, end", [
    ("2026-03-03T11:00:00Z", "2026-03-03T10:00:00Z"),
    ("2026-03-03T10:00:00Z", "2026-03-03T10:00:00Z"),
    ("2026-03-03T10:00:00", "2026-03-03T11:00:00Z"),
])
def test_invalid_interval_is_422(api, seed, headers, start, end):
    response = api.post("/api/calendar/events", json=event_body(start, end), headers=headers("p1", "partner"))
    assert response.status_code == 422


def test_unknown_assignee_is_404(api, seed, headers):
    response = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-03T10:00:00Z", "2026-03-03T11:00:00Z", assigned_to="ghost"),
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 404


def test_rescheduling_does_not_clash_with_itself(api, seed, headers):
    response = api.put(
        "/api/calendar/events/e1",
        json={"start_datetime": "2026-03-02T10:30:00Z", "end_datetime": "2026-03-02T11:30:00Z"},
        headers=headers("sa1", "senior_associate"),
    )
    assert response.status_code == 200
    assert response.json()["end_datetime"] == "2026-03-02T11:30:00"


def test_rescheduling_into_another_event_is_409(api, seed, headers):
    created = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-02T14:00:00Z", "2026-03-02T15:00:00Z"),
        headers=headers("p1", "partner"),
    ).json()

    response = api.put(
        f"/api/calendar/events/{created['id']}",
        json={"start_datetime": "2026-03-02T10:45:00Z", "end_datetime": "2026-03-02T11:15:00Z"},
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 409

    with open_session() as s:
        assert s.get(CalendarEvent, created["id"]).start_datetime == datetime(2026, 3, 2, 14, 0)


def test_cancelled_event_frees_the_slot(api, seed, headers):
    cancel = api.put("/api/calendar/events/e1", json={"status": "cancelled"}, headers=headers("p1", "partner"))
    assert cancel.status_code == 200
    assert cancel.json()["status"] == "cancelled"

    response = api.post(
        "/api/calendar/events",
        json=event_body("2026-03-02T10:00:00Z", "2026-03-02T11:00:00Z"),
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 201


def test_update_missing_event_is_404(api, seed, headers):
    response = api.put("/api/calendar/events/ghost", json={"title": "x"}, headers=headers("p1", "partner"))
    assert response.status_code == 404


# ── Tests: cases & documents ─────────────────────────────────────────

@pytest.mark.parametrize("user_id, role, case_id, expected", [
    ("admin", "super_admin", "c1", 200),
    ("p2", "partner", "c1", 200),
    ("sa1", "senior_associate", "c1", 200),
    ("sa2", "senior_associate", "c1", 403),
    ("ja1", "junior_associate", "c1", 403),
    ("sa1", "senior_associate", "c2", 403),
    ("g1", "guest", "c1", 403),
])
def test_case_access(api, seed, headers, user_id, role, case_id, expected):
    response = api.get(f"/api/cases/{case_id}", headers=headers(user_id, role))
    assert response.status_code == expected


def test_client_sees_only_own_cases(api, seed, headers):
    own = api.get("/api/cases/c1", headers=headers("cu1", "client", client_id="acme"))
    assert own.status_code == 200
    assert own.json()["assigned_associates"] == ["sa1"]

    foreign = api.get("/api/cases/c2", headers=headers("cu1", "client", client_id="acme"))
    assert foreign.status_code == 403


def test_client_without_linked_client_sees_nothing(api, seed, headers):
    response = api.get("/api/cases/c1", headers=headers("cu1", "client"))
    assert response.status_code == 403


def test_missing_case_is_404(api, seed, headers):
    assert api.get("/api/cases/none", headers=headers("p1", "partner")).status_code == 404


@pytest.mark.parametrize("user_id, role, document_id, expected", [
    ("admin", "super_admin", "d2", 200),
    ("p1", "partner", "d2", 403),
    ("p1", "partner", "d3", 200),
    ("sa1", "senior_associate", "d1", 200),
    ("sa1", "senior_associate", "d3", 403),
    ("sa2", "senior_associate", "d1", 403),
    ("g1", "guest", "d1", 403),
    ("admin", "super_admin", "missing", 404),
    ("p1", "partner", "missing", 403),
    ("sa1", "senior_associate", "missing", 403),
])
def test_document_access(api, seed, headers, user_id, role, document_id, expected):
    response = api.get(f"/api/documents/{document_id}", headers=headers(user_id, role))
    assert response.status_code == expected


def test_client_reads_documents_of_own_case_only(api, seed, headers):
    client_headers = headers("cu1", "client", client_id="acme")
    assert api.get("/api/documents/d1", headers=client_headers).status_code == 200
    assert api.get("/api/documents/d3", headers=client_headers).status_code == 403


def test_denials_are_generic(api, seed, headers):
    response = api.get("/api/cases/c2", headers=headers("sa1", "senior_associate"))
    assert response.json() == {"detail": "Insufficient permissions"}


def test_missing_case_looks_forbidden_below_partner(api, seed, headers):
    missing = api.get("/api/cases/none", headers=headers("sa1", "senior_associate"))
    forbidden = api.get("/api/cases/c2", headers=headers("sa1", "senior_associate"))
    assert missing.status_code == forbidden.status_code == 403
    assert missing.json() == forbidden.json()


def test_missing_case_looks_forbidden_to_clients(api, seed, headers):
    response = api.get("/api/cases/none", headers=headers("cu1", "client", client_id="acme"))
    assert response.status_code == 403


# ── Tests: permission-set dependencies ───────────────────────────────

@pytest.fixture
def gated_api():
    """Two routes gated on the same pair, one needing either and one needing both."""
    pair = ["calendar:create", "billing:create"]
    app = FastAPI()

    @app.get("/any")
    async def any_route(actor=Depends(require_any_permission(pair))):
        return {"user_id": actor.user_id}

    @app.get("/all")
    async def all_route(actor=Depends(require_all_permissions(pair))):
        return {"user_id": actor.user_id}

    return TestClient(app)


@pytest.mark.parametrize("user_id, role, path, expected", [
    ("pl1", "paralegal", "/any", 200),
    ("pl1", "paralegal", "/all", 403),
    ("p1", "partner", "/any", 200),
    ("p1", "partner", "/all", 200),
    ("ja1", "junior_associate", "/any", 403),
    ("ja1", "junior_associate", "/all", 403),
])
def test_permission_set_dependencies(gated_api, headers, user_id, role, path, expected):
    response = gated_api.get(path, headers=headers(user_id, role))
    assert response.status_code == expected
    if expected == 403:
        assert response.json() == {"detail": "Insufficient permissions"}
    else:
        assert response.json() == {"user_id": user_id}


def test_permission_set_dependencies_need_a_token(gated_api):
    assert gated_api.get("/any").status_code == 401
    assert gated_api.get("/all").status_code == 401


def test_unknown_permission_in_dependency_fails_at_definition():
    with pytest.raises(UnknownPermissionError):
        require_any_permission(["calendar:create", "calendar:teleport"])
    with pytest.raises(UnknownPermissionError):
        require_all_permissions(["calendar:teleport"])


def test_schedule_check_open_to_any_calendar_writer(api, seed, headers):
    body = {"assigned_to": "sa1", "start_datetime": "2026-03-02T11:00:00Z",
            "end_datetime": "2026-03-02T12:00:00Z"}

    allowed = api.post("/api/calendar/events/check-conflicts", json=body, headers=headers("pl1", "paralegal"))
    assert allowed.status_code == 200
    assert allowed.json() == {"has_conflicts": False, "conflicts": []}

    # Junior associates only read the calendar
    denied = api.post("/api/calendar/events/check-conflicts", json=body, headers=headers("ja1", "junior_associate"))
    assert denied.status_code == 403


def test_client_update_needs_read_and_update(api, seed, headers):
    # Junior associates can read clients but not update them
    response = api.put("/api/clients/acme", json={"first_name": "X"}, headers=headers("ja1", "junior_associate"))
    assert response.status_code == 403
    with open_session() as s:
        assert s.get(Client, "acme").first_name == "Acme"


# ── Tests: clearing client identity ──────────────────────────────────

def test_update_client_clears_identity_field(api, seed, headers):
    conflicting = api.put("/api/clients/other", json={"tax_id": "AAACA1234A"}, headers=headers("p1", "partner"))
    assert conflicting.json()["has_conflicts"] is True

    response = api.put(
        "/api/clients/other",
        json={"tax_id": None, "email": None},
        headers=headers("p1", "partner"),
    )
    assert response.status_code == 200
    assert response.json()["has_conflicts"] is False
    assert response.json()["client"]["tax_id"] is None
    assert response.json()["client"]["email"] is None

    with open_session() as s:
        client = s.get(Client, "other")
        assert client.tax_id is None
        assert client.email is None
        assert client.first_name == "Other"


def test_update_client_omitted_fields_untouched(api, seed, headers):
    response = api.put("/api/clients/acme", json={"phone": None}, headers=headers("p1", "partner"))
    assert response.status_code == 200
    body = response.json()["client"]
    assert body["phone"] is None
    assert body["email"] == "legal@acme.example"
    assert body["tax_id"] == "AAACA1234A"


@pytest.mark.parametrize("field_name", ["first_name", "last_name", "is_active"])
def test_update_client_rejects_null_for_required_fields(api, seed, headers, field_name):
    response = api.put("/api/clients/acme", json={field_name: None}, headers=headers("p1", "partner"))
    assert response.status_code == 422


# ── Tests: exact role spelling ───────────────────────────────────────

@pytest.mark.parametrize("spelling", ["Senior_Associate", " senior_associate", "SENIOR_ASSOCIATE"])
def test_role_change_requires_exact_spelling(api, seed, headers, spelling):
    response = api.put("/api/users/pl1/role", json={"role": spelling}, headers=headers("admin", "super_admin"))
    assert response.status_code == 422
    with open_session() as s:
        assert s.get(User, "pl1").role == "paralegal"


def test_token_with_miscased_role_is_401(api, seed):
    token = jwt.encode(
        {"sub": "p1", "role": "Partner", "exp": datetime.utcnow() + timedelta(minutes=5)},
        "test-secret-key-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )
    response = api.get("/api/users/me/permissions", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
