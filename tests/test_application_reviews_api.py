"""Application review endpoint tests."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.fakes import FakeSupabaseClient
from tests.helpers import ADMIN_ID, MEMBER_ID, seed_application, seed_response

BASE = "/api/programs/abc/applications"
COMPLETE = {"First Name": "John", "Last Name": "Doe", "Email": "john@example.com"}


def test_list_delegates_uses_first_last_names(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Pending delegate applications list "First Last" names and year."""
    application, questions = seed_application(db)
    seed_response(db, application, questions, {"First Name": "John", "Last Name": "Doe"})
    seed_response(db, application, questions, {"First Name": "Done"}, status="accepted")

    response = client.get(f"{BASE}/delegate", headers=auth_headers())
    assert response.status_code == 200
    payload = response.json()
    assert len(payload) == 1
    assert payload[0]["name"] == "John Doe"
    assert payload[0]["fullName"] == "John Doe"
    assert payload[0]["year"] == 2025
    assert payload[0]["role"] is None


def test_list_handles_legacy_full_name(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Legacy forms with a single full-name question still list names."""
    application, questions = seed_application(db, labels=("Full Name",))
    seed_response(db, application, questions, {"Full Name": "Bob Wilson"})

    payload = client.get(f"{BASE}/delegate", headers=auth_headers()).json()
    assert payload[0]["name"] == "Bob Wilson"


def test_list_and_accept_agree_on_partial_last_name(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Listing and acceptance resolve the same name from mixed labels."""
    application, questions = seed_application(
        db, labels=("First Name", "Applicant Last Name", "Email")
    )
    stored = seed_response(
        db,
        application,
        questions,
        {"First Name": "John", "Applicant Last Name": "Doe", "Email": "john@example.com"},
    )

    listed = client.get(f"{BASE}/delegate", headers=auth_headers()).json()
    assert listed[0]["name"] == "John Doe"
    detail = client.get(f"{BASE}/delegate/{stored['id']}", headers=auth_headers()).json()
    assert detail["name"] == "John Doe"

    accepted = client.post(
        f"{BASE}/delegate/{stored['id']}/accept", json={}, headers=auth_headers()
    )
    assert accepted.status_code == 200
    delegate = db.rows("delegates", id=accepted.json()["delegateId"])[0]
    assert (delegate["first_name"], delegate["last_name"]) == ("John", "Doe")


def test_list_staff_includes_role(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """Staff listings resolve the requested role."""
    application, questions = seed_application(
        db, app_type="staff", labels=("First Name", "Last Name", "Preferred Role")
    )
    seed_response(
        db,
        application,
        questions,
        {"First Name": "Alice", "Last Name": "Johnson", "Preferred Role": "Counselor"},
    )

    payload = client.get(f"{BASE}/staff", headers=auth_headers()).json()
    assert payload[0]["name"] == "Alice Johnson"
    assert payload[0]["role"] == "Counselor"


def test_list_filters_by_year(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """The year query narrows through the owning application."""
    old_app, old_questions = seed_application(db, year=2024)
    new_app, new_questions = seed_application(db, year=2025)
    seed_response(db, old_app, old_questions, {"First Name": "Old"})
    seed_response(db, new_app, new_questions, {"First Name": "New"})

    payload = client.get(f"{BASE}/delegate", params={"year": 2024}, headers=auth_headers()).json()
    assert [row["name"] for row in payload] == ["Old"]


def test_list_rejects_unknown_type(client: TestClient, auth_headers) -> None:
    """Only delegate and staff are valid application types."""
    response = client.get(f"{BASE}/parent", headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid type"


def test_list_forbidden_and_empty(client: TestClient, auth_headers) -> None:
    """Non-admins get 403; unknown programs get 204."""
    assert client.get(f"{BASE}/delegate", headers=auth_headers(MEMBER_ID)).status_code == 403
    missing = client.get("/api/programs/missing/applications/delegate", headers=auth_headers())
    assert missing.status_code == 204


def test_detail_decorates_answers(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """Detail view labels answers and renders display values."""
    application, questions = seed_application(db, labels=("First Name", "Last Name", "Address"))
    stored = seed_response(
        db,
        application,
        questions,
        {
            "First Name": {"value": "Tom"},
            "Last Name": "Brown",
            "Address": {"street": "1 Main", "city": "Waco"},
        },
    )

    response = client.get(f"{BASE}/delegate/{stored['id']}", headers=auth_headers())
    assert response.status_code == 200
    payload = response.json()
    assert payload["name"] == "Tom Brown"
    assert payload["status"] == "pending"
    assert payload["answers"][2] == {
        "questionId": questions["Address"]["id"],
        "label": "Address",
        "type": "text",
        "value": {"street": "1 Main", "city": "Waco"},
        "answer": "1 Main, Waco",
    }


def test_detail_wrong_type_or_unknown(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Responses are only visible under their own type."""
    application, questions = seed_application(db)
    stored = seed_response(db, application, questions, COMPLETE)

    assert client.get(f"{BASE}/staff/{stored['id']}", headers=auth_headers()).status_code == 404
    assert client.get(f"{BASE}/delegate/999", headers=auth_headers()).status_code == 404
    assert client.get(f"{BASE}/bogus/{stored['id']}", headers=auth_headers()).status_code == 400


def test_accept_delegate_creates_roster_record(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Accepting creates a delegate, marks the response and writes an audit row."""
    application, questions = seed_application(db)
    stored = seed_response(db, application, questions, COMPLETE)

    response = client.post(
        f"{BASE}/delegate/{stored['id']}/accept",
        json={"comment": "Looks good!"},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    delegate_id = response.json()["delegateId"]

    delegate = db.rows("delegates", id=delegate_id)[0]
    assert delegate["first_name"] == "John"
    assert delegate["last_name"] == "Doe"
    assert delegate["email"] == "john@example.com"
    program_year = db.rows("program_years", id=delegate["program_year_id"])[0]
    assert (program_year["year"], program_year["status"]) == (2025, "active")
    assert db.rows("application_responses", id=stored["id"])[0]["status"] == "accepted"

    audit = db.tables["audit_logs"][-1]
    assert audit["action"] == "accept"
    assert audit["user_id"] == ADMIN_ID
    assert audit["changes"]["comment"] == "Looks good!"
    assert audit["changes"]["createdRecordId"] == delegate_id


def test_accept_reuses_auto_created_program_year(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Two acceptances in a new year share one program year."""
    application, questions = seed_application(db, year=2030)
    first = seed_response(db, application, questions, COMPLETE)
    second = seed_response(db, application, questions, {**COMPLETE, "Email": "other@example.com"})

    for stored in (first, second):
        response = client.post(f"{BASE}/delegate/{stored['id']}/accept", headers=auth_headers())
        assert response.status_code == 200

    assert len(db.rows("program_years", year=2030)) == 1
    assert len(db.tables["delegates"]) == 2


def test_pending_decisions_without_comment(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Accept and reject succeed with an empty body and audit no comment."""
    application, questions = seed_application(db)
    first = seed_response(db, application, questions, COMPLETE)
    second = seed_response(db, application, questions, COMPLETE)

    accepted = client.post(
        f"{BASE}/delegate/{first['id']}/accept", json={}, headers=auth_headers()
    )
    assert accepted.status_code == 200
    assert "comment" not in db.tables["audit_logs"][-1]["changes"]

    rejected = client.post(
        f"{BASE}/delegate/{second['id']}/reject", json={}, headers=auth_headers()
    )
    assert rejected.status_code == 200
    assert db.tables["audit_logs"][-1]["changes"] == {}
    assert db.rows("application_responses", id=second["id"])[0]["status"] == "rejected"


def test_accept_twice_is_rejected(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """Decided responses cannot change again."""
    application, questions = seed_application(db)
    stored = seed_response(db, application, questions, COMPLETE, status="accepted")

    for action in ("accept", "reject"):
        response = client.post(f"{BASE}/delegate/{stored['id']}/{action}", headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["error"] == "Already decided"


def test_accept_lists_missing_fields(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Only the unresolved required fields are named, in canonical order."""
    application, questions = seed_application(db)
    stored = seed_response(db, application, questions, {"First Name": "John"})

    response = client.post(f"{BASE}/delegate/{stored['id']}/accept", headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"] == "Application is missing required fields (Last Name, Email)"
    assert db.rows("application_responses", id=stored["id"])[0]["status"] == "pending"


def test_accept_with_nothing_resolved(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """With no identity answers every required field is listed."""
    application, questions = seed_application(db, labels=("Shirt Size",))
    stored = seed_response(db, application, questions, {"Shirt Size": "M"})

    response = client.post(f"{BASE}/delegate/{stored['id']}/accept", headers=auth_headers())
    assert response.json()["error"] == (
        "Application is missing required fields (First Name, Last Name, Email)"
    )


def test_accept_requires_year(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """An application without a year cannot produce roster records."""
    application, questions = seed_application(db, year=None)
    stored = seed_response(db, application, questions, COMPLETE)

    response = client.post(f"{BASE}/delegate/{stored['id']}/accept", headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"] == "Application has no year specified"


def test_accept_staff_requires_role(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Staff acceptance without any resolvable role is refused."""
    application, questions = seed_application(db, app_type="staff")
    stored = seed_response(db, application, questions, COMPLETE)

    response = client.post(f"{BASE}/staff/{stored['id']}/accept", json={}, headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"] == "Role is required when accepting staff applications"


def test_accept_staff_with_role(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """The request role wins over the answered preference."""
    application, questions = seed_application(
        db, app_type="staff", labels=("First Name", "Last Name", "Email", "Desired Role")
    )
    stored = seed_response(db, application, questions, {**COMPLETE, "Desired Role": "Cook"})

    response = client.post(
        f"{BASE}/staff/{stored['id']}/accept", json={"role": "Counselor"}, headers=auth_headers()
    )
    assert response.status_code == 200
    staff = db.rows("staff", id=response.json()["staffId"])[0]
    assert staff["role"] == "Counselor"


def test_accept_staff_role_from_answers(
    client: TestClient, db: FakeSupabaseClient, auth_headers
) -> None:
    """Without a request role the answered preference is used."""
    application, questions = seed_application(
        db, app_type="staff", labels=("First Name", "Last Name", "Email", "Desired Position")
    )
    stored = seed_response(db, application, questions, {**COMPLETE, "Desired Position": "Mayor"})

    response = client.post(f"{BASE}/staff/{stored['id']}/accept", headers=auth_headers())
    assert response.status_code == 200
    assert db.rows("staff", id=response.json()["staffId"])[0]["role"] == "Mayor"


def test_reject_records_reason(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """Rejecting stores the reason as the audit comment and creates no record."""
    application, questions = seed_application(db)
    stored = seed_response(db, application, questions, COMPLETE)

    response = client.post(
        f"{BASE}/delegate/{stored['id']}/reject", json={"reason": "no"}, headers=auth_headers()
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert db.rows("application_responses", id=stored["id"])[0]["status"] == "rejected"
    assert db.tables["delegates"] == []
    audit = db.tables["audit_logs"][-1]
    assert audit["action"] == "reject"
    assert audit["changes"] == {"comment": "no"}


def test_decision_guards(client: TestClient, db: FakeSupabaseClient, auth_headers) -> None:
    """Type, program, permission and existence checks apply to decisions."""
    cases = [
        (f"{BASE}/invalid/1/accept", ADMIN_ID, 400),
        ("/api/programs/missing/applications/delegate/1/reject", ADMIN_ID, 204),
        (f"{BASE}/delegate/1/accept", MEMBER_ID, 403),
        (f"{BASE}/delegate/1/reject", ADMIN_ID, 404),
    ]
    for url, user_id, expected in cases:
        assert client.post(url, headers=auth_headers(user_id)).status_code == expected
