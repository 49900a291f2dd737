# tests/integration/test_booking_flow_api.py
"""
End-to-end flows over HTTP: an admin sets up a class, the instructor puts
sessions on their calendar and the demo client books them.
"""

import pytest

from tests.integration.helpers import next_monday


@pytest.fixture
def class_type_id(client, auth_headers):
    response = client.post(
        "/api/v1/classes",
        json={"name": "Little Otters", "priceSingle": 30, "durationMinutes": 45, "capacity": 2},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def session_payload(class_type_id):
    return {
        "classTypeId": class_type_id,
        "instructorId": "i1",
        "date": next_monday().isoformat(),
        "startTime": "10:00",
    }


@pytest.fixture
def session_id(client, auth_headers, session_payload):
    response = client.post("/api/v1/sessions", json=session_payload, headers=auth_headers("instructor"))
    assert response.status_code == 201, response.text
    return response.json()["id"]


class TestScheduling:
    def test_session_lands_in_the_window(self, client, auth_headers, session_payload):
        response = client.post(
            "/api/v1/sessions", json=session_payload, headers=auth_headers("instructor")
        )

        assert response.status_code == 201
        body = response.json()
        assert body["capacity"] == 2
        assert body["enrolledUserIds"] == []
        assert body["startTime"].startswith(f"{session_payload['date']}T10:00:00")

    def test_outside_availability_needs_confirmation(self, client, auth_headers, session_payload):
        headers = auth_headers("instructor")
        late = {**session_payload, "startTime": "18:00"}

        warning = client.post("/api/v1/sessions", json=late, headers=headers)
        assert warning.status_code == 422
        assert warning.json()["code"] == "INSTRUCTOR_UNAVAILABLE"

        confirmed = client.post(
            "/api/v1/sessions", json={**late, "overrideUnavailable": True}, headers=headers
        )
        assert confirmed.status_code == 201

    def test_blockout_is_a_hard_stop(self, client, auth_headers, session_payload):
        headers = auth_headers("instructor")
        blockout = client.post(
            "/api/v1/instructors/i1/blockouts",
            json={"date": session_payload["date"], "startTime": "12:00", "endTime": "13:00"},
            headers=headers,
        )
        assert blockout.status_code == 201

        response = client.post(
            "/api/v1/sessions",
            json={**session_payload, "startTime": "12:30", "overrideUnavailable": True},
            headers=headers,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "BLOCKED_TIME"

    def test_weekly_series(self, client, auth_headers, session_payload):
        response = client.post(
            "/api/v1/sessions/series",
            json={**session_payload, "occurrences": 3},
            headers=auth_headers("instructor"),
        )

        assert response.status_code == 201
        body = response.json()
        assert len(body["sessions"]) == 3
        assert {s["recurringGroupId"] for s in body["sessions"]} == {body["recurringGroupId"]}

    def test_instructors_keep_to_their_own_calendar(self, client, auth_headers, session_payload):
        headers = auth_headers("instructor")

        availability = client.post(
            "/api/v1/instructors/a1/availability",
            json={"dayOfWeek": 2, "startTime": "09:00", "endTime": "10:00"},
            headers=headers,
        )
        assert availability.status_code == 403

        clients_cannot_schedule = client.post(
            "/api/v1/sessions", json=session_payload, headers=auth_headers("client")
        )
        assert clients_cannot_schedule.status_code == 403

    def test_schedule_view(self, client, auth_headers, session_id):
        response = client.get("/api/v1/instructors/i1/schedule", headers=auth_headers("instructor"))

        assert response.status_code == 200
        body = response.json()
        assert [s["id"] for s in body["sessions"]] == [session_id]
        assert {a["dayOfWeek"] for a in body["availability"]} == {1, 3, 5}


class TestEnrollment:
    def test_enroll_and_cancel_with_refund(self, client, auth_headers, session_id):
        headers = auth_headers("client")

        enrolled = client.post(f"/api/v1/sessions/{session_id}/enroll", json={}, headers=headers)
        assert enrolled.status_code == 200
        assert enrolled.json()["enrolledUserIds"] == ["u1"]
        assert client.get("/api/v1/auth/me", headers=headers).json()["packageCredits"] == 4

        cancelled = client.delete(f"/api/v1/sessions/{session_id}/enrollments/u1", headers=headers)
        assert cancelled.status_code == 200
        assert cancelled.json() == {
            "sessionId": session_id,
            "userId": "u1",
            "refunded": True,
            "packageCredits": 5,
        }

    def test_bookable_sessions_hide_full_ones(self, client, auth_headers, class_type_id, session_id):
        admin = auth_headers("admin")
        client.post(
            "/api/v1/users",
            json={"name": "Second", "email": "second@example.com", "password": "paddle123", "packageCredits": 1},
            headers=admin,
        )
        second = client.get("/api/v1/users", headers=admin).json()
        second_id = next(u["id"] for u in second if u["email"] == "second@example.com")

        client.post(f"/api/v1/sessions/{session_id}/enroll", json={}, headers=auth_headers("client"))
        client.post(f"/api/v1/sessions/{session_id}/enroll", json={"userId": second_id}, headers=admin)

        bookable = client.get(
            f"/api/v1/classes/{class_type_id}/bookable-sessions", headers=auth_headers("client")
        )
        assert bookable.status_code == 200
        assert bookable.json() == []

    def test_cancelling_a_session_refunds(self, client, auth_headers, session_id):
        headers = auth_headers("client")
        client.post(f"/api/v1/sessions/{session_id}/enroll", json={}, headers=headers)

        response = client.delete(f"/api/v1/sessions/{session_id}", headers=auth_headers("instructor"))

        assert response.status_code == 204
        assert client.get("/api/v1/auth/me", headers=headers).json()["packageCredits"] == 5
        assert client.get(f"/api/v1/sessions/{session_id}", headers=headers).status_code == 404

    def test_cancelled_drop_in_does_not_earn_a_credit(self, client, auth_headers, session_id):
        headers = auth_headers("client")
        enrolled = client.post(
            f"/api/v1/sessions/{session_id}/enroll", json={"payPerLesson": True}, headers=headers
        )
        assert enrolled.status_code == 200
        assert client.get("/api/v1/auth/me", headers=headers).json()["packageCredits"] == 5

        response = client.delete(f"/api/v1/sessions/{session_id}", headers=auth_headers("instructor"))

        assert response.status_code == 204
        assert client.get("/api/v1/auth/me", headers=headers).json()["packageCredits"] == 5


class TestBookingWizard:
    def test_book_with_existing_credits(self, client, auth_headers, class_type_id, session_id):
        headers = auth_headers("client")

        started = client.post("/api/v1/bookings", json={"classTypeId": class_type_id}, headers=headers)
        assert started.status_code == 201
        wizard_id = started.json()["wizardId"]
        assert started.json()["step"] == "SELECT_SCHEDULE"

        chosen = client.post(
            f"/api/v1/bookings/{wizard_id}/session", json={"sessionId": session_id}, headers=headers
        )
        assert chosen.json()["step"] == "CONFIRM"

        confirmed = client.post(f"/api/v1/bookings/{wizard_id}/confirm", headers=headers)
        assert confirmed.status_code == 200
        assert confirmed.json()["step"] == "COMPLETED"

        session = client.get(f"/api/v1/sessions/{session_id}", headers=headers).json()
        assert session["enrolledUserIds"] == ["u1"]

    def test_wizard_belongs_to_its_user(self, client, auth_headers):
        started = client.post("/api/v1/bookings", json={}, headers=auth_headers("client"))
        wizard_id = started.json()["wizardId"]

        response = client.get(f"/api/v1/bookings/{wizard_id}", headers=auth_headers("instructor"))

        assert response.status_code == 403

    def test_confirming_too_early(self, client, auth_headers):
        headers = auth_headers("client")
        wizard_id = client.post("/api/v1/bookings", json={}, headers=headers).json()["wizardId"]

        response = client.post(f"/api/v1/bookings/{wizard_id}/confirm", headers=headers)

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_WIZARD_TRANSITION"

    def test_abandon(self, client, auth_headers):
        headers = auth_headers("client")
        wizard_id = client.post("/api/v1/bookings", json={}, headers=headers).json()["wizardId"]

        assert client.delete(f"/api/v1/bookings/{wizard_id}", headers=headers).status_code == 204
        assert client.get(f"/api/v1/bookings/{wizard_id}", headers=headers).status_code == 404
