# tests/integration/test_auth_api.py
"""Authentication endpoints and the problem-details error format."""

from tests.conftest import sign_in


class TestAuthEndpoints:
    def test_sign_in_and_me(self, client, auth_headers):
        response = client.get("/api/v1/auth/me", headers=auth_headers("client"))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "u1"
        assert body["role"] == "CLIENT"
        assert body["packageCredits"] == 5

    def test_sign_in_returns_camel_case_token(self, client):
        response = client.post(
            "/api/v1/auth/sign-in",
            json={"email": "Admin@Example.com", "password": "swimdesk-demo"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] > 0
        assert body["user"]["id"] == "a1"

    def test_wrong_password(self, client):
        response = client.post(
            "/api/v1/auth/sign-in", json={"email": "client@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    def test_sign_up_then_sign_in(self, client):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={"email": "newbie@example.com", "password": "paddle123", "name": "Newbie"},
        )
        assert response.status_code == 201
        assert response.json()["role"] == "CLIENT"

        headers = sign_in(client, "newbie@example.com", "paddle123")
        assert client.get("/api/v1/auth/me", headers=headers).json()["email"] == "newbie@example.com"

    def test_sign_up_as_admin_is_forbidden(self, client):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={"email": "boss@example.com", "password": "paddle123", "name": "Boss", "role": "ADMIN"},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "ROLE_NOT_ALLOWED"

    def test_sign_out_revokes_the_token(self, client, auth_headers):
        headers = auth_headers("client")

        assert client.post("/api/v1/auth/sign-out", headers=headers).status_code == 204

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_REVOKED"


class TestProblemDetails:
    def test_missing_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        body = response.json()
        assert body["status"] == 401
        assert body["instance"] == "/api/v1/auth/me"
        assert body["code"] == "NOT_AUTHENTICATED"

    def test_client_cannot_list_users(self, client, auth_headers):
        response = client.get("/api/v1/users", headers=auth_headers("client"))

        assert response.status_code == 403
        assert response.json()["title"] == "Forbidden"

    def test_not_found(self, client):
        response = client.get("/api/v1/classes/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "CLASS_TYPE_NOT_FOUND"
        assert body["errors"] == {"id": "missing"}

    def test_request_validation(self, client):
        response = client.post("/api/v1/auth/sign-in", json={"email": "not-an-email"})

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"
