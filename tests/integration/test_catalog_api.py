# tests/integration/test_catalog_api.py
"""Catalogue, settings, users and operational endpoints."""


class TestCatalog:
    def test_catalogue_reads_are_public(self, client):
        packages = client.get("/api/v1/packages")

        assert packages.status_code == 200
        assert [p["id"] for p in packages.json()] == ["p1"]
        assert client.get("/api/v1/classes").json() == []

    def test_admin_manages_class_types(self, client, auth_headers):
        admin = auth_headers("admin")
        payload = {"name": "Dolphins", "priceSingle": 35, "durationMinutes": 45, "capacity": 6}

        created = client.post("/api/v1/classes", json=payload, headers=admin)
        assert created.status_code == 201
        class_id = created.json()["id"]
        assert created.json()["priceSingle"] == 35.0

        updated = client.put(
            f"/api/v1/classes/{class_id}", json={**payload, "priceSingle": 40}, headers=admin
        )
        assert updated.json()["priceSingle"] == 40.0

        assert client.delete(f"/api/v1/classes/{class_id}", headers=admin).status_code == 204
        assert client.get(f"/api/v1/classes/{class_id}").status_code == 404

    def test_unknown_fields_are_rejected(self, client, auth_headers):
        response = client.post(
            "/api/v1/classes",
            json={"name": "X", "priceSingle": 1, "durationMinutes": 30, "colour": "blue"},
            headers=auth_headers("admin"),
        )

        assert response.status_code == 422

    def test_instructors_cannot_edit_catalogue(self, client, auth_headers):
        response = client.post(
            "/api/v1/packages",
            json={"name": "Free", "credits": 100, "price": 0},
            headers=auth_headers("instructor"),
        )

        assert response.status_code == 403


class TestSettings:
    def test_public_read_admin_write(self, client, auth_headers):
        assert client.get("/api/v1/settings").json()["poolCapacity"] == 25

        denied = client.put(
            "/api/v1/settings", json={"poolCapacity": 10}, headers=auth_headers("client")
        )
        assert denied.status_code == 403

        saved = client.put(
            "/api/v1/settings",
            json={"poolCapacity": 10, "cancellationHours": 12},
            headers=auth_headers("admin"),
        )
        assert saved.status_code == 200
        assert client.get("/api/v1/settings").json()["cancellationHours"] == 12


class TestUsersAndPurchases:
    def test_client_buys_a_package(self, client, auth_headers):
        headers = auth_headers("client")

        response = client.post("/api/v1/purchases", json={"packageId": "p1"}, headers=headers)

        assert response.status_code == 201
        assert response.json()["packageCredits"] == 10
        history = client.get("/api/v1/purchases", headers=headers).json()
        assert len(history) == 2

    def test_client_cannot_buy_for_someone_else(self, client, auth_headers):
        response = client.post(
            "/api/v1/purchases",
            json={"packageId": "p1", "userId": "i1"},
            headers=auth_headers("client"),
        )

        assert response.status_code == 403

    def test_dashboard(self, client, auth_headers):
        response = client.get("/api/v1/users/u1/dashboard", headers=auth_headers("client"))

        assert response.status_code == 200
        assert response.json()["user"]["id"] == "u1"
        assert response.json()["purchases"][0]["packageName"] == "Starter Pack"

    def test_admin_lists_users(self, client, auth_headers):
        users = client.get("/api/v1/users", headers=auth_headers("admin")).json()

        assert {u["id"] for u in users} == {"u1", "i1", "a1"}


class TestOperational:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["cacheBackend"] == "memory"
        assert body["storageBackend"] in {"sql", "local"}
        assert body["cacheStats"]["circuit_state"] == "closed"
        assert body["cacheStats"]["backend"] == "memory"

    def test_metrics(self, client):
        client.get("/api/v1/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "swimdesk_http_requests_total" in response.text

    def test_skills(self, client):
        skills = client.get("/api/v1/skills").json()

        assert [s["id"] for s in skills] == ["s1", "s2", "s3", "s4", "s5"]
