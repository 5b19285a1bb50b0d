"""Tests for admin session and form management endpoints"""

import uuid

from tests.config import test_config

NAME_FIELDS = [{"name": "name", "type": "text", "required": True}]


class TestAdminSession:
    """Login, logout and the session check"""

    def test_check_without_session(self, client):
        response = client.get("/api/admin/check")

        assert response.status_code == 200
        assert response.json() == {"is_admin": False}

    def test_wrong_password_is_rejected(self, client):
        response = client.post("/api/admin/login", json={"password": "wrong"})

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert client.get("/api/admin/check").json() == {"is_admin": False}

    def test_login_then_logout(self, admin_client):
        assert admin_client.get("/api/admin/check").json() == {"is_admin": True}

        response = admin_client.post("/api/admin/logout")
        assert response.status_code == 200
        assert admin_client.get("/api/admin/check").json() == {"is_admin": False}

    def test_session_requests_need_csrf_header(self, admin_client):
        del admin_client.headers["X-CSRFToken"]

        response = admin_client.post("/api/admin/forms", json={"fields": NAME_FIELDS})
        assert response.status_code == 403


class TestAdminGate:
    """Every admin operation is rejected without an admin session"""

    def test_admin_routes_require_admin(self, client):
        form_id = uuid.uuid4()
        calls = [
            ("get", "/api/admin/forms", None),
            ("post", "/api/admin/forms", {"fields": NAME_FIELDS}),
            ("get", f"/api/admin/forms/{form_id}", None),
            ("put", f"/api/admin/forms/{form_id}", {"fields": NAME_FIELDS}),
            ("delete", f"/api/admin/forms/{form_id}", None),
            ("post", f"/api/admin/forms/{form_id}/publish", None),
            ("post", f"/api/admin/forms/{form_id}/unpublish", None),
            ("get", f"/api/admin/forms/{form_id}/registrations", None),
            ("get", f"/api/admin/registrations/{form_id}", None),
            ("post", "/api/admin/checkin", {"code_payload": "x"}),
        ]

        for method, url, body in calls:
            kwargs = {"json": body} if body is not None else {}
            response = client.request(method.upper(), url, **kwargs)
            assert response.status_code == 401, f"{method} {url}"

    def test_injected_gate_decides(self, gate_client):
        assert gate_client.get("/api/admin/forms").status_code == 200

        gate_client.gate.allowed = False
        assert gate_client.get("/api/admin/forms").status_code == 401
        assert gate_client.get("/api/admin/check").json() == {"is_admin": False}


class TestFormManagement:
    """Create, edit, publish and delete forms"""

    def test_create_and_publish(self, admin_client):
        response = admin_client.post(
            "/api/admin/forms", json={"title": "Meetup", "fields": NAME_FIELDS}
        )
        assert response.status_code == 201, response.text
        form = response.json()
        assert form["is_published"] is False

        response = admin_client.post(f"/api/admin/forms/{form['id']}/publish")
        assert response.status_code == 200
        assert response.json()["is_published"] is True

        published = admin_client.get("/api/published-form").json()
        assert published["id"] == form["id"]

    def test_create_with_invalid_fields(self, admin_client):
        response = admin_client.post(
            "/api/admin/forms",
            json={"fields": [{"name": "name"}, {"name": "name"}]},
        )

        assert response.status_code == 400
        assert "name" in response.json()["field_errors"]

    def test_create_with_empty_fields(self, admin_client):
        response = admin_client.post("/api/admin/forms", json={"fields": []})
        assert response.status_code == 400

    def test_create_with_bad_field_name(self, admin_client):
        response = admin_client.post(
            "/api/admin/forms", json={"fields": [{"name": "first name"}]}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert "fields.0.name" in data["field_errors"]

    def test_publish_unknown_form(self, admin_client):
        response = admin_client.post(f"/api/admin/forms/{uuid.uuid4()}/publish")
        assert response.status_code == 404

    def test_publishing_second_form_unpublishes_first(self, admin_client):
        ids = []
        for title in ("First", "Second"):
            created = admin_client.post(
                "/api/admin/forms", json={"title": title, "fields": NAME_FIELDS}
            ).json()
            admin_client.post(f"/api/admin/forms/{created['id']}/publish")
            ids.append(created["id"])

        forms = {f["id"]: f for f in admin_client.get("/api/admin/forms").json()}
        assert forms[ids[0]]["is_published"] is False
        assert forms[ids[1]]["is_published"] is True

    def test_unpublish(self, admin_client, published_form):
        response = admin_client.post(f"/api/admin/forms/{published_form.id}/unpublish")

        assert response.status_code == 200
        assert response.json()["is_published"] is False
        assert admin_client.get("/api/published-form").status_code == 204

    def test_update_form(self, admin_client, published_form):
        response = admin_client.put(
            f"/api/admin/forms/{published_form.id}",
            json={
                "title": "Renamed",
                "fields": NAME_FIELDS + [{"name": "company", "label": "Company"}],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renamed"
        assert [f["name"] for f in data["fields"]] == ["name", "company"]

    def test_list_forms_counts_registrations(
        self, admin_client, registration_service, published_form
    ):
        registration_service.submit(published_form.id, {"name": "Ana"})
        registration_service.submit(published_form.id, {"name": "Ben"})

        forms = admin_client.get("/api/admin/forms").json()

        assert forms == [
            {
                "id": str(published_form.id),
                "title": "Spring meetup",
                "is_published": True,
                "registration_count": 2,
                "created_at": forms[0]["created_at"],
            }
        ]

    def test_delete_form(self, admin_client, form_service, name_fields):
        form_id = form_service.create_form(name_fields).id

        response = admin_client.delete(f"/api/admin/forms/{form_id}")
        assert response.status_code == 204
        assert admin_client.get(f"/api/admin/forms/{form_id}").status_code == 404

    def test_delete_form_with_registrations_conflicts(
        self, admin_client, registration_service, published_form
    ):
        registration_service.submit(published_form.id, {"name": "Ana"})

        response = admin_client.delete(f"/api/admin/forms/{published_form.id}")
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"


class TestRegistrationViews:
    """Admin list and detail of registrations"""

    def test_list_registrations(self, admin_client, registration_service, published_form):
        for name in ("Ana", "Ben"):
            registration_service.submit(published_form.id, {"name": name})

        response = admin_client.get(f"/api/admin/forms/{published_form.id}/registrations")

        assert response.status_code == 200
        data = response.json()
        assert [r["answers"]["name"] for r in data] == ["Ana", "Ben"]
        assert all(r["status"] == "registered" for r in data)
        # Tokens stay with the registrant
        assert all("token" not in r for r in data)

    def test_list_registrations_unknown_form(self, admin_client):
        response = admin_client.get(f"/api/admin/forms/{uuid.uuid4()}/registrations")
        assert response.status_code == 404

    def test_get_registration(self, admin_client, registration_service, published_form):
        registration = registration_service.submit(published_form.id, {"name": "Ana"})

        response = admin_client.get(f"/api/admin/registrations/{registration.id}")

        assert response.status_code == 200
        assert response.json()["answers"] == {"name": "Ana"}

    def test_login_uses_configured_password(self, client):
        response = client.post(
            "/api/admin/login", json={"password": test_config["admin_password"]}
        )
        assert response.json() == {"is_admin": True}
