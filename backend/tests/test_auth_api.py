"""
Authentication and project onboarding tests.

Covers register/login/logout, token context refresh after creating or
joining a project, and password changes.
"""

from datetime import timedelta

from teamclock.extensions import db
from teamclock.models import SecurityEvent, SessionToken, User
from teamclock.services.session_service import hash_token


def _register(client, name="Nina", email="nina@example.test", password="Password123!"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


def _bearer(resp):
    return {"Authorization": f"Bearer {resp.json['token']}"}


class TestRegisterAndLogin:

    def test_register_returns_token_without_project(self, client, db_session):
        resp = _register(client)
        assert resp.status_code == 201
        assert resp.json["token"]
        assert resp.json["project_id"] is None
        assert resp.json["permissions"] == []

        # Only the hash is stored
        stored = db.session.query(SessionToken).one()
        assert stored.token_hash == hash_token(resp.json["token"])
        assert stored.token_hash != resp.json["token"]

    def test_register_rejects_weak_password_and_duplicate_email(self, client, db_session):
        assert _register(client, password="short").status_code == 400
        assert _register(client).status_code == 201
        resp = _register(client, email="NINA@example.test")
        assert resp.status_code == 400
        assert resp.json["error"] == "Email is already registered"

    def test_login(self, client, employee):
        resp = client.post("/api/auth/login", json={"email": employee.email.upper(), "password": "Password123!"})
        assert resp.status_code == 200
        assert resp.json["user"]["id"] == employee.id
        assert "TRACK_TIME" in resp.json["permissions"]

    def test_bad_credentials_logged(self, client, employee):
        resp = client.post("/api/auth/login", json={"email": employee.email, "password": "Wrong123!"})
        assert resp.status_code == 401
        assert db.session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_login_requires_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "x@y.z"}).status_code == 400

    def test_logout_revokes_token(self, client, employee, employee_headers):
        assert client.post("/api/auth/logout", headers=employee_headers).status_code == 200
        assert client.get("/api/auth/me", headers=employee_headers).status_code == 401

    def test_idle_session_is_rejected(self, client, employee, employee_headers):
        token = employee_headers["Authorization"].split(" ", 1)[1]
        stored = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).one()
        stored.last_used_at = stored.last_used_at - timedelta(hours=3)
        db.session.commit()

        assert client.get("/api/auth/me", headers=employee_headers).status_code == 401

    def test_deactivated_user_is_rejected(self, client, employee, employee_headers):
        db.session.get(User, employee.id).is_active = False
        db.session.commit()
        assert client.get("/api/auth/me", headers=employee_headers).status_code == 401

    def test_change_password_revokes_sessions(self, client, employee, employee_headers):
        resp = client.post("/api/auth/password", json={
            "current_password": "Password123!",
            "new_password": "Different456!",
        }, headers=employee_headers)
        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=employee_headers).status_code == 401

        resp = client.post("/api/auth/login", json={"email": employee.email, "password": "Different456!"})
        assert resp.status_code == 200


class TestProjectOnboarding:

    def test_user_without_project_is_blocked(self, client, db_session):
        headers = _bearer(_register(client))
        resp = client.post("/api/time-entries/start", headers=headers)
        assert resp.status_code == 403
        assert resp.json["error"] == "Join or create a project first"

    def test_create_project_makes_creator_admin(self, client, db_session):
        headers = _bearer(_register(client))
        resp = client.post("/api/projects", json={"name": "Studio", "timezone": "Europe/Berlin"}, headers=headers)
        assert resp.status_code == 201
        assert resp.json["role"] == "ADMIN"
        assert resp.json["project"]["timezone"] == "Europe/Berlin"
        assert len(resp.json["project"]["join_code"]) == 8

        # The existing token now carries the project context
        me = client.get("/api/auth/me", headers=headers).json
        assert me["project_id"] == resp.json["project"]["id"]
        assert "MANAGE_PROJECT" in me["permissions"]

        current = client.get("/api/projects/current", headers=headers)
        assert current.status_code == 200
        assert current.json["project"]["join_code"] == resp.json["project"]["join_code"]

    def test_unknown_timezone_rejected(self, client, db_session):
        headers = _bearer(_register(client))
        resp = client.post("/api/projects", json={"name": "Studio", "timezone": "Mars/Olympus"}, headers=headers)
        assert resp.status_code == 400

    def test_join_by_code(self, client, project_a, admin):
        headers = _bearer(_register(client))
        resp = client.post("/api/projects/join", json={"join_code": project_a.join_code.lower()}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["role"] == "EMPLOYEE"
        assert "join_code" not in resp.json["project"]

        current = client.get("/api/projects/current", headers=headers)
        assert current.status_code == 200
        assert "join_code" not in current.json["project"]

        assert client.post("/api/time-entries/start", headers=headers).status_code == 201

    def test_invalid_join_code(self, client, project_a):
        headers = _bearer(_register(client))
        resp = client.post("/api/projects/join", json={"join_code": "NOPE0000"}, headers=headers)
        assert resp.status_code == 400

    def test_admin_rotates_join_code(self, client, project_a, admin_headers):
        old_code = project_a.join_code
        resp = client.patch("/api/projects/current", json={"rotate_join_code": True}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["project"]["join_code"] != old_code

    def test_employee_cannot_update_project(self, client, employee_headers):
        resp = client.patch("/api/projects/current", json={"name": "Mine now"}, headers=employee_headers)
        assert resp.status_code == 403

    def test_sole_admin_cannot_leave_project(self, client, project_a, project_b, admin, admin_headers):
        resp = client.post("/api/projects/join", json={"join_code": project_b.join_code}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "A project must keep at least one ADMIN"

        resp = client.post("/api/projects", json={"name": "Side project"}, headers=admin_headers)
        assert resp.status_code == 400

        db.session.expire_all()
        assert admin.project_id == project_a.id
        assert admin.role == "ADMIN"

    def test_admin_leaves_when_another_admin_remains(self, client, project_a, project_b, admin, admin_headers, user_factory):
        user_factory(project_a, "Ada", "ADMIN")
        resp = client.post("/api/projects/join", json={"join_code": project_b.join_code}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["role"] == "EMPLOYEE"

        db.session.expire_all()
        assert admin.project_id == project_b.id


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "ok"
        assert resp.json["database"]["status"] == "healthy"
