"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- EMPLOYEE role is denied manager and admin operations (403)
- Denials are recorded as security events
- Every role maps only to defined permission codes
"""

import pytest

from teamclock.extensions import db
from teamclock.models import SecurityEvent
from teamclock.permissions import DEFAULT_ROLE_PERMISSIONS, PERMISSION_DEFINITIONS


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("POST", "/api/projects"),
            ("GET", "/api/projects/current"),
            ("GET", "/api/time-entries"),
            ("POST", "/api/time-entries/start"),
            ("POST", "/api/time-entries/break"),
            ("GET", "/api/team/members"),
            ("PATCH", "/api/team/assign-manager"),
            ("GET", "/api/reports/balance"),
            ("GET", "/api/reports/monthly"),
            ("GET", "/api/reports/export"),
            ("GET", "/api/tasks"),
            ("POST", "/api/tasks"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401


# =============================================================================
# EMPLOYEE DENIED PRIVILEGED OPERATIONS - 403
# =============================================================================


class TestEmployeeDenied:

    @pytest.mark.parametrize(
        "path,payload",
        [
            ("/api/team/assign-manager", {"employee_id": 1, "manager_id": None}),
            ("/api/team/work-settings", {"daily_target": 4, "work_days": [1]}),
            ("/api/team/role", {"user_id": 1, "role": "ADMIN"}),
            ("/api/projects/current", {"name": "x"}),
        ],
    )
    def test_forbidden(self, client, employee_headers, path, payload):
        resp = client.patch(path, json=payload, headers=employee_headers)
        assert resp.status_code == 403

    def test_denial_is_logged(self, client, employee, employee_headers):
        client.patch("/api/team/role", json={"user_id": employee.id, "role": "ADMIN"}, headers=employee_headers)
        event = db.session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.user_id == employee.id
        assert event.action == "MANAGE_ROLES"
        assert event.resource == "/api/team/role"
        assert event.project_id == employee.project_id


class TestRolePermissions:

    def test_roles_only_use_defined_codes(self):
        defined = {perm[0] for perm in PERMISSION_DEFINITIONS}
        for role, codes in DEFAULT_ROLE_PERMISSIONS.items():
            assert set(codes) <= defined, role

    def test_roles_are_nested(self):
        employee = set(DEFAULT_ROLE_PERMISSIONS["EMPLOYEE"])
        manager = set(DEFAULT_ROLE_PERMISSIONS["MANAGER"])
        admin = set(DEFAULT_ROLE_PERMISSIONS["ADMIN"])
        assert employee < manager < admin

    def test_admin_has_every_permission(self):
        assert set(DEFAULT_ROLE_PERMISSIONS["ADMIN"]) == {perm[0] for perm in PERMISSION_DEFINITIONS}
