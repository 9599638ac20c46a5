"""
Tenant isolation tests.

Every operation that names another user by id must stay inside the caller's
project: users of other projects behave as if they do not exist, and the
attempt is recorded as CROSS_PROJECT_ACCESS_DENIED.
"""

from datetime import datetime

import pytest

from teamclock.extensions import db
from teamclock.models import SecurityEvent, User
from teamclock.services.project_service import TenantAccessError, require_user_in_project


class TestRequireUserInProject:

    def test_same_project(self, admin, employee, project_a):
        assert require_user_in_project(employee.id, project_a.id).id == employee.id

    def test_other_project_raises_and_logs(self, admin, outsider, project_a):
        with pytest.raises(TenantAccessError, match="User not found"):
            require_user_in_project(outsider.id, project_a.id, actor_id=admin.id)

        event = db.session.query(SecurityEvent).filter_by(event_type="CROSS_PROJECT_ACCESS_DENIED").one()
        assert event.user_id == admin.id


class TestCrossProjectApi:

    def test_members_exclude_other_project(self, client, outsider, admin_headers):
        members = client.get("/api/team/members", headers=admin_headers).json["members"]
        assert outsider.id not in {m["id"] for m in members}

    def test_cannot_assign_manager_across_projects(self, client, outsider, manager, admin_headers):
        resp = client.patch("/api/team/assign-manager", json={
            "employee_id": outsider.id,
            "manager_id": manager.id,
        }, headers=admin_headers)
        assert resp.status_code == 404

        resp = client.patch("/api/team/assign-manager", json={
            "employee_id": manager.id,
            "manager_id": outsider.id,
        }, headers=admin_headers)
        assert resp.status_code == 404

        db.session.expire_all()
        assert db.session.get(User, outsider.id).manager_id is None

    def test_cannot_edit_settings_across_projects(self, client, outsider, admin_headers):
        resp = client.patch("/api/team/work-settings", json={
            "user_id": outsider.id,
            "daily_target": 1,
            "work_days": [],
        }, headers=admin_headers)
        assert resp.status_code == 404

    def test_cannot_change_role_across_projects(self, client, outsider, admin_headers):
        resp = client.patch("/api/team/role", json={"user_id": outsider.id, "role": "EMPLOYEE"}, headers=admin_headers)
        assert resp.status_code == 404

    def test_cannot_touch_entries_across_projects(self, client, outsider, session_factory, admin_headers):
        entry = session_factory(outsider, datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 17))
        assert client.delete(f"/api/time-entries/{entry.id}", headers=admin_headers).status_code == 404

    def test_hierarchy_excludes_other_project(self, client, outsider, admin_headers):
        tree = client.get("/api/team/hierarchy", headers=admin_headers).json["hierarchy"]
        assert outsider.id not in {node["user"]["id"] for node in tree}
