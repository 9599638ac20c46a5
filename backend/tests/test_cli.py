"""Flask CLI command tests."""

from datetime import datetime

from teamclock.extensions import db
from teamclock.models import Project, User


def test_users_create_and_project_create(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create", "--name", "Cleo", "--email", "cleo@example.test", "--password", "Password123!",
    ])
    assert "PASS Created user" in result.output

    result = runner.invoke(args=[
        "projects", "create", "--name", "Night Shift", "--owner-email", "cleo@example.test", "--timezone", "UTC",
    ])
    assert "PASS Created project" in result.output

    project = db.session.query(Project).filter_by(name="Night Shift").one()
    owner = db.session.query(User).filter_by(email="cleo@example.test").one()
    assert owner.project_id == project.id
    assert owner.role == "ADMIN"

    result = runner.invoke(args=["projects", "list"])
    assert project.join_code in result.output


def test_users_create_rejects_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "users", "create", "--name", "Weak", "--email", "weak@example.test", "--password", "weak",
    ])
    assert "FAIL Password validation failed" in result.output


def test_perms_list_for_role(app):
    result = app.test_cli_runner().invoke(args=["perms", "list", "--role", "EMPLOYEE"])
    assert "TRACK_TIME" in result.output
    assert "MANAGE_ROLES" not in result.output


def test_reports_balance(app, employee, session_factory):
    session_factory(employee, datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 17))
    result = app.test_cli_runner().invoke(args=[
        "reports", "balance", "--email", employee.email, "--start", "2024-01-01", "--end", "2024-01-02",
    ])
    assert "2024-01-01" in result.output
    assert "Monday" in result.output
    assert "-8.00" in result.output
