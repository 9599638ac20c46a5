"""
Pytest fixtures for teamclock backend tests.

Provides test database setup, project (tenant) fixtures, users for each
role and auth-header helpers.
"""

from datetime import datetime

import pytest
from teamclock import create_app
from teamclock.extensions import db
from teamclock.models import Project, User, WorkSession, WorkBreak, ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE
from teamclock.services.auth_service import create_user


DEFAULT_PASSWORD = "Password123!"
MON_FRI = [1, 2, 3, 4, 5]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_project(session, name: str, join_code: str, timezone: str = "UTC") -> Project:
    project = Project(name=name, join_code=join_code, timezone=timezone, is_active=True)
    session.add(project)
    session.commit()
    return project


def make_user(project, name: str, role: str, manager=None, **kwargs) -> User:
    user = create_user(
        name=name,
        email=f"{name.lower()}@{(project.join_code if project else 'nowhere').lower()}.test",
        password=DEFAULT_PASSWORD,
        project_id=project.id if project else None,
        role=role,
        daily_target=kwargs.pop("daily_target", 8.0),
        work_days=kwargs.pop("work_days", MON_FRI),
    )
    if manager is not None:
        user.manager_id = manager.id
        db.session.commit()
    return user


def add_session(user, start: datetime, end: datetime | None, breaks=(), description=None, is_manual=False) -> WorkSession:
    """Insert a work session (UTC-naive times) with optional (start, end) breaks."""
    session = WorkSession(
        user_id=user.id,
        project_id=user.project_id,
        start_at=start,
        end_at=end,
        description=description,
        is_manual=is_manual,
    )
    for brk_start, brk_end in breaks:
        session.breaks.append(WorkBreak(start_at=brk_start, end_at=brk_end))
    db.session.add(session)
    db.session.commit()
    return session


@pytest.fixture(scope='function')
def project_a(db_session):
    """Project A (first tenant)."""
    return make_project(db_session, "Project A - Acme", "ACMEAAAA")


@pytest.fixture(scope='function')
def project_b(db_session):
    """Project B (second tenant)."""
    return make_project(db_session, "Project B - Beta", "BETABBBB")


@pytest.fixture(scope='function')
def admin(project_a):
    return make_user(project_a, "Alice", ROLE_ADMIN)


@pytest.fixture(scope='function')
def manager(project_a, admin):
    return make_user(project_a, "Mona", ROLE_MANAGER, manager=admin)


@pytest.fixture(scope='function')
def employee(project_a, manager):
    return make_user(project_a, "Eve", ROLE_EMPLOYEE, manager=manager)


@pytest.fixture(scope='function')
def other_employee(project_a):
    """Employee in project A outside Mona's reporting chain."""
    return make_user(project_a, "Oscar", ROLE_EMPLOYEE)


@pytest.fixture(scope='function')
def outsider(project_b):
    """ADMIN of project B."""
    return make_user(project_b, "Bob", ROLE_ADMIN)


def get_auth_token(client, email: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(client, user) -> dict:
    return auth_headers(get_auth_token(client, user.email))


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return headers_for(client, admin)


@pytest.fixture(scope='function')
def manager_headers(client, manager):
    return headers_for(client, manager)


@pytest.fixture(scope='function')
def employee_headers(client, employee):
    return headers_for(client, employee)


@pytest.fixture(scope='function')
def outsider_headers(client, outsider):
    return headers_for(client, outsider)


@pytest.fixture(scope='function')
def user_factory(db_session):
    """make_user(project, name, role, manager=None, **schedule)"""
    return make_user


@pytest.fixture(scope='function')
def session_factory(db_session):
    """add_session(user, start, end, breaks=(), ...)"""
    return add_session


@pytest.fixture(scope='function')
def login(client):
    """login(user) -> Authorization headers"""
    return lambda user: headers_for(client, user)
