# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every time entry must be attributable. Uses bcrypt for password hashing
and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
import re
from flask import current_app, has_app_context
from ..extensions import db
from ..models import User, Project, ROLE_EMPLOYEE, ROLES
from teamclock.time_utils import utcnow


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class RegistrationError(ValueError):
    """Raised when a user account cannot be created."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def _bcrypt_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def hash_password(password: str) -> str:
    """Hash password using bcrypt. Password is validated for strength first."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if password matches hash, False otherwise."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    project_id: int | None = None,
    role: str = ROLE_EMPLOYEE,
    daily_target: float | None = None,
    work_days: list[int] | None = None,
) -> User:
    """
    Create a user account.

    Schedule defaults come from DEFAULT_DAILY_TARGET_HOURS / DEFAULT_WORK_DAYS.
    Raises RegistrationError or PasswordValidationError.
    """
    email = normalize_email(email)
    name = (name or "").strip()

    if not name:
        raise RegistrationError("name is required")
    if not EMAIL_RE.match(email):
        raise RegistrationError("A valid email is required")
    if role not in ROLES:
        raise RegistrationError(f"role must be one of {', '.join(ROLES)}")

    if db.session.query(User).filter_by(email=email).first():
        raise RegistrationError("Email is already registered")

    if project_id is not None and not db.session.get(Project, project_id):
        raise RegistrationError("Project not found")

    config = current_app.config if has_app_context() else {}
    if daily_target is None:
        daily_target = config.get("DEFAULT_DAILY_TARGET_HOURS", 8.0)
    if work_days is None:
        work_days = list(config.get("DEFAULT_WORK_DAYS", [0, 1, 2, 3, 4]))

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        project_id=project_id,
        role=role,
        daily_target=daily_target,
        work_days=work_days,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user by email and password.

    Returns User if credentials valid and account (and project) active,
    None otherwise.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()

    if not user or not user.is_active:
        return None

    if not verify_password(password or "", user.password_hash):
        return None

    if user.project_id:
        project = db.session.get(Project, user.project_id)
        if not project or not project.is_active:
            return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def change_password(user_id: int, current_password: str, new_password: str) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise RegistrationError("User not found")
    if not verify_password(current_password or "", user.password_hash):
        raise PasswordValidationError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.session.commit()
    return user
