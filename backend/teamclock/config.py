# backend/teamclock/config.py
from __future__ import annotations
import os


def _origins(value: str | None) -> set[str]:
    if not value:
        return {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
    return {o.strip() for o in value.split(",") if o.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/teamclock.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///teamclock.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Timezone used for day bucketing when a project has none set
    DEFAULT_TIMEZONE = os.environ.get("TEAMCLOCK_TIMEZONE", "UTC")

    # Schedule defaults for newly registered users
    DEFAULT_DAILY_TARGET_HOURS = float(os.environ.get("TEAMCLOCK_DAILY_TARGET", "8.0"))
    DEFAULT_WORK_DAYS = [0, 1, 2, 3, 4]  # 0=Sunday .. 6=Saturday

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = _origins(os.environ.get("CORS_ALLOWED_ORIGINS"))
