# backend/meatbook/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/meatbook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///meatbook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Record store backing the summary engine; only "sqlalchemy" is accepted
    RECORD_STORE = os.environ.get("MEATBOOK_RECORD_STORE", "sqlalchemy")

    # Reject sales that would take the day's sold kg above purchased kg
    ALLOW_OVERSELL = _env_flag("MEATBOOK_ALLOW_OVERSELL")

    MAX_REPORT_RANGE_DAYS = int(os.environ.get("MEATBOOK_MAX_REPORT_RANGE_DAYS", "366"))

    API_TOKEN_TTL_HOURS = int(os.environ.get("MEATBOOK_API_TOKEN_TTL_HOURS", "24"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
