# backend/billbook/config.py
from __future__ import annotations
import os


def _optional_float(value: str | None, default: float | None) -> float | None:
    if value is None:
        return default
    value = value.strip()
    if not value:
        return None
    return float(value)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/billbook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///billbook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Raw backend errors are only logged in development
    ERROR_DETAIL_LOGGING = os.environ.get(
        "ERROR_DETAIL_LOGGING",
        os.environ.get("FLASK_DEBUG", "0"),
    ).lower() in {"1", "true", "yes", "on"}

    # Bills have historically been taxed at a flat 10% regardless of the
    # account's tax settings. Set BILL_TAX_OVERRIDE_PERCENT="" to follow
    # the account settings instead.
    BILL_TAX_OVERRIDE_PERCENT = _optional_float(os.environ.get("BILL_TAX_OVERRIDE_PERCENT"), 10.0)

    CSV_IMPORT_MAX_ROWS = int(os.environ.get("CSV_IMPORT_MAX_ROWS", "1000"))
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # Lifetime of signed URLs handed out for logos/avatars by the storage client
    SIGNED_URL_TTL_SECONDS = int(os.environ.get("SIGNED_URL_TTL_SECONDS", "3600"))

    # bcrypt cost factor for passwords and PINs
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Uploaded logos/avatars
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024
    AVATAR_MAX_BYTES = int(os.environ.get("AVATAR_MAX_BYTES", str(2 * 1024 * 1024)))

    # Browser origins allowed to call the API (comma-separated)
    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    ]
