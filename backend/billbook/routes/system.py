# backend/billbook/routes/system.py
"""
Liveness and build info. Neither endpoint needs a bearer token.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db

system_bp = Blueprint("system", __name__)

VERSION = "1.0.0"


def probe_database() -> dict:
    started = time.perf_counter()
    healthy = True
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("Database probe failed")
        db.session.rollback()
        healthy = False
    latency_ms = round((time.perf_counter() - started) * 1000, 2)

    result = {"status": "healthy" if healthy else "unhealthy", "latency_ms": latency_ms}
    if not healthy:
        result["error"] = "Database error"
    return result


@system_bp.get("/health")
def health():
    database = probe_database()
    status = 200 if database["status"] == "healthy" else 503
    return {"status": database["status"], "checks": {"database": database}}, status


@system_bp.get("/api/version")
def version():
    return {"name": "billbook", "version": VERSION}
