"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sessionkeeper.api.deps import json_response, timing
from sessionkeeper.core.extensions import db, get_redis

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and lock-backend health."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    locks = "redis" if get_redis() is not None else "local"
    version = current_app.config.get("APP_VERSION", "dev")
    payload = {"status": "ok", "db": db_status, "locks": locks, "version": version}
    return json_response(payload)
