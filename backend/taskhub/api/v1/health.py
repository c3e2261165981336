"""Health check endpoints."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from taskhub.api.deps import json_response
from taskhub.core.extensions import db, redis_status

bp = Blueprint("health", __name__)
log = logging.getLogger(__name__)


@bp.get("/health")
def healthcheck():
    """Return application and database health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        log.exception("healthcheck.db_error")
        db_status = "fail"
    payload = {
        "status": "ok",
        "db": db_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    cache_status = redis_status()
    if cache_status is not None:
        payload["redis"] = cache_status
    return json_response(payload)


@bp.get("/health/info")
def info():
    """Return static project metadata."""

    cfg = current_app.config
    return json_response(
        {
            "name": cfg.get("APP_NAME", "TaskHub"),
            "description": cfg.get("APP_DESCRIPTION", "Task management API"),
            "version": cfg.get("APP_VERSION", "dev"),
        }
    )
