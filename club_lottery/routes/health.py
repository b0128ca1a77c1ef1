"""Health check routes."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from club_lottery.db import get_session
from club_lottery.utils.responses import ok

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Report database reachability and which external providers are configured.

    A missing provider key is not a failure: draws then fail fast with
    ``provider_unavailable`` and emails are logged instead of sent.
    """

    database = "ok"
    try:
        get_session().execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        database = "unavailable"

    return ok(
        {
            "status": "ok" if database == "ok" else "degraded",
            "database": database,
            "randomnessConfigured": bool(current_app.config.get("RANDOM_ORG_API_KEY")),
            "emailConfigured": bool(current_app.config.get("RESEND_API_KEY")),
        }
    )
