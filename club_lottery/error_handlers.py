"""Map exceptions to the JSON error envelope."""

from __future__ import annotations

import logging

from flask import Flask, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from club_lottery.errors import AppError, ConflictError, DuplicateDrawError, ValidationError
from club_lottery.utils.responses import fail

logger = logging.getLogger(__name__)

_LIVE_DRAW_INDEX = "uq_lottery_draws_live_date"


def _respond(exc: AppError):  # type: ignore[no-untyped-def]
    return fail(exc.code, exc.message, exc.status_code, exc.details)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        if exc.status_code >= 500:
            # Provider and delivery failures are operational, not bugs.
            logger.warning("%s %s -> %s: %s", request.method, request.path, exc.code, exc.message)
        return _respond(exc)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        return _respond(ValidationError(message="Invalid request body", details=exc.messages))

    @app.errorhandler(IntegrityError)
    def _handle_integrity_error(exc: IntegrityError):
        reason = str(exc.orig) if exc.orig else str(exc)
        # SQLite reports the columns, Postgres the index name.
        if _LIVE_DRAW_INDEX in reason or "lottery_draws.draw_date" in reason:
            logger.warning("Concurrent live draw insert rejected by the database")
            return _respond(DuplicateDrawError(details={"reason": reason}))

        logger.info("Integrity error", exc_info=exc)
        return _respond(ConflictError(details=reason))

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = int(exc.code or 500)
        if status == 404:
            return fail("not_found", f"No route for {request.method} {request.path}", 404)
        if status == 405:
            return fail("method_not_allowed", f"{request.method} is not allowed on {request.path}", 405)

        return fail("http_error", exc.description or "HTTP error", status, details={"name": exc.name})

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.path)
        return fail("internal_error", "Internal server error", 500)
