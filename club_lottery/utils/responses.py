"""JSON envelope shared by every endpoint: ``{success, data, error}``."""

from __future__ import annotations

from typing import Any

from flask import Response, jsonify

ResponseTuple = tuple[Response, int]


def ok(data: Any, status_code: int = 200) -> ResponseTuple:
    return jsonify({"success": True, "data": data, "error": None}), status_code


def fail(code: str, message: str, status_code: int, details: Any | None = None) -> ResponseTuple:
    """Error envelope; ``code`` is the machine-readable error identifier."""

    error = {"code": code, "message": message, "details": details}
    return jsonify({"success": False, "data": None, "error": error}), status_code
