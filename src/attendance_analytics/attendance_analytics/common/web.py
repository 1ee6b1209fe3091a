"""Helpers shared by the Flask controllers."""

from __future__ import annotations

from functools import wraps

from flask import jsonify, session

from ..config.logging import get_logger
from ..core.exceptions import DomainError, StoreError

logger = get_logger(__name__)

HTTP_STATUS_BY_CODE = {
    "validation": 400,
    "invalid-range": 400,
    "forbidden": 403,
    "not-found": 404,
    "duplicate": 409,
    "window-not-open": 422,
    "window-closed": 422,
    "activity-cancelled": 422,
    "leave-too-late": 422,
    "already-decided": 409,
    "timeout": 504,
}

GENERIC_FAILURE_MESSAGE = "internal error, please try again later"


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "unauthenticated", "message": "please sign in"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def error_response(exc: Exception):
    if isinstance(exc, DomainError):
        status = HTTP_STATUS_BY_CODE.get(exc.code, 400)
        return jsonify({"success": False, "error": exc.code, "message": str(exc)}), status

    if isinstance(exc, StoreError):
        logger.error("store failure surfaced to client: %s", exc)
        return jsonify({"success": False, "error": StoreError.code, "message": GENERIC_FAILURE_MESSAGE}), 500

    logger.exception("unexpected error", exc_info=exc)
    return jsonify({"success": False, "error": "internal", "message": GENERIC_FAILURE_MESSAGE}), 500
