"""Flask glue shared by the feature controllers."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from .datetime_utils import DayWindow, resolve_day_window

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (ValidationError, 400),
)


def current_user_id() -> Optional[int]:
    user_id = session.get("user_id")
    return int(user_id) if user_id is not None else None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Not authenticated"}), 401
        return view(*args, **kwargs)

    return wrapper


def ok(status: int = 200, **data: Any):
    return jsonify({"success": True, **data}), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def to_int(value: Any, name: str, *, required: bool = True) -> Optional[int]:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def day_window_from(data: dict, *, now: Optional[int] = None) -> DayWindow:
    """Business day from ``start_of_day``/``end_of_day`` or ``timezone_offset`` fields."""
    return resolve_day_window(
        start_of_day=to_int(data.get("start_of_day"), "start_of_day", required=False),
        end_of_day=to_int(data.get("end_of_day"), "end_of_day", required=False),
        timezone_offset=to_int(data.get("timezone_offset"), "timezone_offset", required=False),
        now=now,
    )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = 400
        for error_type, code in STATUS_BY_ERROR:
            if isinstance(e, error_type):
                status = code
                break
        return jsonify({"success": False, "message": str(e)}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        message = f"Internal server error: {e}" if app.config.get("DEBUG") else "Internal server error"
        return jsonify({"success": False, "message": message}), 500
