# Overview: Shared request parsing and error rendering for API routes.

from __future__ import annotations

from flask import current_app, jsonify, request

from ..extensions import db
from ..time_utils import parse_iso_datetime
from ..validation import ServiceError, ValidationError, parse_enum

MAX_PAGE_SIZE = 500


def json_error(exc: Exception):
    """Render a failed unit of work; the session is always rolled back."""
    db.session.rollback()
    if isinstance(exc, ServiceError):
        return jsonify(exc.to_dict()), exc.status_code
    return jsonify({"error": "Internal server error", "kind": "internal"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def optional_json_body() -> dict:
    """Like json_body, but a missing or empty body reads as {}."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def date_arg(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"Invalid {name}")


def enum_arg(enum_cls, name: str):
    value = request.args.get(name)
    if not value:
        return None
    return parse_enum(enum_cls, value, name)


def page_args(default_limit: int = 100) -> tuple[int, int]:
    limit = request.args.get("limit", default_limit, type=int)
    offset = request.args.get("offset", 0, type=int)
    if limit < 1 or offset < 0:
        raise ValidationError("limit must be >= 1 and offset >= 0")
    return min(limit, MAX_PAGE_SIZE), offset
