# Overview: JSON envelope shared by all route handlers.

from __future__ import annotations

from flask import jsonify

from .validation import ApiError


def success(data=None, status: int = 200, *, pagination: dict | None = None, **extra):
    """{"success": true, "data": ...} plus pagination and any extra top-level keys."""
    body = {"success": True, "data": data}
    if pagination is not None:
        body["pagination"] = pagination
    body.update(extra)
    return jsonify(body), status


def api_error(exc: ApiError):
    return jsonify(exc.to_dict()), exc.status_code


def internal_error():
    return jsonify({"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
