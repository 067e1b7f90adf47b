# Overview: Flask API routes for staff administration.

from flask import Blueprint, current_app, request

from ..responses import api_error, internal_error, success
from ..services import staff_service
from ..validation import ApiError, ValidationError

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
def list_staff_route():
    """Query params: page, limit, search, role, status (active|inactive)"""
    try:
        rows, pagination = staff_service.list_staff(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
            search=request.args.get("search"),
            role=request.args.get("role"),
            status=request.args.get("status"),
        )
        return success([u.to_dict() for u in rows], pagination=pagination)
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to list staff")
        return internal_error()


@staff_bp.post("")
def create_staff_route():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        user = staff_service.create_staff(payload)
        return success(user.to_dict(), 201, message="Staff member created")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to create staff member")
        return internal_error()


@staff_bp.get("/stats")
def staff_stats_route():
    try:
        return success(staff_service.staff_stats())
    except Exception:
        current_app.logger.exception("Failed to load staff stats")
        return internal_error()


@staff_bp.get("/<int:user_id>")
def get_staff_route(user_id: int):
    try:
        return success(staff_service.get_staff(user_id).to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to get staff member")
        return internal_error()


@staff_bp.put("/<int:user_id>")
def update_staff_route(user_id: int):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        return success(staff_service.update_staff(user_id, payload).to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to update staff member")
        return internal_error()


@staff_bp.patch("/<int:user_id>/status")
def staff_status_route(user_id: int):
    """Body: {is_active: bool}"""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        return success(staff_service.set_active(user_id, payload.get("is_active")).to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to change staff status")
        return internal_error()


@staff_bp.delete("/<int:user_id>")
def delete_staff_route(user_id: int):
    """Deactivates the account; it is never removed."""
    try:
        user = staff_service.deactivate_staff(user_id)
        return success(user.to_dict(), message="Staff member deactivated")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to deactivate staff member")
        return internal_error()
