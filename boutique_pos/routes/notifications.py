# Overview: Flask API routes for in-app notifications.

from flask import Blueprint, current_app, request

from ..responses import api_error, internal_error, success
from ..services import notification_service
from ..validation import ApiError, ValidationError, parse_int

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
def list_notifications_route():
    try:
        unread_only = request.args.get("unread", "false").lower() == "true"
        notes = notification_service.list_notifications(unread_only=unread_only)
        return success(
            [n.to_dict() for n in notes],
            unreadCount=notification_service.unread_count(),
        )
    except Exception:
        current_app.logger.exception("Failed to list notifications")
        return internal_error()


@notifications_bp.post("")
def create_notification_route():
    """Body: {title, message, type?, user_id?}"""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        user_id = payload.get("user_id")
        note = notification_service.create_notification(
            str(payload.get("title") or ""),
            str(payload.get("message") or ""),
            type=payload.get("type") or "system",
            user_id=None if user_id is None else parse_int(user_id, "user_id"),
        )
        return success(note.to_dict(), 201)
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to create notification")
        return internal_error()


@notifications_bp.patch("")
def mark_notifications_route():
    """Body: {id} marks one notification read; {markAllAsRead: true} marks all."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        if payload.get("markAllAsRead"):
            updated = notification_service.mark_all_read()
            return success({"updated": updated})
        if payload.get("id") is None:
            raise ValidationError("id or markAllAsRead is required")
        note = notification_service.mark_read(parse_int(payload["id"], "id"))
        return success(note.to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to update notifications")
        return internal_error()
