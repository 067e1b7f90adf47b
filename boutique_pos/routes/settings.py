# Overview: Flask API routes for shop settings.

from flask import Blueprint, current_app, request

from ..responses import api_error, internal_error, success
from ..services import settings_service
from ..validation import ApiError

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def get_settings_route():
    try:
        return success(settings_service.get_settings())
    except Exception:
        current_app.logger.exception("Failed to load settings")
        return internal_error()


@settings_bp.route("", methods=["POST", "PUT"])
def update_settings_route():
    """Body: {key: value, ...}; unknown keys are stored as-is."""
    payload = request.get_json(silent=True)

    try:
        return success(settings_service.update_settings(payload))
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return internal_error()
