# Overview: Flask API routes for product categories.

from flask import Blueprint, current_app, request

from ..responses import api_error, internal_error, success
from ..services import category_service
from ..validation import ApiError, ValidationError

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories_route():
    try:
        return success(category_service.list_categories())
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return internal_error()


@categories_bp.post("")
def create_category_route():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        category = category_service.create_category(payload)
        return success({**category.to_dict(), "product_count": 0}, 201)
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to create category")
        return internal_error()


@categories_bp.get("/top")
def top_categories_route():
    """Query params: range (today|week|month), limit"""
    try:
        data = category_service.top_categories(
            range_name=request.args.get("range", "today"),
            limit=request.args.get("limit", category_service.DEFAULT_TOP_LIMIT, type=int),
        )
        return success(data)
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to load top categories")
        return internal_error()


@categories_bp.route("/<int:category_id>", methods=["PATCH", "PUT"])
def update_category_route(category_id: int):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        return success(category_service.update_category(category_id, payload).to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to update category")
        return internal_error()


@categories_bp.delete("/<int:category_id>")
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(category_id)
        return success({"id": category_id}, message="Category deleted")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return internal_error()
