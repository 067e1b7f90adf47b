# Overview: Flask API routes for inventory monitoring (activity feed, alerts, search).

from flask import Blueprint, current_app, request

from ..responses import api_error, internal_error, success
from ..services import stock_service
from ..validation import ApiError, ValidationError

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


@inventory_bp.get("/inventory/activity")
def inventory_activity_route():
    """Query params: range (day|week|month), limit"""
    try:
        range_name = request.args.get("range", "day")
        if range_name not in stock_service.ACTIVITY_RANGES:
            raise ValidationError("range must be one of: day, week, month")
        limit = min(request.args.get("limit", 50, type=int), 200)
        return success(stock_service.recent_activity(range_name, limit=limit))
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to load inventory activity")
        return internal_error()


@inventory_bp.get("/inventory/search")
def inventory_search_route():
    """Query params: q (at least 2 characters), limit (max 10)"""
    try:
        products = stock_service.search_products(
            request.args.get("q"),
            limit=request.args.get("limit", stock_service.SEARCH_LIMIT, type=int),
        )
        return success([p.to_dict() for p in products])
    except Exception:
        current_app.logger.exception("Failed to search inventory")
        return internal_error()


@inventory_bp.get("/admin/inventory/alerts")
def inventory_alerts_route():
    """Query params: threshold (fraction of min_stock_level, default 0.5)"""
    try:
        threshold = request.args.get("threshold", stock_service.DEFAULT_ALERT_THRESHOLD, type=float)
        data = stock_service.low_stock_alerts(threshold)
        return success(data["alerts"], summary=data["summary"])
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to load inventory alerts")
        return internal_error()
