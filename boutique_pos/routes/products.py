# Overview: Flask API routes for products; parses input and returns JSON responses.

"""
Product management routes.

POST /api/products allocates the product's barcode from the pool; clients
never send one. Missing pool stock comes back as 409 NO_BARCODES_AVAILABLE so
the dashboard can prompt for barcode generation.
"""

from flask import Blueprint, current_app, request

from ..models import Product
from ..responses import api_error, internal_error, success
from ..services import products_service, stock_service
from ..validation import ApiError, ModelValidationPolicy, ValidationError, parse_int, validate_payload

PRODUCT_WRITABLE_FIELDS = {
    "name",
    "description",
    "price",
    "cost_price",
    "image_url",
    "category_id",
    "stock_quantity",
    "min_stock_level",
    "is_active",
}

# Read-only fields clients echo back from GET responses
PRODUCT_ECHO_FIELDS = {"id", "barcode", "category", "created_at", "updated_at"}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_WRITABLE_FIELDS,
    required_on_create={"name", "price"},
    ignored_fields=PRODUCT_ECHO_FIELDS,
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_WRITABLE_FIELDS,
    ignored_fields=PRODUCT_ECHO_FIELDS,
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _actor_id(payload: dict):
    """Optional staff id attributed in the stock log."""
    user_id = payload.pop("user_id", None)
    return None if user_id is None else parse_int(user_id, "user_id")


@products_bp.get("")
def list_products():
    """
    List products, newest first.

    Query params: page, limit, search, category_id, include_inactive
    """
    try:
        rows, pagination = products_service.list_products(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
            search=request.args.get("search"),
            category_id=request.args.get("category_id", type=int),
            include_inactive=request.args.get("include_inactive", "false").lower() == "true",
        )
        return success([p.to_dict() for p in rows], pagination=pagination)
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to list products")
        return internal_error()


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        user_id = _actor_id(payload)
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        product = products_service.create_product(patch=patch, user_id=user_id)
        return success(product.to_dict(), 201, message="Product created")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return internal_error()


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return success(products_service.get_product(product_id).to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to get product")
        return internal_error()


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        user_id = _actor_id(payload)
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        product = products_service.update_product(product_id=product_id, patch=patch, user_id=user_id)
        return success(product.to_dict(), message="Product updated")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return internal_error()


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """Soft delete (is_active=false)."""
    try:
        product = products_service.delete_product(product_id=product_id)
        return success({"id": product.id, "is_active": product.is_active}, message="Product deleted")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return internal_error()


@products_bp.post("/<int:product_id>/restock")
def restock_product_route(product_id: int):
    """
    Body: {quantity, notes?, user_id?}
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        product = products_service.restock_product(
            product_id=product_id,
            quantity=payload.get("quantity"),
            notes=payload.get("notes"),
            user_id=_actor_id(payload),
        )
        return success(product.to_dict(), message="Stock updated")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to restock product")
        return internal_error()


@products_bp.get("/<int:product_id>/stock-history")
def stock_history_route(product_id: int):
    try:
        products_service.get_product(product_id)
        limit = min(request.args.get("limit", 50, type=int), 200)
        logs = stock_service.list_product_history(product_id, limit=limit)
        return success([log.to_dict() for log in logs])
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to load stock history")
        return internal_error()
