# Overview: Flask API routes for checkout and transaction history.

from flask import Blueprint, current_app, request

from ..responses import api_error, internal_error, success
from ..services import sales_service
from ..validation import ApiError, ValidationError, parse_int

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
def create_transaction_route():
    """
    Checkout.

    Body: {items: [{product_id, quantity, unit_price}], payment_method,
           amount_paid?, tax_amount?, discount_amount?, customer_name?,
           customer_phone?, momo_phone?, momo_transaction_id?, notes?, created_by?}

    Returns 201 with the committed transaction, or an error with nothing
    written: 400 (invalid cart), 404 PRODUCT_NOT_FOUND, 409 INSUFFICIENT_STOCK.
    """
    payload = request.get_json(silent=True)

    try:
        req = sales_service.parse_checkout(payload)
        tx = sales_service.checkout(req)
        return success(
            tx.to_dict(),
            201,
            transactionId=tx.id,
            transactionNumber=tx.transaction_number,
        )
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return internal_error()


@transactions_bp.get("")
def list_transactions_route():
    """
    Query params: page, limit, startDate, endDate, status, cashier_id
    """
    try:
        rows, pagination = sales_service.list_transactions(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            status=request.args.get("status"),
            cashier_id=request.args.get("cashier_id", type=int),
        )
        return success([tx.to_dict() for tx in rows], pagination=pagination)
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to list transactions")
        return internal_error()


@transactions_bp.get("/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    try:
        return success(sales_service.get_transaction(transaction_id).to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to get transaction")
        return internal_error()


@transactions_bp.get("/<int:transaction_id>/receipt")
def receipt_route(transaction_id: int):
    try:
        return success(sales_service.build_receipt(transaction_id))
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to build receipt")
        return internal_error()


@transactions_bp.patch("/<int:transaction_id>/status")
def update_status_route(transaction_id: int):
    """
    Body: {status, user_id?}. Cancelling or refunding a pending or
    completed sale returns its items to stock.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        status = payload.get("status")
        if not status:
            raise ValidationError("status is required")
        user_id = payload.get("user_id")
        tx = sales_service.update_status(
            transaction_id=transaction_id,
            status=str(status).strip().lower(),
            user_id=None if user_id is None else parse_int(user_id, "user_id"),
        )
        return success(tx.to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to update transaction status")
        return internal_error()
