# Overview: Checkout (transaction creation) and the transaction read side.

"""
Sales Service - checkout

A checkout is all-or-nothing: the transaction header, one item per cart
line and every stock decrement commit together, or the database is left
exactly as it was. Each product row is locked before its stock is checked,
and lines are applied in cart order, so two lines for the same product see
the stock left by the earlier one.

The StockLog audit rows and low-stock notifications are written after the
commit and are best-effort.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Transaction, TransactionItem, User
from ..models.sales import (
    PAYMENT_METHODS,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_PENDING,
    STATUS_REFUNDED,
    TRANSACTION_STATUSES,
)
from ..pagination import paginate
from ..time_utils import end_of_day, parse_iso_datetime, start_of_day, utcnow
from ..validation import (
    CENTS,
    MAX_MONEY,
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_int,
    parse_money,
)
from .concurrency import begin_write, is_unique_violation, lock_for_update
from .notification_service import notify_low_stock
from .products_service import ProductNotFoundError
from .stock_service import StockChange, record_stock_changes


ZERO = Decimal("0.00")

# Allowed status moves after checkout
STATUS_TRANSITIONS = {
    STATUS_PENDING: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: {STATUS_REFUNDED, STATUS_CANCELLED},
    STATUS_CANCELLED: set(),
    STATUS_REFUNDED: set(),
}


class InsufficientStockError(BusinessRuleError):
    status_code = 409
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product: Product, requested: int):
        super().__init__(
            f"Insufficient stock for {product.name}",
            details={
                "product_id": product.id,
                "product_name": product.name,
                "requested_quantity": requested,
                "available_quantity": product.stock_quantity,
            },
        )


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal = ZERO

    @property
    def total_price(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENTS)


@dataclass(frozen=True)
class CheckoutRequest:
    lines: list[CartLine]
    payment_method: str
    tax_amount: Decimal
    discount_amount: Decimal
    amount_paid: Decimal | None
    customer_name: str | None = None
    customer_phone: str | None = None
    momo_phone: str | None = None
    momo_transaction_id: str | None = None
    notes: str | None = None
    created_by: int | None = None
    status: str = STATUS_COMPLETED


def _optional_str(payload: dict, key: str, max_len: int | None = None) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if max_len and len(value) > max_len:
        raise ValidationError(f"{key} exceeds max length {max_len}")
    return value


def parse_checkout(payload: dict) -> CheckoutRequest:
    """
    Validate a checkout payload before anything touches the database.

    Accepts `items` (or `cart`) as the line list; each line needs product_id,
    quantity and unit_price (`price` is accepted as an alias).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_lines = payload.get("items", payload.get("cart"))
    if not raw_lines:
        raise ValidationError("Cart is empty", code="EMPTY_CART")
    if not isinstance(raw_lines, list):
        raise ValidationError("items must be a list")

    lines: list[CartLine] = []
    for i, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{i}] must be an object")
        if raw.get("product_id") is None:
            raise ValidationError(f"items[{i}].product_id is required")
        product_id = parse_int(raw["product_id"], f"items[{i}].product_id")

        quantity = parse_int(raw.get("quantity"), f"items[{i}].quantity")
        if quantity <= 0:
            raise ValidationError(f"items[{i}].quantity must be a positive integer")

        price = raw.get("unit_price", raw.get("price"))
        if price is None:
            raise ValidationError(f"items[{i}].unit_price is required")
        unit_price = parse_money(price, f"items[{i}].unit_price")

        discount = ZERO
        if raw.get("discount_amount") is not None:
            discount = parse_money(raw["discount_amount"], f"items[{i}].discount_amount")

        lines.append(CartLine(product_id, quantity, unit_price, discount))

    payment_method = str(payload.get("payment_method") or "cash").strip().lower()
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    status = str(payload.get("status") or STATUS_COMPLETED).strip().lower()
    if status not in (STATUS_PENDING, STATUS_COMPLETED):
        raise ValidationError("status must be pending or completed")

    def _money(key):
        value = payload.get(key)
        return ZERO if value is None else parse_money(value, key)

    amount_paid = payload.get("amount_paid")
    created_by = payload.get("created_by")

    return CheckoutRequest(
        lines=lines,
        payment_method=payment_method,
        tax_amount=_money("tax_amount"),
        discount_amount=_money("discount_amount"),
        amount_paid=None if amount_paid is None else parse_money(amount_paid, "amount_paid"),
        customer_name=_optional_str(payload, "customer_name", 200),
        customer_phone=_optional_str(payload, "customer_phone", 20),
        momo_phone=_optional_str(payload, "momo_phone", 20),
        momo_transaction_id=_optional_str(payload, "momo_transaction_id", 100),
        notes=_optional_str(payload, "notes"),
        created_by=None if created_by is None else parse_int(created_by, "created_by"),
        status=status,
    )


def compute_totals(req: CheckoutRequest) -> dict:
    """
    Server-side totals; whatever totals the client sent are ignored.

    Every stored amount must fit Numeric(10, 2), so an oversized line,
    subtotal or total is rejected here, before anything is written.
    """
    for i, line in enumerate(req.lines):
        if line.total_price > MAX_MONEY:
            raise ValidationError(f"items[{i}] total cannot exceed {MAX_MONEY:,}",
                                  code="AMOUNT_TOO_LARGE")
    subtotal = sum((line.total_price for line in req.lines), ZERO)
    if subtotal > MAX_MONEY:
        raise ValidationError(f"subtotal cannot exceed {MAX_MONEY:,}", code="AMOUNT_TOO_LARGE")
    total = max(subtotal + req.tax_amount - req.discount_amount, ZERO)
    if total > MAX_MONEY:
        raise ValidationError(f"total cannot exceed {MAX_MONEY:,}", code="AMOUNT_TOO_LARGE")
    paid = total if req.amount_paid is None else req.amount_paid
    change = max(paid - total, ZERO)
    return {
        "subtotal": subtotal.quantize(CENTS),
        "tax_amount": req.tax_amount,
        "discount_amount": req.discount_amount,
        "total_amount": total.quantize(CENTS),
        "amount_paid": paid,
        "change_amount": change.quantize(CENTS),
    }


def generate_transaction_number(now=None) -> str:
    """TX-YYYYMMDD-XXXX with 4 random uppercase hex characters."""
    now = now or utcnow()
    return f"TX-{now:%Y%m%d}-{secrets.token_hex(2).upper()}"


def checkout(req: CheckoutRequest) -> Transaction:
    """
    Create one transaction, its items and the stock decrements atomically.

    Raises:
        ValidationError (AMOUNT_TOO_LARGE): a total does not fit Numeric(10, 2)
        ProductNotFoundError: a line names a missing or inactive product
        InsufficientStockError: a line asks for more than is in stock
        ConflictError (DUPLICATE_TRANSACTION_NUMBER): number collision
    Nothing is written when any of these is raised.
    """
    if not req.lines:
        raise ValidationError("Cart is empty", code="EMPTY_CART")
    if req.created_by is not None and db.session.get(User, req.created_by) is None:
        raise NotFoundError("Staff member not found", code="STAFF_NOT_FOUND",
                            details={"created_by": req.created_by})

    totals = compute_totals(req)
    changes: list[StockChange] = []
    touched: dict[int, Product] = {}

    try:
        begin_write()

        tx = Transaction(
            transaction_number=generate_transaction_number(),
            customer_name=req.customer_name,
            customer_phone=req.customer_phone,
            payment_method=req.payment_method,
            momo_phone=req.momo_phone,
            momo_transaction_id=req.momo_transaction_id,
            status=req.status,
            notes=req.notes,
            created_by=req.created_by,
            **totals,
        )
        db.session.add(tx)
        db.session.flush()

        for line in req.lines:
            product = lock_for_update(
                db.session.query(Product).filter(Product.id == line.product_id)
            ).first()
            if product is None or not product.is_active:
                raise ProductNotFoundError(line.product_id)
            if product.stock_quantity < line.quantity:
                raise InsufficientStockError(product, line.quantity)

            tx.items.append(TransactionItem(
                product_id=product.id,
                product_name=product.name,
                barcode=product.barcode,
                product_image=product.image_url,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total_price,
                discount_amount=line.discount_amount,
            ))

            before = product.stock_quantity
            product.stock_quantity = before - line.quantity
            db.session.flush()

            changes.append(StockChange(
                product_id=product.id,
                quantity_before=before,
                quantity_after=product.stock_quantity,
                reason="sale",
                user_id=req.created_by,
                notes=tx.transaction_number,
            ))
            touched[product.id] = product

        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if not is_unique_violation(e, "transaction_number"):
            raise
        raise ConflictError(
            "Transaction number collision, please retry",
            code="DUPLICATE_TRANSACTION_NUMBER",
        )
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Checkout %s: %d lines, total %s (%s)",
        tx.transaction_number, len(req.lines), tx.total_amount, tx.payment_method,
    )

    record_stock_changes(changes)
    notify_low_stock(list(touched.values()))
    return tx


def list_transactions(
    *,
    page: int | None = None,
    limit: int | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    status: str | None = None,
    cashier_id: int | None = None,
) -> tuple[list[Transaction], dict]:
    query = db.session.query(Transaction)

    try:
        start = parse_iso_datetime(start_date)
        end = parse_iso_datetime(end_date)
    except ValueError:
        raise ValidationError("startDate and endDate must be ISO-8601 dates")
    if start is not None:
        query = query.filter(Transaction.created_at >= start_of_day(start))
    if end is not None:
        query = query.filter(Transaction.created_at <= end_of_day(end))

    if status and status != "all":
        if status not in TRANSACTION_STATUSES:
            raise ValidationError(f"status must be one of: all, {', '.join(TRANSACTION_STATUSES)}")
        query = query.filter(Transaction.status == status)
    if cashier_id is not None:
        query = query.filter(Transaction.created_by == cashier_id)

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return paginate(query, page, limit)


def get_transaction(transaction_id: int) -> Transaction:
    tx = db.session.get(Transaction, transaction_id)
    if tx is None:
        raise NotFoundError("Transaction not found", code="TRANSACTION_NOT_FOUND")
    return tx


def build_receipt(transaction_id: int) -> dict:
    from .settings_service import get_settings

    tx = get_transaction(transaction_id)
    settings = get_settings()
    return {
        "shop": {
            "name": settings["shopName"],
            "currency": settings["currency"],
            "footer": settings["receiptFooter"],
        },
        "transaction": tx.to_dict(),
        "item_count": sum(item.quantity for item in tx.items),
    }


def update_status(*, transaction_id: int, status: str, user_id: int | None = None) -> Transaction:
    """
    Move a transaction along its status lifecycle.

    Stock leaves the shelf at checkout for pending and completed sales alike,
    so cancelling or refunding either puts its items back (row-locked
    increments, StockLog reason `return`).
    """
    if status not in TRANSACTION_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(TRANSACTION_STATUSES)}")

    changes: list[StockChange] = []
    try:
        begin_write()
        tx = lock_for_update(
            db.session.query(Transaction).filter(Transaction.id == transaction_id)
        ).first()
        if tx is None:
            raise NotFoundError("Transaction not found", code="TRANSACTION_NOT_FOUND")
        if status not in STATUS_TRANSITIONS[tx.status]:
            raise BusinessRuleError(
                f"Cannot change status from {tx.status} to {status}",
                code="INVALID_STATUS_TRANSITION",
            )

        if status in (STATUS_CANCELLED, STATUS_REFUNDED):
            for item in tx.items:
                product = lock_for_update(
                    db.session.query(Product).filter(Product.id == item.product_id)
                ).first()
                if product is None:
                    continue
                before = product.stock_quantity
                product.stock_quantity = before + item.quantity
                db.session.flush()
                changes.append(StockChange(
                    product_id=product.id,
                    quantity_before=before,
                    quantity_after=product.stock_quantity,
                    reason="return",
                    user_id=user_id,
                    notes=f"{tx.transaction_number} {status}",
                ))

        tx.status = status
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    record_stock_changes(changes)
    return tx
