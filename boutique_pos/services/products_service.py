# Overview: Product catalog operations, including barcode allocation on create.

"""
Products Service

Product creation draws its barcode from the pre-generated pool. The claim,
the product insert and the used-flag flip share one transaction, so two
concurrent creations can never walk away with the same barcode.

Stock only moves here through restock (row-locked increment) and admin
edits; sales decrement it in sales_service.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Product
from ..models.catalog import BARCODE_USED
from ..pagination import paginate
from ..validation import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    parse_int,
)
from .barcode_service import claim_next_available
from .concurrency import begin_write, is_unique_violation, lock_for_update
from .stock_service import StockChange, record_stock_change


PRODUCT_MUTABLE_FIELDS = {
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


class ProductNotFoundError(NotFoundError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id=None, details: dict | None = None):
        super().__init__("Product not found", details=details or (
            {"product_id": product_id} if product_id is not None else None
        ))


class PriceBelowCostError(BusinessRuleError):
    status_code = 422
    code = "PRICE_BELOW_COST"

    def __init__(self, price: Decimal, cost_price: Decimal):
        super().__init__(
            "Selling price cannot be lower than cost price",
            details={"price": float(price), "cost_price": float(cost_price)},
        )


def check_price_rule(price: Decimal | None, cost_price: Decimal | None) -> None:
    if price is None or cost_price is None:
        return
    if Decimal(price) < Decimal(cost_price):
        raise PriceBelowCostError(Decimal(price), Decimal(cost_price))


def _require_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if db.session.get(Category, category_id) is None:
        raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND",
                            details={"category_id": category_id})


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(
    *,
    page: int | None = None,
    limit: int | None = None,
    search: str | None = None,
    category_id: int | None = None,
    include_inactive: bool = False,
) -> tuple[list[Product], dict]:
    query = db.session.query(Product)

    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if search:
        term = search.strip()
        query = query.filter(or_(
            Product.name.ilike(f"%{term}%"),
            Product.barcode.ilike(f"%{term}%"),
            Product.description.ilike(f"%{term}%"),
        ))

    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(query, page, limit)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def lookup_by_barcode(code: str) -> Product:
    """Scanner lookup: active products only."""
    code = (code or "").strip()
    if not code:
        raise ValidationError("barcode is required")
    product = (
        db.session.query(Product)
        .filter(Product.barcode == code, Product.is_active.is_(True))
        .first()
    )
    if product is None:
        raise ProductNotFoundError(details={"barcode": code})
    return product


def create_product(*, patch: dict, user_id: int | None = None) -> Product:
    """
    Create a product on the next available pooled barcode.

    Validation happens before any write. Then, in one transaction: lock the
    lowest available barcode, insert the product with it, mark it used,
    commit.

    Raises:
        PriceBelowCostError: price < cost_price
        NoBarcodesAvailableError: the pool is empty
        ConflictError (DUPLICATE_BARCODE): the claimed code is already on a product
    """
    enforce_rules_product(patch)
    check_price_rule(patch.get("price"), patch.get("cost_price"))
    _require_category(patch.get("category_id"))

    try:
        begin_write()
        barcode = claim_next_available()

        product = Product(barcode=barcode.barcode)
        apply_product_patch(product, patch)
        db.session.add(product)

        barcode.status = BARCODE_USED
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if not is_unique_violation(e, "barcode"):
            raise
        raise ConflictError(
            "Barcode is already assigned to another product",
            code="DUPLICATE_BARCODE",
        )
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Created product %s on barcode %s", product.id, product.barcode)

    if product.stock_quantity:
        record_stock_change(StockChange(
            product_id=product.id,
            quantity_before=0,
            quantity_after=product.stock_quantity,
            reason="restock",
            user_id=user_id,
            notes="Initial stock",
        ))
    return product


def update_product(*, product_id: int, patch: dict, user_id: int | None = None) -> Product:
    """
    Partial update. The price/cost rule is checked against the merged values,
    so sending only cost_price can still trip it.
    """
    enforce_rules_product(patch)
    if "category_id" in patch:
        _require_category(patch["category_id"])

    try:
        begin_write()
        product = lock_for_update(
            db.session.query(Product).filter(Product.id == product_id)
        ).first()
        if product is None:
            raise ProductNotFoundError(product_id)

        check_price_rule(
            patch.get("price", product.price),
            patch.get("cost_price", product.cost_price),
        )

        before = product.stock_quantity
        apply_product_patch(product, patch)
        after = product.stock_quantity
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if after != before:
        record_stock_change(StockChange(
            product_id=product.id,
            quantity_before=before,
            quantity_after=after,
            reason="adjustment",
            user_id=user_id,
            notes="Manual stock edit",
        ))
    return product


def delete_product(*, product_id: int) -> Product:
    """Soft delete. Past transaction items keep pointing at the row."""
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    product.is_active = False
    db.session.commit()
    return product


def restock_product(
    *,
    product_id: int,
    quantity,
    notes: str | None = None,
    user_id: int | None = None,
) -> Product:
    quantity = parse_int(quantity, "quantity")
    if quantity <= 0:
        raise ValidationError("quantity must be a positive integer")

    try:
        begin_write()
        product = lock_for_update(
            db.session.query(Product).filter(Product.id == product_id)
        ).first()
        if product is None:
            raise ProductNotFoundError(product_id)

        before = product.stock_quantity
        product.stock_quantity = before + quantity
        after = product.stock_quantity
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    record_stock_change(StockChange(
        product_id=product.id,
        quantity_before=before,
        quantity_after=after,
        reason="restock",
        user_id=user_id,
        notes=notes,
    ))
    return product
