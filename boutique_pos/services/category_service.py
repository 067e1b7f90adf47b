# Overview: Category CRUD and best-selling categories.

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..formatting import money, pct_change
from ..models import Category, Product, Transaction, TransactionItem
from ..models.sales import STATUS_COMPLETED
from ..time_utils import resolve_named_range, utcnow
from ..validation import ConflictError, NotFoundError, ValidationError


TOP_RANGES = ("today", "week", "month")
DEFAULT_TOP_LIMIT = 5


def _get(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found", code="CATEGORY_NOT_FOUND")
    return category


def _clean(payload: dict, *, partial: bool) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    patch: dict = {}
    if "name" in payload or not partial:
        name = str(payload.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        if len(name) > 100:
            raise ValidationError("name exceeds max length 100")
        patch["name"] = name
    if "description" in payload:
        description = payload["description"]
        patch["description"] = str(description).strip() if description is not None else None
    if "parent_id" in payload:
        patch["parent_id"] = payload["parent_id"]
    return patch


def _check_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category.id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Category already exists", code="DUPLICATE_CATEGORY")


def list_categories() -> list[dict]:
    """All categories by name, each with its active product count."""
    counts = dict(
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.is_active.is_(True), Product.category_id.isnot(None))
        .group_by(Product.category_id)
        .all()
    )
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [{**c.to_dict(), "product_count": counts.get(c.id, 0)} for c in categories]


def create_category(payload: dict) -> Category:
    patch = _clean(payload, partial=False)
    _check_name(patch["name"])
    if patch.get("parent_id") is not None:
        _get(patch["parent_id"])

    category = Category(**patch)
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category already exists", code="DUPLICATE_CATEGORY")
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = _get(category_id)
    patch = _clean(payload, partial=True)
    if "name" in patch:
        _check_name(patch["name"], exclude_id=category.id)
    if patch.get("parent_id") is not None:
        if patch["parent_id"] == category.id:
            raise ValidationError("A category cannot be its own parent")
        _get(patch["parent_id"])

    for k, v in patch.items():
        setattr(category, k, v)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category already exists", code="DUPLICATE_CATEGORY")
    return category


def delete_category(category_id: int) -> None:
    """Delete a category; its products (and child categories) are detached, not deleted."""
    category = _get(category_id)
    try:
        db.session.query(Product).filter(Product.category_id == category.id).update(
            {Product.category_id: None}, synchronize_session=False
        )
        db.session.query(Category).filter(Category.parent_id == category.id).update(
            {Category.parent_id: None}, synchronize_session=False
        )
        db.session.delete(category)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _category_sales(start, end) -> dict[int, dict]:
    rows = (
        db.session.query(
            Category.id,
            Category.name,
            func.coalesce(func.sum(TransactionItem.total_price), 0).label("revenue"),
            func.coalesce(func.sum(TransactionItem.quantity), 0).label("items_sold"),
            func.count(func.distinct(Transaction.id)).label("transactions"),
        )
        .join(Product, Product.category_id == Category.id)
        .join(TransactionItem, TransactionItem.product_id == Product.id)
        .join(Transaction, Transaction.id == TransactionItem.transaction_id)
        .filter(
            Transaction.status == STATUS_COMPLETED,
            Transaction.created_at >= start,
            Transaction.created_at <= end,
        )
        .group_by(Category.id, Category.name)
        .all()
    )
    return {
        row.id: {
            "name": row.name,
            "revenue": money(row.revenue),
            "items_sold": int(row.items_sold or 0),
            "transactions": int(row.transactions or 0),
        }
        for row in rows
    }


def top_categories(range_name: str = "today", limit: int = DEFAULT_TOP_LIMIT, now=None) -> dict:
    """
    Best-selling categories by revenue over today/week/month, with the
    percentage change against the period of equal length just before it.
    """
    if range_name not in TOP_RANGES:
        raise ValidationError(f"range must be one of: {', '.join(TOP_RANGES)}")
    if limit < 1:
        raise ValidationError("limit must be >= 1")

    now = now or utcnow()
    start, end = resolve_named_range(range_name, now)
    prev_start, prev_end = start - (end - start), start

    current = _category_sales(start, end)
    previous = _category_sales(prev_start, prev_end)
    total_revenue = sum(c["revenue"] for c in current.values())

    ranked = sorted(current.items(), key=lambda kv: (-kv[1]["revenue"], kv[1]["name"]))[:limit]
    categories = [
        {
            "id": category_id,
            "name": stats["name"],
            "revenue": stats["revenue"],
            "items_sold": stats["items_sold"],
            "transactions": stats["transactions"],
            "share": round(stats["revenue"] / total_revenue * 100, 2) if total_revenue else 0.0,
            "change": pct_change(stats["revenue"], previous.get(category_id, {}).get("revenue", 0.0)),
        }
        for category_id, stats in ranked
    ]
    return {"range": range_name, "categories": categories, "total_revenue": round(total_revenue, 2)}
