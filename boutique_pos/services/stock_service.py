# Overview: Stock audit trail (StockLog), activity feed and low-stock alerts.

"""
Stock Service

StockLog rows are an audit trail written next to the stock mutation they
describe. They are written after the mutation commits and are best-effort:
a failed audit write is logged at warning level and never undoes the
mutation itself.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Product, StockLog, User
from ..models.inventory import STOCK_REASONS
from ..time_utils import resolve_named_range, to_utc_z
from ..validation import ValidationError


DEFAULT_ALERT_THRESHOLD = 0.5
SEARCH_MIN_CHARS = 2
SEARCH_LIMIT = 10

ACTIVITY_RANGES = {"day": "today", "week": "week", "month": "month"}


@dataclass(frozen=True)
class StockChange:
    product_id: int
    quantity_before: int
    quantity_after: int
    reason: str
    user_id: int | None = None
    notes: str | None = None

    @property
    def change_amount(self) -> int:
        return self.quantity_after - self.quantity_before


def record_stock_changes(changes: list[StockChange]) -> bool:
    """
    Append StockLog rows for already-committed stock mutations.

    Returns False (after logging) when the audit write fails.
    """
    if not changes:
        return True
    try:
        for change in changes:
            if change.reason not in STOCK_REASONS:
                raise ValueError(f"Unknown stock reason: {change.reason}")
            db.session.add(StockLog(
                product_id=change.product_id,
                user_id=change.user_id,
                change_amount=change.change_amount,
                quantity_before=change.quantity_before,
                quantity_after=change.quantity_after,
                reason=change.reason,
                notes=change.notes,
            ))
        db.session.commit()
        return True
    except Exception:
        db.session.rollback()
        current_app.logger.warning(
            "Failed to write stock log for products %s",
            [c.product_id for c in changes],
            exc_info=True,
        )
        return False


def record_stock_change(change: StockChange) -> bool:
    return record_stock_changes([change])


def list_product_history(product_id: int, limit: int = 50) -> list[StockLog]:
    return (
        db.session.query(StockLog)
        .filter(StockLog.product_id == product_id)
        .order_by(StockLog.created_at.desc(), StockLog.id.desc())
        .limit(limit)
        .all()
    )


def recent_activity(range_name: str = "day", limit: int = 50) -> list[dict]:
    """StockLog feed for the dashboard: newest first, with product and user names."""
    start, end = resolve_named_range(ACTIVITY_RANGES.get(range_name, "today"))

    rows = (
        db.session.query(StockLog, Product.name, Product.barcode, User.full_name)
        .join(Product, Product.id == StockLog.product_id)
        .outerjoin(User, User.id == StockLog.user_id)
        .filter(StockLog.created_at >= start, StockLog.created_at <= end)
        .order_by(StockLog.created_at.desc(), StockLog.id.desc())
        .limit(limit)
        .all()
    )

    return [
        {
            "id": log.id,
            "product_id": log.product_id,
            "product_name": product_name,
            "barcode": barcode,
            "user_name": user_name or "System",
            "type": "in" if log.change_amount > 0 else "out",
            "quantity": abs(log.change_amount),
            "quantity_before": log.quantity_before,
            "quantity_after": log.quantity_after,
            "reason": log.reason,
            "notes": log.notes,
            "created_at": to_utc_z(log.created_at),
        }
        for log, product_name, barcode, user_name in rows
    ]


def alert_status(stock: int, minimum: int) -> str:
    """critical at <=20% of minimum, low at <=50%, warning otherwise."""
    if minimum <= 0:
        return "critical" if stock <= 0 else "warning"
    ratio = stock / minimum
    if ratio <= 0.2:
        return "critical"
    if ratio <= 0.5:
        return "low"
    return "warning"


def low_stock_alerts(threshold: float = DEFAULT_ALERT_THRESHOLD) -> dict:
    """
    Active products whose stock is at or below min_stock_level * threshold.

    Most urgent first (lowest stock-to-minimum ratio).
    """
    if threshold <= 0:
        raise ValidationError("threshold must be > 0")

    products = (
        db.session.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.stock_quantity <= Product.min_stock_level * threshold,
        )
        .all()
    )

    def _ratio(p: Product) -> float:
        return p.stock_quantity / p.min_stock_level if p.min_stock_level > 0 else 0.0

    alerts = []
    for p in sorted(products, key=lambda p: (_ratio(p), p.name)):
        alerts.append({
            "product_id": p.id,
            "name": p.name,
            "barcode": p.barcode,
            "stock_quantity": p.stock_quantity,
            "min_stock_level": p.min_stock_level,
            "category": p.category.name if p.category else None,
            "status": alert_status(p.stock_quantity, p.min_stock_level),
        })

    summary = {"critical": 0, "low": 0, "warning": 0}
    for a in alerts:
        summary[a["status"]] += 1

    return {"alerts": alerts, "summary": {**summary, "total": len(alerts)}}


def search_products(q: str | None, limit: int = SEARCH_LIMIT) -> list[Product]:
    """Active products whose name or barcode contains q (needs at least 2 characters)."""
    term = (q or "").strip()
    if len(term) < SEARCH_MIN_CHARS:
        return []
    return (
        db.session.query(Product)
        .filter(
            Product.is_active.is_(True),
            or_(Product.name.ilike(f"%{term}%"), Product.barcode.ilike(f"%{term}%")),
        )
        .order_by(Product.name.asc())
        .limit(min(limit, SEARCH_LIMIT))
        .all()
    )
