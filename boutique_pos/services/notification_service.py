# Overview: In-app notifications (low stock, sales, system messages).

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Notification, Product
from ..models.inventory import NOTIFICATION_TYPES
from ..validation import ValidationError, NotFoundError


LATEST_LIMIT = 50


def create_notification(
    title: str,
    message: str,
    type: str = "system",
    user_id: int | None = None,
    *,
    commit: bool = True,
) -> Notification:
    if not title or not message:
        raise ValidationError("title and message are required")
    if type not in NOTIFICATION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(NOTIFICATION_TYPES)}")

    note = Notification(
        title=title.strip().upper(),
        message=message.strip(),
        type=type,
        user_id=user_id,
    )
    db.session.add(note)
    if commit:
        db.session.commit()
    return note


def list_notifications(*, unread_only: bool = False) -> list[Notification]:
    query = db.session.query(Notification)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(LATEST_LIMIT).all()


def unread_count() -> int:
    return db.session.query(Notification).filter(Notification.is_read.is_(False)).count()


def mark_read(notification_id: int) -> Notification:
    note = db.session.get(Notification, notification_id)
    if note is None:
        raise NotFoundError("Notification not found", code="NOTIFICATION_NOT_FOUND")
    note.is_read = True
    db.session.commit()
    return note


def mark_all_read() -> int:
    updated = (
        db.session.query(Notification)
        .filter(Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.session.commit()
    return updated


def notify_low_stock(products: list[Product]) -> None:
    """
    Best-effort low-stock alert for each product at or below its minimum.

    Runs after the sale has committed; a failure here is logged and dropped.
    """
    low = [p for p in products if p.is_low_stock]
    if not low:
        return
    try:
        for p in low:
            create_notification(
                "Low stock",
                f"{p.name} ({p.barcode}) has {p.stock_quantity} left "
                f"(minimum {p.min_stock_level}).",
                type="low_stock",
                commit=False,
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.warning(
            "Failed to record low-stock notifications for products %s",
            [p.id for p in low],
            exc_info=True,
        )
