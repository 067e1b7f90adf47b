# Overview: Sales analytics for the dashboards: dashboard cards, admin statistics,
# cashier statistics and the customers aggregate.

"""
Reporting Service

Only `completed` transactions count toward revenue. Aggregation is done in
SQL, grouped by day or hour buckets; the bucket expression depends on the
database dialect (strftime on SQLite, to_char on PostgreSQL).
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..formatting import money, pct_change
from ..models import Category, Product, Transaction, TransactionItem
from ..models.sales import PAYMENT_METHODS, STATUS_COMPLETED
from ..time_utils import resolve_report_range, start_of_day, to_utc_z, utcnow
from ..validation import ValidationError


LOW_STOCK_CARD_THRESHOLD = 10
TOP_CATEGORIES = 5
TOP_PRODUCTS = 10

_BUCKET_FORMATS = {
    "sqlite": {"day": "%Y-%m-%d", "hour": "%H"},
    "postgresql": {"day": "YYYY-MM-DD", "hour": "HH24"},
    "mysql": {"day": "%Y-%m-%d", "hour": "%H"},
}


def _bucket(column, unit: str):
    """Dialect-specific day ('YYYY-MM-DD') or hour ('HH') label for a datetime column."""
    dialect = db.engine.dialect.name
    fmt = _BUCKET_FORMATS.get(dialect, _BUCKET_FORMATS["sqlite"])[unit]
    if dialect == "sqlite":
        return func.strftime(fmt, column)
    if dialect == "postgresql":
        return func.to_char(column, fmt)
    return func.date_format(column, fmt)


def _completed(query, start: datetime, end: datetime):
    return query.filter(
        Transaction.status == STATUS_COMPLETED,
        Transaction.created_at >= start,
        Transaction.created_at <= end,
    )


def report_range(start_date: str | None, end_date: str | None) -> tuple[datetime, datetime]:
    try:
        return resolve_report_range(start_date, end_date)
    except ValueError as e:
        raise ValidationError(f"Invalid date range: {e}")


def previous_period(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """The period of equal length ending just before `start`."""
    length = end - start
    prev_end = start - timedelta(microseconds=1)
    return prev_end - length, prev_end


def _summary(start: datetime, end: datetime) -> dict:
    row = _completed(
        db.session.query(
            func.coalesce(func.sum(Transaction.total_amount), 0).label("revenue"),
            func.count(Transaction.id).label("transactions"),
            func.coalesce(func.sum(Transaction.discount_amount), 0).label("discounts"),
            func.count(func.distinct(Transaction.created_by)).label("active_staff"),
        ),
        start, end,
    ).one()

    items_sold = _completed(
        db.session.query(func.coalesce(func.sum(TransactionItem.quantity), 0))
        .join(Transaction, Transaction.id == TransactionItem.transaction_id),
        start, end,
    ).scalar()

    revenue = money(row.revenue)
    transactions = int(row.transactions or 0)
    return {
        "revenue": revenue,
        "transactions": transactions,
        "avg_order": round(revenue / transactions, 2) if transactions else 0.0,
        "discounts": money(row.discounts),
        "active_staff": int(row.active_staff or 0),
        "items_sold": int(items_sold or 0),
    }


def _hourly(start: datetime, end: datetime, cashier_id: int | None = None) -> list[dict]:
    hour = _bucket(Transaction.created_at, "hour").label("hour")
    query = _completed(
        db.session.query(
            hour,
            func.coalesce(func.sum(Transaction.total_amount), 0).label("revenue"),
            func.count(Transaction.id).label("transactions"),
        ),
        start, end,
    )
    if cashier_id is not None:
        query = query.filter(Transaction.created_by == cashier_id)
    by_hour = {int(r.hour): r for r in query.group_by(hour).all()}

    return [
        {
            "hour": f"{h:02d}:00",
            "revenue": money(by_hour[h].revenue) if h in by_hour else 0.0,
            "transactions": int(by_hour[h].transactions) if h in by_hour else 0,
        }
        for h in range(24)
    ]


def _daily(start: datetime, end: datetime) -> list[dict]:
    day = _bucket(Transaction.created_at, "day").label("day")
    rows = _completed(
        db.session.query(
            day,
            func.coalesce(func.sum(Transaction.total_amount), 0).label("revenue"),
            func.count(Transaction.id).label("transactions"),
        ),
        start, end,
    ).group_by(day).all()
    by_day = {r.day: r for r in rows}

    series = []
    cursor = start_of_day(start)
    while cursor <= end:
        key = cursor.strftime("%Y-%m-%d")
        r = by_day.get(key)
        series.append({
            "date": key,
            "revenue": money(r.revenue) if r else 0.0,
            "transactions": int(r.transactions) if r else 0,
        })
        cursor += timedelta(days=1)
    return series


def _categories(start: datetime, end: datetime, limit: int = TOP_CATEGORIES) -> list[dict]:
    name = func.coalesce(Category.name, "Uncategorized").label("category_name")
    rows = _completed(
        db.session.query(
            name,
            func.coalesce(func.sum(TransactionItem.total_price), 0).label("revenue"),
            func.coalesce(func.sum(TransactionItem.quantity), 0).label("items_sold"),
        )
        .join(Transaction, Transaction.id == TransactionItem.transaction_id)
        .join(Product, Product.id == TransactionItem.product_id)
        .outerjoin(Category, Category.id == Product.category_id),
        start, end,
    ).group_by(name).all()

    total = sum(money(r.revenue) for r in rows)
    ranked = sorted(rows, key=lambda r: (-money(r.revenue), r.category_name))[:limit]
    return [
        {
            "name": r.category_name,
            "revenue": money(r.revenue),
            "items_sold": int(r.items_sold or 0),
            "percentage": round(money(r.revenue) / total * 100, 2) if total else 0.0,
        }
        for r in ranked
    ]


def _payment_methods(start: datetime, end: datetime) -> list[dict]:
    rows = _completed(
        db.session.query(
            Transaction.payment_method,
            func.count(Transaction.id).label("tx_count"),
            func.coalesce(func.sum(Transaction.total_amount), 0).label("revenue"),
        ),
        start, end,
    ).group_by(Transaction.payment_method).all()
    by_method = {r.payment_method: r for r in rows}
    total = sum(money(r.revenue) for r in rows)

    result = []
    for method in PAYMENT_METHODS:
        r = by_method.get(method)
        revenue = money(r.revenue) if r else 0.0
        result.append({
            "method": method,
            "count": int(r.tx_count) if r else 0,
            "revenue": revenue,
            "percentage": round(revenue / total * 100, 2) if total else 0.0,
        })
    return result


def _top_products(start: datetime, end: datetime, limit: int = TOP_PRODUCTS) -> list[dict]:
    quantity = func.coalesce(func.sum(TransactionItem.quantity), 0).label("quantity")
    revenue = func.coalesce(func.sum(TransactionItem.total_price), 0).label("revenue")
    rows = _completed(
        db.session.query(
            Product.id, Product.name, Product.barcode, quantity, revenue,
        )
        .join(TransactionItem, TransactionItem.product_id == Product.id)
        .join(Transaction, Transaction.id == TransactionItem.transaction_id),
        start, end,
    ).group_by(Product.id, Product.name, Product.barcode).order_by(
        revenue.desc(), quantity.desc(), Product.name.asc()
    ).limit(limit).all()
    return [
        {
            "product_id": r.id,
            "name": r.name,
            "barcode": r.barcode,
            "quantity": int(r.quantity or 0),
            "revenue": money(r.revenue),
        }
        for r in rows
    ]


def admin_statistics(start_date: str | None = None, end_date: str | None = None) -> dict:
    start, end = report_range(start_date, end_date)
    prev_start, prev_end = previous_period(start, end)

    current = _summary(start, end)
    previous = _summary(prev_start, prev_end)

    return {
        "period": {"start": to_utc_z(start), "end": to_utc_z(end)},
        "summary": {
            "totalRevenue": current["revenue"],
            "totalTransactions": current["transactions"],
            "avgOrderValue": current["avg_order"],
            "totalDiscounts": current["discounts"],
            "itemsSold": current["items_sold"],
            "activeStaff": current["active_staff"],
            "revenueChange": pct_change(current["revenue"], previous["revenue"]),
            "transactionChange": pct_change(current["transactions"], previous["transactions"]),
            "avgOrderChange": pct_change(current["avg_order"], previous["avg_order"]),
        },
        "hourly": _hourly(start, end),
        "categories": _categories(start, end),
        "paymentMethods": _payment_methods(start, end),
        "topProducts": _top_products(start, end),
        "dailyData": _daily(start, end),
    }


def dashboard_stats(now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = start_of_day(now)

    today_row = _completed(
        db.session.query(
            func.coalesce(func.sum(Transaction.total_amount), 0),
            func.count(Transaction.id),
        ),
        today, now,
    ).one()
    all_time = (
        db.session.query(
            func.coalesce(func.sum(Transaction.total_amount), 0),
            func.count(Transaction.id),
        )
        .filter(Transaction.status == STATUS_COMPLETED)
        .one()
    )
    low_stock = (
        db.session.query(func.count(Product.id))
        .filter(Product.is_active.is_(True), Product.stock_quantity < LOW_STOCK_CARD_THRESHOLD)
        .scalar()
    )

    return {
        "todaySales": money(today_row[0]),
        "todayOrders": int(today_row[1] or 0),
        "totalOrders": int(all_time[1] or 0),
        "totalIncome": money(all_time[0]),
        "lowStockItems": int(low_stock or 0),
    }


def cashier_statistics(cashier_id: int, now: datetime | None = None) -> dict:
    """Today's numbers for one cashier."""
    now = now or utcnow()
    start = start_of_day(now)

    row = _completed(
        db.session.query(
            func.coalesce(func.sum(Transaction.total_amount), 0).label("revenue"),
            func.count(Transaction.id).label("transactions"),
            func.coalesce(func.sum(Transaction.discount_amount), 0).label("discounts"),
        ).filter(Transaction.created_by == cashier_id),
        start, now,
    ).one()

    items_sold = _completed(
        db.session.query(func.coalesce(func.sum(TransactionItem.quantity), 0))
        .join(Transaction, Transaction.id == TransactionItem.transaction_id)
        .filter(Transaction.created_by == cashier_id),
        start, now,
    ).scalar()

    methods = dict(
        _completed(
            db.session.query(
                Transaction.payment_method,
                func.coalesce(func.sum(Transaction.total_amount), 0),
            ).filter(Transaction.created_by == cashier_id),
            start, now,
        ).group_by(Transaction.payment_method).all()
    )

    revenue = money(row.revenue)
    transactions = int(row.transactions or 0)
    return {
        "cashier_id": cashier_id,
        "date": start.strftime("%Y-%m-%d"),
        "revenue": revenue,
        "transactions": transactions,
        "avgTransaction": round(revenue / transactions, 2) if transactions else 0.0,
        "discounts": money(row.discounts),
        "itemsSold": int(items_sold or 0),
        "payments": {method: money(methods.get(method)) for method in PAYMENT_METHODS},
        "hourly": _hourly(start, now, cashier_id=cashier_id),
    }


def customers(*, search: str | None = None) -> list[dict]:
    """
    Customers aggregated from completed transactions that carry a customer
    name or phone, biggest spenders first.
    """
    name = func.coalesce(Transaction.customer_name, "").label("name")
    phone = func.coalesce(Transaction.customer_phone, "").label("phone")
    query = db.session.query(
        name,
        phone,
        func.count(Transaction.id).label("visits"),
        func.coalesce(func.sum(Transaction.total_amount), 0).label("total_spent"),
        func.max(Transaction.created_at).label("last_visit"),
    ).filter(
        Transaction.status == STATUS_COMPLETED,
        (Transaction.customer_name.isnot(None)) | (Transaction.customer_phone.isnot(None)),
    )
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            Transaction.customer_name.ilike(term) | Transaction.customer_phone.ilike(term)
        )

    rows = query.group_by(name, phone).all()
    result = [
        {
            "name": r.name or None,
            "phone": r.phone or None,
            "visits": int(r.visits),
            "total_spent": money(r.total_spent),
            "average_spent": round(money(r.total_spent) / r.visits, 2) if r.visits else 0.0,
            "last_visit": to_utc_z(r.last_visit) if isinstance(r.last_visit, datetime) else r.last_visit,
        }
        for r in rows
    ]
    result.sort(key=lambda c: (-c["total_spent"], c["name"] or ""))
    return result
