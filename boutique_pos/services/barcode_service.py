# Overview: Barcode pool operations: bulk generation, listing, availability and claiming.

"""
Barcode Service - pre-generated barcode pool

Barcodes are printed on labels ahead of time and handed out one by one as
products are created. A row moves available -> used exactly once, and only
inside the product-creation transaction (see claim_next_available).
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..extensions import db
from ..models import Barcode
from ..models.catalog import BARCODE_AVAILABLE, BARCODE_USED, BARCODE_VOID, BARCODE_STATUSES
from ..pagination import paginate
from ..validation import ValidationError, NotFoundError, BusinessRuleError
from .concurrency import begin_write, lock_for_update


MAX_GENERATE = 50
CODE_WIDTH = 10
WARNING_LEVEL = 10
CRITICAL_LEVEL = 3


class NoBarcodesAvailableError(BusinessRuleError):
    status_code = 409
    code = "NO_BARCODES_AVAILABLE"

    def __init__(self):
        super().__init__("No barcodes available. Generate more barcodes before adding products.")


def format_code(barcode_id: int) -> str:
    """Zero-padded printable code, e.g. 42 -> '0000000042'."""
    return str(barcode_id).zfill(CODE_WIDTH)


def generate_barcodes(count: int) -> list[Barcode]:
    """
    Append `count` new available barcodes after the current highest barcode_id.

    All rows are inserted in one transaction; a failure leaves the pool as it was.
    """
    if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= MAX_GENERATE:
        raise ValidationError(f"count must be between 1 and {MAX_GENERATE}")

    try:
        begin_write()
        start = (db.session.query(func.max(Barcode.barcode_id)).scalar() or 0) + 1
        rows = [
            Barcode(barcode_id=n, barcode=format_code(n), status=BARCODE_AVAILABLE)
            for n in range(start, start + count)
        ]
        db.session.add_all(rows)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Generated %d barcodes (%s..%s)", count, rows[0].barcode, rows[-1].barcode
    )
    return rows


def list_barcodes(
    *,
    page: int | None = None,
    limit: int | None = None,
    status: str | None = None,
    search: str | None = None,
) -> tuple[list[Barcode], dict]:
    query = db.session.query(Barcode)

    if status and status != "all":
        if status not in BARCODE_STATUSES:
            raise ValidationError(f"status must be one of: all, {', '.join(BARCODE_STATUSES)}")
        query = query.filter(Barcode.status == status)

    if search:
        term = search.strip()
        clauses = [Barcode.barcode.ilike(f"%{term}%")]
        if term.isdigit():
            clauses.append(Barcode.barcode_id == int(term))
        query = query.filter(or_(*clauses))

    query = query.order_by(Barcode.barcode_id.desc())
    return paginate(query, page, limit)


def get_availability() -> dict:
    available = (
        db.session.query(func.count(Barcode.id))
        .filter(Barcode.status == BARCODE_AVAILABLE)
        .scalar()
    ) or 0
    next_row = (
        db.session.query(Barcode)
        .filter(Barcode.status == BARCODE_AVAILABLE)
        .order_by(Barcode.barcode_id.asc())
        .first()
    )
    return {
        "available_count": available,
        "next_available_barcode": next_row.barcode if next_row else None,
        "warning_level": available < WARNING_LEVEL,
        "critical_level": available < CRITICAL_LEVEL,
    }


def claim_next_available() -> Barcode:
    """
    Lock the lowest available barcode for the caller's open transaction.

    The caller marks it used and commits. On Postgres, SKIP LOCKED lets a
    concurrent claimer move on to the next row instead of queueing behind
    this one; on SQLite the surrounding BEGIN IMMEDIATE serializes claimers.

    Raises NoBarcodesAvailableError when the pool is empty.
    """
    row = (
        lock_for_update(
            db.session.query(Barcode)
            .filter(Barcode.status == BARCODE_AVAILABLE)
            .order_by(Barcode.barcode_id.asc()),
            skip_locked=True,
        )
        .limit(1)
        .first()
    )
    if row is None:
        raise NoBarcodesAvailableError()
    return row


def get_by_ids(barcode_ids: list[int]) -> list[Barcode]:
    """Rows for the given primary keys, in barcode_id order (for label sheets)."""
    if not barcode_ids:
        return []
    return (
        db.session.query(Barcode)
        .filter(Barcode.id.in_(barcode_ids))
        .order_by(Barcode.barcode_id.asc())
        .all()
    )


def set_status(barcode_pk: int, status: str) -> Barcode:
    """
    Manual status change between available and void (damaged or misprinted labels).

    A used barcode belongs to a product and never changes again.
    """
    if status not in (BARCODE_AVAILABLE, BARCODE_VOID):
        raise ValidationError(f"status must be one of: {BARCODE_AVAILABLE}, {BARCODE_VOID}")
    row = db.session.get(Barcode, barcode_pk)
    if row is None:
        raise NotFoundError("Barcode not found", code="BARCODE_NOT_FOUND")
    if row.status == BARCODE_USED:
        raise BusinessRuleError("Barcode is already assigned to a product", code="BARCODE_IN_USE")
    row.status = status
    db.session.commit()
    return row
