# Overview: Row locking and write-transaction helpers shared by the checkout and barcode flows.

from __future__ import annotations

from sqlalchemy import text

from ..extensions import db


def begin_write() -> None:
    """
    Take the database write lock up front on SQLite.

    SQLite ignores SELECT ... FOR UPDATE, so the checkout and allocation flows
    start with BEGIN IMMEDIATE there. Other backends rely on row locks alone.
    Skipped when the connection already has a transaction open (e.g. the
    session issued a read first).
    """
    if db.engine.dialect.name != "sqlite":
        return
    conn = db.session.connection()
    if not conn.connection.dbapi_connection.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def lock_for_update(query, *, skip_locked: bool = False):
    """
    Apply row-level locking for critical operations.

    populate_existing() refreshes objects already in the identity map so the
    caller sees the locked row's current values, not a stale copy.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update(skip_locked=skip_locked).populate_existing()


def is_unique_violation(exc, column: str) -> bool:
    """
    True when an IntegrityError was raised by the unique constraint on `column`.

    SQLite reports "UNIQUE constraint failed: table.column"; PostgreSQL names
    the constraint (e.g. products_barcode_key). Both carry the column name.
    """
    message = str(getattr(exc, "orig", exc)).lower()
    if "unique" not in message and "duplicate" not in message:
        return False
    return column.lower() in message
