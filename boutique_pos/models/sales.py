from __future__ import annotations

from ..extensions import db
from ..formatting import money
from boutique_pos.time_utils import to_utc_z, utcnow


PAYMENT_METHODS = ("cash", "momo", "card", "bank")

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_REFUNDED = "refunded"
TRANSACTION_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_CANCELLED, STATUS_REFUNDED)


class Transaction(db.Model):
    """
    One checkout.

    Written once by the checkout service together with its items and the
    stock decrements. Only status may change afterwards.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_status_created", "status", "created_at"),
        db.Index("ix_transactions_created_by_created", "created_by", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number, e.g. "TX-20261018-3FA9"
    transaction_number = db.Column(db.String(50), nullable=False, unique=True)

    customer_name = db.Column(db.String(200), nullable=True)
    customer_phone = db.Column(db.String(20), nullable=True)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    amount_paid = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    change_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False, default="cash", index=True)
    momo_transaction_id = db.Column(db.String(100), nullable=True)
    momo_phone = db.Column(db.String(20), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=STATUS_COMPLETED)
    notes = db.Column(db.Text, nullable=True)

    # Staff member who rang up the sale
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "TransactionItem",
        backref="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionItem.id",
        lazy=True,
    )
    cashier = db.relationship("User", foreign_keys=[created_by])

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} number={self.transaction_number!r} status={self.status}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "transaction_number": self.transaction_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "subtotal": money(self.subtotal),
            "tax_amount": money(self.tax_amount),
            "discount_amount": money(self.discount_amount),
            "total_amount": money(self.total_amount),
            "amount_paid": money(self.amount_paid),
            "change_amount": money(self.change_amount),
            "payment_method": self.payment_method,
            "momo_transaction_id": self.momo_transaction_id,
            "momo_phone": self.momo_phone,
            "status": self.status,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "cashier": {
                "id": self.cashier.id,
                "username": self.cashier.username,
                "full_name": self.cashier.full_name,
            } if self.cashier else None,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class TransactionItem(db.Model):
    """
    Cart line frozen at sale time.

    product_name/barcode/image_url are copies so receipts stay stable when
    the product is later renamed or re-priced.
    """
    __tablename__ = "transaction_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(
        db.Integer,
        db.ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_image = db.Column(db.String(500), nullable=True)
    barcode = db.Column(db.String(100), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "barcode": self.barcode,
            "product_name": self.product_name,
            "product_image": self.product_image,
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "total_price": money(self.total_price),
            "discount_amount": money(self.discount_amount),
        }
