from __future__ import annotations

from ..extensions import db
from ..formatting import money
from boutique_pos.time_utils import to_utc_z, utcnow


BARCODE_AVAILABLE = "available"
BARCODE_USED = "used"
BARCODE_VOID = "void"
BARCODE_STATUSES = (BARCODE_AVAILABLE, BARCODE_USED, BARCODE_VOID)


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    parent = db.relationship("Category", remote_side=[id])

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "parent_id": self.parent_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Sellable catalog item.

    The barcode comes from the pre-generated Barcode pool and is unique.
    stock_quantity must never go negative; that is enforced by the checkout
    and restock services under a row lock, not by a DB constraint.
    Products are never hard-deleted: historical transaction items point at them.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    barcode = db.Column(db.String(100), nullable=False, unique=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Selling price and purchase cost
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    cost_price = db.Column(db.Numeric(10, 2), nullable=True)

    image_url = db.Column(db.String(500), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r}>"

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_level

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "description": self.description,
            "price": money(self.price),
            "cost_price": money(self.cost_price) if self.cost_price is not None else None,
            "image_url": self.image_url,
            "category_id": self.category_id,
            "category": {"id": self.category.id, "name": self.category.name} if self.category else None,
            "stock_quantity": self.stock_quantity,
            "min_stock_level": self.min_stock_level,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_scan_dict(self) -> dict:
        """Compact shape used by the checkout scanner."""
        return {
            "id": self.id,
            "product_id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "price": money(self.price),
            "max_quantity": self.stock_quantity,
            "image_url": self.image_url,
        }


class Barcode(db.Model):
    """
    Pre-generated barcode pool.

    Lifecycle: available -> used (exactly once, inside product creation).
    void is set manually for damaged/misprinted labels.
    """
    __tablename__ = "barcodes"
    __table_args__ = (
        db.Index("ix_barcodes_status_barcode_id", "status", "barcode_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    barcode_id = db.Column(db.Integer, nullable=False, unique=True)
    barcode = db.Column(db.String(50), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default=BARCODE_AVAILABLE)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Barcode barcode_id={self.barcode_id} barcode={self.barcode!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode_id": self.barcode_id,
            "barcode": self.barcode,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
