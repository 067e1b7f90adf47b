from __future__ import annotations

from ..extensions import db
from boutique_pos.time_utils import to_utc_z, utcnow


ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
ROLE_INVENTORY_MANAGER = "inventory_manager"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER, ROLE_INVENTORY_MANAGER)


class User(db.Model):
    """
    Staff account.

    Deactivated rather than deleted so sales stay attributable.
    """
    __tablename__ = "users"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(100), nullable=False, unique=True)
    username = db.Column(db.String(50), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=ROLE_CASHIER)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role,
            "is_active": self.is_active,
            "last_login": to_utc_z(self.last_login) if self.last_login else None,
            "created_at": to_utc_z(self.created_at),
        }
