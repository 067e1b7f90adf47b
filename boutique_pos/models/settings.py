from __future__ import annotations

from ..extensions import db
from boutique_pos.time_utils import to_utc_z, utcnow


class Setting(db.Model):
    """Shop-wide key/value setting (e.g. shopName, taxRate)."""
    __tablename__ = "settings"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), nullable=False, unique=True)
    value = db.Column(db.Text, nullable=False)
    group = db.Column(db.String(50), nullable=False, default="general")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "group": self.group,
            "updated_at": to_utc_z(self.updated_at),
        }
