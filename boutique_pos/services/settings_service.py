from __future__ import annotations

import json
import re
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import Setting
from ..validation import ValidationError


KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_.]{0,99}$")

# Group a key is filed under when first stored
KEY_GROUPS = {
    "shopName": "general",
    "currency": "general",
    "taxRate": "sales",
    "receiptFooter": "receipt",
}


def default_settings() -> dict[str, Any]:
    return {
        "shopName": current_app.config["SHOP_NAME"],
        "currency": current_app.config["CURRENCY"],
        "taxRate": 0,
        "receiptFooter": "Thank you for shopping with us!",
    }


def _validate(key: str, value: Any) -> Any:
    if not isinstance(key, str) or not KEY_RE.match(key):
        raise ValidationError(f"Invalid setting key: {key!r}")
    if key == "taxRate":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError("taxRate must be a number")
        if not 0 <= value <= 100:
            raise ValidationError("taxRate must be between 0 and 100")
    if key in ("shopName", "currency"):
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{key} cannot be blank")
        value = value.strip()
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be JSON-serializable")
    return value


def get_settings() -> dict[str, Any]:
    """Defaults overlaid with stored rows."""
    settings = default_settings()
    for row in db.session.query(Setting).all():
        settings[row.key] = json.loads(row.value)
    return settings


def update_settings(updates: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(updates, dict) or not updates:
        raise ValidationError("No settings provided")

    cleaned = {key: _validate(key, value) for key, value in updates.items()}

    try:
        existing = {
            row.key: row
            for row in db.session.query(Setting).filter(Setting.key.in_(cleaned.keys())).all()
        }
        for key, value in cleaned.items():
            row = existing.get(key)
            if row is None:
                row = Setting(key=key, group=KEY_GROUPS.get(key, "general"))
                db.session.add(row)
            row.value = json.dumps(value)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Updated settings: %s", ", ".join(sorted(cleaned)))
    return get_settings()
