# Overview: Staff account administration (create, update, activation, stats).

from __future__ import annotations

import re

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_CASHIER, ROLES
from ..pagination import paginate
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError
from .auth_service import hash_password


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")

REQUIRED_ON_CREATE = ("full_name", "email", "username", "password")
STAFF_MUTABLE_FIELDS = {"full_name", "email", "username", "role", "password", "is_active"}


def _clean(payload: dict, *, partial: bool) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = set(payload) - STAFF_MUTABLE_FIELDS - {"id", "created_at", "last_login"}
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    if not partial:
        missing = [f for f in REQUIRED_ON_CREATE if not str(payload.get(f) or "").strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    patch: dict = {}
    if "full_name" in payload:
        full_name = str(payload["full_name"] or "").strip()
        if not full_name:
            raise ValidationError("full_name cannot be blank")
        if len(full_name) > 100:
            raise ValidationError("full_name exceeds max length 100")
        patch["full_name"] = full_name
    if "email" in payload:
        email = str(payload["email"] or "").strip().lower()
        if not EMAIL_RE.match(email) or len(email) > 100:
            raise ValidationError("email is not a valid address")
        patch["email"] = email
    if "username" in payload:
        username = str(payload["username"] or "").strip()
        if not USERNAME_RE.match(username):
            raise ValidationError("username must be 3-50 letters, digits, '.', '_' or '-'")
        patch["username"] = username
    if "role" in payload and payload["role"] is not None:
        role = str(payload["role"]).strip().lower()
        if role not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
        patch["role"] = role
    if "is_active" in payload:
        if not isinstance(payload["is_active"], bool):
            raise ValidationError("is_active must be a boolean")
        patch["is_active"] = payload["is_active"]
    if payload.get("password"):
        patch["password_hash"] = hash_password(payload["password"])

    return patch


def _check_unique(patch: dict, exclude_id: int | None = None) -> None:
    for field, code in (("username", "DUPLICATE_USERNAME"), ("email", "DUPLICATE_EMAIL")):
        if field not in patch:
            continue
        query = db.session.query(User.id).filter(func.lower(getattr(User, field)) == patch[field].lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(f"A staff member with this {field} already exists", code=code)


def get_staff(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("Staff member not found", code="STAFF_NOT_FOUND")
    return user


def list_staff(
    *,
    page: int | None = None,
    limit: int | None = None,
    search: str | None = None,
    role: str | None = None,
    status: str | None = None,
) -> tuple[list[User], dict]:
    query = db.session.query(User)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            User.full_name.ilike(term), User.username.ilike(term), User.email.ilike(term),
        ))
    if role and role != "all":
        if role not in ROLES:
            raise ValidationError(f"role must be one of: all, {', '.join(ROLES)}")
        query = query.filter(User.role == role)
    if status == "active":
        query = query.filter(User.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(User.is_active.is_(False))

    query = query.order_by(User.created_at.desc(), User.id.desc())
    return paginate(query, page, limit)


def create_staff(payload: dict) -> User:
    patch = _clean(payload, partial=False)
    patch.setdefault("role", ROLE_CASHIER)
    _check_unique(patch)

    user = User(**patch)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A staff member with this username or email already exists",
                            code="DUPLICATE_STAFF")

    current_app.logger.info("Created staff member %s (%s)", user.username, user.role)
    return user


def update_staff(user_id: int, payload: dict) -> User:
    user = get_staff(user_id)
    patch = _clean(payload, partial=True)
    _check_unique(patch, exclude_id=user.id)

    for k, v in patch.items():
        setattr(user, k, v)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A staff member with this username or email already exists",
                            code="DUPLICATE_STAFF")
    return user


def set_active(user_id: int, is_active) -> User:
    if not isinstance(is_active, bool):
        raise ValidationError("is_active must be a boolean")
    user = get_staff(user_id)
    user.is_active = is_active
    db.session.commit()
    return user


def deactivate_staff(user_id: int) -> User:
    """Soft delete: the account stays so past sales remain attributable."""
    return set_active(user_id, False)


def staff_stats(now=None) -> dict:
    now = now or utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    total = db.session.query(func.count(User.id)).scalar() or 0
    active = db.session.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0
    new_this_month = (
        db.session.query(func.count(User.id)).filter(User.created_at >= month_start).scalar() or 0
    )
    by_role = dict(
        db.session.query(User.role, func.count(User.id)).group_by(User.role).all()
    )
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "newThisMonth": new_this_month,
        "byRole": {role: by_role.get(role, 0) for role in ROLES},
    }
