# Overview: Page/limit handling shared by list endpoints.

from __future__ import annotations

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def paginate(query, page: int | None, limit: int | None) -> tuple[list, dict]:
    """
    Apply page/limit to a query.

    Returns (rows, pagination) where pagination mirrors what the dashboard
    expects: page, limit, total, totalPages.
    """
    limit = min(max(limit or DEFAULT_LIMIT, 1), MAX_LIMIT)
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    total_pages = (total + limit - 1) // limit if total > 0 else 0

    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
    }


def paginate_list(items: list, page: int | None, limit: int | None) -> tuple[list, dict]:
    """Same as paginate() for rows already aggregated in Python."""
    limit = min(max(limit or DEFAULT_LIMIT, 1), MAX_LIMIT)
    page = max(page or 1, 1)
    total = len(items)
    total_pages = (total + limit - 1) // limit if total > 0 else 0
    return items[(page - 1) * limit:page * limit], {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
    }
