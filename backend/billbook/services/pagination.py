from __future__ import annotations

from typing import Callable

MAX_PER_PAGE = 100


def paginate(query, page: int | None, per_page: int, serialize: Callable = lambda row: row.to_dict()) -> dict:
    """
    Without page: every row, plus a count. With page (1-indexed): one page
    and pagination metadata. per_page is clamped to 1..MAX_PER_PAGE.
    """
    if page is None:
        rows = query.all()
        return {"items": [serialize(r) for r in rows], "count": len(rows)}

    per_page = min(max(per_page, 1), MAX_PER_PAGE)
    page = max(page, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    rows = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [serialize(r) for r in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
