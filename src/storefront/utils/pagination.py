import math

from storefront.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def paginate(page=1, limit=DEFAULT_PAGE_SIZE):
    """Clamp page/limit and return ``(page, limit, offset)``."""
    try:
        page = max(int(page or 1), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    return page, limit, (page - 1) * limit


def paged(items, total, page, limit):
    return {
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total_items": total,
            "total_pages": math.ceil(total / limit) if total else 0,
        },
    }
