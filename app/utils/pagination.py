# app/utils/pagination.py
import math
from typing import Any, Dict

from app.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def page_window(page: int | None, limit: int | None) -> tuple[int, int, int]:
    """Zwraca (page, limit, offset) po przycieciu do sensownych wartosci."""
    page = max(int(page or 1), 1)
    limit = int(limit or DEFAULT_PAGE_SIZE)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def page_info(page: int, limit: int, total: int) -> Dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
