"""Offset pagination helpers shared by list endpoints."""

import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Query


def build_pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def paginate(query: Query, page: int, limit: int, *options) -> Tuple[List[Any], Dict[str, int]]:
    """
    Count `query`, then fetch one page of it.

    Loader options are applied to the page fetch only, so eager joins do not
    leak into the count.

    Returns:
        (items, pagination dict)
    """
    total = query.order_by(None).count()
    items = query.options(*options).offset((page - 1) * limit).limit(limit).all()
    return items, build_pagination(page, limit, total)
