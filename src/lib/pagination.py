"""
Offset pagination for list endpoints.

Every list result has the shape {data, total, page, limit, total_pages}.
"""
import math
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import Select, select, func
from sqlalchemy.orm import Session

from src.lib.config_flags import get_engagement_rules
from src.lib.exceptions import ValidationException


def resolve_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Apply defaults and bounds to page/limit."""
    rules = get_engagement_rules()
    page = 1 if page is None else page
    limit = rules.default_page_size if limit is None else limit
    if page < 1:
        raise ValidationException("page must be >= 1", errors={"page": page})
    if limit < 1 or limit > rules.max_page_size:
        raise ValidationException(
            f"limit must be between 1 and {rules.max_page_size}",
            errors={"limit": limit},
        )
    return page, limit


def paginate(db: Session, stmt: Select, page: Optional[int] = None, limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Run an ordered entity select one page at a time.

    Args:
        db: Database session
        stmt: select() of a single entity, already filtered and ordered
        page: 1-based page number
        limit: Page size

    Returns:
        {'data': list, 'total': int, 'page': int, 'limit': int, 'total_pages': int}
    """
    page, limit = resolve_page(page, limit)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = db.execute(count_stmt).scalar_one()

    rows = db.execute(stmt.offset((page - 1) * limit).limit(limit)).scalars().all()

    return {
        'data': list(rows),
        'total': total,
        'page': page,
        'limit': limit,
        'total_pages': math.ceil(total / limit),
    }
