"""
Core Utilities

Shared helpers used across the application.
"""
import math
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Use this instead of datetime.utcnow() which returns naive datetime.
    """
    return datetime.now(timezone.utc)


def to_money(value) -> Decimal:
    """Quantize a price-like value to cents."""
    if isinstance(value, float):
        value = Decimal(str(value))
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
