"""
Utility helpers for shared packages.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

utc_now = lambda: datetime.now(timezone.utc)  # noqa: E731


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript's Math.round / toFixed rather than banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


__all__ = [
    "round_half_up",
    "utc_now",
]
