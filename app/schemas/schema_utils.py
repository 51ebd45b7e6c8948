"""Shared utilities for schema validation."""

from datetime import datetime, timezone
from typing import Any


def parse_mongo_datetime(v: Any) -> Any:
    """Parse MongoDB datetimes into timezone-aware UTC values.

    Handles Extended JSON (`{'$date': '2024-11-01T08:00:00Z'}`, as produced by
    mongoimport) and the naive UTC datetimes returned by the driver.
    """
    if isinstance(v, dict) and "$date" in v:
        v = datetime.fromisoformat(v["$date"].replace("Z", "+00:00"))
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    # Return as-is and let Pydantic handle validation
    return v


def to_mongo_datetime(dt: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC form used in queries."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
