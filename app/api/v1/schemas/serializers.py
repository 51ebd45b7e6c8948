"""Shared serialization utilities for API schemas."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import PlainSerializer


def serialize_utc_datetime(dt: datetime) -> str:
    """Serialize datetime as ISO 8601 string with UTC timezone.

    Naive datetimes (as read back from MongoDB) are taken to be UTC.
    Output format: 2025-12-03T10:30:00+00:00
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


UtcDatetime = Annotated[datetime, PlainSerializer(serialize_utc_datetime, return_type=str)]
