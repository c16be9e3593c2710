"""UTC timestamps for persisted rows.

Every timestamp column is ``TIMESTAMP WITH TIME ZONE`` and is written with an
aware UTC datetime, independent of the host's TZ setting.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def timestamp_column() -> Column:
    """Build a non-null timezone-aware timestamp column (one per model field)."""
    return Column(DateTime(timezone=True), nullable=False)
