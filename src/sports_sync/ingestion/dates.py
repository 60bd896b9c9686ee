from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(value: Any) -> datetime:
    """
    Parse a provider timestamp into a tz-aware UTC datetime.

    Supports:
      - datetime / date objects
      - ISO strings: "2025-04-10T12:00:00Z", "2025-04-10T12:00Z", "+00:00"
      - "YYYY-MM-DD HH:MM" and bare "YYYY-MM-DD"
      - epoch seconds (int/float)
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, str) and value.strip():
        text = value.strip().replace("Z", "+00:00")
        return ensure_utc(datetime.fromisoformat(text))
    raise ValueError(f"Missing/invalid datetime: {value!r}")


def parse_datetime_or_none(value: Any) -> datetime | None:
    """Best-effort variant of parse_datetime; returns None on bad input."""
    if value in (None, "", "NA"):
        return None
    try:
        return parse_datetime(value)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_date_or_none(value: Any) -> date | None:
    parsed = parse_datetime_or_none(value)
    return parsed.date() if parsed is not None else None
