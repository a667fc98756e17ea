from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mock it easily.
    """
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime | None:
    """Accept datetime or ISO-8601 strings coming from the database/change feed.

    MySQL DATETIME columns hold naive UTC; results are always timezone-aware UTC.
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_db_timestamp(value: datetime) -> datetime:
    """Naive UTC for DATETIME columns."""

    return value.astimezone(timezone.utc).replace(tzinfo=None)
