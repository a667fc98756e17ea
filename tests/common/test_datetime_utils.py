from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.keshav.keshav.common.datetime_utils import parse_timestamp, to_db_timestamp


def test_parse_timestamp_treats_naive_database_values_as_utc():
    parsed = parse_timestamp(datetime(2026, 2, 1, 8, 0, 0, 123456))

    assert parsed == datetime(2026, 2, 1, 8, 0, 0, 123456, tzinfo=timezone.utc)
    assert parsed.tzinfo is not None


def test_parse_timestamp_normalizes_iso_strings_to_utc():
    assert parse_timestamp("2026-02-01T08:00:00Z") == datetime(2026, 2, 1, 8, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2026-02-01T13:30:00+05:30").utcoffset() == timedelta(0)
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


def test_db_timestamp_is_naive_utc():
    aware = datetime(2026, 2, 1, 13, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))

    assert to_db_timestamp(aware) == datetime(2026, 2, 1, 8, 0)
