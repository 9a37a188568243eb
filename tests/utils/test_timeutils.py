"""Tests for timestamp helpers."""

from datetime import date, datetime, timedelta, timezone

from health_insights.utils.timeutils import day_key, ensure_utc, parse_datetime, utcnow


class TestEnsureUtc:
    def test_naive_is_assumed_utc(self):
        result = ensure_utc(datetime(2024, 3, 1, 12))
        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_offset_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2024, 3, 1, 1, tzinfo=plus_two))
        assert result == datetime(2024, 2, 29, 23, tzinfo=timezone.utc)


class TestParseDatetime:
    def test_none_passthrough(self):
        assert parse_datetime(None) is None

    def test_iso_string(self):
        assert parse_datetime("2024-03-01T12:00:00+00:00") == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)


def test_day_key_for_date_and_datetime():
    assert day_key(date(2024, 3, 1)) == "2024-03-01"
    assert day_key(datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc)) == "2024-03-01"


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None
