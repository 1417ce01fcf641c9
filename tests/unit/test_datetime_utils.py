"""Tests for UTC timestamp helpers."""

from datetime import UTC, datetime, timedelta, timezone

from referral_ledger.utils.datetime_utils import as_utc, utc_now


class TestUtcNow:
    """Test current time helper."""

    def test_is_aware_utc(self):
        """Current time carries the UTC zone."""
        assert utc_now().tzinfo is UTC


class TestAsUtc:
    """Test read-side normalization."""

    def test_none(self):
        """None passes through."""
        assert as_utc(None) is None

    def test_naive_taken_as_utc(self):
        """Naive value gets the UTC zone, wall time unchanged."""
        value = datetime(2026, 10, 19, 12, 30)
        assert as_utc(value) == datetime(2026, 10, 19, 12, 30, tzinfo=UTC)

    def test_other_zone_converted(self):
        """Aware value is converted to UTC."""
        value = datetime(2026, 10, 19, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        result = as_utc(value)
        assert result.tzinfo is UTC
        assert result.hour == 12
