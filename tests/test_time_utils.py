"""Tests for time_utils module."""

from datetime import UTC, date, datetime, timedelta, timezone

from oura_mcp.time_utils import duration_seconds, ensure_aware, get_days_ago, get_today_date


class TestDates:
    """Test date helpers."""

    def test_today(self):
        """Test today's date is ISO formatted."""
        assert get_today_date() == date.today().isoformat()

    def test_days_ago(self):
        """Test counting back from today."""
        assert get_days_ago(7) == (date.today() - timedelta(days=7)).isoformat()
        assert get_days_ago(0) == get_today_date()


class TestDatetimes:
    """Test datetime helpers."""

    def test_naive_treated_as_utc(self):
        """Test naive datetimes get UTC attached."""
        assert ensure_aware(datetime(2024, 1, 1, 8, 0)).tzinfo is UTC

    def test_aware_unchanged(self):
        """Test aware datetimes keep their offset."""
        value = datetime(2024, 1, 1, 8, 0, tzinfo=timezone(timedelta(hours=2)))
        assert ensure_aware(value) is value

    def test_duration_across_offsets(self):
        """Test durations between datetimes in different offsets."""
        start = datetime(2024, 1, 1, 7, 0, tzinfo=UTC)
        end = datetime(2024, 1, 1, 9, 30, tzinfo=timezone(timedelta(hours=2)))
        assert duration_seconds(start, end) == 1800

    def test_duration_mixed_naive(self):
        """Test a naive end is compared as UTC."""
        start = datetime(2024, 1, 1, 7, 0, tzinfo=UTC)
        assert duration_seconds(start, datetime(2024, 1, 1, 8, 0)) == 3600
