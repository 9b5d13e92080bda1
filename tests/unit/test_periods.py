"""UTC period helper tests — day, ISO week and month boundaries."""

from datetime import date, datetime, timedelta, timezone

from dojoxp.periods import as_utc, day_bounds, get_monday, get_week_iso, get_week_number, month_start, utc_day


class TestUtcDay:
    def test_offset_timestamp_converted_to_utc_date(self):
        """23:30 at UTC-5 is already the next UTC day."""
        dt = datetime(2026, 3, 10, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert utc_day(dt) == date(2026, 3, 11)

    def test_naive_values_taken_as_utc(self):
        assert as_utc(datetime(2026, 3, 10, 1, 0)).tzinfo == timezone.utc

    def test_day_bounds(self):
        start, end = day_bounds(date(2026, 3, 10))
        assert start == datetime(2026, 3, 10, tzinfo=timezone.utc)
        assert end - start == timedelta(days=1)


class TestWeekISO:
    """Test ISO week keys used by the gauntlet."""

    def test_sunday_to_monday_boundary(self):
        sun = datetime(2026, 2, 22, 23, 59, 59, tzinfo=timezone.utc)
        mon = datetime(2026, 2, 23, 0, 0, 0, tzinfo=timezone.utc)
        assert get_week_iso(sun) == "2026-W08"
        assert get_week_iso(mon) == "2026-W09"

    def test_year_boundary_week(self):
        """Dec 29, 2025 is W01 of 2026; the key carries the ISO year."""
        dt = datetime(2025, 12, 29, 12, 0, 0, tzinfo=timezone.utc)
        assert get_week_iso(dt) == "2026-W01"
        assert get_week_number(dt) == 1

    def test_same_week_number_different_years_differ(self):
        a = datetime(2025, 3, 5, tzinfo=timezone.utc)
        b = datetime(2026, 3, 4, tzinfo=timezone.utc)
        assert get_week_number(a) == get_week_number(b)
        assert get_week_iso(a) != get_week_iso(b)

    def test_get_monday(self):
        assert get_monday(datetime(2026, 3, 1, 12, tzinfo=timezone.utc)) == date(2026, 2, 23)
        assert get_monday(date(2026, 2, 23)) == date(2026, 2, 23)


class TestMonthStart:
    def test_month_start(self):
        assert month_start(datetime(2026, 3, 31, 23, 59, tzinfo=timezone.utc)) == datetime(
            2026, 3, 1, tzinfo=timezone.utc
        )

    def test_month_start_uses_utc(self):
        """00:30 on April 1 at UTC+2 is still March in UTC."""
        dt = datetime(2026, 4, 1, 0, 30, tzinfo=timezone(timedelta(hours=2)))
        assert month_start(dt) == datetime(2026, 3, 1, tzinfo=timezone.utc)
