"""Tests for the calendar helpers."""

from datetime import date, datetime, timedelta, timezone

from resolution_rank.dates import (
    date_range,
    day_key,
    days_since,
    local_date,
    now_local,
    parse_day,
    start_of_month,
    start_of_quarter,
    start_of_week,
    start_of_year,
    today_key,
)

NOW = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)  # a Wednesday


class TestDayKeys:
    def test_day_key_format(self):
        assert day_key(date(2026, 1, 5)) == "2026-01-05"

    def test_parse_day(self):
        assert parse_day("2026-12-31") == date(2026, 12, 31)

    def test_today_key(self):
        assert today_key(NOW) == "2026-03-18"

    def test_now_local_is_aware(self):
        assert now_local().tzinfo is not None
        assert now_local(timezone.utc).tzinfo == timezone.utc


class TestStartOf:
    def test_week_starts_monday(self):
        assert start_of_week(date(2026, 3, 18)) == date(2026, 3, 16)

    def test_monday_is_its_own_week_start(self):
        assert start_of_week(date(2026, 3, 16)) == date(2026, 3, 16)

    def test_sunday_belongs_to_previous_monday(self):
        assert start_of_week(date(2026, 3, 22)) == date(2026, 3, 16)

    def test_month(self):
        assert start_of_month(date(2026, 3, 18)) == date(2026, 3, 1)

    def test_quarters(self):
        assert start_of_quarter(date(2026, 3, 31)) == date(2026, 1, 1)
        assert start_of_quarter(date(2026, 4, 1)) == date(2026, 4, 1)
        assert start_of_quarter(date(2026, 8, 15)) == date(2026, 7, 1)
        assert start_of_quarter(date(2026, 12, 31)) == date(2026, 10, 1)

    def test_year(self):
        assert start_of_year(date(2026, 3, 18)) == date(2026, 1, 1)


class TestDateRange:
    def test_inclusive(self):
        assert date_range(date(2026, 2, 27), date(2026, 3, 2)) == [
            "2026-02-27", "2026-02-28", "2026-03-01", "2026-03-02",
        ]

    def test_single_day(self):
        assert date_range(date(2026, 3, 1), date(2026, 3, 1)) == ["2026-03-01"]

    def test_empty_when_reversed(self):
        assert date_range(date(2026, 3, 2), date(2026, 3, 1)) == []


class TestDaysSince:
    def test_same_moment(self):
        assert days_since(NOW.isoformat(), NOW) == 0

    def test_floors_partial_days(self):
        created = NOW - timedelta(days=6, hours=23)
        assert days_since(created.isoformat(), NOW) == 6

    def test_exact_days(self):
        created = NOW - timedelta(days=7)
        assert days_since(created.isoformat(), NOW) == 7

    def test_naive_timestamp_takes_now_zone(self):
        assert days_since("2026-03-11T12:00:00", NOW) == 7

    def test_other_zone_is_converted(self):
        created = datetime(2026, 3, 11, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert days_since(created.isoformat(), NOW) == 7


class TestLocalDate:
    def test_late_evening_utc_is_next_day_east(self):
        tokyo = timezone(timedelta(hours=9))
        now = datetime(2026, 3, 18, 12, 0, tzinfo=tokyo)
        assert local_date("2026-03-17T20:00:00+00:00", now) == date(2026, 3, 18)

    def test_bare_day_key(self):
        assert local_date("2026-03-01", NOW) == date(2026, 3, 1)
