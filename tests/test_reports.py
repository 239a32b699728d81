"""Tests for periodic report aggregation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from resolution_rank.dates import day_key
from resolution_rank.models import RANK_DOWN, RANK_UP, Resolution, ResolutionStatus, User
from resolution_rank.reports import (
    MONTHLY,
    WEEKLY,
    YEARLY,
    average_consistency,
    generate_report,
    get_period_dates,
    period_label,
    resolution_rates,
)

C = ResolutionStatus.COMPLETED

NOW = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def days(*offsets, status=C) -> dict:
    return {day_key(TODAY - timedelta(days=d)): status for d in offsets}


def make_resolution(res_id, owner_id="alice", history=None, **kwargs) -> Resolution:
    defaults = dict(
        id=res_id,
        owner_id=owner_id,
        title=res_id.title(),
        created_at="2026-01-01T08:00:00+00:00",
        declared_difficulty=2,
        effective_difficulty=2.0,
        history=history or {},
    )
    defaults.update(kwargs)
    return Resolution(**defaults)


class TestPeriodDates:
    def test_weekly_is_trailing_seven_days(self):
        assert get_period_dates(WEEKLY, TODAY) == ("2026-03-12", "2026-03-18")

    def test_monthly(self):
        assert get_period_dates(MONTHLY, TODAY) == ("2026-03-01", "2026-03-18")

    def test_yearly(self):
        assert get_period_dates(YEARLY, TODAY) == ("2026-01-01", "2026-03-18")

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_period_dates("daily", TODAY)

    def test_labels(self):
        assert period_label(WEEKLY, TODAY) == "Last 7 Days"
        assert period_label(MONTHLY, TODAY) == "March 2026"
        assert period_label(YEARLY, TODAY) == "2026"


class TestResolutionRates:
    def test_opportunities_start_at_creation(self):
        res = make_resolution("a", history=days(0, 1), created_at=(NOW - timedelta(days=2)).isoformat())
        dates = [day_key(TODAY - timedelta(days=d)) for d in range(6, -1, -1)]
        [rate] = resolution_rates([res], dates, NOW)
        assert rate.opportunities == 3
        assert rate.completed == 2

    def test_zero_opportunities_excluded(self):
        res = make_resolution("a", created_at=(NOW + timedelta(days=1)).isoformat())
        assert resolution_rates([res], [day_key(TODAY)], NOW) == []

    def test_average_empty(self):
        assert average_consistency([]) == 0


class TestGenerateReport:
    def _report(self, resolutions, members=None, member_resolutions=None, user=None, report_type=WEEKLY):
        user = user or User(id="alice", name="Alice", score=40.0)
        members = members or [user]
        member_resolutions = member_resolutions or {user.id: resolutions}
        return generate_report(user, resolutions, members, member_resolutions, report_type, NOW)

    def test_weekly_counts(self):
        a = make_resolution("run", history={**days(0, 1, 2, 3, 4, 5, 6), **days(8)})
        b = make_resolution("read", history=days(0, 1, 2))
        report = self._report([a, b])
        assert report["days_checked_in"] == 10
        assert report["points_gained"] == 20.0
        # (7/7 + 3/7) / 2 = 71.43%
        assert report["consistency"] == 71
        assert report["best_resolution"] == "Run"
        assert report["worst_resolution"] == "Read"
        assert report["period_start"] == "2026-03-12"
        assert report["period_end"] == "2026-03-18"

    def test_private_counts_for_consistency_not_points(self):
        public = make_resolution("public", history=days(0))
        private = make_resolution("private", history=days(0, 1, 2, 3, 4, 5, 6), is_private=True)
        report = self._report([public, private])
        assert report["points_gained"] == 2.0
        assert report["days_checked_in"] == 8
        assert report["best_resolution"] == "Private"

    def test_archived_left_out(self):
        active = make_resolution("active", history=days(0, 1))
        archived = make_resolution("gone", archived_at=NOW.isoformat())
        report = self._report([active, archived])
        assert report["worst_resolution"] == "Active"
        assert report["consistency"] == 29  # 2/7

    def test_consistency_rounds_half_up(self):
        # created 3 days ago, so 4 opportunities each: 2/4 and 0/4
        created = (NOW - timedelta(days=3)).isoformat()
        a = make_resolution("a", history=days(0, 1), created_at=created)
        b = make_resolution("b", created_at=created)
        assert self._report([a, b])["consistency"] == 25

    def test_ties_first_encountered_wins(self):
        a = make_resolution("first", history=days(0))
        b = make_resolution("second", history=days(1))
        report = self._report([a, b])
        assert report["best_resolution"] == "First"
        assert report["worst_resolution"] == "First"

    def test_no_resolutions(self):
        report = self._report([])
        assert report["consistency"] == 0
        assert report["best_resolution"] is None
        assert report["worst_resolution"] is None
        assert report["points_gained"] == 0

    def test_group_comparison(self):
        alice = User(id="alice", name="Alice", score=10.0)
        bob = User(id="bob", name="Bob", score=90.0)
        a = make_resolution("a", history=days(0, 1, 2, 3, 4, 5, 6))
        b = make_resolution("b", owner_id="bob")
        report = self._report(
            [a],
            members=[alice, bob],
            member_resolutions={"alice": [a], "bob": [b]},
            user=alice,
        )
        assert report["group_consistency"] == 50
        assert report["group_hero"] == "Bob"
        assert report["group_hero_id"] == "bob"
        assert report["group_size"] == 2

    def test_rank_and_trust(self):
        up = User(id="alice", name="Alice", rank_change=RANK_UP, honesty_score=96)
        assert self._report([], user=up)["rank_change"] == 1
        assert self._report([], user=up)["trust_trend"] == "up"
        down = User(id="alice", name="Alice", rank_change=RANK_DOWN, honesty_score=70)
        assert self._report([], user=down)["rank_change"] == -1
        assert self._report([], user=down)["trust_trend"] == "down"
        steady = User(id="alice", name="Alice", honesty_score=85)
        assert self._report([], user=steady)["rank_change"] == 0
        assert self._report([], user=steady)["trust_trend"] == "stable"

    def test_monthly_window(self):
        res = make_resolution("a", history=days(0, 17, 18, 40))
        report = self._report([res], report_type=MONTHLY)
        # March 1 is 17 days back, Feb 28 is 18 days back
        assert report["days_checked_in"] == 2
        assert report["period_label"] == "March 2026"

    def test_yearly_window(self):
        res = make_resolution("a", history=days(0, 40, 70, 100))
        report = self._report([res], report_type=YEARLY)
        assert report["days_checked_in"] == 3
        assert report["period_start"] == day_key(date(2026, 1, 1))
