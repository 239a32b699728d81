"""Tests for resolution health, lock-in and today's status summary."""

from datetime import datetime, timedelta, timezone

from resolution_rank.dates import day_key
from resolution_rank.health import (
    AT_RISK,
    HEALTHY,
    SLIPPING,
    is_locked,
    resolution_health,
    user_today_status,
)
from resolution_rank.models import Resolution, ResolutionStatus

C = ResolutionStatus.COMPLETED
M = ResolutionStatus.MISSED

NOW = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def make_resolution(missed_days=(), **kwargs) -> Resolution:
    history = {day_key(TODAY - timedelta(days=d)): M for d in missed_days}
    defaults = dict(
        id="r1",
        owner_id="u1",
        title="Run",
        created_at=(NOW - timedelta(days=30)).isoformat(),
        declared_difficulty=3,
        effective_difficulty=3.0,
        history=history,
    )
    defaults.update(kwargs)
    return Resolution(**defaults)


class TestResolutionHealth:
    def test_no_history_is_healthy(self):
        assert resolution_health(make_resolution(), TODAY) == HEALTHY

    def test_one_miss_is_healthy(self):
        assert resolution_health(make_resolution(missed_days=[3]), TODAY) == HEALTHY

    def test_two_recent_misses_slipping(self):
        assert resolution_health(make_resolution(missed_days=[1, 5]), TODAY) == SLIPPING

    def test_two_misses_one_outside_last_five_at_risk(self):
        assert resolution_health(make_resolution(missed_days=[2, 6]), TODAY) == AT_RISK

    def test_two_old_misses_at_risk(self):
        assert resolution_health(make_resolution(missed_days=[6, 7]), TODAY) == AT_RISK

    def test_three_misses_in_week_slipping(self):
        assert resolution_health(make_resolution(missed_days=[1, 6, 7]), TODAY) == SLIPPING

    def test_today_is_excluded(self):
        res = make_resolution(missed_days=[0, 1])
        assert resolution_health(res, TODAY) == HEALTHY

    def test_eighth_day_back_is_excluded(self):
        res = make_resolution(missed_days=[7, 8, 9])
        assert resolution_health(res, TODAY) == HEALTHY

    def test_three_recent_misses_with_completed_today(self):
        res = make_resolution(missed_days=[1, 2, 3])
        res.history[day_key(TODAY)] = C
        assert resolution_health(res, TODAY) == SLIPPING

    def test_archived_always_healthy(self):
        res = make_resolution(missed_days=[1, 2, 3], archived_at=NOW.isoformat())
        assert resolution_health(res, TODAY) == HEALTHY

    def test_unreadable_history_is_healthy(self):
        assert resolution_health(make_resolution(history=None), TODAY) == HEALTHY


class TestIsLocked:
    def test_new_resolution_locked(self):
        assert is_locked(make_resolution(created_at=NOW.isoformat()), NOW) is True

    def test_day_six_locked(self):
        res = make_resolution(created_at=(NOW - timedelta(days=6)).isoformat())
        assert is_locked(res, NOW) is True

    def test_day_seven_unlocked(self):
        res = make_resolution(created_at=(NOW - timedelta(days=7)).isoformat())
        assert is_locked(res, NOW) is False


class TestUserTodayStatus:
    def test_no_resolutions_pending(self):
        assert user_today_status([]) == "pending"

    def test_all_completed_checked(self):
        rs = [make_resolution(id="a", today_status=C), make_resolution(id="b", today_status=C)]
        assert user_today_status(rs) == "checked"

    def test_any_missed(self):
        rs = [make_resolution(id="a", today_status=C), make_resolution(id="b", today_status=M)]
        assert user_today_status(rs) == "missed"

    def test_partial_pending(self):
        rs = [make_resolution(id="a", today_status=C), make_resolution(id="b")]
        assert user_today_status(rs) == "pending"

    def test_private_ignored(self):
        rs = [make_resolution(id="a", today_status=C), make_resolution(id="b", is_private=True)]
        assert user_today_status(rs) == "checked"
