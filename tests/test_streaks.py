"""Tests for the streak tracking system."""

from datetime import date, timedelta

from resolution_rank.dates import day_key
from resolution_rank.models import ResolutionStatus
from resolution_rank.streaks import calculate_streak, is_comeback, longest_streak

C = ResolutionStatus.COMPLETED
M = ResolutionStatus.MISSED
U = ResolutionStatus.UNCHECKED

TODAY = date(2026, 3, 18)


def history(**offsets):
    """Build a history from keyword offsets: history(d1=C) sets yesterday to Completed."""
    return {day_key(TODAY - timedelta(days=int(k[1:]))): v for k, v in offsets.items()}


class TestCalculateStreak:
    def test_today_only(self):
        assert calculate_streak({day_key(TODAY): C}, C, TODAY) == 1

    def test_empty_history_uses_today_status(self):
        assert calculate_streak({}, C, TODAY) == 1
        assert calculate_streak({}, U, TODAY) == 0

    def test_none_history(self):
        assert calculate_streak(None, C, TODAY) == 1

    def test_consecutive_days(self):
        h = history(d0=C, d1=C, d2=C, d3=C)
        assert calculate_streak(h, C, TODAY) == 4

    def test_unchecked_today_keeps_yesterdays_run(self):
        h = history(d1=C, d2=C, d3=C)
        assert calculate_streak(h, U, TODAY) == 3

    def test_missed_today_does_not_count(self):
        h = history(d0=M, d1=C, d2=C)
        assert calculate_streak(h, M, TODAY) == 2

    def test_gap_stops_walk(self):
        h = history(d1=C, d2=C, d4=C, d5=C)
        assert calculate_streak(h, C, TODAY) == 3

    def test_missed_stops_walk(self):
        h = history(d1=C, d2=M, d3=C, d4=C)
        assert calculate_streak(h, C, TODAY) == 2

    def test_idempotent(self):
        h = history(d0=C, d1=C, d2=C, d5=M)
        assert calculate_streak(h, C, TODAY) == calculate_streak(h, C, TODAY)

    def test_single_missed_breaks_any_run(self):
        h = {day_key(TODAY - timedelta(days=i)): C for i in range(1, 30)}
        h[day_key(TODAY - timedelta(days=1))] = M
        assert calculate_streak(h, U, TODAY) == 0


class TestLongestStreak:
    def test_empty(self):
        assert longest_streak({}) == 0
        assert longest_streak(None) == 0

    def test_no_completed(self):
        assert longest_streak(history(d1=M, d2=M)) == 0

    def test_longest_run_anywhere(self):
        h = history(d0=C, d1=C, d3=C, d4=C, d5=C, d6=C, d8=C)
        assert longest_streak(h) == 4

    def test_single(self):
        assert longest_streak(history(d10=C)) == 1


class TestIsComeback:
    def _comeback_history(self, misses: int) -> dict:
        h = history(d0=C, d1=C, d2=C, d3=C, d4=C)
        # the 7 days before the streak started are d5..d11
        for i in range(5, 5 + misses):
            h[day_key(TODAY - timedelta(days=i))] = M
        return h

    def test_three_misses_before_five_day_streak(self):
        assert is_comeback(self._comeback_history(3), 5, TODAY) is True

    def test_two_misses_is_not_enough(self):
        assert is_comeback(self._comeback_history(2), 5, TODAY) is False

    def test_only_exactly_five_counts(self):
        h = self._comeback_history(3)
        assert is_comeback(h, 6, TODAY) is False
        assert is_comeback(h, 4, TODAY) is False

    def test_misses_outside_lookback_ignored(self):
        h = history(d0=C, d1=C, d2=C, d3=C, d4=C, d12=M, d13=M, d14=M)
        assert is_comeback(h, 5, TODAY) is False
