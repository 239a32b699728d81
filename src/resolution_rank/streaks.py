"""Streak tracking for resolution-rank."""

from __future__ import annotations

from datetime import date, timedelta

from resolution_rank.dates import day_key, parse_day
from resolution_rank.models import History, ResolutionStatus

COMEBACK_STREAK = 5
COMEBACK_LOOKBACK_DAYS = 7
COMEBACK_MIN_MISSES = 3


def calculate_streak(
    history: History | None, today_status: ResolutionStatus, today: date
) -> int:
    """Count consecutive Completed days ending today.

    Rules:
    - today counts only through today_status (it may not be in history yet)
    - walk back from yesterday while history says Completed
    - the first Missed or absent day stops the walk
    """
    streak = 1 if today_status == ResolutionStatus.COMPLETED else 0
    if not history:
        return streak

    current = today - timedelta(days=1)
    while history.get(day_key(current)) == ResolutionStatus.COMPLETED:
        streak += 1
        current -= timedelta(days=1)
    return streak


def longest_streak(history: History | None) -> int:
    """Longest run of consecutive Completed days anywhere in history."""
    if not history:
        return 0

    completed = sorted(
        parse_day(key) for key, status in history.items() if status == ResolutionStatus.COMPLETED
    )
    if not completed:
        return 0

    longest = 1
    run = 1
    for i in range(1, len(completed)):
        if (completed[i] - completed[i - 1]).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def is_comeback(history: History | None, streak: int, today: date) -> bool:
    """True when a check-in completes a 5-day streak right after a bad patch.

    A bad patch is at least 3 Missed days in the 7 days before the streak began.
    """
    if streak != COMEBACK_STREAK or not history:
        return False

    streak_start = today - timedelta(days=COMEBACK_STREAK - 1)
    misses = 0
    for i in range(1, COMEBACK_LOOKBACK_DAYS + 1):
        key = day_key(streak_start - timedelta(days=i))
        if history.get(key) == ResolutionStatus.MISSED:
            misses += 1
    return misses >= COMEBACK_MIN_MISSES
