"""Resolution health and lock-in checks. Pure functions, no side effects."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from resolution_rank.dates import day_key, days_since
from resolution_rank.models import Resolution, ResolutionStatus

HEALTHY = "healthy"
AT_RISK = "at-risk"
SLIPPING = "slipping"

LOCK_IN_DAYS = 7
HEALTH_WINDOW_DAYS = 7
RECENT_WINDOW_DAYS = 5


def resolution_health(resolution: Resolution, today: date) -> str:
    """Classify a resolution from the 7 days strictly before today.

    - slipping: 2+ misses in the last 5 days, or 3+ in the last 7
    - at-risk: 2 misses in the last 7
    - healthy: otherwise, and always for archived resolutions

    Days with no entry or Unchecked never count as misses.
    """
    if not resolution.is_active:
        return HEALTHY

    history = resolution.history or {}
    misses_last_5 = 0
    misses_last_7 = 0
    for days_back in range(1, HEALTH_WINDOW_DAYS + 1):
        key = day_key(today - timedelta(days=days_back))
        if history.get(key) == ResolutionStatus.MISSED:
            misses_last_7 += 1
            if days_back <= RECENT_WINDOW_DAYS:
                misses_last_5 += 1

    if misses_last_5 >= 2 or misses_last_7 >= 3:
        return SLIPPING
    if misses_last_7 >= 2:
        return AT_RISK
    return HEALTHY


def is_locked(resolution: Resolution, now: datetime) -> bool:
    """True during the lock-in window, when archiving is not allowed."""
    return days_since(resolution.created_at, now) < LOCK_IN_DAYS


def user_today_status(resolutions: list[Resolution]) -> str:
    """Summarize a user's check-in state for today: checked, missed or pending."""
    scored = [r for r in resolutions if r.is_scored]
    if not scored:
        return "pending"
    if any(r.today_status == ResolutionStatus.MISSED for r in scored):
        return "missed"
    if all(r.today_status == ResolutionStatus.COMPLETED for r in scored):
        return "checked"
    return "pending"
