"""Daily Hero and Comeback-of-the-week selection for resolution-rank.

Pure selection logic plus the once-per-period guards. Persisting the choice and
publishing the feed event happens in tracker.py.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from resolution_rank.dates import day_key, local_date, start_of_week
from resolution_rank.models import Group, Resolution, ResolutionStatus, User

MIN_HONESTY_FOR_HERO = 80


def should_refresh_hero(group: Group, today: date) -> bool:
    """The daily hero is chosen at most once per group per calendar day."""
    return group.last_hero_selection_date != day_key(today)


def comeback_week_key(today: date) -> str:
    """Day key of the Monday that starts today's ISO week."""
    return day_key(start_of_week(today))


def should_award_comeback(group: Group, today: date) -> bool:
    """The comeback hero is awarded at most once per group per ISO week."""
    return group.last_comeback_selection_date != comeback_week_key(today)


def _completed_yesterday(resolutions: list[Resolution], now: datetime) -> bool:
    """True if the member had eligible resolutions and completed all of them yesterday.

    Eligible: scored and created on or before yesterday.
    """
    yesterday = now.date() - timedelta(days=1)
    key = day_key(yesterday)
    eligible = [
        r for r in resolutions
        if r.is_scored and local_date(r.created_at, now) <= yesterday
    ]
    if not eligible:
        return False
    return all((r.history or {}).get(key) == ResolutionStatus.COMPLETED for r in eligible)


def select_daily_hero(
    members: list[User],
    resolutions_by_owner: dict[str, list[Resolution]],
    now: datetime,
) -> User | None:
    """Pick the top-scoring member who fully completed yesterday.

    Candidates need honesty_score >= 80 and every eligible resolution
    Completed yesterday. Highest score wins, then highest streak, then the
    member encountered first.
    """
    best: User | None = None
    for member in members:
        if member.honesty_score < MIN_HONESTY_FOR_HERO:
            continue
        if not _completed_yesterday(resolutions_by_owner.get(member.id, []), now):
            continue
        if best is None or (member.score, member.streak) > (best.score, best.streak):
            best = member
    return best
