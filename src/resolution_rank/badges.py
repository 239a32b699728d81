"""Badge definitions and checking for resolution-rank."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from resolution_rank.dates import days_since
from resolution_rank.health import LOCK_IN_DAYS
from resolution_rank.models import Resolution


@dataclass
class BadgeDef:
    id: str
    name: str
    description: str
    target: int
    check_field: str | None  # None: awarded by an event, never by stats


BADGES: list[BadgeDef] = [
    BadgeDef(
        id="streak_7",
        name="7-Day Streak",
        description="Reach a 7-day streak on any resolution",
        target=7,
        check_field="max_streak",
    ),
    BadgeDef(
        id="streak_30",
        name="30-Day Streak",
        description="Reach a 30-day streak on any resolution",
        target=30,
        check_field="max_streak",
    ),
    BadgeDef(
        id="locked_in",
        name="Locked In",
        description="Keep a resolution going past its 7-day lock-in",
        target=1,
        check_field="locked_in_resolutions",
    ),
    BadgeDef(
        id="comeback_kid",
        name="Comeback Kid",
        description="Bounce back with a 5-day streak after a rough week",
        target=1,
        check_field=None,
    ),
]

COMEBACK_KID = "Comeback Kid"


def badge_stats(resolutions: list[Resolution], now: datetime) -> dict:
    """Build the stats dict badges are checked against.

    Counts every resolution the user owns, private ones included.
    """
    return {
        "max_streak": max((r.current_streak for r in resolutions), default=0),
        "locked_in_resolutions": sum(
            1 for r in resolutions
            if r.is_active and days_since(r.created_at, now) >= LOCK_IN_DAYS
        ),
    }


def check_badges(stats: dict) -> list[BadgeDef]:
    """Return the stat-driven badges whose target the stats reach."""
    return [
        badge for badge in BADGES
        if badge.check_field is not None and stats.get(badge.check_field, 0) >= badge.target
    ]


def get_newly_awarded(existing: list[str], earned: list[BadgeDef]) -> list[str]:
    """Names of earned badges the user does not hold yet."""
    held = set(existing)
    return [b.name for b in earned if b.name not in held]
