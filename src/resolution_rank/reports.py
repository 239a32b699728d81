"""Periodic report aggregation for resolution-rank.

Pure functions that turn resolution histories into weekly, monthly and yearly
summaries. No side effects, no DB access - accepts entities as input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from resolution_rank.dates import (
    date_range,
    day_key,
    local_date,
    parse_day,
    start_of_month,
    start_of_year,
)
from resolution_rank.difficulty import round_half_up
from resolution_rank.models import RANK_DOWN, RANK_UP, Resolution, ResolutionStatus, User

WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
REPORT_TYPES = (WEEKLY, MONTHLY, YEARLY)

TRUST_UP_THRESHOLD = 95
TRUST_DOWN_THRESHOLD = 80


@dataclass
class ResolutionRate:
    """Completions against opportunities for one resolution inside a window."""

    resolution: Resolution
    completed: int
    opportunities: int

    @property
    def rate(self) -> float:
        return self.completed / self.opportunities if self.opportunities else 0.0


def get_period_dates(report_type: str, today: date) -> tuple[str, str]:
    """Return (start_date, end_date) day keys for a report type.

    weekly: trailing 7 days including today
    monthly: calendar month to date
    yearly: calendar year to date
    """
    if report_type == WEEKLY:
        start = today - timedelta(days=6)
    elif report_type == MONTHLY:
        start = start_of_month(today)
    elif report_type == YEARLY:
        start = start_of_year(today)
    else:
        raise ValueError(f"Unknown report type: {report_type}")
    return (day_key(start), day_key(today))


def period_label(report_type: str, today: date) -> str:
    if report_type == WEEKLY:
        return "Last 7 Days"
    if report_type == MONTHLY:
        return today.strftime("%B %Y")
    return str(today.year)


def resolution_rates(
    resolutions: list[Resolution], dates: list[str], now: datetime
) -> list[ResolutionRate]:
    """Per-resolution rates over the window, keeping only resolutions with opportunities.

    A day is an opportunity when it falls on or after the resolution's creation day.
    """
    rates: list[ResolutionRate] = []
    for res in resolutions:
        created = local_date(res.created_at, now)
        history = res.history or {}
        completed = 0
        opportunities = 0
        for key in dates:
            if parse_day(key) < created:
                continue
            opportunities += 1
            if history.get(key) == ResolutionStatus.COMPLETED:
                completed += 1
        if opportunities == 0:
            continue
        rates.append(ResolutionRate(resolution=res, completed=completed, opportunities=opportunities))
    return rates


def average_consistency(rates: list[ResolutionRate]) -> int:
    """Mean of per-resolution rates as a whole percentage (0 when empty)."""
    if not rates:
        return 0
    return round_half_up(sum(r.rate for r in rates) / len(rates) * 100)


def _best_and_worst(rates: list[ResolutionRate]) -> tuple[Resolution | None, Resolution | None]:
    """Highest and lowest rate. On equal rates the first one encountered wins."""
    best: ResolutionRate | None = None
    worst: ResolutionRate | None = None
    for r in rates:
        if best is None or r.rate > best.rate:
            best = r
        if worst is None or r.rate < worst.rate:
            worst = r
    return (
        best.resolution if best else None,
        worst.resolution if worst else None,
    )


def _trust_trend(honesty_score: int) -> str:
    if honesty_score >= TRUST_UP_THRESHOLD:
        return "up"
    if honesty_score < TRUST_DOWN_THRESHOLD:
        return "down"
    return "stable"


def _rank_delta(rank_change: str) -> int:
    if rank_change == RANK_UP:
        return 1
    if rank_change == RANK_DOWN:
        return -1
    return 0


def generate_report(
    user: User,
    resolutions: list[Resolution],
    members: list[User],
    member_resolutions: dict[str, list[Resolution]],
    report_type: str,
    now: datetime,
) -> dict:
    """Build a periodic report for one user and their group.

    resolutions: every resolution the user owns; archived ones are left out
    members: group members, including the user
    member_resolutions: each member's resolutions keyed by member id
    """
    today = now.date()
    start_key, end_key = get_period_dates(report_type, today)
    dates = date_range(parse_day(start_key), parse_day(end_key))

    rates = resolution_rates([r for r in resolutions if r.is_active], dates, now)
    best, worst = _best_and_worst(rates)
    points = sum(r.completed * r.resolution.effective_difficulty for r in rates if not r.resolution.is_private)

    group_rates: list[ResolutionRate] = []
    for member in members:
        group_rates.extend(resolution_rates(
            [r for r in member_resolutions.get(member.id, []) if r.is_active], dates, now
        ))

    top_members = sorted(members, key=lambda m: m.score, reverse=True)
    group_hero = top_members[0] if top_members else None

    return {
        "type": report_type,
        "period_label": period_label(report_type, today),
        "period_start": start_key,
        "period_end": end_key,
        "days_checked_in": sum(r.completed for r in rates),
        "points_gained": points,
        "rank_change": _rank_delta(user.rank_change),
        "consistency": average_consistency(rates),
        "best_resolution": best.title if best else None,
        "worst_resolution": worst.title if worst else None,
        "trust_trend": _trust_trend(user.honesty_score),
        "group_hero": group_hero.name if group_hero else None,
        "group_hero_id": group_hero.id if group_hero else None,
        "group_consistency": average_consistency(group_rates),
        "group_size": len(members),
    }
