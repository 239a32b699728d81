"""Score aggregation for resolution-rank.

Pure functions that turn a user's resolution histories into lifetime score,
monthly score, max streak and identity label. Always recomputed from scratch;
never patched incrementally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from resolution_rank.dates import day_key, start_of_month
from resolution_rank.difficulty import round10, round_half_up
from resolution_rank.identity import classify_identity
from resolution_rank.models import Resolution, ResolutionStatus, User
from resolution_rank.streaks import calculate_streak

logger = logging.getLogger(__name__)


@dataclass
class ScoreResult:
    """Derived user fields plus the resolutions with refreshed streak caches."""

    score: float
    monthly_score: float
    streak: int
    seasonal_label: str
    resolutions: list[Resolution] = field(default_factory=list)


def count_completions(resolution: Resolution, since: str | None = None) -> int:
    """Completed entries in history, optionally only on/after day key since."""
    if not resolution.history:
        return 0
    return sum(
        1
        for key, status in resolution.history.items()
        if status == ResolutionStatus.COMPLETED and (since is None or key >= since)
    )


def resolution_points(resolution: Resolution, since: str | None = None) -> float:
    """Completions weighted by effective difficulty."""
    return count_completions(resolution, since) * resolution.effective_difficulty


def refresh_resolution(resolution: Resolution, now: datetime) -> Resolution:
    """Return a copy with today_status and current_streak rebuilt from history."""
    today = now.date()
    history = resolution.history or {}
    today_status = history.get(day_key(today), ResolutionStatus.UNCHECKED)
    return replace(
        resolution,
        today_status=today_status,
        current_streak=calculate_streak(resolution.history, today_status, today),
    )


def recalculate_user(user: User, resolutions: list[Resolution], now: datetime) -> ScoreResult:
    """Recompute a user's derived fields from their scored resolutions.

    Private and archived resolutions (and other owners' resolutions) are
    ignored. A resolution with an unreadable history contributes zero.
    """
    month_start = day_key(start_of_month(now.date()))
    scored = [r for r in resolutions if r.owner_id == user.id and r.is_scored]

    total = 0.0
    monthly = 0.0
    max_streak = 0
    refreshed: list[Resolution] = []
    for res in scored:
        if res.history is None:
            logger.debug("Resolution %s has no readable history, scoring 0", res.id)
        total += resolution_points(res)
        monthly += resolution_points(res, since=month_start)
        res = refresh_resolution(res, now)
        max_streak = max(max_streak, res.current_streak)
        refreshed.append(res)

    label = classify_identity(scored, now)
    logger.debug(
        "Recalculated %s: score=%s monthly=%s streak=%s label=%s",
        user.id, total, monthly, max_streak, label,
    )
    return ScoreResult(
        score=total,
        monthly_score=monthly,
        streak=max_streak,
        seasonal_label=label,
        resolutions=refreshed,
    )


def apply_score(user: User, result: ScoreResult) -> User:
    """Copy of user with the derived fields from result."""
    return replace(
        user,
        score=result.score,
        monthly_score=result.monthly_score,
        streak=result.streak,
        seasonal_label=result.seasonal_label,
    )


def score_breakdown(resolutions: list[Resolution]) -> list[dict]:
    """Per-resolution points for scored resolutions, highest first."""
    rows = []
    for res in resolutions:
        if not res.is_scored:
            continue
        days = count_completions(res)
        rows.append({
            "id": res.id,
            "title": res.title,
            "difficulty": round10(res.effective_difficulty),
            "days": days,
            "points": round_half_up(days * res.effective_difficulty),
        })
    rows.sort(key=lambda r: r["points"], reverse=True)
    return rows
