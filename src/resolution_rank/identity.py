"""Quarter-to-date identity labels for resolution-rank.

Pure function over a user's scored resolutions. The rules are checked in a
fixed priority order; an earlier rule wins when several thresholds hold.
"""

from __future__ import annotations

from datetime import datetime

from resolution_rank.dates import date_range, local_date, parse_day, start_of_quarter
from resolution_rank.models import Resolution, ResolutionStatus

RELENTLESS_MAINTAINER = "Relentless Maintainer"
CONSISTENT_STARTER = "Consistent Starter"
LATE_BLOOMER = "Late Bloomer"
STRONG_FINISHER = "Strong Finisher"
ON_AND_OFF_GRINDER = "On-and-Off Grinder"
SLEEPING_GIANT = "Sleeping Giant"

MIN_WINDOW_DAYS = 7


def _rate(completed: int, opportunities: int) -> float:
    return completed / opportunities if opportunities > 0 else 0.0


def classify_identity(resolutions: list[Resolution], now: datetime) -> str:
    """Label a user's behavioural pattern from start of quarter through today.

    Every (resolution, day) pair on or after the resolution's creation day is
    one opportunity; it is completed when the history says Completed. The
    window is split at floor(days / 2) to compare first and second halves.
    """
    today = now.date()
    dates = date_range(start_of_quarter(today), today)
    total_days = len(dates)
    if total_days < MIN_WINDOW_DAYS:
        return CONSISTENT_STARTER

    midpoint = total_days // 2
    completed = opportunities = 0
    first_completed = first_ops = 0
    second_completed = second_ops = 0

    for res in resolutions:
        created = local_date(res.created_at, now)
        history = res.history or {}
        for idx, key in enumerate(dates):
            if parse_day(key) < created:
                continue
            done = history.get(key) == ResolutionStatus.COMPLETED
            opportunities += 1
            completed += done
            if idx < midpoint:
                first_ops += 1
                first_completed += done
            else:
                second_ops += 1
                second_completed += done

    if opportunities == 0:
        return SLEEPING_GIANT

    consistency = completed / opportunities
    first_half = _rate(first_completed, first_ops)
    second_half = _rate(second_completed, second_ops)

    if consistency >= 0.85:
        return RELENTLESS_MAINTAINER
    if first_half > 0.8 and second_half < 0.6:
        return CONSISTENT_STARTER
    if first_half < 0.5 and second_half > 0.8:
        return LATE_BLOOMER
    if second_half > 0.85:
        return STRONG_FINISHER
    if consistency > 0.3:
        return ON_AND_OFF_GRINDER
    return SLEEPING_GIANT
