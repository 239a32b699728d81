"""Group leaderboard ranking for resolution-rank.

Pure functions: ranking never reads storage. Persisting the all-time ranks is
the caller's job (see tracker.get_leaderboard).
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from resolution_rank.models import RANK_DOWN, RANK_SAME, RANK_UP, User

PERIOD_ALL_TIME = "all-time"
PERIOD_MONTHLY = "monthly"
PERIODS = (PERIOD_ALL_TIME, PERIOD_MONTHLY)


@dataclass
class RankedUser:
    rank: int
    user: User


def period_score(user: User, period: str) -> float:
    return user.monthly_score if period == PERIOD_MONTHLY else user.score


def rank_change(previous_rank: int, new_rank: int) -> str:
    """up if the numeric rank improved, down if it got worse.

    A previous rank of 0 means the user was never ranked.
    """
    if previous_rank == 0:
        return RANK_SAME
    if new_rank < previous_rank:
        return RANK_UP
    if new_rank > previous_rank:
        return RANK_DOWN
    return RANK_SAME


def rank_users(users: list[User], period: str = PERIOD_ALL_TIME) -> list[RankedUser]:
    """Sort users by period score descending and assign ranks 1..N.

    Tie-break: streak desc, then input order (the sort is stable), so equal
    users still get distinct consecutive ranks.

    For the all-time period each returned user carries its new rank and
    rank_change; the monthly period leaves rank and rank_change untouched.
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown leaderboard period: {period}")

    ordered = sorted(users, key=lambda u: (-period_score(u, period), -u.streak))
    ranked: list[RankedUser] = []
    for i, user in enumerate(ordered):
        new_rank = i + 1
        if period == PERIOD_ALL_TIME:
            user = replace(user, rank=new_rank, rank_change=rank_change(user.rank, new_rank))
        ranked.append(RankedUser(rank=new_rank, user=user))
    return ranked
