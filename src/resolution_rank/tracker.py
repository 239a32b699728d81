"""Operations for resolution-rank: the store plus the pure engine.

Each operation reads what it needs from the Database, runs the engine against
an injected ``now`` and writes the results back. Derived user fields are only
ever written by recalculate_user_scores, which always re-reads the store.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import replace
from datetime import datetime

from resolution_rank.badges import COMEBACK_KID, badge_stats, check_badges, get_newly_awarded
from resolution_rank.dates import day_key, today_key
from resolution_rank.db import Database
from resolution_rank.difficulty import cast_vote, check_in_points, is_valid_difficulty
from resolution_rank.errors import NotFound, PolicyViolation
from resolution_rank.health import is_locked, resolution_health
from resolution_rank.heroes import (
    comeback_week_key,
    select_daily_hero,
    should_award_comeback,
    should_refresh_hero,
)
from resolution_rank.leaderboard import PERIOD_ALL_TIME, RankedUser, rank_users
from resolution_rank.models import FeedEvent, Group, Resolution, ResolutionStatus, User
from resolution_rank.reports import generate_report
from resolution_rank.scoring import apply_score, recalculate_user, refresh_resolution, score_breakdown
from resolution_rank.streaks import calculate_streak, is_comeback, longest_streak

logger = logging.getLogger(__name__)

STREAK_MILESTONE = 7


def _require_user(db: Database, user_id: str) -> User:
    user = db.get_user(user_id)
    if user is None:
        raise NotFound("user", user_id)
    return user


def _require_group(db: Database, group_id: str) -> Group:
    group = db.get_group(group_id)
    if group is None:
        raise NotFound("group", group_id)
    return group


def _require_resolution(db: Database, resolution_id: str) -> Resolution:
    res = db.get_resolution(resolution_id)
    if res is None:
        raise NotFound("resolution", resolution_id)
    return res


def _check_owner(res: Resolution, actor_id: str | None) -> None:
    if actor_id is not None and actor_id != res.owner_id:
        raise PolicyViolation("not_owner", "Only the owner can change this resolution")


def _emit(db: Database, event_type: str, message: str, user: User, now: datetime) -> None:
    """Append a feed event for the user's group. Users without a group have no feed."""
    if user.group_id is None:
        return
    db.add_feed_event(FeedEvent(
        type=event_type,
        message=message,
        user_id=user.id,
        group_id=user.group_id,
        timestamp=now.isoformat(),
    ))


# ── Users and groups ──────────────────────────────────────────────────────


def create_user(db: Database, user_id: str, name: str, honesty_score: int = 100) -> User:
    user = User(id=user_id, name=name, honesty_score=honesty_score)
    try:
        db.add_user(user)
    except sqlite3.IntegrityError:
        raise PolicyViolation("duplicate_id", f"User already exists: {user_id}") from None
    logger.info("Created user %s", user_id)
    return user


def create_group(db: Database, group_id: str, name: str) -> Group:
    group = Group(id=group_id, name=name)
    try:
        db.add_group(group)
    except sqlite3.IntegrityError:
        raise PolicyViolation("duplicate_id", f"Group already exists: {group_id}") from None
    logger.info("Created group %s", group_id)
    return group


def join_group(db: Database, user_id: str, group_id: str) -> User:
    user = _require_user(db, user_id)
    _require_group(db, group_id)
    db.set_user_group(user.id, group_id)
    logger.info("User %s joined group %s", user_id, group_id)
    return replace(user, group_id=group_id)


# ── Resolutions ───────────────────────────────────────────────────────────


def add_resolution(
    db: Database,
    owner_id: str,
    title: str,
    difficulty: int,
    now: datetime,
    is_private: bool = False,
    category: str = "",
    resolution_id: str | None = None,
) -> Resolution:
    """Create a resolution with its declared difficulty, then rescore the owner."""
    _require_user(db, owner_id)
    if not is_valid_difficulty(difficulty):
        raise PolicyViolation("invalid_difficulty", "Difficulty must be an integer from 1 to 5")
    if not title.strip():
        raise PolicyViolation("empty_title", "Resolution title must not be empty")

    res = Resolution(
        id=resolution_id or uuid.uuid4().hex[:8],
        owner_id=owner_id,
        title=title.strip(),
        category=category,
        created_at=now.isoformat(),
        declared_difficulty=difficulty,
        effective_difficulty=float(difficulty),
        is_private=is_private,
    )
    try:
        db.add_resolution(res)
    except sqlite3.IntegrityError:
        raise PolicyViolation("duplicate_id", f"Resolution already exists: {res.id}") from None
    logger.info("User %s added resolution %s (%r)", owner_id, res.id, res.title)
    recalculate_user_scores(db, owner_id, now)
    return res


def get_resolutions(
    db: Database, user_id: str, now: datetime, include_archived: bool = False
) -> list[dict]:
    """A user's resolutions with their health, lock-in state and best streak.

    today_status and current_streak are rebuilt from history for now's day,
    so a stored cache from an earlier day is never shown.
    """
    _require_user(db, user_id)
    today = now.date()
    resolutions = [
        refresh_resolution(res, now)
        for res in db.get_user_resolutions(user_id, include_archived=include_archived)
    ]
    return [
        {
            "resolution": res,
            "health": resolution_health(res, today),
            "locked": is_locked(res, now),
            "best_streak": longest_streak(res.history),
        }
        for res in resolutions
    ]


def check_in(
    db: Database,
    resolution_id: str,
    status: ResolutionStatus,
    now: datetime,
    actor_id: str | None = None,
) -> dict:
    """Set today's status on a resolution and propagate the consequences.

    Rewrites the resolution's history, streak and today_status, publishes
    check-in and streak milestone events for public completions, detects a
    comeback, rescores the owner and awards any newly earned badges.
    """
    if status not in (ResolutionStatus.COMPLETED, ResolutionStatus.MISSED):
        raise PolicyViolation("invalid_status", f"Cannot check in as {status.value}")
    res = _require_resolution(db, resolution_id)
    _check_owner(res, actor_id)
    if not res.is_active:
        raise PolicyViolation("archived", "Cannot check in on an archived resolution")
    if res.history is None:
        raise PolicyViolation(
            "unreadable_history", f"History of resolution {res.id} is unreadable; not overwriting it"
        )
    owner = _require_user(db, res.owner_id)

    today = now.date()
    previous_streak = refresh_resolution(res, now).current_streak
    history = {**res.history, today_key(now): status}
    streak = calculate_streak(history, status, today)
    res = replace(res, history=history, today_status=status, current_streak=streak)
    db.save_check_in(res)
    logger.info("Check-in on %s for %s: %s (streak %d)", res.id, today_key(now), status.value, streak)

    comeback = False
    if status == ResolutionStatus.COMPLETED and is_comeback(history, streak, today):
        comeback = handle_comeback(db, owner.id, now)

    points = 0
    if status == ResolutionStatus.COMPLETED:
        points = check_in_points(res.effective_difficulty)
        if not res.is_private:
            _emit(db, "check-in", f'{owner.name} checked in on "{res.title}" (+{points} pts)', owner, now)
            if streak > 0 and streak % STREAK_MILESTONE == 0 and streak > previous_streak:
                _emit(db, "streak", f'{owner.name} reached a {streak}-day streak on "{res.title}"!', owner, now)

    user = recalculate_user_scores(db, owner.id, now)
    new_badges = award_badges(db, owner.id, now)
    return {
        "resolution": res,
        "points": points,
        "streak": streak,
        "comeback": comeback,
        "new_badges": new_badges,
        "user": user,
    }


def vote_difficulty(
    db: Database, resolution_id: str, voter_id: str, vote: int, now: datetime
) -> Resolution:
    """Record a peer difficulty vote and rescore the resolution's owner."""
    res = _require_resolution(db, resolution_id)
    _require_user(db, voter_id)
    res = cast_vote(res, voter_id, vote)
    db.save_votes(res)
    logger.info(
        "User %s voted %d on %s; effective difficulty now %s",
        voter_id, vote, res.id, res.effective_difficulty,
    )
    recalculate_user_scores(db, res.owner_id, now)
    return res


def archive_resolution(
    db: Database, resolution_id: str, now: datetime, reason: str | None = None,
    actor_id: str | None = None,
) -> Resolution:
    """Archive a resolution once it is past its lock-in window. Archiving is final."""
    res = _require_resolution(db, resolution_id)
    _check_owner(res, actor_id)
    if not res.is_active:
        raise PolicyViolation("already_archived", "Resolution is already archived")
    if is_locked(res, now):
        raise PolicyViolation(
            "locked_in", "Resolution is locked in and cannot be archived during its first 7 days"
        )
    res = replace(res, archived_at=now.isoformat(), archived_reason=reason)
    db.save_archive(res)
    logger.info("Archived resolution %s", res.id)
    recalculate_user_scores(db, res.owner_id, now)
    return res


# ── Scores and rankings ───────────────────────────────────────────────────


def recalculate_user_scores(db: Database, user_id: str, now: datetime) -> User:
    """Recompute and persist a user's derived fields from the stored resolutions."""
    user = _require_user(db, user_id)
    result = recalculate_user(user, db.get_user_resolutions(user_id), now)
    user = apply_score(user, result)
    db.save_recalculation(user, result.resolutions)
    return user


def get_leaderboard(
    db: Database, group_id: str, now: datetime, period: str = PERIOD_ALL_TIME
) -> list[RankedUser]:
    """Rank a group's members. The all-time ranking is persisted."""
    group = _require_group(db, group_id)
    members = [recalculate_user_scores(db, member_id, now) for member_id in group.member_ids]
    ranked = rank_users(members, period)
    if period == PERIOD_ALL_TIME:
        db.save_ranks([r.user for r in ranked])
    return ranked


def get_score_breakdown(db: Database, user_id: str) -> list[dict]:
    _require_user(db, user_id)
    return score_breakdown(db.get_user_resolutions(user_id))


def get_resolution_health(db: Database, resolution_id: str, now: datetime) -> str:
    return resolution_health(_require_resolution(db, resolution_id), now.date())


def get_report(db: Database, user_id: str, report_type: str, now: datetime) -> dict:
    """Weekly, monthly or yearly report for a user against their group."""
    user = _require_user(db, user_id)
    members = db.get_group_members(user.group_id) if user.group_id else [user]
    member_resolutions = {m.id: db.get_user_resolutions(m.id) for m in members}
    return generate_report(
        user,
        db.get_user_resolutions(user_id),
        members,
        member_resolutions,
        report_type,
        now,
    )


# ── Heroes and badges ─────────────────────────────────────────────────────


def refresh_daily_hero(db: Database, group_id: str, now: datetime) -> User | None:
    """Return today's Daily Hero, selecting one if the group has not yet today."""
    group = _require_group(db, group_id)
    today = now.date()
    if not should_refresh_hero(group, today):
        return db.get_user(group.daily_hero_id) if group.daily_hero_id else None

    members = db.get_group_members(group_id)
    resolutions_by_owner = {m.id: db.get_user_resolutions(m.id) for m in members}
    hero = select_daily_hero(members, resolutions_by_owner, now)

    group = replace(
        group,
        daily_hero_id=hero.id if hero else None,
        last_hero_selection_date=day_key(today),
    )
    db.save_group_heroes(group)
    if hero is None:
        logger.info("No Daily Hero for group %s on %s", group_id, day_key(today))
        return None
    logger.info("Daily Hero for group %s on %s: %s", group_id, day_key(today), hero.id)
    _emit(db, "hero", f"👑 {hero.name} is today's Daily Hero!", hero, now)
    return hero


def handle_comeback(db: Database, user_id: str, now: datetime) -> bool:
    """Make the user the group's Comeback of the Week unless one was named this week.

    Returns True when the award was made.
    """
    user = _require_user(db, user_id)
    if user.group_id is None:
        return False
    group = db.get_group(user.group_id)
    if group is None or not should_award_comeback(group, now.date()):
        return False

    group = replace(
        group,
        weekly_comeback_hero_id=user.id,
        last_comeback_selection_date=comeback_week_key(now.date()),
    )
    db.save_group_heroes(group)
    logger.info("Comeback of the week for group %s: %s", group.id, user.id)
    _emit(
        db, "comeback",
        f"🔥 COMEBACK OF THE WEEK: {user.name} bounced back with a 5-day streak!",
        user, now,
    )
    if COMEBACK_KID not in user.badges:
        db.set_user_badges(user.id, user.badges + [COMEBACK_KID])
    return True


def award_badges(db: Database, user_id: str, now: datetime) -> list[str]:
    """Award every stat-driven badge the user has newly earned. Returns their names."""
    user = _require_user(db, user_id)
    stats = badge_stats(db.get_user_resolutions(user_id), now)
    new = get_newly_awarded(user.badges, check_badges(stats))
    if new:
        db.set_user_badges(user.id, user.badges + new)
        logger.info("User %s earned badges: %s", user.id, ", ".join(new))
    return new


def get_feed(db: Database, group_id: str, limit: int = 20) -> list[FeedEvent]:
    _require_group(db, group_id)
    return db.get_feed(group_id, limit)
