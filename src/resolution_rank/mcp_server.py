"""MCP server for resolution-rank.

Exposes group standings, reports and the Daily Hero as MCP tools.
get_leaderboard stores the recomputed scores and ranks it returns, and
get_daily_hero selects and announces today's hero when none was picked yet.
Run via: python3 -m resolution_rank.mcp_server
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from resolution_rank import tracker
from resolution_rank.config import get_current_user, get_db_path, get_timezone
from resolution_rank.dates import now_local
from resolution_rank.errors import NotFound, PolicyViolation
from resolution_rank.leaderboard import PERIODS, PERIOD_ALL_TIME
from resolution_rank.reports import REPORT_TYPES, WEEKLY

mcp = FastMCP(name="resolution-rank")


def _get_db():
    from resolution_rank.db import Database
    return Database(get_db_path())


def _now():
    return now_local(get_timezone())


def _user_id(user_id: str) -> str | None:
    return user_id or get_current_user()


@mcp.tool()
def get_leaderboard(period: str = PERIOD_ALL_TIME, user_id: str = "") -> dict[str, Any]:
    """Get the leaderboard of a user's group (default: the configured user)."""
    if period not in PERIODS:
        return {"error": f"Invalid period. Must be one of: {', '.join(PERIODS)}"}
    uid = _user_id(user_id)
    if not uid:
        return {"error": "No user given and none configured."}
    db = _get_db()
    try:
        user = db.get_user(uid)
        if user is None:
            return {"error": f"user not found: {uid}"}
        if user.group_id is None:
            return {"error": f"{user.name} is not in a group."}
        ranked = tracker.get_leaderboard(db, user.group_id, _now(), period=period)
        return {
            "period": period,
            "entries": [
                {
                    "rank": r.rank,
                    "user_id": r.user.id,
                    "name": r.user.name,
                    "score": r.user.monthly_score if period != PERIOD_ALL_TIME else r.user.score,
                    "streak": r.user.streak,
                    "rank_change": r.user.rank_change,
                    "identity": r.user.seasonal_label,
                }
                for r in ranked
            ],
        }
    finally:
        db.close()


@mcp.tool()
def get_report(report_type: str = WEEKLY, user_id: str = "") -> dict[str, Any]:
    """Get a weekly, monthly or yearly report for a user."""
    if report_type not in REPORT_TYPES:
        return {"error": f"Invalid report type. Must be one of: {', '.join(REPORT_TYPES)}"}
    uid = _user_id(user_id)
    if not uid:
        return {"error": "No user given and none configured."}
    db = _get_db()
    try:
        return tracker.get_report(db, uid, report_type, _now())
    except NotFound as exc:
        return {"error": str(exc)}
    finally:
        db.close()


@mcp.tool()
def get_resolutions(user_id: str = "", include_archived: bool = False) -> dict[str, Any]:
    """List a user's resolutions with streak, health and lock-in state."""
    uid = _user_id(user_id)
    if not uid:
        return {"error": "No user given and none configured."}
    db = _get_db()
    try:
        rows = tracker.get_resolutions(db, uid, _now(), include_archived=include_archived)
        return {
            "user_id": uid,
            "resolutions": [
                {
                    "id": row["resolution"].id,
                    "title": row["resolution"].title,
                    "private": row["resolution"].is_private,
                    "archived": not row["resolution"].is_active,
                    "effective_difficulty": row["resolution"].effective_difficulty,
                    "today_status": row["resolution"].today_status.value,
                    "current_streak": row["resolution"].current_streak,
                    "best_streak": row["best_streak"],
                    "health": row["health"],
                    "locked": row["locked"],
                }
                for row in rows
            ],
        }
    except NotFound as exc:
        return {"error": str(exc)}
    finally:
        db.close()


@mcp.tool()
def get_daily_hero(group_id: str) -> dict[str, Any]:
    """Get today's Daily Hero for a group, selecting one if needed."""
    db = _get_db()
    try:
        hero = tracker.refresh_daily_hero(db, group_id, _now())
    except (NotFound, PolicyViolation) as exc:
        return {"error": str(exc)}
    finally:
        db.close()
    if hero is None:
        return {"group_id": group_id, "hero": None}
    return {
        "group_id": group_id,
        "hero": {"user_id": hero.id, "name": hero.name, "score": hero.score, "streak": hero.streak},
    }


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
