"""Tests for the MCP server tool functions."""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from resolution_rank import tracker
from resolution_rank.db import Database
from resolution_rank.mcp_server import get_daily_hero, get_leaderboard, get_report, get_resolutions
from resolution_rank.models import ResolutionStatus

NOW = datetime(2026, 3, 18, 20, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def seeded(tmp_path):
    """A group g1 where alice has checked in twice; tools read a fresh connection."""
    db_path = tmp_path / "mcp.db"
    db = Database(db_path)
    tracker.create_group(db, "g1", "Gym Rats")
    for uid, name in (("alice", "Alice"), ("bob", "Bob")):
        tracker.create_user(db, uid, name)
        tracker.join_group(db, uid, "g1")
    tracker.create_user(db, "solo", "Solo")
    tracker.add_resolution(db, "alice", "Run", 3, NOW - timedelta(days=10), resolution_id="r1")
    tracker.add_resolution(db, "alice", "Diary", 1, NOW, resolution_id="r2", is_private=True)
    tracker.check_in(db, "r1", ResolutionStatus.COMPLETED, NOW - timedelta(days=1))
    tracker.check_in(db, "r1", ResolutionStatus.COMPLETED, NOW)
    db.close()
    with patch("resolution_rank.mcp_server._get_db", side_effect=lambda: Database(db_path)), \
            patch("resolution_rank.mcp_server._now", return_value=NOW), \
            patch("resolution_rank.mcp_server.get_current_user", return_value="alice"):
        yield db_path


class TestGetLeaderboard:
    def test_default_user_group(self):
        result = get_leaderboard()
        assert [e["user_id"] for e in result["entries"]] == ["alice", "bob"]
        assert result["entries"][0]["score"] == 6.0
        assert result["entries"][0]["rank"] == 1

    def test_monthly(self):
        result = get_leaderboard(period="monthly", user_id="bob")
        assert result["period"] == "monthly"
        assert result["entries"][0]["score"] == 6.0

    def test_stores_ranks(self, seeded):
        get_leaderboard()
        db = Database(seeded)
        try:
            assert (db.get_user("alice").rank, db.get_user("bob").rank) == (1, 2)
        finally:
            db.close()

    def test_invalid_period(self):
        assert "error" in get_leaderboard(period="weekly")

    def test_user_without_group(self):
        assert "error" in get_leaderboard(user_id="solo")

    def test_unknown_user(self):
        assert "error" in get_leaderboard(user_id="ghost")


class TestGetReport:
    def test_weekly(self):
        result = get_report()
        assert result["days_checked_in"] == 2
        assert result["points_gained"] == 6.0

    def test_invalid_type(self):
        assert "error" in get_report(report_type="daily")

    def test_unknown_user(self):
        assert get_report(user_id="ghost") == {"error": "user not found: ghost"}


class TestGetResolutions:
    def test_lists_with_state(self):
        result = get_resolutions()
        by_id = {r["id"]: r for r in result["resolutions"]}
        assert by_id["r1"]["current_streak"] == 2
        assert by_id["r1"]["best_streak"] == 2
        assert by_id["r1"]["today_status"] == "COMPLETED"
        assert by_id["r1"]["locked"] is False
        assert by_id["r2"]["private"] is True
        assert by_id["r2"]["locked"] is True

    def test_unknown_user(self):
        assert "error" in get_resolutions(user_id="ghost")


class TestGetDailyHero:
    def test_selects_hero(self):
        result = get_daily_hero("g1")
        assert result["hero"]["user_id"] == "alice"

    def test_unknown_group(self):
        assert "error" in get_daily_hero("nope")
