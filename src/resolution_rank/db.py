"""SQLite database layer for resolution-rank.

Rows are turned into typed models here. Malformed stored data is logged and
neutralised at this boundary (unreadable history -> None, bad votes dropped,
rows with unusable timestamps or difficulty skipped) so one poisoned record
never aborts a group-wide recomputation.
"""

import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from resolution_rank.dates import day_key
from resolution_rank.difficulty import effective_difficulty, is_valid_difficulty
from resolution_rank.models import FeedEvent, Group, History, Resolution, ResolutionStatus, User

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".resolution-rank" / "data.db"


def parse_history(raw: str | None, resolution_id: str) -> History | None:
    """Decode a stored history map. Returns None if any part is unreadable."""
    if raw is None:
        return {}
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("history is not an object")
        history: History = {}
        for key, value in data.items():
            if day_key(date.fromisoformat(key)) != key:
                raise ValueError(f"day key {key!r} is not YYYY-MM-DD")
            history[key] = ResolutionStatus(value)
        return history
    except (json.JSONDecodeError, ValueError, TypeError) as exc:
        logger.warning("Ignoring unreadable history for resolution %s: %s", resolution_id, exc)
        return None


def parse_votes(raw: str | None, resolution_id: str) -> dict[str, int]:
    """Decode a stored vote map, dropping entries that are not 1-5 integers."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring unreadable votes for resolution %s: %s", resolution_id, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring votes for resolution %s: not an object", resolution_id)
        return {}
    votes: dict[str, int] = {}
    for voter, vote in data.items():
        if is_valid_difficulty(vote):
            votes[voter] = vote
        else:
            logger.warning("Dropping invalid vote %r by %s on resolution %s", vote, voter, resolution_id)
    return votes


def _parse_badges(raw: str | None) -> list[str]:
    try:
        data = json.loads(raw) if raw else []
    except json.JSONDecodeError:
        return []
    return [b for b in data if isinstance(b, str)] if isinstance(data, list) else []


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        group_id=row["group_id"],
        score=row["score"],
        monthly_score=row["monthly_score"],
        streak=row["streak"],
        rank=row["rank"],
        rank_change=row["rank_change"],
        honesty_score=row["honesty_score"],
        seasonal_label=row["seasonal_label"],
        badges=_parse_badges(row["badges"]),
    )


def _valid_timestamp(value: object) -> bool:
    try:
        datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


def _row_to_resolution(row: sqlite3.Row) -> Resolution | None:
    """Build a Resolution from a row, or None when the row cannot be scored safely.

    effective_difficulty is re-derived from the declared difficulty and the
    surviving votes rather than trusted from the stored column.
    """
    res_id = row["id"]
    declared = row["declared_difficulty"]
    if not is_valid_difficulty(declared):
        logger.warning("Skipping resolution %s: invalid declared difficulty %r", res_id, declared)
        return None
    if not _valid_timestamp(row["created_at"]):
        logger.warning("Skipping resolution %s: unreadable created_at %r", res_id, row["created_at"])
        return None
    if row["archived_at"] is not None and not _valid_timestamp(row["archived_at"]):
        logger.warning("Skipping resolution %s: unreadable archived_at %r", res_id, row["archived_at"])
        return None

    votes = parse_votes(row["peer_votes"], res_id)
    effective = effective_difficulty(declared, votes)
    if row["effective_difficulty"] != effective:
        logger.warning(
            "Stored effective difficulty %r of resolution %s does not match its votes, using %s",
            row["effective_difficulty"], res_id, effective,
        )
    try:
        today_status = ResolutionStatus(row["today_status"])
    except ValueError:
        today_status = ResolutionStatus.UNCHECKED
    return Resolution(
        id=res_id,
        owner_id=row["owner_id"],
        title=row["title"],
        category=row["category"],
        created_at=row["created_at"],
        declared_difficulty=declared,
        effective_difficulty=effective,
        is_private=bool(row["is_private"]),
        history=parse_history(row["history"], res_id),
        current_streak=row["current_streak"],
        today_status=today_status,
        peer_difficulty_votes=votes,
        archived_at=row["archived_at"],
        archived_reason=row["archived_reason"],
    )


def _encode_history(history: History | None) -> str:
    return json.dumps({k: v.value for k, v in sorted((history or {}).items())})


class Database:
    """SQLite database manager with WAL mode."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                group_id TEXT,
                score REAL DEFAULT 0.0,
                monthly_score REAL DEFAULT 0.0,
                streak INTEGER DEFAULT 0,
                rank INTEGER DEFAULT 0,
                rank_change TEXT DEFAULT 'same',
                honesty_score INTEGER DEFAULT 100,
                seasonal_label TEXT DEFAULT 'Consistent Starter',
                badges TEXT DEFAULT '[]'
            );

            CREATE TABLE IF NOT EXISTS groups (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                daily_hero_id TEXT,
                last_hero_selection_date TEXT,
                weekly_comeback_hero_id TEXT,
                last_comeback_selection_date TEXT
            );

            CREATE TABLE IF NOT EXISTS resolutions (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                title TEXT NOT NULL,
                category TEXT DEFAULT '',
                created_at TEXT NOT NULL,
                declared_difficulty INTEGER NOT NULL,
                effective_difficulty REAL NOT NULL,
                is_private BOOLEAN DEFAULT 0,
                history TEXT DEFAULT '{}',
                current_streak INTEGER DEFAULT 0,
                today_status TEXT DEFAULT 'UNCHECKED',
                peer_votes TEXT DEFAULT '{}',
                archived_at TEXT,
                archived_reason TEXT
            );

            CREATE TABLE IF NOT EXISTS feed (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                group_id TEXT,
                type TEXT NOT NULL,
                message TEXT NOT NULL,
                user_id TEXT,
                timestamp TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_resolutions_owner ON resolutions(owner_id);
            CREATE INDEX IF NOT EXISTS idx_users_group ON users(group_id);
        """)
        self.conn.commit()

    # ── Users ─────────────────────────────────────────────────────────────

    def add_user(self, user: User) -> None:
        """Insert a new user."""
        self.conn.execute(
            "INSERT INTO users (id, name, group_id, honesty_score) VALUES (?, ?, ?, ?)",
            (user.id, user.name, user.group_id, user.honesty_score),
        )
        self.conn.commit()

    def get_user(self, user_id: str) -> User | None:
        row = self.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def get_group_members(self, group_id: str) -> list[User]:
        """Members of a group in join order."""
        rows = self.conn.execute(
            "SELECT * FROM users WHERE group_id = ? ORDER BY rowid", (group_id,)
        ).fetchall()
        return [_row_to_user(row) for row in rows]

    def set_user_group(self, user_id: str, group_id: str | None) -> None:
        self.conn.execute("UPDATE users SET group_id = ? WHERE id = ?", (group_id, user_id))
        self.conn.commit()

    def set_user_badges(self, user_id: str, badges: list[str]) -> None:
        self.conn.execute(
            "UPDATE users SET badges = ? WHERE id = ?", (json.dumps(badges), user_id)
        )
        self.conn.commit()

    def save_ranks(self, users: list[User]) -> None:
        """Persist rank and rank_change for a set of users in one write."""
        with self.conn:
            self.conn.executemany(
                "UPDATE users SET rank = ?, rank_change = ? WHERE id = ?",
                [(u.rank, u.rank_change, u.id) for u in users],
            )

    def save_recalculation(self, user: User, resolutions: list[Resolution]) -> None:
        """Persist derived user fields and resolution streak caches in one write."""
        with self.conn:
            self.conn.execute(
                "UPDATE users SET score = ?, monthly_score = ?, streak = ?, seasonal_label = ? "
                "WHERE id = ?",
                (user.score, user.monthly_score, user.streak, user.seasonal_label, user.id),
            )
            self.conn.executemany(
                "UPDATE resolutions SET current_streak = ?, today_status = ? WHERE id = ?",
                [(r.current_streak, r.today_status.value, r.id) for r in resolutions],
            )

    # ── Groups ────────────────────────────────────────────────────────────

    def add_group(self, group: Group) -> None:
        self.conn.execute("INSERT INTO groups (id, name) VALUES (?, ?)", (group.id, group.name))
        self.conn.commit()

    def get_group(self, group_id: str) -> Group | None:
        """Get a group; member_ids come from the users table."""
        row = self.conn.execute("SELECT * FROM groups WHERE id = ?", (group_id,)).fetchone()
        if row is None:
            return None
        member_rows = self.conn.execute(
            "SELECT id FROM users WHERE group_id = ? ORDER BY rowid", (group_id,)
        ).fetchall()
        return Group(
            id=row["id"],
            name=row["name"],
            member_ids=[m["id"] for m in member_rows],
            daily_hero_id=row["daily_hero_id"],
            last_hero_selection_date=row["last_hero_selection_date"],
            weekly_comeback_hero_id=row["weekly_comeback_hero_id"],
            last_comeback_selection_date=row["last_comeback_selection_date"],
        )

    def save_group_heroes(self, group: Group) -> None:
        self.conn.execute(
            "UPDATE groups SET daily_hero_id = ?, last_hero_selection_date = ?, "
            "weekly_comeback_hero_id = ?, last_comeback_selection_date = ? WHERE id = ?",
            (
                group.daily_hero_id,
                group.last_hero_selection_date,
                group.weekly_comeback_hero_id,
                group.last_comeback_selection_date,
                group.id,
            ),
        )
        self.conn.commit()

    # ── Resolutions ───────────────────────────────────────────────────────

    def add_resolution(self, res: Resolution) -> None:
        self.conn.execute(
            "INSERT INTO resolutions (id, owner_id, title, category, created_at, "
            "declared_difficulty, effective_difficulty, is_private) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                res.id, res.owner_id, res.title, res.category, res.created_at,
                res.declared_difficulty, res.effective_difficulty, res.is_private,
            ),
        )
        self.conn.commit()

    def get_resolution(self, resolution_id: str) -> Resolution | None:
        row = self.conn.execute(
            "SELECT * FROM resolutions WHERE id = ?", (resolution_id,)
        ).fetchone()
        return _row_to_resolution(row) if row else None

    def get_user_resolutions(
        self,
        owner_id: str,
        include_private: bool = True,
        include_archived: bool = True,
    ) -> list[Resolution]:
        """All resolutions a user owns, oldest first, optionally filtered."""
        query = "SELECT * FROM resolutions WHERE owner_id = ?"
        if not include_private:
            query += " AND is_private = 0"
        if not include_archived:
            query += " AND archived_at IS NULL"
        rows = self.conn.execute(query + " ORDER BY created_at, rowid", (owner_id,)).fetchall()
        return [res for res in map(_row_to_resolution, rows) if res is not None]

    def save_check_in(self, res: Resolution) -> None:
        """Persist history, today_status and current_streak of one resolution."""
        self.conn.execute(
            "UPDATE resolutions SET history = ?, today_status = ?, current_streak = ? WHERE id = ?",
            (_encode_history(res.history), res.today_status.value, res.current_streak, res.id),
        )
        self.conn.commit()

    def save_votes(self, res: Resolution) -> None:
        self.conn.execute(
            "UPDATE resolutions SET peer_votes = ?, effective_difficulty = ? WHERE id = ?",
            (json.dumps(res.peer_difficulty_votes, sort_keys=True), res.effective_difficulty, res.id),
        )
        self.conn.commit()

    def save_archive(self, res: Resolution) -> None:
        self.conn.execute(
            "UPDATE resolutions SET archived_at = ?, archived_reason = ? WHERE id = ?",
            (res.archived_at, res.archived_reason, res.id),
        )
        self.conn.commit()

    # ── Feed ──────────────────────────────────────────────────────────────

    def add_feed_event(self, event: FeedEvent) -> None:
        self.conn.execute(
            "INSERT INTO feed (group_id, type, message, user_id, timestamp) VALUES (?, ?, ?, ?, ?)",
            (event.group_id, event.type, event.message, event.user_id, event.timestamp),
        )
        self.conn.commit()

    def get_feed(self, group_id: str, limit: int = 20) -> list[FeedEvent]:
        """Most recent events for a group, newest first."""
        rows = self.conn.execute(
            "SELECT * FROM feed WHERE group_id = ? ORDER BY timestamp DESC, id DESC LIMIT ?",
            (group_id, limit),
        ).fetchall()
        return [
            FeedEvent(
                type=row["type"],
                message=row["message"],
                user_id=row["user_id"],
                group_id=row["group_id"],
                timestamp=row["timestamp"],
            )
            for row in rows
        ]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
