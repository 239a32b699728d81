"""Typed entities for resolution-rank.

Records arrive here already validated by the storage layer (see db.py);
engine code does not re-check their shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ResolutionStatus(str, Enum):
    UNCHECKED = "UNCHECKED"
    COMPLETED = "COMPLETED"
    MISSED = "MISSED"


History = dict[str, ResolutionStatus]

RANK_UP = "up"
RANK_DOWN = "down"
RANK_SAME = "same"


@dataclass
class Resolution:
    id: str
    owner_id: str
    title: str
    created_at: str  # ISO timestamp
    declared_difficulty: int  # 1-5, immutable
    effective_difficulty: float
    is_private: bool = False
    history: History | None = field(default_factory=dict)  # None = unreadable history
    current_streak: int = 0
    today_status: ResolutionStatus = ResolutionStatus.UNCHECKED
    peer_difficulty_votes: dict[str, int] = field(default_factory=dict)
    archived_at: str | None = None
    archived_reason: str | None = None
    category: str = ""

    @property
    def is_active(self) -> bool:
        return self.archived_at is None

    @property
    def is_scored(self) -> bool:
        """Counts toward score, leaderboard, hero selection and identity label."""
        return self.is_active and not self.is_private


@dataclass
class User:
    id: str
    name: str
    group_id: str | None = None
    score: float = 0.0
    monthly_score: float = 0.0
    streak: int = 0
    rank: int = 0  # 0 = never ranked
    rank_change: str = RANK_SAME
    honesty_score: int = 100
    seasonal_label: str = "Consistent Starter"
    badges: list[str] = field(default_factory=list)


@dataclass
class Group:
    id: str
    name: str
    member_ids: list[str] = field(default_factory=list)
    daily_hero_id: str | None = None
    last_hero_selection_date: str | None = None  # YYYY-MM-DD
    weekly_comeback_hero_id: str | None = None
    last_comeback_selection_date: str | None = None  # Monday of the ISO week


@dataclass
class FeedEvent:
    type: str
    message: str
    user_id: str | None
    group_id: str | None
    timestamp: str
