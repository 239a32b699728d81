"""Configuration file management for resolution-rank.

Reads and writes ~/.resolution-rank/config.json for settings that don't belong
in the DB (database location, the active user, the day-boundary timezone).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from resolution_rank.db import DEFAULT_DB_PATH

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Path = Path.home() / ".resolution-rank" / "config.json"


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_db_path(config_path: Path | None = None) -> Path:
    raw = load_config(config_path).get("db_path")
    return Path(raw).expanduser() if raw else DEFAULT_DB_PATH


def get_current_user(config_path: Path | None = None) -> str | None:
    """Return the id of the user commands act as, or None if not set."""
    return load_config(config_path).get("current_user") or None


def set_current_user(user_id: str, config_path: Path | None = None) -> None:
    config = load_config(config_path)
    config["current_user"] = user_id
    save_config(config, config_path)


def get_timezone(config_path: Path | None = None) -> ZoneInfo | None:
    """Timezone that defines calendar days. None means the system local zone."""
    name = load_config(config_path).get("timezone")
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in config, using local time", name)
        return None


def set_timezone(name: str, config_path: Path | None = None) -> None:
    """Persist the day-boundary timezone. Raises ValueError for unknown zones."""
    try:
        ZoneInfo(name)
    except ZoneInfoNotFoundError:
        raise ValueError(f"Unknown timezone: {name}") from None
    config = load_config(config_path)
    config["timezone"] = name
    save_config(config, config_path)
