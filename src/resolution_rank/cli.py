"""CLI commands for resolution-rank."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime

from rich.logging import RichHandler

from resolution_rank import tracker
from resolution_rank.config import (
    get_current_user,
    get_db_path,
    get_timezone,
    set_current_user,
    set_timezone,
)
from resolution_rank.dates import now_local
from resolution_rank.db import Database
from resolution_rank.display import (
    console,
    print_breakdown,
    print_check_in_result,
    print_error,
    print_feed,
    print_hero,
    print_leaderboard,
    print_message,
    print_report,
    print_resolutions,
)
from resolution_rank.errors import NotFound, PolicyViolation
from resolution_rank.leaderboard import PERIODS, PERIOD_ALL_TIME, RankedUser
from resolution_rank.models import ResolutionStatus, User
from resolution_rank.reports import REPORT_TYPES, WEEKLY

logger = logging.getLogger(__name__)

EXIT_POLICY = 1
EXIT_NOT_FOUND = 2


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="resolution-rank",
        description="Track resolutions with your group: streaks, scores and a daily hero",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    parser.add_argument("--user", "-u", default=None, help="Act as this user instead of the configured one")
    subparsers = parser.add_subparsers(dest="command")

    user_parser = subparsers.add_parser("user", help="Manage users")
    user_sub = user_parser.add_subparsers(dest="user_command", required=True)
    user_add_p = user_sub.add_parser("add", help="Create a user")
    user_add_p.add_argument("id", help="User id")
    user_add_p.add_argument("name", help="Display name")
    user_add_p.add_argument("--honesty", type=int, default=100, help="Honesty score (0-100)")

    group_parser = subparsers.add_parser("group", help="Manage groups")
    group_sub = group_parser.add_subparsers(dest="group_command", required=True)
    group_add_p = group_sub.add_parser("add", help="Create a group")
    group_add_p.add_argument("id", help="Group id")
    group_add_p.add_argument("name", help="Group name")
    group_join_p = group_sub.add_parser("join", help="Join a group as the current user")
    group_join_p.add_argument("id", help="Group id")

    use_parser = subparsers.add_parser("use", help="Set the user commands act as")
    use_parser.add_argument("id", help="User id")

    tz_parser = subparsers.add_parser("timezone", help="Set the timezone that defines calendar days")
    tz_parser.add_argument("name", help="IANA zone name, e.g. Europe/Berlin")

    add_parser = subparsers.add_parser("add", help="Add a resolution")
    add_parser.add_argument("title", help="What you resolve to do")
    add_parser.add_argument("--difficulty", "-d", type=int, required=True, help="Declared difficulty (1-5)")
    add_parser.add_argument("--private", action="store_true", help="Keep it out of scores and the feed")
    add_parser.add_argument("--category", default="", help="Optional category")

    list_parser = subparsers.add_parser("list", help="List your resolutions")
    list_parser.add_argument("--all", action="store_true", help="Include archived resolutions")

    checkin_parser = subparsers.add_parser("checkin", help="Check in on a resolution for today")
    checkin_parser.add_argument("id", help="Resolution id")
    checkin_parser.add_argument("--missed", action="store_true", help="Record today as missed")

    vote_parser = subparsers.add_parser("vote", help="Vote on the difficulty of someone else's resolution")
    vote_parser.add_argument("id", help="Resolution id")
    vote_parser.add_argument("vote", type=int, help="Difficulty vote (1-5)")

    archive_parser = subparsers.add_parser("archive", help="Archive a resolution (after its 7-day lock-in)")
    archive_parser.add_argument("id", help="Resolution id")
    archive_parser.add_argument("--reason", default=None, help="Why you are archiving it")

    lb_parser = subparsers.add_parser("leaderboard", help="Group leaderboard")
    lb_parser.add_argument("--period", choices=list(PERIODS), default=PERIOD_ALL_TIME)

    report_parser = subparsers.add_parser("report", help="Weekly, monthly or yearly report")
    report_parser.add_argument("--type", dest="report_type", choices=list(REPORT_TYPES), default=WEEKLY)

    subparsers.add_parser("hero", help="Show today's Daily Hero")
    feed_parser = subparsers.add_parser("feed", help="Recent group activity")
    feed_parser.add_argument("--limit", "-n", type=int, default=20)
    subparsers.add_parser("breakdown", help="Where your points come from")
    return parser


def configure_logging(verbose: bool = False) -> None:
    """Route log records through rich on the shared console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    command = args.command or "list"

    if command == "timezone":
        try:
            set_timezone(args.name)
        except ValueError as exc:
            print_error(str(exc))
            sys.exit(EXIT_POLICY)
        print_message(f"Days now follow [bold]{args.name}[/].")
        return

    db = Database(get_db_path())
    now = now_local(get_timezone())
    try:
        if command == "user":
            do_user_add(db, args.id, args.name, honesty_score=args.honesty)
        elif command == "group":
            if args.group_command == "add":
                do_group_add(db, args.id, args.name)
            else:
                do_group_join(db, _acting_user(args), args.id)
        elif command == "use":
            do_use(db, args.id)
        elif command == "add":
            do_add(db, _acting_user(args), args.title, args.difficulty, now,
                   is_private=args.private, category=args.category)
        elif command == "list":
            do_list(db, _acting_user(args), now, include_archived=args.all if "all" in args else False)
        elif command == "checkin":
            do_checkin(db, _acting_user(args), args.id, now, missed=args.missed)
        elif command == "vote":
            do_vote(db, _acting_user(args), args.id, args.vote, now)
        elif command == "archive":
            do_archive(db, _acting_user(args), args.id, now, reason=args.reason)
        elif command == "leaderboard":
            do_leaderboard(db, _acting_user(args), now, period=args.period)
        elif command == "report":
            do_report(db, _acting_user(args), now, report_type=args.report_type)
        elif command == "hero":
            do_hero(db, _acting_user(args), now)
        elif command == "feed":
            do_feed(db, _acting_user(args), limit=args.limit)
        elif command == "breakdown":
            do_breakdown(db, _acting_user(args))
    except PolicyViolation as exc:
        logger.debug("Rejected %s: %s", command, exc.reason)
        print_error(str(exc))
        sys.exit(EXIT_POLICY)
    except NotFound as exc:
        print_error(str(exc))
        sys.exit(EXIT_NOT_FOUND)
    finally:
        db.close()


def _acting_user(args: argparse.Namespace) -> str:
    user_id = args.user or get_current_user()
    if not user_id:
        raise PolicyViolation("no_user", "No user selected. Run 'resolution-rank use <user-id>' first.")
    return user_id


def _group_of(db: Database, user_id: str) -> tuple[User, str]:
    user = db.get_user(user_id)
    if user is None:
        raise NotFound("user", user_id)
    if user.group_id is None:
        raise PolicyViolation("no_group", f"{user.name} is not in a group. Run 'resolution-rank group join <id>'.")
    return user, user.group_id


def do_user_add(db: Database, user_id: str, name: str, honesty_score: int = 100) -> User:
    user = tracker.create_user(db, user_id, name, honesty_score=honesty_score)
    print_message(f"Created user [bold]{user.name}[/] ({user.id}).")
    return user


def do_group_add(db: Database, group_id: str, name: str) -> None:
    group = tracker.create_group(db, group_id, name)
    print_message(f"Created group [bold]{group.name}[/] ({group.id}).")


def do_group_join(db: Database, user_id: str, group_id: str) -> User:
    user = tracker.join_group(db, user_id, group_id)
    print_message(f"[bold]{user.name}[/] joined {group_id}.")
    return user


def do_use(db: Database, user_id: str) -> None:
    user = db.get_user(user_id)
    if user is None:
        raise NotFound("user", user_id)
    set_current_user(user.id)
    print_message(f"Now acting as [bold]{user.name}[/].")


def do_add(
    db: Database,
    user_id: str,
    title: str,
    difficulty: int,
    now: datetime,
    is_private: bool = False,
    category: str = "",
) -> dict:
    res = tracker.add_resolution(
        db, user_id, title, difficulty, now, is_private=is_private, category=category
    )
    print_message(f"Added [bold]{res.title}[/] ({res.id}), difficulty {res.declared_difficulty}.")
    return {"id": res.id, "title": res.title}


def do_list(db: Database, user_id: str, now: datetime, include_archived: bool = False) -> list[dict]:
    rows = tracker.get_resolutions(db, user_id, now, include_archived=include_archived)
    print_resolutions(rows, db.get_user(user_id))
    return rows


def do_checkin(db: Database, user_id: str, resolution_id: str, now: datetime, missed: bool = False) -> dict:
    status = ResolutionStatus.MISSED if missed else ResolutionStatus.COMPLETED
    result = tracker.check_in(db, resolution_id, status, now, actor_id=user_id)
    print_check_in_result(result)
    return result


def do_vote(db: Database, user_id: str, resolution_id: str, vote: int, now: datetime) -> dict:
    res = tracker.vote_difficulty(db, resolution_id, user_id, vote, now)
    print_message(
        f"Voted {vote} on [bold]{res.title}[/]; effective difficulty is now {res.effective_difficulty:.1f}."
    )
    return {"id": res.id, "effective_difficulty": res.effective_difficulty}


def do_archive(
    db: Database, user_id: str, resolution_id: str, now: datetime, reason: str | None = None
) -> dict:
    res = tracker.archive_resolution(db, resolution_id, now, reason=reason, actor_id=user_id)
    print_message(f"Archived [bold]{res.title}[/].")
    return {"id": res.id, "archived_at": res.archived_at}


def do_leaderboard(db: Database, user_id: str, now: datetime, period: str = PERIOD_ALL_TIME) -> list[RankedUser]:
    _, group_id = _group_of(db, user_id)
    ranked = tracker.get_leaderboard(db, group_id, now, period=period)
    print_leaderboard(ranked, period, current_user_id=user_id)
    return ranked


def do_report(db: Database, user_id: str, now: datetime, report_type: str = WEEKLY) -> dict:
    report = tracker.get_report(db, user_id, report_type, now)
    print_report(report)
    return report


def do_hero(db: Database, user_id: str, now: datetime) -> User | None:
    _, group_id = _group_of(db, user_id)
    hero = tracker.refresh_daily_hero(db, group_id, now)
    print_hero(hero, db.get_group(group_id).name)
    return hero


def do_feed(db: Database, user_id: str, limit: int = 20) -> list:
    _, group_id = _group_of(db, user_id)
    events = tracker.get_feed(db, group_id, limit=limit)
    print_feed(events)
    return events


def do_breakdown(db: Database, user_id: str) -> list[dict]:
    rows = tracker.get_score_breakdown(db, user_id)
    print_breakdown(rows, db.get_user(user_id))
    return rows
