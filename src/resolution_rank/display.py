"""Rich terminal display for resolution-rank."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from resolution_rank.health import AT_RISK, HEALTHY, SLIPPING, user_today_status
from resolution_rank.leaderboard import PERIOD_MONTHLY, RankedUser
from resolution_rank.models import RANK_DOWN, RANK_UP, FeedEvent, ResolutionStatus, User

console = Console()

_HEALTH_STYLE: dict[str, str] = {
    HEALTHY: "green",
    AT_RISK: "yellow",
    SLIPPING: "red",
}

_STATUS_MARK: dict[ResolutionStatus, str] = {
    ResolutionStatus.COMPLETED: "[green]✔ done[/]",
    ResolutionStatus.MISSED: "[red]✘ missed[/]",
    ResolutionStatus.UNCHECKED: "[dim]pending[/]",
}

_FEED_ICON: dict[str, str] = {
    "check-in": "✔",
    "streak": "\U0001f525",
    "hero": "\U0001f451",
    "comeback": "\U0001f4c8",
    "system": "ℹ",
}


def format_points(value: float) -> str:
    """Format a score: 12.0 -> '12', 12.5 -> '12.5'."""
    if value == int(value):
        return f"{int(value):,}"
    return f"{value:,.1f}"


def _bar(current: int, total: int, width: int = 20) -> str:
    """Render a percentage bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "░" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    return "[" + "█" * filled + "░" * (width - filled) + "]"


def _rank_arrow(rank_change: str) -> str:
    if rank_change == RANK_UP:
        return "[green]▲[/]"
    if rank_change == RANK_DOWN:
        return "[red]▼[/]"
    return "[dim]-[/]"


def print_message(message: str) -> None:
    console.print(message)


def print_error(message: str) -> None:
    console.print(f"[bold red]Error:[/] {message}")


def print_resolutions(rows: list[dict], user: User) -> None:
    """Print a user's resolutions with today's status, streak, health and lock state."""
    if not rows:
        console.print(f"[dim]{user.name} has no resolutions yet. Add one with 'resolution-rank add'.[/]")
        return

    table = Table(
        title=f"{user.name}'s Resolutions",
        box=box.ROUNDED,
        caption=f"Today: {user_today_status([row['resolution'] for row in rows])}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("ID", style="dim")
    table.add_column("Resolution", style="bold")
    table.add_column("Difficulty", justify="right")
    table.add_column("Today", justify="center")
    table.add_column("Streak", justify="right")
    table.add_column("Best", justify="right")
    table.add_column("Health", justify="center")
    table.add_column("", justify="center")

    for row in rows:
        res = row["resolution"]
        title = res.title + (" [dim](private)[/]" if res.is_private else "")
        if not res.is_active:
            title = f"[strike]{res.title}[/] [dim](archived)[/]"
        health = row["health"]
        table.add_row(
            res.id,
            title,
            f"{res.effective_difficulty:.1f}",
            _STATUS_MARK[res.today_status],
            f"{res.current_streak}d",
            f"{row['best_streak']}d",
            f"[{_HEALTH_STYLE.get(health, 'white')}]{health}[/]",
            "\U0001f512" if row["locked"] else "",
        )

    console.print(table)


def print_check_in_result(result: dict) -> None:
    res = result["resolution"]
    if res.today_status == ResolutionStatus.COMPLETED:
        console.print(
            f"[green]✔[/] Checked in on [bold]{res.title}[/] "
            f"(+{result['points']} pts, {result['streak']}-day streak)"
        )
    else:
        console.print(f"Marked [bold]{res.title}[/] as {res.today_status.value.lower()}.")
    if result.get("comeback"):
        console.print("[bold green]\U0001f525 Comeback of the week![/]")
    for badge in result.get("new_badges", []):
        console.print(f"[bold yellow]\U0001f3c5 Badge earned:[/] {badge}")


def print_leaderboard(ranked: list[RankedUser], period: str, current_user_id: str | None = None) -> None:
    """Print the group leaderboard, highlighting the current user."""
    if not ranked:
        console.print("[dim]No members in this group yet.[/]")
        return

    monthly = period == PERIOD_MONTHLY
    table = Table(
        title=f"Leaderboard ({'This Month' if monthly else 'All Time'})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("#", justify="right", style="bold")
    table.add_column("", justify="center")
    table.add_column("Name", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Streak", justify="right")
    table.add_column("Identity")

    for entry in ranked:
        user = entry.user
        score = user.monthly_score if monthly else user.score
        row_style = "bold cyan" if user.id == current_user_id else None
        table.add_row(
            str(entry.rank),
            "" if monthly else _rank_arrow(user.rank_change),
            user.name,
            format_points(score),
            f"{user.streak}d",
            user.seasonal_label,
            style=row_style,
        )

    console.print(table)


def print_report(data: dict) -> None:
    """Print a periodic report as a personal panel and a group panel."""
    consistency = data.get("consistency", 0)
    rank_delta = data.get("rank_change", 0)
    rank_text = {1: "[green]up[/]", -1: "[red]down[/]"}.get(rank_delta, "steady")

    lines: list[str] = [""]
    lines.append(f"  Check-ins:    {data.get('days_checked_in', 0)}")
    lines.append(f"  Points:       {format_points(data.get('points_gained', 0))}")
    lines.append(f"  Consistency:  {_bar(consistency, 100, width=15)} {consistency}%")
    lines.append(f"  Rank:         {rank_text}")
    lines.append(f"  Trust:        {data.get('trust_trend', 'stable')}")
    if data.get("best_resolution"):
        lines.append(f"  Best:         {data['best_resolution']}")
    if data.get("worst_resolution"):
        lines.append(f"  Needs work:   {data['worst_resolution']}")
    lines.append("")

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{data.get('period_label', '')} ({data.get('period_start')} to {data.get('period_end')})[/]",
        box=box.ROUNDED,
        border_style="yellow",
        width=60,
    ))

    group_consistency = data.get("group_consistency", 0)
    group_lines: list[str] = [""]
    group_lines.append(f"  Members:      {data.get('group_size', 0)}")
    group_lines.append(f"  Consistency:  {_bar(group_consistency, 100, width=15)} {group_consistency}%")
    group_lines.append(f"  Top scorer:   {data.get('group_hero') or '-'}")
    group_lines.append("")

    console.print(Panel(
        "\n".join(group_lines),
        title="[bold]Your Group[/]",
        box=box.ROUNDED,
        border_style="cyan",
        width=60,
    ))


def print_breakdown(rows: list[dict], user: User) -> None:
    """Print where a user's points come from, one row per scored resolution."""
    table = Table(
        title=f"Score Breakdown: {user.name}",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Resolution", style="bold")
    table.add_column("Difficulty", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Points", justify="right")

    for row in rows:
        table.add_row(row["title"], f"{row['difficulty']:.1f}", str(row["days"]), f"{row['points']:,}")

    table.add_section()
    table.add_row("[bold]Total[/]", "", "", f"[bold]{format_points(user.score)}[/]")
    console.print(table)


def print_hero(hero: User | None, group_name: str) -> None:
    if hero is None:
        console.print(f"[dim]No Daily Hero in {group_name} today.[/]")
        return
    console.print(Panel(
        f"\n  \U0001f451 [bold]{hero.name}[/]\n  Score {format_points(hero.score)}, {hero.streak}-day streak\n",
        title=f"[bold]Daily Hero: {group_name}[/]",
        box=box.ROUNDED,
        border_style="gold1",
        width=50,
    ))


def print_feed(events: list[FeedEvent]) -> None:
    if not events:
        console.print("[dim]Nothing in the feed yet.[/]")
        return
    for event in events:
        icon = _FEED_ICON.get(event.type, "•")
        console.print(f"[dim]{event.timestamp[:16].replace('T', ' ')}[/]  {icon}  {event.message}")
