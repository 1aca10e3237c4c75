"""
AutoJournal CLI - Command-line interface for the journal scheduler.

Operator commands for creating the schema, running scheduler ticks, previewing
schedules and replaying missed subscriptions.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from autojournal.logging_config import setup_logging

app = typer.Typer(
    name="autojournal",
    help="AutoJournal - Recurring journal generation from connected tool activity",
    no_args_is_help=True,
)

console = Console()


def _init_logging(context: str) -> None:
    # Fall back to console logging if the log directory is not writable
    try:
        setup_logging(context=context)
    except PermissionError:
        logging.basicConfig(level=logging.INFO)


def _parse_now(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        console.print(f"[bold red]Error:[/bold red] Invalid timestamp: {value}")
        raise typer.Exit(1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@app.command("init-db")
def init_db() -> None:
    """Create database tables that do not exist yet."""
    from autojournal.config import settings
    from autojournal.db.connection import init_db as create_tables

    _init_logging("cli")
    console.print(
        f"[bold blue]Initializing database:[/bold blue] {settings.environment}"
    )
    create_tables()
    console.print("[green]✓ Database tables created[/green]")


@app.command()
def tick(
    now: Optional[str] = typer.Option(
        None, help="Tick instant as ISO-8601 (defaults to current UTC time)"
    ),
    window: Optional[int] = typer.Option(
        None, help="Due window in minutes (defaults to DUE_WINDOW_MINUTES)"
    ),
) -> None:
    """
    Run a single scheduler tick.

    Processes every subscription due inside the window and exits.
    """
    from autojournal.scheduler.driver import run_scheduler_tick

    _init_logging("cli")
    tick_at = _parse_now(now)

    console.print(
        f"[bold blue]Running scheduler tick at:[/bold blue] {tick_at.isoformat()}"
    )
    try:
        summary = run_scheduler_tick(now=tick_at, window_minutes=window)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] Scheduler tick failed: {e}")
        raise typer.Exit(1)

    console.print(f"  Due: {summary.due}")
    console.print(f"  Entries created: {summary.entries_created}")
    console.print(f"  No activity: {summary.no_activity}")
    console.print(f"  Generation failed: {summary.generation_failed}")
    console.print(f"  Skipped: {summary.skipped}")
    console.print(f"  Errors: {summary.errors}")

    if summary.errors > 0:
        raise typer.Exit(1)


@app.command()
def worker(
    interval: Optional[float] = typer.Option(
        None, help="Minutes between ticks (defaults to SCHEDULER_INTERVAL_MINUTES)"
    ),
) -> None:
    """
    Run the scheduler loop in the foreground.

    Stop with Ctrl+C.
    """
    from autojournal.scheduler.worker import JournalScheduler

    _init_logging("worker")
    scheduler = JournalScheduler(interval_minutes=interval)

    console.print("[bold green]Starting journal scheduler...[/bold green]")
    console.print(f"  Interval: {scheduler.interval_seconds / 60:g} minutes")
    try:
        scheduler.run()
    except KeyboardInterrupt:
        scheduler.stop()
        console.print("\n[yellow]Scheduler stopped[/yellow]")


@app.command("next-run")
def next_run(
    frequency: str = typer.Option("daily", help="Recurrence frequency"),
    day: Optional[List[str]] = typer.Option(
        None, "--day", help="Selected weekday (repeatable, e.g. --day mon)"
    ),
    time: str = typer.Option("18:00", "--time", help="Local generation time HH:MM"),
    tz: str = typer.Option("UTC", "--timezone", help="IANA timezone name"),
    count: int = typer.Option(5, help="Number of upcoming runs to show"),
    now: Optional[str] = typer.Option(None, help="Reference instant as ISO-8601"),
    strategy: Optional[str] = typer.Option(
        None, help="Timezone strategy: zoneinfo or offset_estimate"
    ),
) -> None:
    """Preview the upcoming run times for a schedule."""
    from autojournal.exceptions import InvalidScheduleError
    from autojournal.scheduling.recurrence import (
        next_run_at,
        resolve_timezone,
        validate_schedule,
    )

    reference = _parse_now(now)
    try:
        validate_schedule(frequency, day, time, tz)
        runs = []
        cursor = reference
        for _ in range(count):
            cursor = next_run_at(
                frequency,
                day,
                time,
                tz,
                now=cursor,
                anchor=reference,
                tz_strategy=strategy,
            )
            runs.append(cursor)
    except InvalidScheduleError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Next {count} runs ({frequency})")
    table.add_column("#", justify="right")
    table.add_column("UTC")
    table.add_column(f"Local ({tz})")
    zone = resolve_timezone(tz)
    for i, run in enumerate(runs, start=1):
        table.add_row(
            str(i),
            run.isoformat(),
            run.astimezone(zone).strftime("%a %Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def replay(
    now: Optional[str] = typer.Option(None, help="Reference instant as ISO-8601"),
    window: Optional[int] = typer.Option(None, help="Due window in minutes"),
    dry_run: bool = typer.Option(False, help="Show changes without storing them"),
) -> None:
    """
    Reschedule subscriptions that were missed before the due window.

    Missed subscriptions are not generated for; their next run moves forward
    from now.
    """
    from autojournal.db.connection import db_session
    from autojournal.scheduler.driver import reschedule_stale

    _init_logging("cli")
    reference = _parse_now(now)

    with db_session() as session:
        results = reschedule_stale(session, reference, window, dry_run=dry_run)

    if not results:
        console.print("[green]No stale subscriptions[/green]")
        return

    for subscription_id, next_run_time in results:
        if next_run_time is None:
            console.print(
                f"  [red]✗[/red] {subscription_id}: deactivated (invalid schedule)"
            )
        else:
            console.print(
                f"  [green]✓[/green] {subscription_id}: {next_run_time.isoformat()}"
            )

    label = "Would reschedule" if dry_run else "Rescheduled"
    console.print(f"\n[bold]{label} {len(results)} subscriptions[/bold]")


if __name__ == "__main__":
    app()
