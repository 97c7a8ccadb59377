"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.json_store import JsonScheduleStore
from ..config import AppConfig, load_config
from ..domain.exceptions import SchedulingError
from ..domain.slot_generator import group_slots_by_date, summarize_slots
from ..domain.time_utils import parse_date, parse_instant
from ..services.scheduling_service import SchedulingService

app = typer.Typer(
    name="lessonslots",
    help="Compute bookable lesson slots and validate bookings",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
):
    """
    Availability and time-slot engine for lesson bookings.
    """
    _configure_logging("DEBUG" if verbose else None)


def _configure_logging(level: Optional[str]) -> None:
    root = logging.getLogger()
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    if level:
        root.setLevel(level)


def _build_service(config_file: Optional[Path]) -> tuple[AppConfig, SchedulingService]:
    """Load config and data, exiting with a message on failure."""
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    root = logging.getLogger()
    if root.level == logging.NOTSET or root.level > logging.DEBUG:
        root.setLevel(config.log_level)

    try:
        store = JsonScheduleStore.from_file(config.data_file, default_timezone=config.timezone)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    return config, SchedulingService(store, config)


@app.command()
def slots(
    owner_id: Annotated[str, typer.Argument(help="Teacher ID")],
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD), inclusive")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Lesson duration in minutes")] = None,
    available_only: Annotated[bool, typer.Option("--available-only", help="Hide unavailable slots.")] = False,
):
    """
    List candidate lesson slots for a teacher, grouped by date.

    Examples:

        lessonslots slots t1
        lessonslots slots t1 --start 2026-01-12 --end 2026-01-18 --duration 90
    """
    config, service = _build_service(config_file)

    try:
        start_date = parse_date(start) if start else None
        end_date = parse_date(end) if end else None
        if start_date and not end_date:
            end_date = start_date.add(days=config.defaults.slot_window_days)
        result = service.generate_slots(owner_id, start_date, end_date, duration)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    summary = summarize_slots(result)
    if available_only:
        result = [slot for slot in result if slot.available]

    if not result:
        console.print("[yellow]⚠ No slots found.[/yellow]")
        return

    console.print(
        f"\n[bold green]✓ {summary.available} of {summary.total} slot(s) available[/bold green]"
    )
    if summary.next_available is not None:
        next_start = summary.next_available.start
        console.print(f"Next available: {next_start.format('dddd YYYY-MM-DD HH:mm')}")
    console.print()

    for day, day_slots in group_slots_by_date(result).items():
        table = Table(title=day, show_header=True, header_style="bold cyan")
        table.add_column("Time", style="bold")
        table.add_column("Status")
        table.add_column("Reason", style="dim")
        for slot in day_slots:
            status = "[green]available[/green]" if slot.available else "[red]unavailable[/red]"
            table.add_row(
                f"{slot.start.format('HH:mm')} - {slot.end.format('HH:mm')}",
                status,
                slot.unavailable_reason or "",
            )
        console.print(table)


@app.command()
def check(
    owner_id: Annotated[str, typer.Argument(help="Teacher ID")],
    at: Annotated[str, typer.Option("--at", help="Lesson start (ISO 8601)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Lesson duration in minutes")] = 60,
    config_file: ConfigOption = None,
):
    """
    Check whether a teacher is free for a single interval.
    """
    _, service = _build_service(config_file)

    try:
        start = parse_instant(at, tz=service.owner_timezone(owner_id))
        verdict = service.check_available(owner_id, start, start.add(minutes=duration))
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if verdict.available:
        console.print("[bold green]✓ Available[/bold green]")
    else:
        console.print(f"[bold red]✗ Unavailable:[/bold red] {verdict.reason}")


@app.command()
def validate(
    owner_id: Annotated[str, typer.Argument(help="Teacher ID")],
    at: Annotated[str, typer.Option("--at", help="Lesson start (ISO 8601)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Lesson duration in minutes")] = 60,
    config_file: ConfigOption = None,
):
    """
    Validate a booking request and list every violated constraint.
    """
    _, service = _build_service(config_file)

    try:
        start = parse_instant(at, tz=service.owner_timezone(owner_id))
        result = service.validate_booking(owner_id, start, duration)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if result.valid:
        console.print("[bold green]✓ Booking is valid[/bold green]")
        return

    console.print("[bold red]✗ Booking rejected:[/bold red]")
    for error in result.errors:
        console.print(f"  • {error}")
    raise typer.Exit(1)


@app.command()
def export(
    user_id: Annotated[str, typer.Argument(help="User ID (teacher or student)")],
    role: Annotated[Optional[str], typer.Option("--role", help="teacher or student (default: both)")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD), inclusive")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write .ics to this file")] = None,
    config_file: ConfigOption = None,
):
    """
    Export lessons to an iCalendar (.ics) document.
    """
    config, service = _build_service(config_file)
    tz = config.timezone

    try:
        start_at = parse_instant(start, tz=tz).start_of("day") if start else None
        end_at = parse_instant(end, tz=tz).end_of("day") if end else None
        content = service.export_user_calendar(user_id, role=role, start=start_at, end=end_at)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if output is None:
        typer.echo(content, nl=False)
        return

    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    console.print(f"[green]✓ Calendar written to {output}[/green]")


@app.command()
def policy(
    owner_id: Annotated[str, typer.Argument(help="Teacher ID")],
    config_file: ConfigOption = None,
):
    """
    Show the booking policy that applies to a teacher.
    """
    _, service = _build_service(config_file)

    try:
        effective = service.effective_policy(owner_id)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    durations = ", ".join(str(value) for value in effective.sorted_durations())
    console.print(Panel.fit(
        f"[bold]Buffer:[/bold] {effective.buffer_minutes} min\n"
        f"[bold]Minimum notice:[/bold] {effective.min_advance_hours} h\n"
        f"[bold]Booking horizon:[/bold] {effective.max_advance_days} days\n"
        f"[bold]Durations:[/bold] {durations} min\n"
        f"[bold]Auto-accept:[/bold] {'yes' if effective.auto_accept else 'no'}\n"
        f"[bold]Free cancellation:[/bold] {effective.cancellation_hours} h before",
        title=f"Booking policy for {owner_id}"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]lessonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
