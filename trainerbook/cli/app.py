"""
Main CLI application using Typer.
"""

import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_store import JsonDataStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import (
    ConflictError,
    PolicyError,
    SchedulingError,
    ValidationError,
)
from ..domain.models import Booking, BookingType
from ..services.scheduling import SchedulingService

app = typer.Typer(
    name="trainerbook",
    help="Find free slots, manage bookings and report on trainer workload",
    add_completion=False,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _build_service(config_file: Optional[Path]) -> Tuple[AppConfig, SchedulingService]:
    """Load configuration and data file and wire up the service."""
    config_path = config_file or get_default_config_path()
    if config_path.exists():
        config = AppConfig.load_from_yaml(config_path)
    else:
        config = AppConfig()
    _configure_logging(config.log_level)

    store = JsonDataStore(config.data_file)
    service = SchedulingService(
        trainers=store.trainers,
        bookings=store.bookings,
        timezone=config.timezone,
        policy=config.policy,
    )
    return config, service


def _parse_date(value: str) -> date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def _report_error(error: Exception) -> None:
    """Print a domain error and exit with status 1."""
    if isinstance(error, ValidationError):
        console.print("[bold red]Invalid booking:[/bold red]")
        for violation in error.violations:
            console.print(f"  • [red]{violation.field}[/red]: {violation.message}")
    elif isinstance(error, ConflictError):
        other = error.conflicting_booking
        console.print(
            f"[bold red]Conflict:[/bold red] overlaps booking {other.id} "
            f"({other.start_time} - {other.end_time})"
        )
    elif isinstance(error, PolicyError) and error.remaining is not None:
        hours = error.remaining.total_seconds() / 3600
        console.print(f"[bold red]Not allowed:[/bold red] {error.reason} ({hours:.1f}h left)")
    else:
        console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _print_booking(booking: Booking, title: str) -> None:
    console.print(f"[bold green]✓ {title}[/bold green]")
    console.print(f"   ID: {booking.id}")
    console.print(f"   Trainer: {booking.trainer_id}  Client: {booking.client_id}")
    console.print(f"   When: {booking}  ({booking.type.value}, {booking.status.value})")


@app.command()
def slots(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Session duration in minutes")] = 60,
    config_file: ConfigOption = None,
):
    """
    List free slots of a trainer on a date.
    """
    try:
        _, service = _build_service(config_file)
        parsed_day = _parse_date(day)
        found = service.available_slots(trainer_id, parsed_day, duration)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    if not found:
        console.print("[yellow]⚠ No free slots found.[/yellow]")
        next_day = service.next_available_date(trainer_id, duration, from_date=parsed_day + timedelta(days=1))
        if next_day:
            console.print(f"Next available date: {next_day.isoformat()}")
        return

    console.print(f"[bold green]✓ {len(found)} free slot(s) on {parsed_day.isoformat()}:[/bold green]\n")
    for slot in found:
        console.print(f"  {slot.format_display()}")


@app.command()
def recommend(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Session duration in minutes")] = 60,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of slots to show")] = 5,
    config_file: ConfigOption = None,
):
    """
    Show the best-ranked slots of a trainer on a date.
    """
    try:
        _, service = _build_service(config_file)
        ranked = service.recommended_slots(trainer_id, _parse_date(day), duration)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    if not ranked:
        console.print("[yellow]⚠ No free slots found.[/yellow]")
        return

    table = Table(title="Recommended slots", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="bold yellow")
    table.add_column("Score", justify="right")
    table.add_column("Reason", style="dim")
    for item in ranked[:limit]:
        table.add_row(item.slot.format_display(), str(item.score), item.reason)

    console.print()
    console.print(table)
    console.print()


@app.command()
def book(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    client_id: Annotated[str, typer.Argument(help="Client ID")],
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    end: Annotated[str, typer.Argument(help="End time (HH:MM)")],
    session_type: Annotated[BookingType, typer.Option("--type", "-t", help="Session type")] = BookingType.PERSONAL,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Free-form notes")] = None,
    config_file: ConfigOption = None,
):
    """
    Book a session.
    """
    try:
        _, service = _build_service(config_file)
        booking = service.create_booking(
            trainer_id, client_id, _parse_date(day), start, end, session_type, notes
        )
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    _print_booking(booking, "Session booked")


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Booking ID")],
    reason: Annotated[Optional[str], typer.Option("--reason", help="Cancellation reason")] = None,
    config_file: ConfigOption = None,
):
    """
    Cancel a scheduled session.
    """
    try:
        _, service = _build_service(config_file)
        booking = service.cancel_booking(booking_id, reason)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    _print_booking(booking, "Session cancelled")


@app.command()
def reschedule(
    booking_id: Annotated[str, typer.Argument(help="Booking ID")],
    day: Annotated[str, typer.Argument(help="New date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="New start time (HH:MM)")],
    end: Annotated[str, typer.Argument(help="New end time (HH:MM)")],
    config_file: ConfigOption = None,
):
    """
    Move a scheduled session to a new date and time.
    """
    try:
        _, service = _build_service(config_file)
        booking = service.reschedule_booking(booking_id, _parse_date(day), start, end)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    _print_booking(booking, "Session rescheduled")


@app.command()
def complete(
    booking_id: Annotated[str, typer.Argument(help="Booking ID")],
    config_file: ConfigOption = None,
):
    """
    Mark a past session as completed.
    """
    try:
        _, service = _build_service(config_file)
        booking = service.mark_completed(booking_id)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    _print_booking(booking, "Session completed")


@app.command("no-show")
def no_show(
    booking_id: Annotated[str, typer.Argument(help="Booking ID")],
    config_file: ConfigOption = None,
):
    """
    Mark a past session as a no-show.
    """
    try:
        _, service = _build_service(config_file)
        booking = service.mark_no_show(booking_id)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    _print_booking(booking, "Session marked as no-show")


@app.command()
def plan(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
):
    """
    Show the timeline of a trainer's working day.
    """
    try:
        _, service = _build_service(config_file)
        entries = service.day_plan(trainer_id, _parse_date(day))
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    if not entries:
        console.print("[yellow]⚠ Day off.[/yellow]")
        return

    styles = {"session": "bold green", "break": "yellow", "available": "dim"}
    table = Table(title=f"Day plan {day}", show_header=True, header_style="bold cyan")
    table.add_column("Time", style="bold yellow")
    table.add_column("Kind")
    table.add_column("Minutes", justify="right")
    table.add_column("Booking", style="dim")
    for entry in entries:
        style = styles[entry.kind]
        booking = f"{entry.booking.id} ({entry.booking.client_id})" if entry.booking else ""
        table.add_row(str(entry.time), f"[{style}]{entry.kind}[/{style}]", str(entry.duration_minutes), booking)

    console.print()
    console.print(table)
    console.print()


@app.command()
def upcoming(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of sessions to show")] = 10,
    config_file: ConfigOption = None,
):
    """
    List the next scheduled sessions of a trainer.
    """
    try:
        _, service = _build_service(config_file)
        sessions = service.upcoming_bookings(trainer_id, limit)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    if not sessions:
        console.print("[yellow]⚠ No upcoming sessions.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(sessions)} upcoming session(s):[/bold green]\n")
    for booking in sessions:
        console.print(f"  {booking.id}  {booking}  {booking.client_id} ({booking.type.value})")


@app.command()
def stats(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    days: Annotated[int, typer.Option("--days", help="Trailing window in days")] = 30,
    config_file: ConfigOption = None,
):
    """
    Show efficiency statistics and suggestions for a trainer.
    """
    try:
        _, service = _build_service(config_file)
        efficiency = service.efficiency_stats(trainer_id, days)
        peaks = service.peak_hours(trainer_id, days)
        suggestions = service.optimization_suggestions(trainer_id)
        counts = service.session_counts(trainer_id)
        clients = service.top_clients(trainer_id, days)
        interval = service.average_session_interval_minutes(trainer_id)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    table = Table(title=f"Efficiency (last {days} days)", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold yellow")
    table.add_column("Value", justify="right")
    table.add_row("Sessions", str(efficiency.total_sessions))
    table.add_row("Sessions per day", f"{efficiency.average_sessions_per_day:g}")
    table.add_row("Utilization", f"{efficiency.utilization_rate:.0%}")
    table.add_row("Completion rate", f"{efficiency.completion_rate:.0%}")
    table.add_row("Cancellation rate", f"{efficiency.cancellation_rate:.0%}")
    table.add_row("No-show rate", f"{efficiency.no_show_rate:.0%}")
    table.add_row("Today / week / month", f"{counts.today} / {counts.this_week} / {counts.this_month}")
    table.add_row("All-time sessions", str(counts.total))
    table.add_row("Avg. gap between sessions", f"{interval:g} min")

    console.print()
    console.print(table)

    if peaks:
        console.print("\n[bold]Peak hours:[/bold]")
        for peak in peaks[:3]:
            console.print(f"  {peak.label}  {peak.session_count} session(s)")

    if clients:
        console.print("\n[bold]Top clients:[/bold]")
        for client in clients[:5]:
            console.print(
                f"  {client.client_id}  {client.session_count} session(s), "
                f"last {client.last_session_date.isoformat()}"
            )

    styles = {"warning": "yellow", "info": "cyan", "success": "green"}
    console.print("\n[bold]Suggestions:[/bold]")
    for suggestion in suggestions:
        style = styles.get(suggestion.level, "white")
        console.print(f"  [{style}]{suggestion.title}[/{style}]: {suggestion.description}")
        if suggestion.action:
            console.print(f"    → {suggestion.action}")
    console.print()


@app.command()
def forecast(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    days: Annotated[int, typer.Option("--days", help="Forecast horizon in days")] = 14,
    config_file: ConfigOption = None,
):
    """
    Project utilization for the coming days.
    """
    try:
        _, service = _build_service(config_file)
        projection = service.workload_forecast(trainer_id, days)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _report_error(e)

    table = Table(title="Workload forecast", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Scheduled", justify="right")
    table.add_column("Free slots", justify="right")
    table.add_column("Utilization", justify="right")
    for item in projection:
        table.add_row(
            item.date.isoformat(),
            str(item.scheduled_count),
            str(item.available_slot_count),
            f"{item.utilization_forecast_pct}%",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]trainerbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
