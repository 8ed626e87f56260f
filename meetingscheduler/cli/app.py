"""
Main CLI application using Typer.
"""

import asyncio
import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Annotated, Iterator, List, Optional, Sequence, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.http_repository import HttpScheduleRepository
from ..adapters.json_repository import JsonScheduleRepository
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ResourceNotFoundError, SchedulerError
from ..domain.models import AvailableSlot, LocationSlot, ResourceKind
from ..domain.slot_calculator import SlotCalculator
from ..services.availability import AvailabilityService, sort_location_slots

app = typer.Typer(
    name="meetingscheduler",
    help="Find free time for rooms and attendees and suggest meeting slots",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]
DateOption = Annotated[Optional[str], typer.Option("--date", help="Day to check (YYYY-MM-DD), defaults to today")]
AttendeeOption = Annotated[Optional[int], typer.Option("--attendee", "-a", help="Attendee ID")]
LocationOption = Annotated[Optional[int], typer.Option("--location", "-l", help="Location ID")]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _load_config(config_file: Optional[Path], verbose: bool) -> AppConfig:
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    _configure_logging("DEBUG" if verbose else config.log_level)
    return config


def _build_repository(config: AppConfig):
    if config.data_source == "http":
        return HttpScheduleRepository(
            base_url=config.api.base_url,
            token=config.api.token,
            timezone=config.timezone,
            timeout=config.api.timeout_seconds,
        )
    return JsonScheduleRepository.from_file(config.data_file, timezone=config.timezone)


def _build_service(config: AppConfig, repository) -> AvailabilityService:
    calculator = SlotCalculator(
        default_start=config.defaults.working_start,
        default_end=config.defaults.working_end,
        timezone=config.timezone,
    )
    return AvailabilityService.from_repository(repository, calculator)


def _parse_day(value: Optional[str], tz: str) -> date:
    if not value:
        return pendulum.today(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{value}': {e}[/red]")
        raise typer.Exit(1)


def _resolve_resource(attendee: Optional[int], location: Optional[int]) -> Tuple[ResourceKind, int]:
    if (attendee is None) == (location is None):
        console.print("[red]Error: pass exactly one of --attendee or --location.[/red]")
        raise typer.Exit(1)
    if attendee is not None:
        return ResourceKind.ATTENDEE, attendee
    return ResourceKind.LOCATION, location


@contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except ResourceNotFoundError as e:
        console.print(f"[bold red]Not found:[/bold red] {e}")
        raise typer.Exit(1)
    except (SchedulerError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _print_slots(title: str, slots: Sequence[AvailableSlot]) -> None:
    if not slots:
        console.print("[yellow]⚠ No available time slots found.[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold yellow")
    table.add_column("End")
    table.add_column("Minutes", justify="right", style="dim")

    for slot in slots:
        table.add_row(
            slot.start.format("DD.MM.YYYY HH:mm"),
            slot.end.format("DD.MM.YYYY HH:mm"),
            str(slot.duration_minutes()),
        )
    console.print(table)


def _print_location_slots(title: str, slots: Sequence[LocationSlot]) -> None:
    if not slots:
        console.print("[yellow]⚠ No matching location slots found.[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Location", style="bold yellow")
    table.add_column("Seats", justify="right")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Minutes", justify="right", style="dim")

    for item in sort_location_slots(slots):
        capacity = item.location.capacity
        table.add_row(
            item.location.name,
            str(capacity) if capacity is not None else "-",
            item.slot.start.format("DD.MM.YYYY HH:mm"),
            item.slot.end.format("DD.MM.YYYY HH:mm"),
            str(item.slot.duration_minutes()),
        )
    console.print(table)


@app.command()
def free_slots(
    attendee: AttendeeOption = None,
    location: LocationOption = None,
    day: DateOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show when a single attendee or location is free on a day.

    Examples:

        meetingscheduler free-slots --attendee 1 --date 2024-11-25
        meetingscheduler free-slots --location 2
    """
    kind, resource_id = _resolve_resource(attendee, location)

    with _handle_errors():
        config = _load_config(config_file, verbose)
        target_day = _parse_day(day, config.timezone)
        service = _build_service(config, _build_repository(config))

        slots = asyncio.run(service.get_free_slots(kind, resource_id, target_day))
        _print_slots(f"Free time for {kind.label} {resource_id} on {target_day}", slots)


@app.command()
def locations(
    day: DateOption = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Minimum slot length in minutes")] = None,
    min_capacity: Annotated[Optional[int], typer.Option("--min-capacity", help="Minimum number of seats")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List free slots of all locations, optionally filtered by capacity.
    """
    with _handle_errors():
        config = _load_config(config_file, verbose)
        target_day = _parse_day(day, config.timezone)
        min_duration = duration if duration is not None else config.defaults.duration_minutes
        service = _build_service(config, _build_repository(config))

        slots = asyncio.run(
            service.get_location_availability(
                day=target_day,
                min_duration_minutes=min_duration,
                min_capacity=min_capacity,
            )
        )
        _print_location_slots(f"Location availability on {target_day} (>= {min_duration} min)", slots)


@app.command()
def common(
    attendee_ids: Annotated[List[int], typer.Argument(help="Attendee IDs")],
    day: DateOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the time every given attendee is free.
    """
    with _handle_errors():
        config = _load_config(config_file, verbose)
        target_day = _parse_day(day, config.timezone)
        service = _build_service(config, _build_repository(config))

        slots = asyncio.run(service.get_common_availability(attendee_ids, target_day))
        _print_slots(f"Common availability on {target_day}", slots)


@app.command()
def suggest(
    attendee_ids: Annotated[List[int], typer.Argument(help="Attendee IDs")],
    day: DateOption = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting duration in minutes")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Suggest rooms and times where all attendees can meet.

    Examples:

        meetingscheduler suggest 1 2 3 --date 2024-11-25 --duration 60
    """
    with _handle_errors():
        config = _load_config(config_file, verbose)
        target_day = _parse_day(day, config.timezone)
        min_duration = duration if duration is not None else config.defaults.duration_minutes
        service = _build_service(config, _build_repository(config))

        suggestions = asyncio.run(
            service.get_meeting_suggestions(
                attendee_ids=attendee_ids,
                min_duration_minutes=min_duration,
                day=target_day,
            )
        )
        _print_location_slots(f"Meeting suggestions on {target_day} (>= {min_duration} min)", suggestions)


@app.command()
def meetings(
    attendee: AttendeeOption = None,
    location: LocationOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD), defaults to the start date")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List booked meetings of an attendee or location.
    """
    kind, resource_id = _resolve_resource(attendee, location)

    with _handle_errors():
        config = _load_config(config_file, verbose)
        tz = config.timezone
        start_day = _parse_day(start, tz)
        end_day = _parse_day(end, tz) if end else start_day

        range_start = pendulum.datetime(start_day.year, start_day.month, start_day.day, tz=tz)
        range_end = pendulum.datetime(end_day.year, end_day.month, end_day.day, tz=tz).end_of("day")

        service = _build_service(config, _build_repository(config))
        found = asyncio.run(service.get_meetings_in_range(kind, resource_id, range_start, range_end))

        if not found:
            console.print("[yellow]⚠ No meetings found.[/yellow]")
            return

        table = Table(title=f"Meetings for {kind.label} {resource_id}", show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Title", style="bold yellow")
        table.add_column("Start")
        table.add_column("End")
        for meeting in found:
            table.add_row(
                str(meeting.id),
                meeting.title,
                meeting.start.format("DD.MM.YYYY HH:mm"),
                meeting.end.format("DD.MM.YYYY HH:mm"),
            )
        console.print(table)


@app.command()
def list_locations(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List all known locations.
    """
    with _handle_errors():
        config = _load_config(config_file, verbose)
        repository = _build_repository(config)
        all_locations = asyncio.run(repository.all_locations())

        if not all_locations:
            console.print("[yellow]No locations defined.[/yellow]")
            return

        table = Table(title="Locations", show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Seats", justify="right")
        table.add_column("Working hours")
        for item in all_locations:
            table.add_row(
                str(item.id),
                item.name,
                str(item.capacity) if item.capacity is not None else "-",
                str(item.working_hours),
            )
        console.print(table)


@app.command()
def list_attendees(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List all known attendees.
    """
    with _handle_errors():
        config = _load_config(config_file, verbose)
        repository = _build_repository(config)
        all_attendees = asyncio.run(repository.all_attendees())

        if not all_attendees:
            console.print("[yellow]No attendees defined.[/yellow]")
            return

        table = Table(title="Attendees", show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("E-Mail", style="dim")
        table.add_column("Working hours")
        for item in all_attendees:
            table.add_row(str(item.id), item.name, item.email, str(item.working_hours))
        console.print(table)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]meetingscheduler[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
