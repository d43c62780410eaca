"""CLI commands for Salon OS."""

import asyncio
import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, TypeVar
from zoneinfo import ZoneInfo

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from salon_os.config import Settings, get_settings
from salon_os.scheduling import (
    Appointment,
    AppointmentNotFoundError,
    AppointmentStatus,
    BookingRequest,
    BookingService,
    BookingValidator,
    ReflectedAppointmentError,
    StaffDirectoryEntry,
    ValidationResult,
    build_reflection_report,
)
from salon_os.storage import SqlAppointmentStore, SqlStaffDirectory
from salon_os.storage.database import create_engine_for_url, init_db

app = typer.Typer(
    name="salon-os",
    help="Staff availability and cross-location appointment reflection",
    add_completion=False,
)
console = Console()

T = TypeVar("T")


@dataclass
class EngineContext:
    store: SqlAppointmentStore
    directory: SqlStaffDirectory
    booking: BookingService


def _run(action: Callable[[EngineContext], Awaitable[T]]) -> T:
    """Run ``action`` against the configured database, creating tables if needed."""
    settings = get_settings()

    async def runner() -> T:
        engine = create_engine_for_url(settings.database_url)
        try:
            await init_db(engine)
            factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            store = SqlAppointmentStore(factory)
            directory = SqlStaffDirectory(factory)
            booking = BookingService.from_settings(store, directory, settings)
            return await action(EngineContext(store, directory, booking))
        finally:
            await engine.dispose()

    return asyncio.run(runner())


def _parse_when(value: str, settings: Settings) -> datetime:
    """Parse an ISO timestamp; naive values are read in the business timezone."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Invalid date: {value}. Use ISO format, e.g. 2025-06-26T10:00[/red]")
        raise typer.Exit(1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(settings.business_timezone))
    return parsed


def _parse_status(value: str) -> AppointmentStatus:
    try:
        return AppointmentStatus(value.lower())
    except ValueError:
        allowed = ", ".join(s.value for s in AppointmentStatus)
        console.print(f"[red]Invalid status: {value}. Use one of: {allowed}[/red]")
        raise typer.Exit(1)


def _print_json(payload: Any) -> None:
    # Plain echo: rich would soft-wrap long lines.
    typer.echo(json.dumps(payload, indent=2, default=str))


def _appointments_table(title: str, appointments: list[Appointment]) -> Table:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Staff")
    table.add_column("Client")
    table.add_column("Service")
    table.add_column("Start")
    table.add_column("Min", justify="right")
    table.add_column("Location")
    table.add_column("Status")
    for appointment in appointments:
        table.add_row(
            appointment.id,
            appointment.staff_name or appointment.staff_id,
            appointment.client_name,
            appointment.service,
            appointment.date.isoformat(),
            str(appointment.duration),
            appointment.location,
            appointment.status.value,
        )
    return table


def _display_validation(result: ValidationResult, summary: str) -> None:
    color = "green" if result.is_valid else "red"
    console.print(Panel(summary, title="Booking Validation", border_style=color))

    for error in result.errors:
        console.print(f"[red]✗ {error}[/red]")
    for warning in result.warnings:
        console.print(f"[yellow]! {warning}[/yellow]")


@app.command()
def version():
    """Show version information."""
    from salon_os import __version__

    console.print(f"Salon OS v{__version__}")


@app.command("init-db")
def init_db_command():
    """Create the appointment and staff tables."""

    async def action(ctx: EngineContext) -> int:
        return len(await ctx.directory.list_staff())

    staff_count = _run(action)
    console.print(f"[green]Database initialized[/green] ({staff_count} staff)")


@app.command("staff-add")
def staff_add(
    staff_id: str = typer.Argument(..., help="Staff identifier"),
    name: str = typer.Option("", "--name", "-n", help="Display name"),
    locations: Optional[List[str]] = typer.Option(
        None, "--location", "-l", help="Assigned location (repeatable, 'home' allowed)"
    ),
    home_service: bool = typer.Option(False, "--home-service", help="Capable of home service"),
    inactive: bool = typer.Option(False, "--inactive", help="Mark staff member inactive"),
):
    """Add or replace a staff directory entry."""
    locations = locations or []
    entry = StaffDirectoryEntry(
        staff_id=staff_id,
        name=name,
        status="inactive" if inactive else "active",
        home_service_capable=home_service,
        locations=locations,
    )

    async def action(ctx: EngineContext) -> None:
        await ctx.directory.upsert_staff(entry)

    _run(action)
    console.print(f"[green]Saved staff {staff_id}[/green] ({', '.join(locations) or 'no locations'})")


@app.command()
def validate(
    staff_id: str = typer.Option(..., "--staff", "-s", help="Staff identifier"),
    date: str = typer.Option(..., "--date", "-d", help="Start time (ISO 8601)"),
    duration: int = typer.Option(..., "--duration", "-m", help="Duration in minutes"),
    location: str = typer.Option(..., "--location", "-l", help="Location id or 'home'"),
    client_name: Optional[str] = typer.Option(None, "--client", help="Client name"),
    service: Optional[str] = typer.Option(None, "--service", help="Service name"),
    service_id: Optional[str] = typer.Option(None, "--service-id", help="Service id for buffer rules"),
    exclude: Optional[str] = typer.Option(None, "--exclude", help="Appointment being modified"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Validate a booking without writing anything."""
    settings = get_settings()
    request = BookingRequest(
        staff_id=staff_id,
        date=_parse_when(date, settings),
        duration=duration,
        location=location,
        client_name=client_name,
        service=service,
        service_id=service_id,
        exclude_appointment_id=exclude,
    )

    async def action(ctx: EngineContext) -> ValidationResult:
        return await ctx.booking.validator.validate_booking(request)

    result = _run(action)
    summary = BookingValidator.get_validation_summary(result)

    if output_json:
        _print_json({**result.model_dump(mode="json", by_alias=True), "summary": summary})
    else:
        _display_validation(result, summary)

    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def book(
    staff_id: str = typer.Option(..., "--staff", "-s", help="Staff identifier"),
    date: str = typer.Option(..., "--date", "-d", help="Start time (ISO 8601)"),
    duration: int = typer.Option(..., "--duration", "-m", help="Duration in minutes"),
    location: str = typer.Option(..., "--location", "-l", help="Location id or 'home'"),
    client_name: str = typer.Option(..., "--client", help="Client name"),
    service: str = typer.Option(..., "--service", help="Service name"),
    staff_name: str = typer.Option("", "--staff-name", help="Staff display name"),
    service_id: Optional[str] = typer.Option(None, "--service-id", help="Service id for buffer rules"),
    status: str = typer.Option("confirmed", "--status", help="Initial status"),
    appointment_id: Optional[str] = typer.Option(None, "--id", help="Appointment id (generated if omitted)"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Validate and book an appointment, reflecting it to the staff member's other locations."""
    settings = get_settings()
    appointment = Appointment(
        id=appointment_id or str(uuid.uuid4()),
        staff_id=staff_id,
        staff_name=staff_name,
        client_name=client_name,
        service=service,
        service_id=service_id,
        date=_parse_when(date, settings),
        duration=duration,
        location=location,
        status=_parse_status(status),
    )

    async def action(ctx: EngineContext):
        return await ctx.booking.create_appointment(appointment)

    outcome = _run(action)

    if output_json:
        _print_json(outcome.model_dump(mode="json", by_alias=True))
    elif outcome.success:
        console.print(f"[green]Booked {appointment.id}[/green]")
        for warning in outcome.warnings:
            console.print(f"[yellow]! {warning}[/yellow]")
        if outcome.reflected:
            console.print(_appointments_table("Reflected appointments", outcome.reflected))
    else:
        console.print(f"[red]✗ {outcome.error}[/red]")

    if not outcome.success:
        raise typer.Exit(1)


@app.command()
def update(
    appointment_id: str = typer.Argument(..., help="Appointment to update"),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="New start time (ISO 8601)"),
    duration: Optional[int] = typer.Option(None, "--duration", "-m", help="New duration in minutes"),
    location: Optional[str] = typer.Option(None, "--location", "-l", help="New location"),
    status: Optional[str] = typer.Option(None, "--status", help="New status"),
    client_name: Optional[str] = typer.Option(None, "--client", help="New client name"),
    service: Optional[str] = typer.Option(None, "--service", help="New service name"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Update an appointment and refresh its reflections."""
    settings = get_settings()
    updates: dict[str, Any] = {}
    if date is not None:
        updates["date"] = _parse_when(date, settings)
    if duration is not None:
        updates["duration"] = duration
    if location is not None:
        updates["location"] = location
    if status is not None:
        updates["status"] = _parse_status(status)
    if client_name is not None:
        updates["client_name"] = client_name
    if service is not None:
        updates["service"] = service

    if not updates:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(1)

    async def action(ctx: EngineContext):
        return await ctx.booking.update_appointment(appointment_id, updates)

    try:
        outcome = _run(action)
    except AppointmentNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if output_json:
        _print_json(outcome.model_dump(mode="json", by_alias=True))
    elif outcome.success:
        console.print(
            f"[green]Updated {appointment_id}[/green] ({len(outcome.reflected)} reflection(s) refreshed)"
        )
        for warning in outcome.warnings:
            console.print(f"[yellow]! {warning}[/yellow]")
    else:
        console.print(f"[red]✗ {outcome.error}[/red]")

    if not outcome.success:
        raise typer.Exit(1)


@app.command()
def delete(
    appointment_id: str = typer.Argument(..., help="Appointment to delete"),
):
    """Delete an appointment together with its reflections."""

    async def action(ctx: EngineContext) -> bool:
        return await ctx.booking.delete_appointment(appointment_id)

    try:
        deleted = _run(action)
    except ReflectedAppointmentError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not deleted:
        console.print(f"[red]Appointment not found: {appointment_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Deleted {appointment_id}[/green]")


@app.command()
def reflections(
    appointment_id: str = typer.Argument(..., help="Original appointment id"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List the reflected appointments owned by an original."""

    async def action(ctx: EngineContext) -> list[Appointment]:
        return await ctx.booking.reflection.get_reflected_appointments(appointment_id)

    shadows = _run(action)

    if output_json:
        _print_json([a.model_dump(mode="json", by_alias=True) for a in shadows])
        return
    if not shadows:
        console.print(f"No reflections for {appointment_id}")
        return
    console.print(_appointments_table(f"Reflections of {appointment_id}", shadows))


@app.command()
def cleanup():
    """Remove reflected appointments whose original no longer exists."""

    async def action(ctx: EngineContext) -> int:
        return await ctx.booking.reflection.cleanup_orphaned_reflections()

    removed = _run(action)
    console.print(f"Removed {removed} orphaned reflection(s)")


@app.command()
def debug(
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show originals, reflections and orphaned reflections."""

    async def action(ctx: EngineContext):
        return await build_reflection_report(ctx.store)

    report = _run(action)

    if output_json:
        _print_json(
            {
                **report.model_dump(mode="json", by_alias=True),
                "isConsistent": report.is_consistent,
            }
        )
        return

    console.print(_appointments_table(f"Original ({len(report.original)})", report.original))
    console.print(_appointments_table(f"Reflected ({len(report.reflected)})", report.reflected))
    if report.orphaned:
        console.print(f"[yellow]{len(report.orphaned)} orphaned reflection(s)[/yellow]")
        console.print(_appointments_table("Orphaned", report.orphaned))
    else:
        console.print("[green]No orphaned reflections[/green]")
