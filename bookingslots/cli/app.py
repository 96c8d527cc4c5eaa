"""
Main CLI application using Typer.
"""

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.memory_store import InMemoryBookingStore, InMemoryCatalog
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingError
from ..services.availability import AvailabilityEngine
from ..services.booking import BookingService

app = typer.Typer(
    name="bookingslots",
    help="Compute bookable appointment slots and check bookings for conflicts",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


def _load_config(config_file: Optional[Path], verbose: bool = False) -> AppConfig:
    """Load the YAML config and set up logging through rich."""
    config = AppConfig.load_from_yaml(config_file or get_default_config_path())

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level_number,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return config


def _parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string into a date."""
    try:
        parsed = pendulum.parse(value, exact=True)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date '{value}': {e}") from e

    if isinstance(parsed, pendulum.DateTime):
        return parsed.date()
    if isinstance(parsed, date):
        return parsed
    raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD")


@app.command()
def slots(
    company: Annotated[str, typer.Option("--company", help="Company id")],
    professional: Annotated[str, typer.Option("--professional", "-p", help="Professional id")],
    service: Annotated[str, typer.Option("--service", "-s", help="Service id")],
    day: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    show_all: Annotated[bool, typer.Option("--all", help="Also list booked slots.")] = False,
    config_file: ConfigOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    """
    List the slots of a professional for one service and day.
    """
    try:
        config = _load_config(config_file, verbose)
        booking_date = _parse_date(day)

        engine = AvailabilityEngine(
            catalog=InMemoryCatalog.from_config(config),
            bookings=InMemoryBookingStore.from_config(config),
        )
        result = asyncio.run(
            engine.list_slots(
                company_id=company,
                professional_id=professional,
                service_id=service,
                booking_date=booking_date,
                include_unavailable=show_all,
            )
        )

        console.print()
        if not result:
            console.print(
                "[yellow]⚠ No slots available.[/yellow]\n"
                "The day is fully booked or the service does not fit the working hours."
            )
            return

        table = Table(title=f"Slots for {professional} on {booking_date.isoformat()}")
        table.add_column("Start", style="cyan")
        table.add_column("End", style="cyan")
        table.add_column("Status")

        for slot in result:
            status = "[green]available[/green]" if slot.available else "[red]booked[/red]"
            table.add_row(str(slot.start), str(slot.end), status)

        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, BookingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def book(
    company: Annotated[str, typer.Option("--company", help="Company id")],
    professional: Annotated[str, typer.Option("--professional", "-p", help="Professional id")],
    service: Annotated[str, typer.Option("--service", "-s", help="Service id")],
    day: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Option("--start", help="Start time (HH:MM)")],
    config_file: ConfigOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    """
    Check a booking against the configured bookings and accept or reject it.
    """
    try:
        config = _load_config(config_file, verbose)
        booking_date = _parse_date(day)

        service_layer = BookingService(
            catalog=InMemoryCatalog.from_config(config),
            bookings=InMemoryBookingStore.from_config(config),
        )
        interval = asyncio.run(
            service_layer.book(
                company_id=company,
                professional_id=professional,
                service_id=service,
                booking_date=booking_date,
                start=start,
            )
        )

        console.print(
            f"[bold green]✓ Booking accepted:[/bold green] {interval.booking_date.isoformat()} "
            f"{interval.time_range} (id {interval.booking_id})"
        )

    except BookingError as e:
        console.print(f"[bold red]✗ Booking rejected ({e.http_status}):[/bold red] {e}")
        raise typer.Exit(1)

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def companies(
    config_file: ConfigOption = None,
):
    """
    List configured companies and their services.
    """
    try:
        config = _load_config(config_file)

        if not config.companies:
            console.print("[yellow]No companies defined in the config file.[/yellow]")
            return

        table = Table(title="Companies")
        table.add_column("Id", style="cyan")
        table.add_column("Name")
        table.add_column("Hours")
        table.add_column("Interval")
        table.add_column("Services")

        for company in config.companies:
            services = ", ".join(
                f"{s.id} ({s.duration_minutes}+{s.buffer_time_minutes} min)"
                for s in config.services_for(company.id)
            )
            name = company.name if company.is_active else f"{company.name} [dim](inactive)[/dim]"
            table.add_row(
                company.id,
                name,
                f"{company.working_start_time} - {company.working_end_time}",
                f"{company.booking_interval_minutes} min",
                services or "-",
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
