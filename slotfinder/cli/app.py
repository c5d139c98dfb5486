"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Annotated

import pendulum
import typer
from pendulum.parsing.exceptions import ParserError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.fixture_store import FixtureBookingStore
from ..config import AppConfig, get_default_config_path
from ..domain.availability import AvailabilityAggregator
from ..domain.exceptions import SlotFinderError
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="slotfinder",
    help="Find bookable appointment slots for a business",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
BusinessOption = Annotated[str, typer.Option("--business", "-b", help="Business id or phone number")]
ServiceOption = Annotated[Optional[int], typer.Option("--service", "-s", help="Service id (sets the slot duration)")]
ProfessionalOption = Annotated[Optional[int], typer.Option("--professional", "-p", help="Only this professional")]
NowOption = Annotated[Optional[str], typer.Option("--now", help="Reference instant (ISO 8601). Defaults to the current time.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_service(config_file: Optional[Path]) -> tuple[AppConfig, AvailabilityService]:
    """
    Load configuration and wire the fixture store, aggregator and service.
    """
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)

    if config.data_file is None:
        raise ValueError("No data_file configured. Set data_file in the config file.")

    store = FixtureBookingStore.from_file(config.data_file, timezone=config.timezone)
    aggregator = AvailabilityAggregator(
        timezone=config.timezone,
        locale=config.locale,
        skip_weekdays=config.skip_weekdays,
    )
    service = AvailabilityService(
        data_source=store,
        aggregator=aggregator,
        default_duration_minutes=config.defaults.duration_minutes,
        default_window_days=config.defaults.window_days,
    )
    return config, service


def _parse_now(value: Optional[str], tz: str):
    if value is None:
        return pendulum.now(tz)
    try:
        return pendulum.parse(value, tz=tz)
    except (ParserError, ValueError) as e:
        console.print(f"[red]Could not parse --now: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def slots(
    business: BusinessOption,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    service: ServiceOption = None,
    professional: ProfessionalOption = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the response payload as JSON")] = False,
    verbose: VerboseOption = False,
):
    """
    Show the free slots of a day for every professional of a business.

    Examples:

        slotfinder slots --business 1
        slotfinder slots -b 5511999990000 --date 2026-10-21 --service 10
        slotfinder slots -b 1 --professional 7 --json
    """
    _setup_logging(verbose)

    try:
        config, availability_service = _build_service(config_file)
        reference = _parse_now(now, config.timezone)

        result = asyncio.run(availability_service.get_free_slots(
            business=business,
            day=date,
            service_id=service,
            professional_id=professional,
            now=reference,
        ))
    except (FileNotFoundError, ValueError, SlotFinderError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        payload = result.to_single_dict() if professional is not None else result.to_dict()
        console.print_json(data=payload)
        return

    console.print(
        f"\n[bold cyan]{result.date.to_date_string()}[/bold cyan] "
        f"- slots of {result.slot_duration_minutes} min\n"
    )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Professional", style="bold yellow")
    table.add_column("Specialties", style="dim")
    table.add_column("Slots")

    for entry in result.professionals:
        times = ", ".join(slot.to_dict()["start"] for slot in entry.slots)
        table.add_row(entry.name, ", ".join(entry.specialties), times or "-")

    console.print(table)
    console.print()


@app.command()
def days(
    business: BusinessOption,
    start: Annotated[Optional[str], typer.Option("--start", help="First date (YYYY-MM-DD). Defaults to today.")] = None,
    window: Annotated[Optional[int], typer.Option("--window", "-w", help="Number of days to scan")] = None,
    service: ServiceOption = None,
    professional: ProfessionalOption = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    List the upcoming days that still have bookable slots.
    """
    _setup_logging(verbose)

    try:
        config, availability_service = _build_service(config_file)
        reference = _parse_now(now, config.timezone)

        found = asyncio.run(availability_service.find_available_days(
            business=business,
            service_id=service,
            professional_id=professional,
            start_date=start,
            window_days=window,
            now=reference,
        ))
    except (FileNotFoundError, ValueError, SlotFinderError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not found:
        console.print("[yellow]No available days found in the window.[/yellow]")
        return

    console.print(f"[bold green]{len(found)} day(s) with availability:[/bold green]\n")
    for day in found:
        console.print(f"  {day.date.to_date_string()}  {day.display_label:<10} {day.slot_count} slot(s)")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotfinder[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
