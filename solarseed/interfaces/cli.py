"""CLI for seeding the store and querying energy totals."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from dotenv import load_dotenv
from rich.table import Table

from solarseed.config.settings import ConfigurationError, Settings, load_settings
from solarseed.infrastructure.database import get_session, init_engine
from solarseed.infrastructure.records import (
    RecordNotFound,
    SolarUnitNotFound,
    assign_user,
    delete_solar_unit,
    get_record,
    get_solar_unit,
    latest_record,
    list_records_page,
    list_solar_units,
    load_records_frame,
    set_solar_unit_status,
    unassign_user,
)
from solarseed.processing.analytics import PERIOD_FREQUENCIES, energy_analytics, total_energy
from solarseed.processing.seeder import SeedingError, seed_database
from solarseed.reporting.seed_summary import print_seed_report, save_anomaly_log

from .common import console, setup_logging

load_dotenv()

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="Solar unit energy records: seeding and analytics")
units_app = typer.Typer(help="Inspect and manage solar units")
records_app = typer.Typer(help="Browse energy generation records")
app.add_typer(units_app, name="units")
app.add_typer(records_app, name="records")

_settings_cache: Optional[Settings] = None
_config_override: Optional[Path] = None


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is not None:
        return _settings_cache
    try:
        _settings_cache = load_settings(_config_override)
    except ConfigurationError as exc:
        example = Path("config/settings.example.yaml")
        console().print(
            f"[red]Configuration unavailable:[/] {exc}. Pass a file with `--config` "
            f"or copy {example} to `config/settings.yaml`."
        )
        raise typer.Exit(code=1)
    setup_logging(_settings_cache.log_level, _settings_cache.log.log_dir)
    return _settings_cache


def _localize(value: Optional[datetime], timezone: str) -> Optional[datetime]:
    """Naive option values are wall-clock times in the configured timezone."""
    if value is None or value.tzinfo is not None:
        return value
    return pd.Timestamp(value).tz_localize(timezone, nonexistent="shift_forward", ambiguous=False).to_pydatetime()


def _engine(settings: Settings):
    return init_engine(settings.storage.database_url, echo=settings.storage.echo)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="YAML/JSON configuration file.",
    ),
) -> None:
    global _config_override, _settings_cache
    _config_override = config
    _settings_cache = None
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command()
def seed(
    start: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="First day to generate."),
    capacity: Optional[float] = typer.Option(None, min=1.0, help="Rated capacity in W."),
    seed_value: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible runs."),
    backfill: Optional[bool] = typer.Option(
        None,
        "--backfill/--no-backfill",
        help="Top up categories below the minimum quota at the end of the run.",
    ),
    keep_existing: bool = typer.Option(False, "--keep-existing", help="Do not clear stored data first."),
    anomaly_log: Optional[Path] = typer.Option(None, help="Write the anomaly log to a .csv or .json file."),
    brief: bool = typer.Option(False, "--brief", help="Skip the detailed anomaly log."),
) -> None:
    """Clear the store, create the demo solar unit and generate its readings up to now."""
    settings = get_settings()
    if start is not None:
        settings.generation.start = start.date()
    if capacity is not None:
        settings.unit.capacity = capacity
    if seed_value is not None:
        settings.generation.seed = seed_value
    if backfill is not None:
        settings.generation.backfill = backfill
    if keep_existing:
        settings.generation.keep_existing = True

    console().print(f"Seeding {settings.unit.serial_number} from {settings.generation.start.isoformat()}...")
    try:
        report = seed_database(settings)
    except SeedingError as exc:
        console().print(f"[red]Seeding failed:[/] {exc}")
        raise typer.Exit(code=2)

    print_seed_report(console(), report, detailed=not brief)
    if anomaly_log is not None:
        try:
            path = save_anomaly_log(report.events, anomaly_log)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--anomaly-log")
        console().print(f"Anomaly log written to {path}")
    console().print("[green]Database seeding completed successfully[/]")


@app.command()
def total(serial_number: str = typer.Argument(..., help="Solar unit serial number.")) -> None:
    """Total energy produced by a solar unit."""
    settings = get_settings()
    engine = _engine(settings)
    try:
        with get_session(engine) as session:
            unit = get_solar_unit(session, serial_number)
            frame = load_records_frame(session, unit.id)
    except SolarUnitNotFound as exc:
        console().print(f"[red]{exc}[/]")
        raise typer.Exit(code=3)
    summary = total_energy(frame)
    console().print(
        f"{serial_number}: {summary['total_energy']:.0f} Wh over {summary['record_count']} records"
    )


@app.command()
def analytics(
    serial_number: str = typer.Argument(..., help="Solar unit serial number."),
    period: str = typer.Option("daily", help=f"One of: {', '.join(PERIOD_FREQUENCIES)}."),
    start: Optional[datetime] = typer.Option(None, help="Only records at or after this instant."),
    end: Optional[datetime] = typer.Option(None, help="Only records at or before this instant."),
    limit: int = typer.Option(31, min=1, help="Show at most this many most recent buckets."),
) -> None:
    """Energy totals bucketed per day, week or month."""
    if period.lower() not in PERIOD_FREQUENCIES:
        raise typer.BadParameter(f"use one of {', '.join(PERIOD_FREQUENCIES)}", param_hint="--period")
    settings = get_settings()
    engine = _engine(settings)
    try:
        with get_session(engine) as session:
            unit = get_solar_unit(session, serial_number)
            frame = load_records_frame(
                session,
                unit.id,
                start=_localize(start, settings.generation.timezone),
                end=_localize(end, settings.generation.timezone),
            )
    except SolarUnitNotFound as exc:
        console().print(f"[red]{exc}[/]")
        raise typer.Exit(code=3)

    buckets = energy_analytics(frame, period, timezone=settings.generation.timezone).tail(limit)
    table = Table(title=f"{serial_number} {period.lower()} energy")
    table.add_column("Period", style="cyan", no_wrap=True)
    table.add_column("Total Wh", justify="right")
    table.add_column("Average Wh", justify="right")
    table.add_column("Max Wh", justify="right")
    table.add_column("Records", justify="right")
    for row in buckets.itertuples(index=False):
        table.add_row(
            row.period.strftime("%Y-%m-%d"),
            f"{row.total_energy:.0f}",
            f"{row.average_energy:.1f}",
            f"{row.max_energy:.0f}",
            str(row.record_count),
        )
    console().print(table)


def _units_table(title: str, units) -> Table:
    table = Table(title=title)
    table.add_column("Serial", style="cyan", no_wrap=True)
    table.add_column("Capacity W", justify="right")
    table.add_column("Status")
    table.add_column("User")
    table.add_column("Installed")
    for unit in units:
        table.add_row(
            unit.serial_number,
            f"{unit.capacity:.0f}",
            unit.status,
            unit.user_id or "-",
            unit.installation_date.isoformat() if unit.installation_date else "-",
        )
    return table


@units_app.command("list")
def units_list(
    status: Optional[str] = typer.Option(None, help="Only units with this status."),
    user: Optional[str] = typer.Option(None, help="Only units assigned to this user id."),
    unassigned: bool = typer.Option(False, "--unassigned", help="Only units without a user."),
) -> None:
    """List solar units."""
    settings = get_settings()
    try:
        with get_session(_engine(settings)) as session:
            units = list_solar_units(session, status=status, user_id=user, unassigned=unassigned)
            table = _units_table("Solar units", units)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--status")
    console().print(table)
    console().print(f"{len(units)} unit(s)")


def _change_unit(action, *args) -> None:
    settings = get_settings()
    try:
        with get_session(_engine(settings)) as session:
            unit = action(session, *args)
            summary = f"{unit.serial_number}: status {unit.status}, user {unit.user_id or '-'}"
    except SolarUnitNotFound as exc:
        console().print(f"[red]{exc}[/]")
        raise typer.Exit(code=3)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    LOGGER.info("Solar unit updated: %s", summary)
    console().print(summary)


@units_app.command("status")
def units_status(
    serial_number: str = typer.Argument(..., help="Solar unit serial number."),
    status: str = typer.Argument(..., help="ACTIVE, INACTIVE, MAINTENANCE or FAULT."),
) -> None:
    """Change the status of a solar unit."""
    _change_unit(set_solar_unit_status, serial_number, status)


@units_app.command("assign")
def units_assign(
    serial_number: str = typer.Argument(..., help="Solar unit serial number."),
    user_id: str = typer.Argument(..., help="User id to assign."),
) -> None:
    """Assign a user to a solar unit."""
    _change_unit(assign_user, serial_number, user_id)


@units_app.command("unassign")
def units_unassign(serial_number: str = typer.Argument(..., help="Solar unit serial number.")) -> None:
    """Remove the user from a solar unit."""
    _change_unit(unassign_user, serial_number)


@units_app.command("delete")
def units_delete(
    serial_number: str = typer.Argument(..., help="Solar unit serial number."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete a solar unit together with its records."""
    if not yes:
        typer.confirm(f"Delete {serial_number} and all of its records?", abort=True)
    settings = get_settings()
    try:
        with get_session(_engine(settings)) as session:
            removed = delete_solar_unit(session, serial_number)
    except SolarUnitNotFound as exc:
        console().print(f"[red]{exc}[/]")
        raise typer.Exit(code=3)
    LOGGER.info("Deleted solar unit %s with %d records", serial_number, removed)
    console().print(f"Deleted {serial_number} ({removed} records)")


def _records_table(title: str, records, timezone: str) -> Table:
    table = Table(title=title)
    table.add_column("Id", justify="right", style="cyan")
    table.add_column("Timestamp")
    table.add_column("Energy Wh", justify="right")
    table.add_column("Interval h", justify="right")
    for record in records:
        stamp = pd.Timestamp(record.timestamp)
        stamp = stamp.tz_localize("UTC") if stamp.tzinfo is None else stamp
        table.add_row(
            str(record.id),
            stamp.tz_convert(timezone).strftime("%Y-%m-%d %H:%M"),
            f"{record.energy_produced:.0f}",
            f"{record.interval_hours:g}",
        )
    return table


@records_app.command("list")
def records_list(
    serial_number: str = typer.Argument(..., help="Solar unit serial number."),
    limit: int = typer.Option(100, min=1, help="Records per page."),
    page: int = typer.Option(1, min=1, help="Page number, newest records first."),
) -> None:
    """Page through the records of a solar unit."""
    settings = get_settings()
    try:
        with get_session(_engine(settings)) as session:
            unit = get_solar_unit(session, serial_number)
            result = list_records_page(session, unit.id, limit=limit, page=page)
            table = _records_table(
                f"{serial_number} records (page {result.page}/{result.pages})",
                result.records,
                settings.generation.timezone,
            )
    except SolarUnitNotFound as exc:
        console().print(f"[red]{exc}[/]")
        raise typer.Exit(code=3)
    console().print(table)
    console().print(f"{result.total} records in {result.pages} page(s)")


@records_app.command("latest")
def records_latest(serial_number: str = typer.Argument(..., help="Solar unit serial number.")) -> None:
    """Most recent record of a solar unit."""
    settings = get_settings()
    try:
        with get_session(_engine(settings)) as session:
            unit = get_solar_unit(session, serial_number)
            record = latest_record(session, unit.id)
            if record is None:
                raise RecordNotFound(f"No energy generation records found for {serial_number}")
            table = _records_table(f"{serial_number} latest record", [record], settings.generation.timezone)
    except (SolarUnitNotFound, RecordNotFound) as exc:
        console().print(f"[red]{exc}[/]")
        raise typer.Exit(code=3)
    console().print(table)


@records_app.command("show")
def records_show(record_id: int = typer.Argument(..., help="Record id.")) -> None:
    """One record by id."""
    settings = get_settings()
    try:
        with get_session(_engine(settings)) as session:
            record = get_record(session, record_id)
            table = _records_table(f"Record {record_id}", [record], settings.generation.timezone)
    except RecordNotFound as exc:
        console().print(f"[red]{exc}[/]")
        raise typer.Exit(code=3)
    console().print(table)


if __name__ == "__main__":
    app()
