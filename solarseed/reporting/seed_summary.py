"""Seeding summary tables and anomaly log export."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

import pandas as pd
from rich.console import Console
from rich.table import Table

from solarseed.generation import AnomalyEvent
from solarseed.processing.seeder import SeedReport

ANOMALY_LOG_HEADERS = ["index", "category", "date", "hour", "description", "timestamp"]


def anomaly_log_frame(events: Iterable[AnomalyEvent]) -> pd.DataFrame:
    rows = []
    for index, event in enumerate(events, start=1):
        rows.append(
            [
                index,
                event.category.value,
                event.timestamp.strftime("%Y-%m-%d"),
                f"{event.timestamp.hour}:00",
                event.description,
                event.timestamp.isoformat(),
            ]
        )
    return pd.DataFrame(rows, columns=ANOMALY_LOG_HEADERS)


def save_anomaly_log(events: Iterable[AnomalyEvent], path: Path) -> Path:
    """Write the anomaly log as CSV or JSON depending on the suffix."""
    frame = anomaly_log_frame(events)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".json":
        frame.to_json(path, orient="records", indent=2, force_ascii=False)
    elif suffix == ".csv":
        frame.to_csv(path, index=False)
    else:
        raise ValueError(f"Unsupported anomaly log format {path.suffix!r}; use .csv or .json")
    return path


def summary_table(report: SeedReport) -> Table:
    table = Table(title="Seeding Summary")
    table.add_column("Item", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("Solar unit", f"{report.serial_number} ({report.capacity:.0f}W)")
    table.add_row("Date range", f"{report.start.isoformat()} to {report.end.strftime('%Y-%m-%d')}")
    table.add_row(
        "Energy records",
        f"{report.record_count} records ({report.days} days, {report.interval_hours:g}-hour intervals)",
    )
    table.add_row("Total energy generated", f"{report.total_energy:.0f} Wh")
    table.add_row("Total anomalies", str(len(report.events)))
    if report.backfilled:
        table.add_row("Backfilled anomalies", str(report.backfilled))
    return table


def quota_table(report: SeedReport) -> Table:
    table = Table(title="Anomalies Generated")
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Count", justify="right")
    table.add_column("Status")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    for category, count in report.counts.items():
        status = "[green]met[/]" if count >= report.minimum else "[red]short[/]"
        table.add_row(category, str(count), status, str(report.minimum), str(report.maximum))
    return table


def anomaly_log_table(events: List[AnomalyEvent]) -> Table:
    table = Table(title="Detailed Anomaly Log")
    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("When")
    table.add_column("Description")
    for index, event in enumerate(events, start=1):
        when = f"{event.timestamp.strftime('%Y-%m-%d')} {event.timestamp.hour}:00"
        table.add_row(str(index), event.category.value, when, event.description)
    return table


def print_seed_report(console: Console, report: SeedReport, *, detailed: bool = True) -> None:
    console.print(summary_table(report))
    if report.events:
        console.print(quota_table(report))
        if detailed:
            console.print(anomaly_log_table(report.events))
