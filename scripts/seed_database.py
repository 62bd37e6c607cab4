"""Seed the configured store with one solar unit and its synthetic history."""
from __future__ import annotations

import sys

from solarseed.config.settings import ConfigurationError, load_settings
from solarseed.interfaces.common import console, setup_logging
from solarseed.processing.seeder import SeedingError, seed_database
from solarseed.reporting.seed_summary import print_seed_report


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        console().print(f"[red]Configuration unavailable:[/] {exc}")
        return 1
    setup_logging(settings.log_level, settings.log.log_dir, name="seed")
    try:
        report = seed_database(settings)
    except SeedingError as exc:
        console().print(f"[red]Error seeding database:[/] {exc}")
        return 1
    print_seed_report(console(), report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
