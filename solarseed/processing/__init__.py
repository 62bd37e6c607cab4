"""Seeding driver and aggregate analytics."""

from .analytics import PERIOD_FREQUENCIES, energy_analytics, total_energy
from .seeder import SeedingError, SeedReport, build_generator, seed_database

__all__ = [
    "PERIOD_FREQUENCIES",
    "energy_analytics",
    "total_energy",
    "SeedingError",
    "SeedReport",
    "build_generator",
    "seed_database",
]
