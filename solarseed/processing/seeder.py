"""Seed the store with a demo solar unit and its synthetic energy history."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from solarseed.config.settings import Settings
from solarseed.generation import AnomalyEvent, EnergySeriesGenerator, TriggerPolicy
from solarseed.infrastructure.database import get_session, init_engine
from solarseed.infrastructure.records import clear_all, create_solar_unit, insert_records

LOGGER = logging.getLogger(__name__)


class SeedingError(RuntimeError):
    """Raised when the seeding batch could not be stored."""


@dataclass(slots=True)
class SeedReport:
    solar_unit_id: int
    serial_number: str
    capacity: float
    start: date
    end: datetime
    record_count: int
    total_energy: float
    interval_hours: float
    counts: Dict[str, int]
    minimum: int
    maximum: int
    events: List[AnomalyEvent] = field(default_factory=list)
    backfilled: int = 0

    @property
    def days(self) -> int:
        return (self.end.date() - self.start).days + 1

    def quota_met(self) -> bool:
        return all(count >= self.minimum for count in self.counts.values())


def build_generator(settings: Settings, *, rng: Optional[np.random.Generator] = None) -> EnergySeriesGenerator:
    anomalies = settings.anomalies
    policy = TriggerPolicy(
        base_rate=anomalies.base_rate,
        late_rate=anomalies.late_rate,
        late_progress=anomalies.late_progress,
    )
    return EnergySeriesGenerator(
        rng=rng,
        seed=settings.generation.seed,
        policy=policy,
        interval_hours=settings.generation.interval_hours,
        min_per_category=anomalies.min_per_category,
        max_per_category=anomalies.max_per_category,
    )


def seed_database(
    settings: Settings,
    *,
    now: Optional[datetime] = None,
    engine: Optional[Engine] = None,
    rng: Optional[np.random.Generator] = None,
) -> SeedReport:
    """Replace stored data with one solar unit and readings from ``generation.start`` to ``now``.

    The unit and all of its records are written in a single transaction; any
    storage failure rolls the whole batch back and raises :class:`SeedingError`.
    """
    generation = settings.generation
    unit_cfg = settings.unit
    end = pd.Timestamp(now) if now is not None else pd.Timestamp.now(tz=generation.timezone)
    if end.tzinfo is None:
        end = end.tz_localize(generation.timezone)

    LOGGER.info("Starting database seeding (%s)", settings.storage.database_url)
    generator = build_generator(settings, rng=rng)
    series = generator.generate_series(
        unit_cfg.capacity,
        generation.start,
        end,
        timezone=generation.timezone,
        backfill=generation.backfill,
    )

    try:
        engine = engine or init_engine(settings.storage.database_url, echo=settings.storage.echo)
        with get_session(engine) as session:
            if generation.keep_existing:
                LOGGER.info("Keeping existing solar units and records")
            else:
                LOGGER.info("Clearing existing data")
                clear_all(session)
            unit = create_solar_unit(
                session,
                serial_number=unit_cfg.serial_number,
                capacity=unit_cfg.capacity,
                user_id=unit_cfg.user_id,
                status=unit_cfg.status,
                installation_date=unit_cfg.installation_date,
            )
            unit_id = unit.id
            LOGGER.info("Solar unit %s created with id %s", unit_cfg.serial_number, unit_id)
            stored = insert_records(session, unit_id, series.readings)
    except SQLAlchemyError as exc:
        LOGGER.error("Seeding failed, batch rolled back: %s", exc)
        raise SeedingError(f"Could not store seeding batch: {exc}") from exc

    LOGGER.info("Created %d energy generation records (%d anomalies)", stored, len(series.events))
    if not all(count >= settings.anomalies.min_per_category for count in series.counts.values()):
        LOGGER.warning("Anomaly minimum not reached for every category: %s", series.counts)

    return SeedReport(
        solar_unit_id=unit_id,
        serial_number=unit_cfg.serial_number,
        capacity=unit_cfg.capacity,
        start=generation.start,
        end=end.to_pydatetime(),
        record_count=stored,
        total_energy=series.total_energy,
        interval_hours=generation.interval_hours,
        counts=series.counts,
        minimum=settings.anomalies.min_per_category,
        maximum=settings.anomalies.max_per_category,
        events=series.events,
        backfilled=series.backfilled,
    )
