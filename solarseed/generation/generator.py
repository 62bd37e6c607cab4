"""Synthetic energy series for a solar unit with quota-bounded anomalies."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .anomalies import AnomalyOutcome, IntervalContext, apply_anomaly
from .backfill import backfill_quota
from .baseline import DEFAULT_INTERVAL_HOURS, baseline_energy
from .policy import TriggerPolicy
from .quota import MAX_PER_CATEGORY, MIN_PER_CATEGORY, AnomalyCategory, AnomalyEvent, QuotaTracker

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Reading:
    timestamp: datetime
    energy_produced: float
    interval_hours: float = DEFAULT_INTERVAL_HOURS


@dataclass(slots=True)
class RunState:
    """Everything a single generation run mutates."""

    quota: QuotaTracker
    total_expected_records: int
    events: List[AnomalyEvent] = field(default_factory=list)

    def register(self, category: AnomalyCategory, timestamp: datetime, outcome: AnomalyOutcome) -> bool:
        if not self.quota.record(category):
            return False
        event = AnomalyEvent(category=category, timestamp=timestamp, description=outcome.description)
        self.events.append(event)
        LOGGER.debug("Injected %s at %s: %s", category.value, timestamp.isoformat(), outcome.description)
        return True


@dataclass(slots=True)
class SeriesResult:
    readings: List[Reading]
    events: List[AnomalyEvent]
    counts: Dict[str, int]
    total_expected_records: int
    backfilled: int = 0

    @property
    def total_energy(self) -> float:
        return float(sum(reading.energy_produced for reading in self.readings))

    def to_frame(self) -> pd.DataFrame:
        anomalies = {event.timestamp: event.category.value for event in self.events}
        frame = pd.DataFrame(
            {
                "timestamp": [reading.timestamp for reading in self.readings],
                "energy_produced": [reading.energy_produced for reading in self.readings],
                "interval_hours": [reading.interval_hours for reading in self.readings],
            }
        )
        frame["anomaly"] = [anomalies.get(reading.timestamp) for reading in self.readings]
        return frame


def _as_local_timestamp(value: datetime | date | str, timezone: str) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize(timezone)
    return ts.tz_convert(timezone)


def interval_timestamps(
    start: datetime | date | str,
    end: datetime | date | str,
    *,
    interval_hours: float = DEFAULT_INTERVAL_HOURS,
    timezone: str = "UTC",
) -> pd.DatetimeIndex:
    """Wall-clock interval starts from local midnight of ``start`` up to ``end`` inclusive."""
    start_ts = _as_local_timestamp(start, timezone).normalize()
    end_ts = _as_local_timestamp(end, timezone)
    if end_ts < start_ts:
        return pd.DatetimeIndex([], tz=timezone)
    naive = pd.date_range(
        start=start_ts.tz_localize(None),
        end=end_ts.tz_localize(None),
        freq=pd.Timedelta(hours=interval_hours),
    )
    localized = naive.tz_localize(
        timezone,
        ambiguous=np.zeros(len(naive), dtype=bool),
        nonexistent="shift_forward",
    )
    # a boundary shifted out of a DST gap can land on the next real boundary
    localized = localized[~localized.duplicated()]
    return localized[localized <= end_ts]


def expected_record_count(
    start: datetime | date | str,
    end: datetime | date | str,
    *,
    interval_hours: float = DEFAULT_INTERVAL_HOURS,
    timezone: str = "UTC",
) -> int:
    start_ts = _as_local_timestamp(start, timezone).normalize()
    end_ts = _as_local_timestamp(end, timezone)
    days = max(0, math.ceil((end_ts - start_ts).total_seconds() / 86400))
    return (days + 1) * int(round(24 / interval_hours))


class EnergySeriesGenerator:
    """Produces readings one interval at a time, injecting anomalies per :class:`TriggerPolicy`."""

    def __init__(
        self,
        *,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        policy: Optional[TriggerPolicy] = None,
        interval_hours: float = DEFAULT_INTERVAL_HOURS,
        min_per_category: int = MIN_PER_CATEGORY,
        max_per_category: int = MAX_PER_CATEGORY,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.policy = policy or TriggerPolicy()
        self.interval_hours = float(interval_hours)
        self.min_per_category = min_per_category
        self.max_per_category = max_per_category

    def new_run(self, total_expected_records: int) -> RunState:
        quota = QuotaTracker(self.min_per_category, self.max_per_category)
        return RunState(quota=quota, total_expected_records=max(1, int(total_expected_records)))

    def baseline(self, hour: int, capacity: float) -> float:
        return baseline_energy(hour, capacity, self.rng, interval_hours=self.interval_hours)

    def generate_energy(
        self,
        state: RunState,
        *,
        hour: int,
        capacity: float,
        timestamp: datetime,
        previous_energy: float = 0.0,
        current_index: int = 0,
    ) -> float:
        """Energy in Wh for one interval; appends to ``state.events`` when an anomaly fires."""
        if not self.policy.should_trigger(current_index, state.total_expected_records, state.quota, self.rng):
            return self.baseline(hour, capacity)

        category = self.policy.select_category(state.quota, self.rng)
        if category is None:
            return self.baseline(hour, capacity)

        return self.force_anomaly(
            state,
            category,
            hour=hour,
            capacity=capacity,
            timestamp=timestamp,
            previous_energy=previous_energy,
        )

    def force_anomaly(
        self,
        state: RunState,
        category: AnomalyCategory,
        *,
        hour: int,
        capacity: float,
        timestamp: datetime,
        previous_energy: float = 0.0,
    ) -> float:
        """Apply ``category`` directly, falling back to the baseline when its guard fails."""
        ctx = IntervalContext(
            hour=hour,
            capacity=capacity,
            timestamp=timestamp,
            previous_energy=previous_energy,
            baseline=lambda: self.baseline(hour, capacity),
        )
        outcome = apply_anomaly(category, ctx, self.rng)
        if outcome is None or not state.register(category, timestamp, outcome):
            return self.baseline(hour, capacity)
        return outcome.energy

    def generate_series(
        self,
        capacity: float,
        start: datetime | date | str,
        end: Optional[datetime | date | str] = None,
        *,
        timezone: str = "UTC",
        backfill: bool = True,
    ) -> SeriesResult:
        """Readings for every interval from ``start`` to ``end`` (default: now)."""
        end = end if end is not None else pd.Timestamp.now(tz=timezone)
        timestamps = interval_timestamps(start, end, interval_hours=self.interval_hours, timezone=timezone)
        total_expected = expected_record_count(start, end, interval_hours=self.interval_hours, timezone=timezone)
        state = self.new_run(total_expected)

        LOGGER.info(
            "Generating %d readings (%d expected) for %.0fW unit",
            len(timestamps),
            total_expected,
            capacity,
        )
        readings: List[Reading] = []
        previous_energy = 0.0
        for index, ts in enumerate(timestamps):
            moment = ts.to_pydatetime()
            energy = self.generate_energy(
                state,
                hour=moment.hour,
                capacity=capacity,
                timestamp=moment,
                previous_energy=previous_energy,
                current_index=index,
            )
            readings.append(Reading(timestamp=moment, energy_produced=energy, interval_hours=self.interval_hours))
            if energy > 0:
                previous_energy = energy

        backfilled = 0
        if backfill:
            backfilled = backfill_quota(readings, state, capacity, self.rng)

        events = sorted(state.events, key=lambda event: event.timestamp)
        return SeriesResult(
            readings=readings,
            events=events,
            counts=state.quota.snapshot(),
            total_expected_records=total_expected,
            backfilled=backfilled,
        )
