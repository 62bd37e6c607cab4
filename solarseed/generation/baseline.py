"""Diurnal baseline for a single solar unit interval."""
from __future__ import annotations

import math

import numpy as np

DAY_START_HOUR = 6
DAY_END_HOUR = 20
NOISE_LOW = 0.8
NOISE_HIGH = 1.2
DEFAULT_INTERVAL_HOURS = 2.0


def round_wh(value: float) -> float:
    """Round to the nearest whole watt-hour, halves up."""
    return float(math.floor(value + 0.5))


def is_daylight(hour: int) -> bool:
    return DAY_START_HOUR <= hour <= DAY_END_HOUR


def production_factor(hour: int) -> float:
    """Half-sine shape across the daylight window, 0 outside it."""
    if not is_daylight(hour):
        return 0.0
    normalized = (hour - DAY_START_HOUR) / (DAY_END_HOUR - DAY_START_HOUR)
    return math.sin(normalized * math.pi)


def baseline_energy(
    hour: int,
    capacity: float,
    rng: np.random.Generator,
    *,
    interval_hours: float = DEFAULT_INTERVAL_HOURS,
) -> float:
    """Expected non-anomalous output in Wh for the interval starting at ``hour``.

    A uniform noise factor in [0.8, 1.2] is drawn from ``rng`` for daylight
    hours only; night intervals return 0 without consuming randomness.
    """
    factor = production_factor(hour)
    if factor <= 0.0:
        return 0.0
    noise = NOISE_LOW + float(rng.random()) * (NOISE_HIGH - NOISE_LOW)
    return max(0.0, round_wh(capacity * factor * noise * interval_hours))


def baseline_upper_bound(capacity: float, interval_hours: float = DEFAULT_INTERVAL_HOURS) -> float:
    return capacity * NOISE_HIGH * interval_hours
