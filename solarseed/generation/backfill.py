"""End-of-run pass topping up categories that stayed below the minimum quota."""
from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

import numpy as np

from .anomalies import IntervalContext, apply_anomaly, is_applicable
from .quota import AnomalyCategory

if TYPE_CHECKING:  # pragma: no cover
    from .generator import Reading, RunState

LOGGER = logging.getLogger(__name__)


def _previous_positive(readings: List["Reading"]) -> List[Tuple[Optional[int], float]]:
    """For each position, the index and value of the latest positive reading before it."""
    result: List[Tuple[Optional[int], float]] = []
    source: Optional[int] = None
    value = 0.0
    for index, reading in enumerate(readings):
        result.append((source, value))
        if reading.energy_produced > 0:
            source = index
            value = reading.energy_produced
    return result


def _protect_drop(protected: Set[int], source: Optional[int], drop_index: int) -> None:
    start = source if source is not None else drop_index
    protected.update(range(start, drop_index + 1))


def backfill_quota(
    readings: List["Reading"],
    state: "RunState",
    capacity: float,
    rng: np.random.Generator,
) -> int:
    """Convert baseline readings into anomalies for categories still short of the minimum.

    ``readings`` is updated in place. A reading is eligible when it carries no
    event and is not part of a SUDDEN_DROP chain (the drop, its source reading
    and everything between them), so every existing drop keeps its 10% ratio.
    Returns the number of converted readings.
    """
    position = {reading.timestamp: index for index, reading in enumerate(readings)}
    anomalous: Set[int] = {position[event.timestamp] for event in state.events if event.timestamp in position}

    protected: Set[int] = set()
    previous = _previous_positive(readings)
    for event in state.events:
        if event.category is AnomalyCategory.SUDDEN_DROP and event.timestamp in position:
            drop_index = position[event.timestamp]
            _protect_drop(protected, previous[drop_index][0], drop_index)

    converted = 0
    for category in AnomalyCategory:
        while state.quota.needs_more(category):
            previous = _previous_positive(readings)
            eligible = [
                index
                for index, reading in enumerate(readings)
                if index not in anomalous
                and index not in protected
                and is_applicable(category, reading.timestamp.hour, previous[index][1])
                and (category is not AnomalyCategory.IRREGULAR_SPIKE or reading.energy_produced > 0)
            ]
            if not eligible:
                LOGGER.warning(
                    "No eligible interval left to backfill %s (%d/%d)",
                    category.value,
                    state.quota.count(category),
                    state.quota.minimum,
                )
                break

            index = eligible[int(rng.integers(len(eligible)))]
            reading = readings[index]
            source, previous_energy = previous[index]
            ctx = IntervalContext(
                hour=reading.timestamp.hour,
                capacity=capacity,
                timestamp=reading.timestamp,
                previous_energy=previous_energy,
                baseline=lambda value=reading.energy_produced: value,
            )
            outcome = apply_anomaly(category, ctx, rng)
            if outcome is None or not state.register(category, reading.timestamp, outcome):
                break

            readings[index] = dataclasses.replace(reading, energy_produced=outcome.energy)
            anomalous.add(index)
            if category is AnomalyCategory.SUDDEN_DROP:
                _protect_drop(protected, source, index)
            converted += 1

    if converted:
        LOGGER.info("Backfilled %d anomalies to reach the minimum quota", converted)
    return converted
