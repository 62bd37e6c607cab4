"""Value generators for each anomaly category.

Every handler receives the interval context and the run's random generator
and returns an :class:`AnomalyOutcome`, or ``None`` when the category does not
apply at this hour. Callers fall back to the baseline on ``None``.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

import numpy as np

from .baseline import round_wh
from .quota import AnomalyCategory


@dataclass(slots=True)
class IntervalContext:
    hour: int
    capacity: float
    timestamp: datetime
    previous_energy: float
    baseline: Callable[[], float]


@dataclass(frozen=True, slots=True)
class AnomalyOutcome:
    energy: float
    description: str


Handler = Callable[[IntervalContext, np.random.Generator], Optional[AnomalyOutcome]]


def _percent(numerator: float, denominator: float) -> int:
    return int(round_wh(numerator / denominator * 100)) if denominator else 0


def night_generation(ctx: IntervalContext, rng: np.random.Generator) -> Optional[AnomalyOutcome]:
    if not (ctx.hour < 6 or ctx.hour > 20):
        return None
    energy = round_wh(ctx.capacity * 0.1 * float(rng.random()))
    return AnomalyOutcome(energy, f"Generated {energy:.0f}Wh during night hours ({ctx.hour}:00)")


def sudden_drop(ctx: IntervalContext, rng: np.random.Generator) -> Optional[AnomalyOutcome]:
    if ctx.previous_energy <= 0 or not 8 <= ctx.hour <= 18:
        return None
    energy = round_wh(ctx.previous_energy * 0.1)
    decrease = _percent(ctx.previous_energy - energy, ctx.previous_energy)
    return AnomalyOutcome(
        energy,
        f"Sudden drop from {ctx.previous_energy:.0f}Wh to {energy:.0f}Wh ({decrease}% decrease)",
    )


def overproduction(ctx: IntervalContext, rng: np.random.Generator) -> Optional[AnomalyOutcome]:
    if not 10 <= ctx.hour <= 14:
        return None
    energy = round_wh(ctx.capacity * (1.2 + 2.8 * float(rng.random())))
    return AnomalyOutcome(
        energy,
        f"Overproduction: {energy:.0f}Wh ({_percent(energy, ctx.capacity)}% of rated capacity)",
    )


def peak_hour_zero(ctx: IntervalContext, rng: np.random.Generator) -> Optional[AnomalyOutcome]:
    if not 10 <= ctx.hour <= 14:
        return None
    return AnomalyOutcome(0.0, f"Zero output during peak hours ({ctx.hour}:00)")


def irregular_spike(ctx: IntervalContext, rng: np.random.Generator) -> Optional[AnomalyOutcome]:
    if not 7 <= ctx.hour <= 17:
        return None
    normal = ctx.baseline()
    if normal <= 0:
        return None
    energy = round_wh(normal * (3 + 2 * float(rng.random())))
    return AnomalyOutcome(
        energy,
        f"Irregular spike: {energy:.0f}Wh ({_percent(energy, normal)}% of normal output)",
    )


HANDLERS: Dict[AnomalyCategory, Handler] = {
    AnomalyCategory.NIGHT_GENERATION: night_generation,
    AnomalyCategory.SUDDEN_DROP: sudden_drop,
    AnomalyCategory.OVERPRODUCTION: overproduction,
    AnomalyCategory.PEAK_HOUR_ZERO: peak_hour_zero,
    AnomalyCategory.IRREGULAR_SPIKE: irregular_spike,
}


def apply_anomaly(
    category: AnomalyCategory,
    ctx: IntervalContext,
    rng: np.random.Generator,
) -> Optional[AnomalyOutcome]:
    return HANDLERS[category](ctx, rng)


def is_applicable(category: AnomalyCategory, hour: int, previous_energy: float) -> bool:
    """Guard check without drawing randomness."""
    if category is AnomalyCategory.NIGHT_GENERATION:
        return hour < 6 or hour > 20
    if category is AnomalyCategory.SUDDEN_DROP:
        return previous_energy > 0 and 8 <= hour <= 18
    if category in (AnomalyCategory.OVERPRODUCTION, AnomalyCategory.PEAK_HOUR_ZERO):
        return 10 <= hour <= 14
    return 7 <= hour <= 17
