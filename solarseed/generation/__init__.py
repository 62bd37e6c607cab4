"""Synthetic solar unit energy series with injected fault patterns."""

from .anomalies import HANDLERS, AnomalyOutcome, IntervalContext, apply_anomaly, is_applicable
from .backfill import backfill_quota
from .baseline import baseline_energy, baseline_upper_bound, production_factor, round_wh
from .generator import (
    EnergySeriesGenerator,
    Reading,
    RunState,
    SeriesResult,
    expected_record_count,
    interval_timestamps,
)
from .policy import TriggerPolicy
from .quota import MAX_PER_CATEGORY, MIN_PER_CATEGORY, AnomalyCategory, AnomalyEvent, QuotaTracker

__all__ = [
    "HANDLERS",
    "AnomalyOutcome",
    "IntervalContext",
    "apply_anomaly",
    "is_applicable",
    "backfill_quota",
    "baseline_energy",
    "baseline_upper_bound",
    "production_factor",
    "round_wh",
    "EnergySeriesGenerator",
    "Reading",
    "RunState",
    "SeriesResult",
    "expected_record_count",
    "interval_timestamps",
    "TriggerPolicy",
    "MAX_PER_CATEGORY",
    "MIN_PER_CATEGORY",
    "AnomalyCategory",
    "AnomalyEvent",
    "QuotaTracker",
]
