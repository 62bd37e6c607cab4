"""Totals and period-bucketed aggregation of energy records."""
from __future__ import annotations

from typing import Dict

import pandas as pd

PERIOD_FREQUENCIES: Dict[str, str] = {
    "daily": "D",
    "weekly": "W-MON",
    "monthly": "MS",
}

ANALYTICS_COLUMNS = ["period", "total_energy", "average_energy", "max_energy", "record_count"]


def _require_columns(records: pd.DataFrame) -> None:
    missing = [col for col in ("timestamp", "energy_produced") if col not in records.columns]
    if missing:
        raise ValueError(f"Records frame is missing columns: {missing}")


def total_energy(records: pd.DataFrame) -> Dict[str, float]:
    _require_columns(records)
    return {
        "total_energy": float(records["energy_produced"].sum()),
        "record_count": int(len(records)),
    }


def energy_analytics(records: pd.DataFrame, period: str = "daily", timezone: str = "UTC") -> pd.DataFrame:
    """Aggregate ``energy_produced`` per day, week (starting Monday) or month.

    Buckets are computed in ``timezone`` and returned ascending; empty buckets
    between the first and last record are dropped.
    """
    _require_columns(records)
    key = period.lower()
    if key not in PERIOD_FREQUENCIES:
        raise ValueError(f"Unsupported period {period!r}; use one of {', '.join(PERIOD_FREQUENCIES)}")
    if records.empty:
        return pd.DataFrame(columns=ANALYTICS_COLUMNS)

    timestamps = pd.to_datetime(records["timestamp"], utc=True).dt.tz_convert(timezone)
    series = pd.Series(records["energy_produced"].to_numpy(dtype=float), index=pd.DatetimeIndex(timestamps))
    series = series.sort_index()

    freq = PERIOD_FREQUENCIES[key]
    resample_kwargs = {"label": "left", "closed": "left"} if key == "weekly" else {}
    grouped = series.resample(freq, **resample_kwargs).agg(["sum", "mean", "max", "count"])
    grouped = grouped[grouped["count"] > 0]

    result = pd.DataFrame(
        {
            "period": grouped.index,
            "total_energy": grouped["sum"].to_numpy(),
            "average_energy": grouped["mean"].to_numpy(),
            "max_energy": grouped["max"].to_numpy(),
            "record_count": grouped["count"].astype(int).to_numpy(),
        }
    )
    return result.reset_index(drop=True)
