"""Decides when to inject an anomaly and which category to use."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .quota import AnomalyCategory, QuotaTracker


@dataclass(slots=True)
class TriggerPolicy:
    base_rate: float = 0.08
    late_rate: float = 0.30
    late_progress: float = 0.7

    def trigger_probability(self, current_index: int, total_expected: int, quota: QuotaTracker) -> float:
        progress = current_index / total_expected if total_expected > 0 else 1.0
        if progress > self.late_progress and not quota.is_satisfied():
            return self.late_rate
        return self.base_rate

    def should_trigger(
        self,
        current_index: int,
        total_expected: int,
        quota: QuotaTracker,
        rng: np.random.Generator,
    ) -> bool:
        probability = self.trigger_probability(current_index, total_expected, quota)
        return float(rng.random()) < probability

    def select_category(self, quota: QuotaTracker, rng: np.random.Generator) -> Optional[AnomalyCategory]:
        """Pick uniformly among categories still below the minimum, else among all with room."""
        candidates = quota.categories_with_room()
        if not candidates:
            return None
        preferred = quota.categories_needing_more(candidates)
        pool = preferred or candidates
        return pool[int(rng.integers(len(pool)))]
