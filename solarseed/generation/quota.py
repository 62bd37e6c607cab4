"""Anomaly categories, events and the per-run quota tracker."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

MIN_PER_CATEGORY = 5
MAX_PER_CATEGORY = 20


class AnomalyCategory(str, Enum):
    NIGHT_GENERATION = "NIGHT_GENERATION"
    SUDDEN_DROP = "SUDDEN_DROP"
    OVERPRODUCTION = "OVERPRODUCTION"
    PEAK_HOUR_ZERO = "PEAK_HOUR_ZERO"
    IRREGULAR_SPIKE = "IRREGULAR_SPIKE"


@dataclass(frozen=True, slots=True)
class AnomalyEvent:
    category: AnomalyCategory
    timestamp: datetime
    description: str

    def as_dict(self) -> Dict[str, str]:
        return {
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "description": self.description,
        }


class QuotaTracker:
    """Occurrence counts per category for one generation run."""

    def __init__(
        self,
        minimum: int = MIN_PER_CATEGORY,
        maximum: int = MAX_PER_CATEGORY,
    ) -> None:
        if minimum < 0 or maximum < minimum:
            raise ValueError(f"Invalid quota bounds min={minimum} max={maximum}")
        self.minimum = minimum
        self.maximum = maximum
        self._counts: Dict[AnomalyCategory, int] = {}
        self.reset()

    def reset(self) -> None:
        self._counts = {category: 0 for category in AnomalyCategory}

    def count(self, category: AnomalyCategory) -> int:
        return self._counts[category]

    def needs_more(self, category: AnomalyCategory) -> bool:
        return self._counts[category] < self.minimum

    def has_room(self, category: AnomalyCategory) -> bool:
        return self._counts[category] < self.maximum

    def record(self, category: AnomalyCategory) -> bool:
        """Count one occurrence; refuses and returns ``False`` once at the maximum."""
        if not self.has_room(category):
            return False
        self._counts[category] += 1
        return True

    def categories_needing_more(self, among: Optional[List[AnomalyCategory]] = None) -> List[AnomalyCategory]:
        pool = among if among is not None else list(AnomalyCategory)
        return [category for category in pool if self.needs_more(category)]

    def categories_with_room(self) -> List[AnomalyCategory]:
        return [category for category in AnomalyCategory if self.has_room(category)]

    def is_satisfied(self) -> bool:
        return not self.categories_needing_more()

    def snapshot(self) -> Dict[str, int]:
        return {category.value: count for category, count in self._counts.items()}
