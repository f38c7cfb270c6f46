"""Weighted multi-factor priority policy."""

from datetime import datetime
from typing import Dict, Optional

from ..models.task import ScheduledTask
from ..utils.config import SchedulerConfig
from ..utils.time_math import MS_PER_DAY, MS_PER_HOUR, elapsed_ms, round_half_up
from .base import PriorityPolicy

NO_DEADLINE_SCORE = 0.5


def deadline_score(deadline: Optional[datetime], expected_ms: float, now: datetime) -> float:
    """Step score for deadline proximity (higher = more pressing)."""
    if deadline is None:
        return NO_DEADLINE_SCORE

    remaining = elapsed_ms(now, deadline)

    if remaining <= 0:
        return 1.0
    if remaining < expected_ms:
        # Not enough time left to finish
        return 0.95
    if remaining < MS_PER_HOUR:
        return 0.9
    if remaining < MS_PER_HOUR * 4:
        return 0.8
    if remaining < MS_PER_DAY:
        return 0.6
    return 0.3


def effort_score(expected_ms: float) -> float:
    """Shorter tasks score higher, saturating at one day."""
    return 1.0 - min(1.0, expected_ms / MS_PER_DAY)


class WeightedPriorityPolicy(PriorityPolicy):
    """Priority from weighted urgency, importance, effort and deadline proximity."""

    def __init__(self, config: Optional[SchedulerConfig] = None):
        """Initialize weighted policy."""
        self.config = config or SchedulerConfig()
        self.weights = self.config.weights()

    def compute_components(self, task: ScheduledTask, now: datetime) -> Dict[str, float]:
        """Compute normalized priority components (0-1 scale, higher = sooner)."""
        expected_ms = task.estimated_duration.expected_ms

        return {
            'urgency': task.urgency / 100.0,
            'importance': task.importance / 100.0,
            'effort': effort_score(expected_ms),
            'deadline': deadline_score(task.deadline, expected_ms, now),
        }

    def compute_priority(self, task: ScheduledTask, now: datetime) -> int:
        """Weighted priority, clamped and scaled to 0-100."""
        components = self.compute_components(task, now)

        score = sum(
            components[key] * self.weights.get(key, 0.0)
            for key in components
        )

        return round_half_up(max(0.0, min(1.0, score)) * 100)

    def get_policy_name(self) -> str:
        """Return policy name."""
        return "WEIGHTED"
