"""Base priority policy interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List

from ..models.task import ScheduledTask


class PriorityPolicy(ABC):
    """Abstract base class for priority policies."""

    @abstractmethod
    def compute_components(self, task: ScheduledTask, now: datetime) -> Dict[str, float]:
        """Compute normalized (0-1) priority components for a task."""
        pass

    @abstractmethod
    def compute_priority(self, task: ScheduledTask, now: datetime) -> int:
        """Compute the 0-100 priority of a task."""
        pass

    @abstractmethod
    def get_policy_name(self) -> str:
        """Return the name of this policy."""
        pass

    def order_tasks(self, tasks: List[ScheduledTask]) -> List[ScheduledTask]:
        """Order tasks by stored priority, highest first.

        The sort is stable, so tasks with equal priority keep their input order.
        """
        return sorted(tasks, key=lambda task: -task.priority)
