"""Priority scheduler for pending work."""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from ..models.task import DurationEstimate, ScheduledTask, TaskStatus
from ..policies.base import PriorityPolicy
from ..policies.weighted import WeightedPriorityPolicy
from ..utils.config import SchedulerConfig
from ..utils.time_math import to_epoch_ms
from .state import SchedulerState

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({'title', 'description', 'deadline', 'urgency', 'importance', 'tags'})
ACTIVE_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.IN_PROGRESS})


def _validate_score(name: str, value: int):
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be between 0 and 100, got {value}")


def _as_tags(tags: Union[str, Iterable[str]]) -> Set[str]:
    """A bare string is one tag, not a sequence of characters."""
    if isinstance(tags, str):
        return {tags}
    return set(tags)


class PriorityScheduler:
    """Ranks scheduled tasks by a priority recomputed against the clock.

    The stored task list keeps insertion order; ordering is always applied to
    a view, so earlier-inserted tasks win priority ties.
    """

    def __init__(
        self,
        state: SchedulerState,
        config: Optional[SchedulerConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
        policy: Optional[PriorityPolicy] = None,
    ):
        """Initialize scheduler with its task state and a priority policy."""
        self.state = state
        self.config = config or SchedulerConfig()
        self.clock = clock
        self.policy = policy or WeightedPriorityPolicy(self.config)

    def add_task(
        self,
        title: str,
        estimated_duration: DurationEstimate,
        urgency: int,
        importance: int,
        deadline: Optional[datetime] = None,
        description: Optional[str] = None,
        tags: Iterable[str] = (),
        channel: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> ScheduledTask:
        """Add a new pending task with a computed priority."""
        if not title or not title.strip():
            raise ValueError("Task title must not be empty")
        _validate_score('urgency', urgency)
        _validate_score('importance', importance)

        now = self.clock()
        task = ScheduledTask(
            id=f"sched_{to_epoch_ms(now)}_{uuid.uuid4().hex[:9]}",
            title=title,
            description=description,
            deadline=deadline,
            estimated_duration=estimated_duration,
            urgency=urgency,
            importance=importance,
            created_at=now,
            updated_at=now,
            tags=_as_tags(tags),
            channel=channel,
            session_id=session_id,
        )
        task.priority = self.policy.compute_priority(task, now)

        self.state.tasks.append(task)
        logger.debug("Added task %s %r with priority %d", task.id, title, task.priority)
        return task

    def get_task(self, task_id: str) -> Optional[ScheduledTask]:
        """Find a task by id."""
        for task in self.state.tasks:
            if task.id == task_id:
                return task
        return None

    def update_task_status(
        self, task_id: str, status: Union[str, TaskStatus]
    ) -> Optional[ScheduledTask]:
        """Set a task's status. Returns None if the task does not exist."""
        task = self.get_task(task_id)
        if task is None:
            return None

        now = self.clock()
        task.status = TaskStatus(status)
        task.updated_at = now

        if task.status == TaskStatus.COMPLETED:
            task.completed_at = now

        task.priority = self.policy.compute_priority(task, now)
        return task

    def update_task(self, task_id: str, **updates: Any) -> Optional[ScheduledTask]:
        """Update priority factors or descriptive fields of a task."""
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if 'urgency' in updates:
            _validate_score('urgency', updates['urgency'])
        if 'importance' in updates:
            _validate_score('importance', updates['importance'])
        if 'title' in updates and not (updates['title'] or '').strip():
            raise ValueError("Task title must not be empty")

        task = self.get_task(task_id)
        if task is None:
            return None

        for key, value in updates.items():
            if key == 'tags':
                value = _as_tags(value)
            setattr(task, key, value)

        now = self.clock()
        task.updated_at = now
        task.priority = self.policy.compute_priority(task, now)
        return task

    def refresh_priorities(self):
        """Recompute priorities of pending tasks against the current time."""
        now = self.clock()
        for task in self.state.tasks:
            if task.status == TaskStatus.PENDING:
                task.priority = self.policy.compute_priority(task, now)

    def get_next_task(self) -> Optional[ScheduledTask]:
        """Get the highest-priority pending task, or None."""
        pending = self.get_tasks_by_status(TaskStatus.PENDING)
        return pending[0] if pending else None

    def get_task_list(self) -> List[ScheduledTask]:
        """Get all tasks sorted by priority."""
        self.refresh_priorities()
        return self.policy.order_tasks(self.state.tasks)

    def get_tasks_by_status(self, status: Union[str, TaskStatus]) -> List[ScheduledTask]:
        """Get tasks with a status, sorted by priority."""
        status = TaskStatus(status)
        self.refresh_priorities()
        return self.policy.order_tasks([t for t in self.state.tasks if t.status == status])

    def get_overdue_tasks(self) -> List[ScheduledTask]:
        """Get pending tasks past their deadline, earliest deadline first."""
        now = self.clock()
        overdue = [t for t in self.state.tasks if t.is_overdue(now)]
        return sorted(overdue, key=lambda t: t.deadline)

    def explain(self, task_id: str) -> Optional[Dict[str, Any]]:
        """Break a task's current priority down into its weighted components."""
        task = self.get_task(task_id)
        if task is None:
            return None

        now = self.clock()
        components = self.policy.compute_components(task, now)
        return {
            'task_id': task.id,
            'policy': self.policy.get_policy_name(),
            'priority': self.policy.compute_priority(task, now),
            'components': components,
        }

    def remove_task(self, task_id: str) -> bool:
        """Remove a task. Returns False if it does not exist."""
        for index, task in enumerate(self.state.tasks):
            if task.id == task_id:
                del self.state.tasks[index]
                return True
        return False

    def cleanup_old_tasks(self, max_age_days: float = 30) -> int:
        """Drop finished tasks not updated within max_age_days.

        Pending and in-progress tasks are kept regardless of age.
        """
        cutoff = self.clock() - timedelta(days=max_age_days)
        before = len(self.state.tasks)

        self.state.tasks[:] = [
            t for t in self.state.tasks
            if t.status in ACTIVE_STATUSES or t.updated_at > cutoff
        ]

        removed = before - len(self.state.tasks)
        if removed:
            logger.info("Cleaned up %d old tasks", removed)
        return removed

    def get_statistics(self) -> Dict[str, Any]:
        """Summarize the task collection."""
        tasks = self.state.tasks
        now = self.clock()

        def count(status: TaskStatus) -> int:
            return sum(1 for t in tasks if t.status == status)

        average = sum(t.priority for t in tasks) / len(tasks) if tasks else 0.0

        return {
            'total': len(tasks),
            'pending': count(TaskStatus.PENDING),
            'in_progress': count(TaskStatus.IN_PROGRESS),
            'completed': count(TaskStatus.COMPLETED),
            'deferred': count(TaskStatus.DEFERRED),
            'cancelled': count(TaskStatus.CANCELLED),
            'overdue': sum(1 for t in tasks if t.is_overdue(now)),
            'average_priority': average,
        }
