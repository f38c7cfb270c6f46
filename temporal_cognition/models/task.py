"""Task, estimate and history data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Set

from ..utils.time_math import from_epoch_ms, to_epoch_ms


class TaskCategory(str, Enum):
    """Kinds of work the estimator keeps separate baselines for."""

    RESEARCH = 'research'
    CODING = 'coding'
    WRITING = 'writing'
    ANALYSIS = 'analysis'
    COMMUNICATION = 'communication'
    SCHEDULING = 'scheduling'
    FILE_OPERATIONS = 'file-operations'
    WEB_BROWSING = 'web-browsing'
    OTHER = 'other'


class TaskComplexity(str, Enum):
    """Relative size of a task."""

    TRIVIAL = 'trivial'
    SIMPLE = 'simple'
    MODERATE = 'moderate'
    COMPLEX = 'complex'
    HIGHLY_COMPLEX = 'highly-complex'


class TaskStatus(str, Enum):
    """Lifecycle of a scheduled task."""

    PENDING = 'pending'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    DEFERRED = 'deferred'
    CANCELLED = 'cancelled'


# Base duration estimates in milliseconds by category
BASE_DURATION_MS: Dict[TaskCategory, int] = {
    TaskCategory.RESEARCH: 300000,
    TaskCategory.CODING: 600000,
    TaskCategory.WRITING: 480000,
    TaskCategory.ANALYSIS: 420000,
    TaskCategory.COMMUNICATION: 60000,
    TaskCategory.SCHEDULING: 120000,
    TaskCategory.FILE_OPERATIONS: 30000,
    TaskCategory.WEB_BROWSING: 180000,
    TaskCategory.OTHER: 300000,
}

COMPLEXITY_MULTIPLIERS: Dict[TaskComplexity, float] = {
    TaskComplexity.TRIVIAL: 0.25,
    TaskComplexity.SIMPLE: 0.5,
    TaskComplexity.MODERATE: 1.0,
    TaskComplexity.COMPLEX: 2.0,
    TaskComplexity.HIGHLY_COMPLEX: 4.0,
}


@dataclass
class DurationEstimate:
    """Expected duration range for a (category, complexity) pair."""

    minimum_ms: int
    expected_ms: int
    maximum_ms: int
    confidence: float
    sample_count: int
    category: TaskCategory
    complexity: TaskComplexity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'minimumMs': self.minimum_ms,
            'expectedMs': self.expected_ms,
            'maximumMs': self.maximum_ms,
            'confidence': self.confidence,
            'basedOnSamples': self.sample_count,
            'category': self.category.value,
            'complexity': self.complexity.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DurationEstimate':
        return cls(
            minimum_ms=int(data['minimumMs']),
            expected_ms=int(data['expectedMs']),
            maximum_ms=int(data['maximumMs']),
            confidence=float(data['confidence']),
            sample_count=int(data.get('basedOnSamples', 0)),
            category=TaskCategory(data['category']),
            complexity=TaskComplexity(data['complexity']),
        )


@dataclass(frozen=True)
class TaskHistoryEntry:
    """Completion record for one timed task."""

    task_id: str
    category: TaskCategory
    complexity: TaskComplexity
    estimated_ms: int
    actual_ms: int
    accuracy: float
    timestamp: datetime
    session_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskId': self.task_id,
            'category': self.category.value,
            'complexity': self.complexity.value,
            'estimatedMs': self.estimated_ms,
            'actualMs': self.actual_ms,
            'accuracy': self.accuracy,
            'timestamp': to_epoch_ms(self.timestamp),
            'sessionId': self.session_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TaskHistoryEntry':
        return cls(
            task_id=data['taskId'],
            category=TaskCategory(data['category']),
            complexity=TaskComplexity(data['complexity']),
            estimated_ms=int(data['estimatedMs']),
            actual_ms=int(data['actualMs']),
            accuracy=float(data['accuracy']),
            timestamp=from_epoch_ms(data['timestamp']),
            session_id=data.get('sessionId', ''),
        )


@dataclass
class ActiveTask:
    """A task currently being timed."""

    task_id: str
    category: TaskCategory
    complexity: TaskComplexity
    start_time: datetime
    estimated_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskId': self.task_id,
            'category': self.category.value,
            'complexity': self.complexity.value,
            'startTime': to_epoch_ms(self.start_time),
            'estimatedMs': self.estimated_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActiveTask':
        return cls(
            task_id=data['taskId'],
            category=TaskCategory(data['category']),
            complexity=TaskComplexity(data['complexity']),
            start_time=from_epoch_ms(data['startTime']),
            estimated_ms=int(data['estimatedMs']),
        )


@dataclass
class LearnedBaseline:
    """Learned mean duration for a (category, complexity) pair."""

    mean_ms: float
    confidence: float


@dataclass
class ScheduledTask:
    """A unit of work in the priority queue.

    `priority` is derived from urgency, importance, the estimated duration and
    the deadline. It is refreshed by the scheduler before any read that orders
    tasks, so a stored value may be stale in between.
    """

    id: str
    title: str
    estimated_duration: DurationEstimate
    urgency: int
    importance: int
    created_at: datetime
    updated_at: datetime
    priority: int = 0
    status: TaskStatus = TaskStatus.PENDING
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    tags: Set[str] = field(default_factory=set)
    channel: Optional[str] = None
    session_id: Optional[str] = None

    def is_overdue(self, now: datetime) -> bool:
        """Check if a pending task has passed its deadline."""
        return (
            self.status == TaskStatus.PENDING
            and self.deadline is not None
            and self.deadline < now
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'estimatedDuration': self.estimated_duration.to_dict(),
            'priority': self.priority,
            'urgency': self.urgency,
            'importance': self.importance,
            'status': self.status.value,
            'createdAt': to_epoch_ms(self.created_at),
            'updatedAt': to_epoch_ms(self.updated_at),
            'tags': sorted(self.tags),
        }
        if self.description is not None:
            data['description'] = self.description
        if self.deadline is not None:
            data['deadline'] = to_epoch_ms(self.deadline)
        if self.completed_at is not None:
            data['completedAt'] = to_epoch_ms(self.completed_at)
        if self.channel is not None:
            data['channel'] = self.channel
        if self.session_id is not None:
            data['sessionId'] = self.session_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduledTask':
        deadline = data.get('deadline')
        completed_at = data.get('completedAt')
        return cls(
            id=data['id'],
            title=data['title'],
            estimated_duration=DurationEstimate.from_dict(data['estimatedDuration']),
            urgency=int(data['urgency']),
            importance=int(data['importance']),
            created_at=from_epoch_ms(data['createdAt']),
            updated_at=from_epoch_ms(data['updatedAt']),
            priority=int(data.get('priority', 0)),
            status=TaskStatus(data.get('status', TaskStatus.PENDING.value)),
            description=data.get('description'),
            deadline=from_epoch_ms(deadline) if deadline is not None else None,
            completed_at=from_epoch_ms(completed_at) if completed_at is not None else None,
            tags=set(data.get('tags', [])),
            channel=data.get('channel'),
            session_id=data.get('sessionId'),
        )
