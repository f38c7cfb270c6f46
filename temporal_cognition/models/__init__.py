"""Data models."""

from .memory import MemoryEntry
from .task import (
    ActiveTask,
    DurationEstimate,
    LearnedBaseline,
    ScheduledTask,
    TaskCategory,
    TaskComplexity,
    TaskHistoryEntry,
    TaskStatus,
)

__all__ = [
    'ActiveTask',
    'DurationEstimate',
    'LearnedBaseline',
    'MemoryEntry',
    'ScheduledTask',
    'TaskCategory',
    'TaskComplexity',
    'TaskHistoryEntry',
    'TaskStatus',
]
