"""Estimation, scheduling and memory engines."""

from .cognition import TemporalCognition
from .estimator import TaskEstimator
from .memory_index import TemporalMemoryIndex
from .scheduler import PriorityScheduler
from .state import EstimatorState, MemoryState, SchedulerState, StateStore

__all__ = [
    'EstimatorState',
    'MemoryState',
    'PriorityScheduler',
    'SchedulerState',
    'StateStore',
    'TaskEstimator',
    'TemporalCognition',
    'TemporalMemoryIndex',
]
