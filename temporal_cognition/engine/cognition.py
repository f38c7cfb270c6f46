"""Top-level orchestrator wiring configuration, state and components."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Union

from ..models.task import ScheduledTask, TaskCategory, TaskComplexity
from ..utils.config import EstimatorConfig, MemoryConfig, SchedulerConfig, StorageConfig
from .estimator import TaskEstimator
from .memory_index import TemporalMemoryIndex
from .scheduler import PriorityScheduler
from .state import StateStore

logger = logging.getLogger(__name__)


class TemporalCognition:
    """Owns the state store and hands each component its own sub-state.

    Disabled components are None; callers check before use.
    """

    def __init__(
        self,
        store: StateStore,
        estimator_config: Optional[EstimatorConfig] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        memory_config: Optional[MemoryConfig] = None,
        storage_path: Optional[Union[str, Path]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.clock = clock
        self.storage_path = Path(storage_path) if storage_path is not None else None

        estimator_config = estimator_config or EstimatorConfig()
        scheduler_config = scheduler_config or SchedulerConfig()
        memory_config = memory_config or MemoryConfig()

        self.estimator: Optional[TaskEstimator] = None
        self.scheduler: Optional[PriorityScheduler] = None
        self.memory: Optional[TemporalMemoryIndex] = None

        if estimator_config.enabled:
            self.estimator = TaskEstimator(store.estimator, estimator_config, clock)
            logger.info("Task estimator initialized")
        if scheduler_config.enabled:
            self.scheduler = PriorityScheduler(store.scheduler, scheduler_config, clock)
            logger.info("Priority scheduler initialized")
        if memory_config.enabled:
            self.memory = TemporalMemoryIndex(store.memory, memory_config, clock)
            logger.info("Temporal memory index initialized")

    @classmethod
    def from_config(
        cls,
        config: Optional[Dict[str, Any]] = None,
        storage_path: Optional[Union[str, Path]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> 'TemporalCognition':
        """Build from a configuration tree, loading state from storage."""
        path = Path(storage_path) if storage_path else StorageConfig.from_dict(config).resolved_path()
        store = StateStore.load(path, clock)

        return cls(
            store,
            estimator_config=EstimatorConfig.from_dict(config),
            scheduler_config=SchedulerConfig.from_dict(config),
            memory_config=MemoryConfig.from_dict(config),
            storage_path=path,
            clock=clock,
        )

    def estimate_and_schedule(
        self,
        title: str,
        category: Union[str, TaskCategory],
        complexity: Union[str, TaskComplexity],
        urgency: int,
        importance: int,
        deadline: Optional[datetime] = None,
        description: Optional[str] = None,
        tags: Iterable[str] = (),
    ) -> Optional[ScheduledTask]:
        """Estimate a task's duration and queue it with the scheduler."""
        if self.estimator is None or self.scheduler is None:
            logger.debug("Estimator or scheduler disabled, not scheduling %r", title)
            return None

        estimate = self.estimator.estimate(category, complexity)
        return self.scheduler.add_task(
            title,
            estimate,
            urgency=urgency,
            importance=importance,
            deadline=deadline,
            description=description,
            tags=tags,
            session_id=self.store.estimator.session_id,
        )

    def tick(self, cycles: int = 0):
        """Advance the subjective tick counter."""
        self.store.time_perception.total_ticks += 1
        self.store.time_perception.total_cycles += cycles

    def save(self):
        """Persist a snapshot of the state, if a storage path is set."""
        if self.storage_path is None:
            return
        self.store.save(self.storage_path)

    def status(self) -> Dict[str, Any]:
        """Summarize the state of every enabled component."""
        perception = self.store.time_perception
        status = {
            'version': self.store.version,
            'boot_time': perception.boot_time,
            'total_ticks': perception.total_ticks,
            'total_cycles': perception.total_cycles,
        }
        if self.estimator is not None:
            status['estimator'] = self.estimator.get_statistics()
        if self.scheduler is not None:
            status['scheduler'] = self.scheduler.get_statistics()
        if self.memory is not None:
            status['memory'] = self.memory.get_statistics()
        return status
