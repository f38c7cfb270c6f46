"""State store shared by the estimator, scheduler and memory index."""

import copy
import json
import logging
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from ..models.memory import MemoryEntry
from ..models.task import ActiveTask, ScheduledTask, TaskHistoryEntry
from ..utils.time_math import from_epoch_ms, to_epoch_ms

logger = logging.getLogger(__name__)

STATE_VERSION = '1.0.0'
MAX_HISTORY_ENTRIES = 1000


def _subtree(data: Dict[str, Any], key: str, expected: type):
    """Get a persisted sub-tree, rejecting one of the wrong JSON type."""
    value = data.get(key)
    if value is None:
        return expected()
    if not isinstance(value, expected):
        raise TypeError(f"{key} must be a JSON {expected.__name__}, got {type(value).__name__}")
    return value


@dataclass
class EstimatorState:
    """History and in-flight tasks owned by the duration estimator."""

    task_history: Deque[TaskHistoryEntry] = field(
        default_factory=lambda: deque(maxlen=MAX_HISTORY_ENTRIES)
    )
    active_tasks: 'OrderedDict[str, ActiveTask]' = field(default_factory=OrderedDict)
    session_id: str = ''

    def most_recent_active(self) -> Optional[ActiveTask]:
        """Get the most recently started active task."""
        if not self.active_tasks:
            return None
        return self.active_tasks[next(reversed(self.active_tasks))]


@dataclass
class SchedulerState:
    """Scheduled tasks, in insertion order."""

    tasks: List[ScheduledTask] = field(default_factory=list)


@dataclass
class MemoryState:
    """Memory entries keyed by id, in insertion order."""

    entries: Dict[str, MemoryEntry] = field(default_factory=dict)


@dataclass
class TimePerception:
    """Bootstrap metadata carried alongside the component state."""

    boot_time: datetime
    total_ticks: int = 0
    total_cycles: int = 0


class StateStore:
    """In-memory state tree with whole-file JSON persistence.

    Each component is handed only its own sub-state. Mutation happens on a
    single logical thread; `snapshot()` returns a deep copy that is safe to
    serialize elsewhere.
    """

    def __init__(
        self,
        time_perception: TimePerception,
        estimator: Optional[EstimatorState] = None,
        scheduler: Optional[SchedulerState] = None,
        memory: Optional[MemoryState] = None,
        version: str = STATE_VERSION,
    ):
        self.version = version
        self.time_perception = time_perception
        self.estimator = estimator or EstimatorState()
        self.scheduler = scheduler or SchedulerState()
        self.memory = memory or MemoryState()
        if not self.estimator.session_id:
            self.estimator.session_id = f"session_{to_epoch_ms(time_perception.boot_time)}"

    @classmethod
    def create(cls, clock: Callable[[], datetime] = datetime.now) -> 'StateStore':
        """Create an empty, well-formed state."""
        return cls(TimePerception(boot_time=clock()))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StateStore':
        """Rebuild the state tree from its persisted form."""
        perception = _subtree(data, 'timePerception', dict)
        time_perception = TimePerception(
            boot_time=from_epoch_ms(perception['bootTime']),
            total_ticks=int(perception.get('totalTicks', 0)),
            total_cycles=int(perception.get('totalCycles', 0)),
        )

        history = [TaskHistoryEntry.from_dict(item) for item in _subtree(data, 'taskHistory', list)]
        history.sort(key=lambda entry: entry.timestamp)
        active = OrderedDict()
        for item in _subtree(data, 'activeTasks', dict).values():
            task = ActiveTask.from_dict(item)
            active[task.task_id] = task
        # Persisted map order is not trusted for recency
        active = OrderedDict(sorted(active.items(), key=lambda kv: kv[1].start_time))

        estimator = EstimatorState(
            task_history=deque(history, maxlen=MAX_HISTORY_ENTRIES),
            active_tasks=active,
        )
        scheduler = SchedulerState(
            tasks=[ScheduledTask.from_dict(item) for item in _subtree(data, 'scheduledTasks', list)]
        )
        memory = MemoryState()
        for item in _subtree(data, 'memoryIndex', dict).values():
            entry = MemoryEntry.from_dict(item)
            memory.entries[entry.id] = entry

        return cls(
            time_perception,
            estimator=estimator,
            scheduler=scheduler,
            memory=memory,
            version=data.get('version', STATE_VERSION),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the state tree to its JSON document form."""
        return {
            'version': self.version,
            'timePerception': {
                'bootTime': to_epoch_ms(self.time_perception.boot_time),
                'totalTicks': self.time_perception.total_ticks,
                'totalCycles': self.time_perception.total_cycles,
            },
            'taskHistory': [entry.to_dict() for entry in self.estimator.task_history],
            'activeTasks': {
                task_id: task.to_dict() for task_id, task in self.estimator.active_tasks.items()
            },
            'scheduledTasks': [task.to_dict() for task in self.scheduler.tasks],
            'memoryIndex': {
                entry_id: entry.to_dict() for entry_id, entry in self.memory.entries.items()
            },
        }

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the persisted form, detached from live state."""
        return copy.deepcopy(self.to_dict())

    @classmethod
    def load(
        cls,
        state_path: Union[str, Path],
        clock: Callable[[], datetime] = datetime.now,
    ) -> 'StateStore':
        """Load state from disk, falling back to a fresh state on any problem."""
        path = Path(state_path)

        if not path.exists():
            logger.info("No state file at %s, starting fresh", path)
            return cls.create(clock)

        try:
            with open(path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            store = cls.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Failed to load state from %s (%s), creating new", path, exc)
            return cls.create(clock)

        logger.info(
            "Loaded state from %s: %d history entries, %d scheduled tasks, %d memories",
            path,
            len(store.estimator.task_history),
            len(store.scheduler.tasks),
            len(store.memory.entries),
        )
        return store

    def save(self, state_path: Union[str, Path]):
        """Overwrite the state file with a snapshot of the current state."""
        path = Path(state_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Serialize fully before truncating the previous file
        text = json.dumps(self.snapshot(), indent=2)
        with open(path, 'w') as f:
            f.write(text)

        logger.debug("Saved state to %s", path)
