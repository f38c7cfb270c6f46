"""Task duration estimator that learns from completed-task history."""

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..models.task import (
    BASE_DURATION_MS,
    COMPLEXITY_MULTIPLIERS,
    ActiveTask,
    DurationEstimate,
    LearnedBaseline,
    TaskCategory,
    TaskComplexity,
    TaskHistoryEntry,
)
from ..utils.config import EstimatorConfig
from ..utils.confidence import (
    bayesian_update,
    calculate_accuracy,
    calculate_confidence,
    calculate_variance,
)
from ..utils.time_math import elapsed_ms, round_half_up, to_epoch_ms
from .state import EstimatorState

logger = logging.getLogger(__name__)

# Confidence given to a baseline seeded from a single replayed sample
REPLAY_SEED_CONFIDENCE = 0.4
# Confidence given to a baseline seeded from an estimate, before any sample
ESTIMATE_SEED_CONFIDENCE = 0.3
# Learned baselines below this confidence defer to the static tables
BASELINE_TRUST_THRESHOLD = 0.5

BaselineKey = Tuple[TaskCategory, TaskComplexity]


def coerce_category(value: Union[str, TaskCategory]) -> TaskCategory:
    """Parse a category, degrading unknown values to OTHER."""
    try:
        return TaskCategory(value)
    except ValueError:
        logger.warning("Unknown task category %r, using %r", value, TaskCategory.OTHER.value)
        return TaskCategory.OTHER


def coerce_complexity(value: Union[str, TaskComplexity]) -> TaskComplexity:
    """Parse a complexity, degrading unknown values to MODERATE."""
    try:
        return TaskComplexity(value)
    except ValueError:
        logger.warning("Unknown task complexity %r, using %r", value, TaskComplexity.MODERATE.value)
        return TaskComplexity.MODERATE


class TaskEstimator:
    """Estimates task durations and learns per-(category, complexity) baselines."""

    def __init__(
        self,
        state: EstimatorState,
        config: Optional[EstimatorConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize estimator and replay history into learned baselines."""
        self.state = state
        self.config = config or EstimatorConfig()
        self.clock = clock
        self.learned_baselines: Dict[BaselineKey, LearnedBaseline] = {}
        self._initialize_baselines()

    def _initialize_baselines(self):
        """Replay history oldest-first through the Bayesian update."""
        self.learned_baselines.clear()
        for entry in sorted(self.state.task_history, key=lambda e: e.timestamp):
            key = (entry.category, entry.complexity)
            existing = self.learned_baselines.get(key)

            if existing is None:
                self.learned_baselines[key] = LearnedBaseline(
                    mean_ms=entry.actual_ms,
                    confidence=REPLAY_SEED_CONFIDENCE,
                )
            else:
                self.learned_baselines[key] = self._blend(existing, entry.actual_ms)

        logger.debug(
            "Rebuilt %d learned baselines from %d history entries",
            len(self.learned_baselines),
            len(self.state.task_history),
        )

    def _blend(self, prior: LearnedBaseline, observed_ms: float) -> LearnedBaseline:
        updated = bayesian_update(
            prior.mean_ms,
            prior.confidence,
            observed_ms,
            self.config.learning_rate,
        )
        return LearnedBaseline(mean_ms=updated['mean'], confidence=updated['confidence'])

    def _relevant_history(
        self, category: TaskCategory, complexity: TaskComplexity
    ) -> List[TaskHistoryEntry]:
        return [
            h for h in self.state.task_history
            if h.category == category and h.complexity == complexity
        ]

    def default_baseline(self, category: TaskCategory, complexity: TaskComplexity) -> float:
        """Static duration for a category scaled by complexity."""
        base_ms = BASE_DURATION_MS.get(category, BASE_DURATION_MS[TaskCategory.OTHER])
        multiplier = COMPLEXITY_MULTIPLIERS.get(complexity, 1.0)
        return base_ms * multiplier

    def get_baseline(
        self,
        category: Union[str, TaskCategory],
        complexity: Union[str, TaskComplexity],
    ) -> float:
        """Get the baseline duration used for estimates."""
        category = coerce_category(category)
        complexity = coerce_complexity(complexity)
        learned = self.learned_baselines.get((category, complexity))

        if learned is not None and learned.confidence > BASELINE_TRUST_THRESHOLD:
            return learned.mean_ms

        return self.default_baseline(category, complexity)

    def get_learned_baseline(
        self,
        category: Union[str, TaskCategory],
        complexity: Union[str, TaskComplexity],
    ) -> Optional[LearnedBaseline]:
        """Get the learned baseline for a pair, if any samples exist."""
        return self.learned_baselines.get((coerce_category(category), coerce_complexity(complexity)))

    def estimate(
        self,
        category: Union[str, TaskCategory],
        complexity: Union[str, TaskComplexity],
    ) -> DurationEstimate:
        """Estimate duration for a task. Does not mutate state."""
        category = coerce_category(category)
        complexity = coerce_complexity(complexity)
        relevant = self._relevant_history(category, complexity)

        baseline = self.get_baseline(category, complexity)
        variance = calculate_variance(relevant)
        confidence = calculate_confidence(
            relevant,
            category,
            complexity,
            now=self.clock(),
            min_samples=self.config.min_samples_for_estimate,
            decay_days=self.config.confidence_decay_days,
        )

        variance_factor = 1 + variance

        return DurationEstimate(
            minimum_ms=round_half_up(baseline / variance_factor),
            expected_ms=round_half_up(baseline),
            maximum_ms=round_half_up(baseline * variance_factor),
            confidence=confidence,
            sample_count=len(relevant),
            category=category,
            complexity=complexity,
        )

    def start_task(
        self,
        category: Union[str, TaskCategory],
        complexity: Union[str, TaskComplexity],
    ) -> str:
        """Start timing a task and return its id."""
        now = self.clock()
        task_id = f"task_{to_epoch_ms(now)}_{uuid.uuid4().hex[:9]}"
        estimate = self.estimate(category, complexity)

        self.state.active_tasks[task_id] = ActiveTask(
            task_id=task_id,
            category=estimate.category,
            complexity=estimate.complexity,
            start_time=now,
            estimated_ms=estimate.expected_ms,
        )

        logger.debug("Started %s (%s/%s)", task_id, estimate.category.value, estimate.complexity.value)
        return task_id

    def complete_task(self, task_id: Optional[str] = None) -> Optional[TaskHistoryEntry]:
        """Complete a task and record it for learning.

        Completes `task_id` when it is active, otherwise the most recently
        started task. Returns None when nothing is active.
        """
        if task_id is not None and task_id in self.state.active_tasks:
            task = self.state.active_tasks.pop(task_id)
        else:
            if task_id is not None:
                logger.debug("No active task %s, completing most recent instead", task_id)
            task = self.state.most_recent_active()
            if task is None:
                logger.debug("No active task to complete")
                return None
            del self.state.active_tasks[task.task_id]

        now = self.clock()
        actual_ms = max(0, round_half_up(elapsed_ms(task.start_time, now)))

        entry = TaskHistoryEntry(
            task_id=task.task_id,
            category=task.category,
            complexity=task.complexity,
            estimated_ms=task.estimated_ms,
            actual_ms=actual_ms,
            accuracy=calculate_accuracy(task.estimated_ms, actual_ms),
            timestamp=now,
            session_id=self.state.session_id,
        )

        # Bounded deque evicts the oldest entry on overflow
        self.state.task_history.append(entry)

        key = (task.category, task.complexity)
        existing = self.learned_baselines.get(key) or LearnedBaseline(
            mean_ms=task.estimated_ms,
            confidence=ESTIMATE_SEED_CONFIDENCE,
        )
        self.learned_baselines[key] = self._blend(existing, actual_ms)

        logger.debug(
            "Completed %s in %dms (estimated %dms, accuracy %.2f)",
            task.task_id, actual_ms, task.estimated_ms, entry.accuracy,
        )
        return entry

    def get_active_tasks(self) -> List[ActiveTask]:
        """Get active tasks, oldest first."""
        return list(self.state.active_tasks.values())

    def get_statistics(self) -> Dict[str, Any]:
        """Summarize task history."""
        history = self.state.task_history
        total = len(history)

        category_counts = {category.value: 0 for category in TaskCategory}
        for entry in history:
            category_counts[entry.category.value] += 1

        return {
            'total_tasks': total,
            'active_tasks': len(self.state.active_tasks),
            'average_accuracy': sum(h.accuracy for h in history) / total if total else 0.0,
            'category_counts': category_counts,
        }
