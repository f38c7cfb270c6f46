from collections import deque
from datetime import timedelta

import pytest

from temporal_cognition.engine.estimator import TaskEstimator
from temporal_cognition.engine.state import EstimatorState
from temporal_cognition.models.task import TaskCategory, TaskComplexity, TaskHistoryEntry


def history_entry(clock, actual_ms, minutes_ago, task_id=None,
                  category=TaskCategory.CODING, complexity=TaskComplexity.MODERATE):
    return TaskHistoryEntry(
        task_id=task_id or f"task_{minutes_ago}",
        category=category,
        complexity=complexity,
        estimated_ms=actual_ms,
        actual_ms=actual_ms,
        accuracy=1.0,
        timestamp=clock() - timedelta(minutes=minutes_ago),
        session_id="session_test",
    )


def test_estimate_with_empty_history_uses_static_tables(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    estimate = estimator.estimate("coding", "moderate")

    assert estimate.expected_ms == 600000
    assert estimate.confidence == 0.3
    assert estimate.sample_count == 0
    assert estimate.minimum_ms == 400000
    assert estimate.maximum_ms == 900000
    assert estimate.category == TaskCategory.CODING


def test_estimate_scales_with_complexity(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    assert estimator.estimate("research", "highly-complex").expected_ms == 1200000
    assert estimator.estimate("research", "trivial").expected_ms == 75000


def test_estimate_degrades_unknown_values_to_defaults(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    estimate = estimator.estimate("gardening", "enormous")

    assert estimate.category == TaskCategory.OTHER
    assert estimate.complexity == TaskComplexity.MODERATE
    assert estimate.expected_ms == 300000


def test_estimate_is_idempotent(clock):
    state = EstimatorState()
    state.task_history.extend(history_entry(clock, ms, i) for i, ms in enumerate([500000, 700000]))
    estimator = TaskEstimator(state, clock=clock)

    assert estimator.estimate("coding", "moderate") == estimator.estimate("coding", "moderate")
    assert len(state.task_history) == 2


def test_estimate_range_is_ordered(clock):
    state = EstimatorState()
    state.task_history.extend(
        history_entry(clock, ms, i) for i, ms in enumerate([100000, 900000, 400000])
    )
    estimate = TaskEstimator(state, clock=clock).estimate("coding", "moderate")

    assert estimate.minimum_ms <= estimate.expected_ms <= estimate.maximum_ms
    assert 0.0 <= estimate.confidence <= 0.95
    assert estimate.sample_count == 3


def test_start_and_complete_records_history(clock):
    state = EstimatorState(session_id="session_1")
    estimator = TaskEstimator(state, clock=clock)

    task_id = estimator.start_task("coding", "moderate")
    assert [t.task_id for t in estimator.get_active_tasks()] == [task_id]

    clock.advance(minutes=5)
    entry = estimator.complete_task(task_id)

    assert entry.task_id == task_id
    assert entry.actual_ms == 300000
    assert entry.estimated_ms == 600000
    assert entry.accuracy == pytest.approx(0.5)
    assert entry.session_id == "session_1"
    assert entry.timestamp == clock()
    assert list(state.task_history) == [entry]
    assert estimator.get_active_tasks() == []


def test_complete_without_active_task_returns_none(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    assert estimator.complete_task() is None
    assert estimator.complete_task("task_missing") is None


def test_complete_without_id_picks_most_recent(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    first = estimator.start_task("writing", "simple")
    clock.advance(seconds=1)
    second = estimator.start_task("research", "simple")

    assert estimator.complete_task().task_id == second
    assert estimator.complete_task().task_id == first


def test_task_ids_are_unique_at_same_instant(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    ids = {estimator.start_task("coding", "simple") for _ in range(200)}
    assert len(ids) == 200


def test_history_is_bounded_fifo(clock):
    state = EstimatorState()
    state.task_history.extend(
        history_entry(clock, 1000, 2000 - i, task_id=f"old_{i}") for i in range(1000)
    )
    estimator = TaskEstimator(state, clock=clock)

    estimator.start_task("coding", "moderate")
    clock.advance(minutes=1)
    entry = estimator.complete_task()

    assert len(state.task_history) == 1000
    assert state.task_history[0].task_id == "old_1"
    assert state.task_history[-1] is entry


def test_baselines_are_replayed_from_history(clock):
    state = EstimatorState()
    state.task_history.extend([
        history_entry(clock, 3000, 10),
        history_entry(clock, 1000, 20),
    ])
    estimator = TaskEstimator(state, clock=clock)

    baseline = estimator.get_learned_baseline("coding", "moderate")
    # Oldest sample seeds the baseline, the newer one is blended in
    assert baseline.mean_ms == pytest.approx((1000 * 0.36 + 3000 * 0.1) / 0.46)
    assert baseline.confidence == pytest.approx(0.41)
    # Not trusted yet, so estimates still use the static table
    assert estimator.get_baseline("coding", "moderate") == 600000


def test_trusted_learned_baseline_replaces_default(clock):
    state = EstimatorState()
    state.task_history.extend(history_entry(clock, 50000, 100 - i) for i in range(12))
    estimate = TaskEstimator(state, clock=clock).estimate("coding", "moderate")

    assert estimate.expected_ms == 50000
    assert estimate.minimum_ms == estimate.maximum_ms == 50000


def test_completion_updates_baseline(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    estimator.start_task("analysis", "complex")
    clock.advance(minutes=10)
    estimator.complete_task()

    baseline = estimator.get_learned_baseline("analysis", "complex")
    expected_mean = (840000 * 0.3 * 0.9 + 600000 * 0.1) / (0.3 * 0.9 + 0.1)
    assert baseline.mean_ms == pytest.approx(expected_mean)
    assert baseline.confidence == pytest.approx(0.31)


def test_confidence_is_monotonic_over_accurate_completions(clock):
    estimator = TaskEstimator(EstimatorState(), clock=clock)
    confidences = [estimator.estimate("coding", "simple").confidence]

    for _ in range(15):
        expected = estimator.estimate("coding", "simple").expected_ms
        estimator.start_task("coding", "simple")
        clock.advance(milliseconds=expected)
        entry = estimator.complete_task()
        assert entry.accuracy == pytest.approx(1.0)
        confidences.append(estimator.estimate("coding", "simple").confidence)

    assert all(a <= b for a, b in zip(confidences, confidences[1:]))
    assert all(c <= 0.95 for c in confidences)
    assert confidences[-1] == pytest.approx(0.95)


def test_statistics(clock):
    state = EstimatorState(task_history=deque([
        history_entry(clock, 1000, 1),
        history_entry(clock, 1000, 2, category=TaskCategory.WRITING),
    ], maxlen=1000))
    stats = TaskEstimator(state, clock=clock).get_statistics()

    assert stats['total_tasks'] == 2
    assert stats['average_accuracy'] == 1.0
    assert stats['category_counts']['coding'] == 1
    assert stats['category_counts']['writing'] == 1
    assert stats['category_counts']['other'] == 0
