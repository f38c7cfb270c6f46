from datetime import datetime, timedelta

import pytest

from temporal_cognition.models.task import TaskCategory, TaskComplexity, TaskHistoryEntry
from temporal_cognition.utils.confidence import (
    bayesian_update,
    calculate_accuracy,
    calculate_confidence,
    calculate_variance,
    weighted_accuracy,
)
from temporal_cognition.utils.time_math import (
    MS_PER_DAY,
    MS_PER_HOUR,
    exponential_decay,
    parse_relative_time,
    round_half_up,
)

NOW = datetime(2025, 1, 15, 12, 0, 0)


def entry(actual_ms=1000, accuracy=1.0, age_days=0.0, category=TaskCategory.CODING):
    return TaskHistoryEntry(
        task_id=f"task_{actual_ms}_{age_days}",
        category=category,
        complexity=TaskComplexity.MODERATE,
        estimated_ms=actual_ms,
        actual_ms=actual_ms,
        accuracy=accuracy,
        timestamp=NOW - timedelta(days=age_days),
        session_id="session_test",
    )


def test_accuracy_is_perfect_for_exact_estimate():
    assert calculate_accuracy(5000, 5000) == 1.0


def test_accuracy_is_zero_when_actual_is_zero():
    assert calculate_accuracy(5000, 0) == 0.0


def test_accuracy_decreases_away_from_exact_in_both_directions():
    over = [calculate_accuracy(est, 1000) for est in (1000, 1200, 1500, 2000)]
    under = [calculate_accuracy(est, 1000) for est in (1000, 800, 500, 200)]
    assert over == sorted(over, reverse=True) and len(set(over)) == len(over)
    assert under == sorted(under, reverse=True) and len(set(under)) == len(under)


def test_overestimates_are_penalized_at_half_rate():
    assert calculate_accuracy(2000, 1000) == pytest.approx(0.5)
    assert calculate_accuracy(1500, 1000) == pytest.approx(0.75)
    assert calculate_accuracy(500, 1000) == pytest.approx(0.5)
    assert calculate_accuracy(5000, 1000) == 0.0


def test_exponential_decay_halves_at_half_life():
    half_life = 7 * MS_PER_DAY
    assert exponential_decay(1.0, half_life, half_life) == pytest.approx(0.5)
    assert exponential_decay(1.0, half_life, 0) == 1.0
    scores = [exponential_decay(1.0, half_life, days * MS_PER_DAY) for days in range(0, 30, 3)]
    assert all(a > b for a, b in zip(scores, scores[1:]))


def test_confidence_without_samples_is_low():
    assert calculate_confidence([], TaskCategory.CODING, TaskComplexity.MODERATE, NOW) == 0.3


def test_confidence_ramps_below_min_samples():
    history = [entry(), entry(age_days=1)]
    confidence = calculate_confidence(history, TaskCategory.CODING, TaskComplexity.MODERATE, NOW, min_samples=3)
    assert confidence == pytest.approx(0.3 + 2 / 3 * 0.2)


def test_confidence_ignores_other_categories():
    history = [entry(category=TaskCategory.WRITING) for _ in range(5)]
    assert calculate_confidence(history, TaskCategory.CODING, TaskComplexity.MODERATE, NOW) == 0.3


def test_confidence_is_capped():
    history = [entry(age_days=i) for i in range(20)]
    confidence = calculate_confidence(history, TaskCategory.CODING, TaskComplexity.MODERATE, NOW)
    assert confidence == pytest.approx(0.95)


def test_weighted_accuracy_favours_recent_samples():
    history = [entry(accuracy=1.0, age_days=0), entry(accuracy=0.0, age_days=60)]
    assert weighted_accuracy(history, NOW, decay_days=30) > 0.8
    assert weighted_accuracy([], NOW) == 0.5


def test_bayesian_update_blends_toward_observation():
    result = bayesian_update(1000, 0.4, 2000, learning_rate=0.1)
    assert result['mean'] == pytest.approx((1000 * 0.36 + 2000 * 0.1) / 0.46)
    assert result['confidence'] == pytest.approx(0.41)


def test_bayesian_update_confidence_never_exceeds_cap():
    assert bayesian_update(1000, 0.95, 1000)['confidence'] == 0.95


def test_variance_is_coefficient_of_variation():
    assert calculate_variance([entry(1000)]) == 0.5
    assert calculate_variance([entry(1000), entry(1000)]) == 0.0
    assert calculate_variance([entry(500), entry(1500)]) == pytest.approx(0.5)


def test_round_half_up_rounds_away_from_zero():
    assert round_half_up(84.5) == 85
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
    assert round_half_up(-2.5) == -3


def test_parse_relative_time():
    assert parse_relative_time("2h") == 2 * MS_PER_HOUR
    assert parse_relative_time("30 minutes") == 30 * 60000
    assert parse_relative_time("1.5 days") == 1.5 * MS_PER_DAY
    assert parse_relative_time("soon") is None
