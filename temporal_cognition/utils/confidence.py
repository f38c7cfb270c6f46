"""Confidence scoring over completed-task history."""

import math
from datetime import datetime
from typing import Dict, Iterable, List

from ..models.task import TaskHistoryEntry
from .time_math import MS_PER_DAY, elapsed_ms

NO_DATA_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95
HIGH_UNCERTAINTY = 0.5


def calculate_accuracy(estimated_ms: float, actual_ms: float) -> float:
    """Score an estimate against the actual duration.

    1.0 is a perfect estimate. Overestimates lose accuracy at half the rate
    of underestimates.
    """
    if actual_ms == 0:
        return 0.0

    ratio = estimated_ms / actual_ms

    if ratio >= 1:
        return max(0.0, 1 - (ratio - 1) * 0.5)
    return max(0.0, ratio)


def weighted_accuracy(
    entries: Iterable[TaskHistoryEntry],
    now: datetime,
    decay_days: float = 30,
) -> float:
    """Average accuracy with recent samples weighted exponentially higher."""
    weighted_sum = 0.0
    weight_sum = 0.0

    for entry in entries:
        age_days = elapsed_ms(entry.timestamp, now) / MS_PER_DAY
        weight = math.exp(-age_days / decay_days)
        weighted_sum += entry.accuracy * weight
        weight_sum += weight

    return weighted_sum / weight_sum if weight_sum > 0 else 0.5


def calculate_confidence(
    history: Iterable[TaskHistoryEntry],
    category: str,
    complexity: str,
    now: datetime,
    min_samples: int = 3,
    decay_days: float = 30,
) -> float:
    """Confidence in an estimate for a (category, complexity) pair."""
    relevant = [h for h in history if h.category == category and h.complexity == complexity]

    if not relevant:
        return NO_DATA_CONFIDENCE

    if len(relevant) < min_samples:
        return NO_DATA_CONFIDENCE + (len(relevant) / min_samples) * 0.2

    accuracy = weighted_accuracy(relevant, now, decay_days)

    # Diminishing returns for sample count
    sample_boost = min(0.2, len(relevant) * 0.02)

    return min(MAX_CONFIDENCE, 0.5 + accuracy * 0.3 + sample_boost)


def bayesian_update(
    prior_mean: float,
    prior_confidence: float,
    observed_value: float,
    learning_rate: float = 0.1,
) -> Dict[str, float]:
    """Blend an observation into a prior mean, weighted by prior confidence."""
    weight = prior_confidence * (1 - learning_rate)
    new_weight = learning_rate

    mean = (prior_mean * weight + observed_value * new_weight) / (weight + new_weight)
    confidence = min(MAX_CONFIDENCE, prior_confidence + learning_rate * 0.1)

    return {'mean': mean, 'confidence': confidence}


def calculate_variance(history: List[TaskHistoryEntry]) -> float:
    """Coefficient of variation of actual durations."""
    if len(history) < 2:
        return HIGH_UNCERTAINTY

    actuals = [h.actual_ms for h in history]
    mean = sum(actuals) / len(actuals)
    if mean <= 0:
        return HIGH_UNCERTAINTY

    variance = sum((value - mean) ** 2 for value in actuals) / len(actuals)

    return math.sqrt(variance) / mean
