from datetime import datetime, timedelta

import pytest

from temporal_cognition.models.task import DurationEstimate, TaskCategory, TaskComplexity


class FakeClock:
    """Controllable clock for time-dependent behaviour."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 12, 0, 0))


def make_estimate(expected_ms: int, category=TaskCategory.CODING, complexity=TaskComplexity.MODERATE):
    return DurationEstimate(
        minimum_ms=expected_ms // 2,
        expected_ms=expected_ms,
        maximum_ms=expected_ms * 2,
        confidence=0.3,
        sample_count=0,
        category=category,
        complexity=complexity,
    )
