"""Date, time and decay utilities."""

import math
import re
from datetime import datetime, timedelta
from typing import Optional

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60000
MS_PER_HOUR = 3600000
MS_PER_DAY = 86400000
MS_PER_WEEK = 604800000


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds."""
    return int(round(moment.timestamp() * 1000))


def from_epoch_ms(value: float) -> datetime:
    """Convert epoch milliseconds back to a datetime."""
    return datetime.fromtimestamp(value / 1000.0)


def elapsed_ms(start: datetime, end: datetime) -> float:
    """Milliseconds elapsed from start to end (negative if end is earlier)."""
    return (end - start).total_seconds() * 1000.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def exponential_decay(initial_value: float, half_life_ms: float, elapsed: float) -> float:
    """Halve initial_value every half_life_ms."""
    return initial_value * math.pow(0.5, elapsed / half_life_ms)


_RELATIVE_TIME = re.compile(
    r'^(\d+(?:\.\d+)?)\s*(s|sec|seconds?|m|min|minutes?|h|hr|hours?|d|days?|w|weeks?)$',
    re.IGNORECASE,
)

_UNIT_MS = {
    's': MS_PER_SECOND,
    'm': MS_PER_MINUTE,
    'h': MS_PER_HOUR,
    'd': MS_PER_DAY,
    'w': MS_PER_WEEK,
}


def parse_relative_time(text: str) -> Optional[float]:
    """Parse strings like "30m", "2h" or "1.5 days" into milliseconds."""
    match = _RELATIVE_TIME.match(text.strip())
    if not match:
        return None

    unit = match.group(2).lower()
    # "min"/"minutes" and "m" are minutes; "sec" is seconds
    return float(match.group(1)) * _UNIT_MS[unit[0]]
