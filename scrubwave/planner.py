"""Evenly spaced sample timestamps across a track."""

import math
import numbers

from .errors import InvalidArgument
from .models import TimePointPlan


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def plan(duration_seconds: float, sample_count: int) -> TimePointPlan:
    """Return `sample_count` timestamps: round(i * duration / sample_count)."""
    if not isinstance(sample_count, numbers.Integral) or isinstance(sample_count, bool):
        raise InvalidArgument(f"sample_count must be a whole number, got {sample_count!r}")
    if sample_count < 1:
        raise InvalidArgument(f"sample_count must be >= 1, got {sample_count}")
    if duration_seconds is None or not duration_seconds > 0 or math.isinf(duration_seconds):
        raise InvalidArgument(f"duration_seconds must be > 0, got {duration_seconds}")

    interval = duration_seconds / sample_count
    points = []
    previous = 0.0
    for i in range(sample_count):
        exact = i * interval
        t = float(_round_half_up(exact))
        # Rounding up can reach the end of very short tracks
        if t >= duration_seconds:
            t = max(previous, exact)
        points.append(t)
        previous = t
    return tuple(points)
