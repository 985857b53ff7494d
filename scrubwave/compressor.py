"""Fixed two-tier squash of the quiet end of a loudness series."""

import math

from .models import LoudnessSeries


def percentile(sorted_levels: list, fraction: float) -> float:
    """Nearest-rank percentile: sorted_levels[floor(fraction * n)]."""
    if not sorted_levels:
        return 0.0
    idx = min(int(math.floor(fraction * len(sorted_levels))), len(sorted_levels) - 1)
    return sorted_levels[idx]


def compress_level(level: float, p10: float, p20: float) -> float:
    if level <= p10:
        return level / 2
    if level <= p20:
        return level / 1.5
    return level


def compress(series: LoudnessSeries) -> LoudnessSeries:
    """
    Halve levels at or below the 10th percentile and divide those up to the
    20th percentile by 1.5. Everything louder passes through unchanged.

    Without this, quiet intros and outros render as a flat line next to the
    mid/high values that dominate typical music.
    """
    if not len(series):
        return LoudnessSeries()
    ordered = sorted(series.levels)
    p10 = percentile(ordered, 0.10)
    p20 = percentile(ordered, 0.20)
    return series.with_levels(compress_level(lv, p10, p20) for lv in series.levels)
