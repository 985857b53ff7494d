"""Per-time-point loudness for an audio source."""

import logging
import math

from .analyzers import AudioAnalyzer, FfmpegAnalyzer, loudness_windows
from .config import WaveformConfig
from .errors import InvalidArgument
from .models import LoudnessSample, LoudnessSeries
from .sources import open_source

logger = logging.getLogger(__name__)

SILENCE_FLOOR_DB = -60.0
MISSING_LEVEL = 0.5


def db_to_level(db: float) -> float:
    """Map -60 dB..0 dB onto 0..1, clamped; -inf (digital silence) is 0."""
    if math.isnan(db):
        return 0.0
    normalized = max(0.0, min(1.0, (db - SILENCE_FLOOR_DB) / -SILENCE_FLOOR_DB))
    return round(normalized, 4)


def levels_from_readings(readings: list, count: int) -> list:
    """Normalize dB readings and pad missing trailing points with 0.5."""
    if not readings:
        logger.warning("No volume data found, defaulting all %d points to %s", count, MISSING_LEVEL)
    elif len(readings) < count:
        logger.warning(
            "Only %d of %d loudness readings; defaulting the rest to %s",
            len(readings), count, MISSING_LEVEL,
        )
    levels = [db_to_level(db) for db in readings[:count]]
    levels.extend([MISSING_LEVEL] * (count - len(levels)))
    return levels


class LoudnessSampler:
    """
    Streams an audio source once and measures loudness around each time point.

    Errors from opening or reading the source (FetchError), decoding it
    (DecodeError) or exceeding the time budget (AnalysisTimeout) propagate.
    Short analyses are padded instead of failing.
    """

    def __init__(self, config: WaveformConfig = None, analyzer: AudioAnalyzer = None):
        self.config = config or WaveformConfig()
        self.analyzer = analyzer or FfmpegAnalyzer(self.config.ffmpeg_path)

    def sample(self, audio_source, plan) -> LoudnessSeries:
        plan = tuple(plan)
        if not plan:
            raise InvalidArgument("timePoints must be a non-empty sequence")
        windows = loudness_windows(plan, self.config.window_seconds)

        stream = open_source(
            audio_source,
            chunk_size=self.config.chunk_size,
            timeout=self.config.fetch_timeout,
        )
        try:
            readings = self.analyzer.measure(stream, windows, self.config.analysis_timeout)
        finally:
            stream.close()
        logger.info("Analyzed %s (%d bytes) with %s", stream.name, stream.bytes_read, self.analyzer.name)

        levels = levels_from_readings(readings, len(plan))
        return LoudnessSeries(tuple(LoudnessSample(t, lv) for t, lv in zip(plan, levels)))
