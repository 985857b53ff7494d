"""Value types passed between the stages of a waveform run."""

import math
from dataclasses import dataclass

from .config import WaveformConfig, parse_color
from .errors import InvalidArgument

# Ordered, non-decreasing sample timestamps in seconds.
TimePointPlan = tuple

PRIMARY_NAME = "waveform_primary.png"
SECONDARY_NAME = "waveform_secondary.png"


@dataclass(frozen=True)
class LoudnessSample:
    time: float
    level: float  # 0 = silence floor (-60 dB), 1 = full scale

    def to_dict(self) -> dict:
        return {"time": self.time, "level": self.level}


@dataclass(frozen=True)
class LoudnessSeries:
    """Loudness samples in plan order. Never mutated; transforms build a new series."""

    samples: tuple = ()

    def __len__(self):
        return len(self.samples)

    def __iter__(self):
        return iter(self.samples)

    @property
    def levels(self) -> list:
        return [s.level for s in self.samples]

    @property
    def times(self) -> list:
        return [s.time for s in self.samples]

    def with_levels(self, levels) -> "LoudnessSeries":
        """New series with the same timestamps and the given levels."""
        levels = list(levels)
        if len(levels) != len(self.samples):
            raise InvalidArgument(f"Expected {len(self.samples)} levels, got {len(levels)}")
        return LoudnessSeries(
            tuple(LoudnessSample(s.time, float(lv)) for s, lv in zip(self.samples, levels))
        )

    def to_records(self) -> list:
        return [s.to_dict() for s in self.samples]

    @classmethod
    def from_records(cls, records) -> "LoudnessSeries":
        """Rebuild a series from [{"time": .., "level": ..}, ...]."""
        samples = []
        for i, record in enumerate(records):
            try:
                samples.append(LoudnessSample(float(record["time"]), float(record["level"])))
            except (KeyError, TypeError, ValueError):
                raise InvalidArgument(f"Malformed loudness record at index {i}: {record!r}") from None
            level = samples[-1].level
            if not (math.isfinite(level) and 0.0 <= level <= 1.0):
                raise InvalidArgument(f"Level at index {i} must be within [0, 1], got {level!r}")
        return cls(tuple(samples))

    @classmethod
    def from_levels(cls, times, levels) -> "LoudnessSeries":
        times, levels = list(times), list(levels)
        if len(times) != len(levels):
            raise InvalidArgument(f"{len(times)} timestamps but {len(levels)} levels")
        return cls(tuple(LoudnessSample(float(t), float(lv)) for t, lv in zip(times, levels)))


@dataclass(frozen=True)
class RasterImage:
    """Row-major, top-to-bottom RGBA pixels, 4 bytes per pixel."""

    width: int
    height: int
    pixels: bytes

    def __post_init__(self):
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise InvalidArgument(
                f"Pixel buffer holds {len(self.pixels)} bytes, expected {expected}"
            )


@dataclass(frozen=True)
class WaveformArtifactSet:
    """Everything one run hands to the persistence layer."""

    primary_png: bytes
    secondary_png: bytes
    series: LoudnessSeries  # compressed, as rendered
    measured: LoudnessSeries  # as analyzed, for re-rendering
    width: int
    height: int

    @property
    def levels_array(self) -> list:
        return self.series.levels

    def files(self, prefix: str = "") -> dict:
        """Artifact file name -> PNG bytes."""
        return {
            f"{prefix}{PRIMARY_NAME}": self.primary_png,
            f"{prefix}{SECONDARY_NAME}": self.secondary_png,
        }


def _as_count(value, field: str) -> int:
    """Whole-number request field; 100 and 100.0 pass, 2.7 and true do not."""
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InvalidArgument(f"{field} must be a whole number, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class WaveformRequest:
    """A run request as received from the external trigger."""

    audio_url: str
    duration_seconds: float
    sample_count: int
    image_width: int
    image_height: int
    foreground_color: str
    background_color: str

    def config(self, base: WaveformConfig) -> WaveformConfig:
        return base.with_overrides(
            image_width=self.image_width,
            image_height=self.image_height,
            sample_count=self.sample_count,
            foreground_color=self.foreground_color,
            background_color=self.background_color,
        )

    @classmethod
    def from_dict(cls, data: dict, defaults: WaveformConfig = None) -> "WaveformRequest":
        """Parse the camelCase request object, filling gaps from `defaults`."""
        defaults = defaults or WaveformConfig()
        if not isinstance(data, dict):
            raise InvalidArgument("Request must be a JSON object")
        url = data.get("audioUrl")
        if not url or not isinstance(url, str):
            raise InvalidArgument("Missing required parameter: audioUrl")
        try:
            duration = float(data["durationSeconds"])
            sample_count = _as_count(data.get("sampleCount", defaults.sample_count), "sampleCount")
            width = _as_count(data.get("imageWidth", defaults.image_width), "imageWidth")
            height = _as_count(data.get("imageHeight", defaults.image_height), "imageHeight")
        except KeyError:
            raise InvalidArgument("Missing required parameter: durationSeconds") from None
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f"Malformed numeric field: {exc}") from None
        fg = data.get("foregroundColor", defaults.foreground_color)
        bg = data.get("backgroundColor", defaults.background_color)
        parse_color(fg)
        parse_color(bg)
        return cls(
            audio_url=url,
            duration_seconds=duration,
            sample_count=sample_count,
            image_width=width,
            image_height=height,
            foreground_color=fg,
            background_color=bg,
        )
