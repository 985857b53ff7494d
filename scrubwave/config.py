"""Run configuration, resolved once and passed to the pipeline explicitly."""

import os
import re
from dataclasses import dataclass, fields, replace

from .errors import InvalidArgument

ACCENT_COLOR = "#ff5500"
UNPLAYED_COLOR = "#000000"
WIDTH = 800
HEIGHT = 100
SAMPLE_COUNT = 100
ANALYZERS = ("ffmpeg", "librosa")

_HEX_COLOR = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")

# field name -> (environment variable, converter)
ENV_VARS = {
    "image_width": ("WAVEFORM_WIDTH", int),
    "image_height": ("WAVEFORM_HEIGHT", int),
    "sample_count": ("WAVEFORM_SAMPLES", int),
    "foreground_color": ("ACCENT_COLOR", str),
    "background_color": ("WAVEFORM_BACKGROUND_COLOR", str),
    "analysis_timeout": ("WAVEFORM_ANALYSIS_TIMEOUT", float),
    "fetch_timeout": ("WAVEFORM_FETCH_TIMEOUT", float),
    "ffmpeg_path": ("FFMPEG_PATH", str),
    "ffprobe_path": ("FFPROBE_PATH", str),
    "analyzer": ("WAVEFORM_ANALYZER", str),
}


def parse_color(value: str) -> tuple:
    """Parse a '#RRGGBB' string into an (r, g, b) tuple."""
    match = _HEX_COLOR.match(value or "")
    if not match:
        raise InvalidArgument(f"Color must be '#RRGGBB', got {value!r}")
    return tuple(int(part, 16) for part in match.groups())


@dataclass(frozen=True)
class WaveformConfig:
    """
    Settings shared by every stage of a waveform run.

    Attributes:
        image_width: Output image width in pixels.
        image_height: Output image height in pixels.
        sample_count: Number of loudness points per track.
        foreground_color: Accent color of the primary ("played") image.
        background_color: Neutral color of the secondary ("unplayed") image.
        window_seconds: Half-width of the loudness window around each point.
        analysis_timeout: Wall-clock budget for decoding and measuring, seconds.
        fetch_timeout: Connect/read timeout for the HTTP audio source, seconds.
        chunk_size: Bytes per read from the audio source.
        ffmpeg_path: ffmpeg executable.
        ffprobe_path: ffprobe executable.
        analyzer: "ffmpeg" (external process) or "librosa" (in-process).
    """

    image_width: int = WIDTH
    image_height: int = HEIGHT
    sample_count: int = SAMPLE_COUNT
    foreground_color: str = ACCENT_COLOR
    background_color: str = UNPLAYED_COLOR
    window_seconds: float = 0.5
    analysis_timeout: float = 300.0
    fetch_timeout: float = 30.0
    chunk_size: int = 64 * 1024
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    analyzer: str = "ffmpeg"

    def __post_init__(self):
        if self.image_width <= 0 or self.image_height <= 0:
            raise InvalidArgument(
                f"Image size must be positive, got {self.image_width}x{self.image_height}"
            )
        if self.sample_count < 1:
            raise InvalidArgument(f"sample_count must be >= 1, got {self.sample_count}")
        parse_color(self.foreground_color)
        parse_color(self.background_color)
        if self.window_seconds <= 0:
            raise InvalidArgument(f"window_seconds must be positive, got {self.window_seconds}")
        if self.analysis_timeout <= 0 or self.fetch_timeout <= 0:
            raise InvalidArgument("Timeouts must be positive")
        if self.chunk_size <= 0:
            raise InvalidArgument(f"chunk_size must be positive, got {self.chunk_size}")
        if self.analyzer not in ANALYZERS:
            raise InvalidArgument(
                f"Unknown analyzer {self.analyzer!r}, valid options: {list(ANALYZERS)}"
            )

    @property
    def foreground_rgb(self) -> tuple:
        return parse_color(self.foreground_color)

    @property
    def background_rgb(self) -> tuple:
        return parse_color(self.background_color)

    def with_overrides(self, **overrides) -> "WaveformConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise InvalidArgument(f"Unknown config fields: {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, environ=None) -> "WaveformConfig":
        """Build a config from environment variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name, (var, convert) in ENV_VARS.items():
            raw = environ.get(var)
            if raw is None or raw == "":
                continue
            try:
                values[name] = convert(raw)
            except ValueError:
                raise InvalidArgument(f"{var} must be {convert.__name__}, got {raw!r}") from None
        return cls(**values)

