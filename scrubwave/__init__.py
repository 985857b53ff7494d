"""Scrub-bar waveform images from audio loudness."""

from .compressor import compress
from .config import WaveformConfig
from .errors import AnalysisTimeout, DecodeError, FetchError, InvalidArgument, WaveformError
from .models import LoudnessSample, LoudnessSeries, RasterImage, WaveformArtifactSet, WaveformRequest
from .pipeline import PipelineState, WaveformPipeline
from .planner import plan
from .rasterizer import encode_png, rasterize
from .sampler import LoudnessSampler

__version__ = "0.1.0"

__all__ = [
    "AnalysisTimeout",
    "DecodeError",
    "FetchError",
    "InvalidArgument",
    "LoudnessSample",
    "LoudnessSampler",
    "LoudnessSeries",
    "PipelineState",
    "RasterImage",
    "WaveformArtifactSet",
    "WaveformConfig",
    "WaveformError",
    "WaveformPipeline",
    "WaveformRequest",
    "compress",
    "encode_png",
    "plan",
    "rasterize",
]
