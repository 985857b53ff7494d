"""Plan -> sample -> compress -> rasterize twice, all or nothing."""

import enum
import logging

from . import planner
from .analyzers import make_analyzer
from .compressor import compress
from .config import WaveformConfig
from .models import LoudnessSeries, WaveformArtifactSet, WaveformRequest
from .rasterizer import render_png
from .sampler import LoudnessSampler

logger = logging.getLogger(__name__)


class PipelineState(enum.Enum):
    IDLE = "idle"
    PLANNING = "planning"
    SAMPLING = "sampling"
    COMPRESSING = "compressing"
    RASTERIZING_PRIMARY = "rasterizing_primary"
    RASTERIZING_SECONDARY = "rasterizing_secondary"
    COMPLETE = "complete"
    FAILED = "failed"


class WaveformPipeline:
    """
    Runs one waveform job at a time, strictly in order.

    Any failure moves the pipeline to FAILED and re-raises; no artifact set
    is returned, so both images always come from the same compressed series.
    Retrying is the caller's decision.
    """

    def __init__(self, config: WaveformConfig = None, sampler: LoudnessSampler = None):
        self.config = config or WaveformConfig()
        self.sampler = sampler or LoudnessSampler(self.config, make_analyzer(self.config))
        self.state = PipelineState.IDLE
        self.history = []

    def _enter(self, state: PipelineState):
        self.state = state
        self.history.append(state)
        logger.debug("Pipeline state: %s", state.value)

    def run(self, audio_url, duration_seconds: float, sample_count: int = None) -> WaveformArtifactSet:
        """Analyze `audio_url` and return both images plus the rendered series."""
        sample_count = self.config.sample_count if sample_count is None else sample_count
        self.history = []
        try:
            self._enter(PipelineState.PLANNING)
            time_points = planner.plan(duration_seconds, sample_count)

            self._enter(PipelineState.SAMPLING)
            measured = self.sampler.sample(audio_url, time_points)

            artifacts = self._render(measured)
        except BaseException as exc:
            self._enter(PipelineState.FAILED)
            logger.error("Waveform run failed in %s: %s", self.history[-2].value, exc)
            raise
        self._enter(PipelineState.COMPLETE)
        return artifacts

    def render(self, measured: LoudnessSeries) -> WaveformArtifactSet:
        """Recolor/redraw from a previously measured series, without re-analysis."""
        self.history = []
        try:
            artifacts = self._render(measured)
        except BaseException:
            self._enter(PipelineState.FAILED)
            raise
        self._enter(PipelineState.COMPLETE)
        return artifacts

    def run_request(self, request: WaveformRequest) -> WaveformArtifactSet:
        """Run with the geometry and colors carried by `request`."""
        pipeline = WaveformPipeline(request.config(self.config), self.sampler)
        try:
            return pipeline.run(request.audio_url, request.duration_seconds, request.sample_count)
        finally:
            self.state, self.history = pipeline.state, pipeline.history

    def _render(self, measured: LoudnessSeries) -> WaveformArtifactSet:
        cfg = self.config

        self._enter(PipelineState.COMPRESSING)
        rendered = compress(measured)

        self._enter(PipelineState.RASTERIZING_PRIMARY)
        primary = render_png(rendered, cfg.image_width, cfg.image_height, cfg.foreground_rgb)

        self._enter(PipelineState.RASTERIZING_SECONDARY)
        secondary = render_png(rendered, cfg.image_width, cfg.image_height, cfg.background_rgb)

        logger.info(
            "Rendered %d bars at %dx%d (%d + %d bytes)",
            len(rendered), cfg.image_width, cfg.image_height, len(primary), len(secondary),
        )
        return WaveformArtifactSet(
            primary_png=primary,
            secondary_png=secondary,
            series=rendered,
            measured=measured,
            width=cfg.image_width,
            height=cfg.image_height,
        )
