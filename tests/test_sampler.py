"""Tests for scrubwave/sampler.py: dB normalization, padding, ordering."""

import pytest
from conftest import FakeAnalyzer

from scrubwave.config import WaveformConfig
from scrubwave.errors import AnalysisTimeout, DecodeError, FetchError, InvalidArgument
from scrubwave.sampler import LoudnessSampler, db_to_level, levels_from_readings


class TestDbToLevel:
    @pytest.mark.parametrize(
        "db, level",
        [(-60.0, 0.0), (0.0, 1.0), (-30.0, 0.5), (-15.0, 0.75), (-91.0, 0.0), (3.0, 1.0)],
    )
    def test_maps_minus_sixty_to_zero_db(self, db, level):
        assert db_to_level(db) == level

    def test_digital_silence(self):
        assert db_to_level(float("-inf")) == 0.0

    def test_rounded_to_four_places(self):
        assert db_to_level(-20.123456) == 0.6646


class TestLevelsFromReadings:
    def test_missing_trailing_points_default_to_half(self):
        assert levels_from_readings([-30.0, -12.0, 0.0], 5) == [0.5, 0.8, 1.0, 0.5, 0.5]

    def test_no_readings_at_all(self, caplog):
        assert levels_from_readings([], 3) == [0.5, 0.5, 0.5]
        assert "No volume data" in caplog.text

    def test_extra_readings_are_dropped(self):
        assert levels_from_readings([0.0, 0.0, 0.0], 2) == [1.0, 1.0]


class TestLoudnessSampler:
    def test_one_sample_per_point_in_plan_order(self, audio_file):
        analyzer = FakeAnalyzer([-6.0, -60.0, -30.0])
        series = LoudnessSampler(WaveformConfig(), analyzer).sample(audio_file, (0, 4, 8))
        assert series.times == [0, 4, 8]
        assert series.levels == [0.9, 0.0, 0.5]

    def test_truncated_analysis_is_padded(self, audio_file):
        analyzer = FakeAnalyzer([-30.0, -30.0, -30.0])
        series = LoudnessSampler(WaveformConfig(), analyzer).sample(audio_file, (0, 2, 4, 6, 8))
        assert len(series) == 5
        assert series.levels[3:] == [0.5, 0.5]

    def test_source_is_consumed_once_with_windows(self, audio_file):
        analyzer = FakeAnalyzer([-1.0, -1.0])
        LoudnessSampler(WaveformConfig(), analyzer).sample(str(audio_file), (0, 10))
        assert analyzer.calls == 1
        assert analyzer.consumed == audio_file.read_bytes()
        assert analyzer.windows == [(0.0, 0.5), (9.5, 10.5)]

    def test_window_width_comes_from_config(self, audio_file):
        analyzer = FakeAnalyzer([])
        LoudnessSampler(WaveformConfig(window_seconds=2.0), analyzer).sample(audio_file, (1, 5))
        assert analyzer.windows == [(0.0, 3.0), (3.0, 7.0)]

    def test_missing_file_is_fetch_error(self, tmp_path):
        analyzer = FakeAnalyzer([0.0])
        with pytest.raises(FetchError, match="not found"):
            LoudnessSampler(WaveformConfig(), analyzer).sample(tmp_path / "gone.mp3", (0,))
        assert analyzer.calls == 0

    @pytest.mark.parametrize("error", [DecodeError("corrupt"), AnalysisTimeout("slow")])
    def test_analyzer_errors_propagate(self, audio_file, error):
        sampler = LoudnessSampler(WaveformConfig(), FakeAnalyzer(error=error))
        with pytest.raises(type(error)):
            sampler.sample(audio_file, (0, 1))

    def test_empty_plan_rejected(self, audio_file):
        with pytest.raises(InvalidArgument):
            LoudnessSampler(WaveformConfig(), FakeAnalyzer()).sample(audio_file, ())
