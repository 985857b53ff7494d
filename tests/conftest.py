"""
Shared fixtures for the test suite.

FakeAnalyzer stands in for ffmpeg/librosa so sampler and pipeline tests run
without any decoder installed.
"""

import os
import stat
import wave

import numpy as np
import pytest

from scrubwave.analyzers import AudioAnalyzer


class FakeAnalyzer(AudioAnalyzer):
    """Consumes the stream and returns canned dB readings (or raises)."""

    name = "fake"

    def __init__(self, readings=(), error=None):
        self.readings = list(readings)
        self.error = error
        self.windows = None
        self.consumed = None
        self.calls = 0

    def measure(self, stream, windows, timeout):
        self.calls += 1
        self.windows = windows
        self.consumed = b"".join(stream)
        if self.error is not None:
            raise self.error
        return list(self.readings)


@pytest.fixture
def audio_file(tmp_path):
    """A few bytes standing in for an MP3 on disk."""
    path = tmp_path / "episode.mp3"
    path.write_bytes(b"ID3" + bytes(range(256)) * 8)
    return path


@pytest.fixture
def make_script(tmp_path):
    """Write an executable shell script and return its path."""
    if os.name != "posix":
        pytest.skip("shell script stand-ins need a POSIX shell")

    def _make(name, body):
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


def write_wav(path, seconds, sr=8000, amplitude=0.5, silent_from=None):
    """Mono 16-bit sine at 440 Hz; zeroed from `silent_from` seconds on."""
    t = np.arange(int(seconds * sr)) / sr
    y = amplitude * np.sin(2 * np.pi * 440 * t)
    if silent_from is not None:
        y[int(silent_from * sr):] = 0.0
    pcm = (y * 32767).astype("<i2")
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(sr)
        w.writeframes(pcm.tobytes())
    return path
