"""Decoders that measure mean loudness (dBFS) over many windows in one pass."""

import io
import logging
import math
import re
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

import numpy as np

from .errors import AnalysisTimeout, DecodeError, FetchError, InvalidArgument

logger = logging.getLogger(__name__)

# "[Parsed_volumedetect_2 @ 0x5581...] mean_volume: -21.3 dB"
MEAN_VOLUME_RE = re.compile(
    r"(?:\[Parsed_volumedetect_(\d+) @ [^\]]*\]\s*)?mean_volume:\s*(-?inf|-?[\d.]+)\s*dB"
)
STDERR_TAIL = 2000
# Seconds to wait for the daemon feeder and stderr threads after teardown
JOIN_TIMEOUT = 1.0


def loudness_windows(plan, half_width: float = 0.5) -> list:
    """(start, end) in seconds around every time point; start clamped at 0."""
    return [(max(0.0, t - half_width), t + half_width) for t in plan]


class AudioAnalyzer:
    """
    Measures mean power, in dB relative to full scale, for each window.

    Implementations consume `stream` exactly once and return readings in
    window order. The list may be shorter than `windows` when the audio ends
    early; callers decide how to fill the gap.
    """

    name = "base"

    def measure(self, stream, windows: list, timeout: float) -> list:
        raise NotImplementedError


# -----------------------------------------------------------------------------
# ffmpeg: external process fed through a pipe
# -----------------------------------------------------------------------------


def build_filter_graph(windows: list) -> str:
    """One asplit branch per window, each trimmed and run through volumedetect."""
    if not windows:
        raise InvalidArgument("At least one loudness window is required")
    labels = "".join(f"[a{i}]" for i in range(len(windows)))
    branches = [
        f"[a{i}]atrim=start={start:.3f}:end={end:.3f},volumedetect"
        for i, (start, end) in enumerate(windows)
    ]
    return f"[0:a]asplit={len(windows)}{labels};" + ";".join(branches)


def parse_mean_volumes(stderr: str) -> list:
    """Pull every volumedetect mean_volume out of ffmpeg's log, in graph order."""
    matches = list(MEAN_VOLUME_RE.finditer(stderr))
    if matches and all(m.group(1) is not None for m in matches):
        matches.sort(key=lambda m: int(m.group(1)))
    return [float(m.group(2)) for m in matches]


class FfmpegAnalyzer(AudioAnalyzer):
    """
    Runs ffmpeg with an asplit/atrim/volumedetect graph reading from stdin.

    A feeder thread copies the source into ffmpeg's stdin. The pipe is a
    bounded OS buffer, so writes block while the decoder is behind and the
    download never gets ahead of the analysis by more than that buffer.
    A second thread drains stderr, where volumedetect reports its results.
    """

    name = "ffmpeg"

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        self.ffmpeg_path = ffmpeg_path

    def command(self, windows: list) -> list:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-nostats",
            "-i", "pipe:0",
            "-filter_complex", build_filter_graph(windows),
            "-f", "null",
            "-",
        ]

    def measure(self, stream, windows: list, timeout: float) -> list:
        cmd = self.command(windows)
        logger.debug("Filter chain: %s", cmd[cmd.index("-filter_complex") + 1])
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            stream.close()
            raise DecodeError(f"Could not start {self.ffmpeg_path}: {exc}") from exc

        stderr_lines = []
        fetch_errors = []
        stopping = threading.Event()

        def feed():
            try:
                for chunk in stream:
                    proc.stdin.write(chunk)
            except FetchError as exc:
                # closing the source during teardown also lands here
                if not stopping.is_set():
                    fetch_errors.append(exc)
            except (OSError, ValueError):
                # ffmpeg stopped reading (finished, failed or was killed)
                logger.debug("ffmpeg closed stdin before the source was exhausted")
            finally:
                try:
                    proc.stdin.close()
                except OSError:
                    pass

        def drain():
            for line in iter(proc.stderr.readline, b""):
                stderr_lines.append(line.decode("utf-8", errors="replace"))

        feeder = threading.Thread(target=feed, name="scrubwave-feed", daemon=True)
        reader = threading.Thread(target=drain, name="scrubwave-stderr", daemon=True)
        feeder.start()
        reader.start()
        try:
            returncode = proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            raise AnalysisTimeout(f"Audio analysis exceeded {timeout:g}s") from None
        finally:
            stopping.set()
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            stream.close()
            feeder.join(timeout=JOIN_TIMEOUT)
            reader.join(timeout=JOIN_TIMEOUT)
            proc.stderr.close()

        if fetch_errors:
            raise fetch_errors[0]
        output = "".join(stderr_lines)
        readings = parse_mean_volumes(output)
        if returncode != 0 and not readings:
            raise DecodeError(
                f"ffmpeg exited with code {returncode}: {output[-STDERR_TAIL:].strip()}"
            )
        logger.info("ffmpeg produced %d/%d loudness readings", len(readings), len(windows))
        return readings[: len(windows)]


# -----------------------------------------------------------------------------
# librosa: in-process decode
# -----------------------------------------------------------------------------


def measure_windows(y: np.ndarray, sr: int, windows: list) -> list:
    """
    Mean power in dBFS per window over all channels, like volumedetect.

    Stops at the first window that starts past the end of the audio.
    """
    y = np.atleast_2d(y)
    total = y.shape[-1]
    readings = []
    for start, end in windows:
        a = int(start * sr)
        b = min(total, int(end * sr))
        if b <= a:
            break
        seg = y[:, a:b].astype(np.float64)
        power = float(np.mean(seg * seg))
        readings.append(10 * math.log10(power) if power > 0 else float("-inf"))
    return readings


class LibrosaAnalyzer(AudioAnalyzer):
    """Decodes the whole source in memory with librosa, then measures every window."""

    name = "librosa"

    def _decode_and_measure(self, stream, windows: list) -> list:
        import librosa

        buffer = io.BytesIO(b"".join(stream))
        try:
            y, sr = librosa.load(buffer, sr=None, mono=False)
        except Exception as exc:
            raise DecodeError(f"Failed to decode {stream.name}: {exc}") from exc
        return measure_windows(y, int(sr), windows)

    def measure(self, stream, windows: list, timeout: float) -> list:
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scrubwave-decode")
        future = pool.submit(self._decode_and_measure, stream, windows)
        try:
            readings = future.result(timeout=timeout)
        except FutureTimeout:
            raise AnalysisTimeout(f"Audio analysis exceeded {timeout:g}s") from None
        finally:
            stream.close()
            pool.shutdown(wait=False, cancel_futures=True)
        logger.info("librosa produced %d/%d loudness readings", len(readings), len(windows))
        return readings


def make_analyzer(config) -> AudioAnalyzer:
    """Analyzer named by `config.analyzer`."""
    if config.analyzer == "librosa":
        return LibrosaAnalyzer()
    return FfmpegAnalyzer(config.ffmpeg_path)
