"""Track duration via ffprobe, for callers that do not know it up front."""

import json
import logging
import subprocess

from .errors import AnalysisTimeout, DecodeError

logger = logging.getLogger(__name__)


def probe_duration(source: str, ffprobe_path: str = "ffprobe", timeout: float = 60.0) -> float:
    """Return format.duration in seconds for a local path or URL."""
    try:
        result = subprocess.run(
            [
                ffprobe_path,
                "-v", "quiet",
                "-print_format", "json",
                "-show_format",
                source,
            ],
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise DecodeError(f"{ffprobe_path} not found") from exc
    except subprocess.TimeoutExpired:
        raise AnalysisTimeout(f"ffprobe exceeded {timeout:g}s on {source}") from None
    except subprocess.CalledProcessError as exc:
        raise DecodeError(f"ffprobe could not read {source} (exit {exc.returncode})") from exc

    try:
        info = json.loads(result.stdout)
        duration_s = float(info.get("format", {}).get("duration", 0))
    except (ValueError, TypeError, AttributeError) as exc:
        raise DecodeError(f"Unparseable ffprobe output for {source}") from exc
    if duration_s <= 0:
        raise DecodeError(f"ffprobe reported no duration for {source}")
    logger.debug("Probed %s: %.2fs", source, duration_s)
    return duration_s


def format_duration(duration_s: float) -> str:
    minutes = int(duration_s // 60)
    seconds = int(duration_s % 60)
    return f"{minutes}:{seconds:02d}"
