"""Filesystem hand-off for a finished artifact set."""

import json
import logging
import os

from .errors import InvalidArgument
from .models import LoudnessSeries, WaveformArtifactSet

logger = logging.getLogger(__name__)

LOUDNESS_NAME = "loudness.json"


def save_artifacts(artifacts: WaveformArtifactSet, output_dir: str, prefix: str = "") -> dict:
    """Write both PNGs and loudness.json; return {name: path}."""
    os.makedirs(output_dir, exist_ok=True)
    paths = {}
    for name, data in artifacts.files(prefix).items():
        path = os.path.join(output_dir, name)
        with open(path, "wb") as f:
            f.write(data)
        paths[name] = path

    name = f"{prefix}{LOUDNESS_NAME}"
    path = os.path.join(output_dir, name)
    with open(path, "w") as f:
        json.dump(
            {
                "width": artifacts.width,
                "height": artifacts.height,
                "levels": artifacts.levels_array,
                "rendered": artifacts.series.to_records(),
                "measured": artifacts.measured.to_records(),
            },
            f,
        )
    paths[name] = path
    logger.info("Saved %d artifacts to %s", len(paths), output_dir)
    return paths


def load_series(path: str, key: str = "measured") -> LoudnessSeries:
    """Read one series back from a loudness.json (or a bare list of records)."""
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise InvalidArgument(f"Could not read loudness file {path}: {exc}") from exc
    records = data.get(key) if isinstance(data, dict) else data
    if not isinstance(records, list) or not records:
        raise InvalidArgument(f"No {key!r} loudness records in {path}")
    return LoudnessSeries.from_records(records)
