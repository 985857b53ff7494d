"""Command-line entry point: scrub-bar waveform PNGs from an audio file or URL."""

import argparse
import json
import logging
import sys

from .analyzers import make_analyzer
from .config import ANALYZERS, WaveformConfig
from .errors import AnalysisTimeout, DecodeError, FetchError, InvalidArgument, WaveformError
from .models import WaveformRequest
from .pipeline import WaveformPipeline
from .probe import format_duration, probe_duration
from .sampler import LoudnessSampler
from .storage import load_series, save_artifacts

EXIT_CODES = {
    InvalidArgument: 2,
    FetchError: 3,
    DecodeError: 4,
    AnalysisTimeout: 5,
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate primary/secondary scrub-bar waveform PNGs from an audio file."
    )
    parser.add_argument("input", nargs="?", help="Audio URL or local path")
    parser.add_argument(
        "--duration", type=float, default=None,
        help="Track duration in seconds (probed with ffprobe when omitted)"
    )
    parser.add_argument("--samples", type=int, default=None, help="Number of bars")
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=None, help="Image height in pixels")
    parser.add_argument("--color", default=None, help="Primary bar color, #RRGGBB")
    parser.add_argument(
        "--background-color", default=None, help="Secondary (unplayed) bar color, #RRGGBB"
    )
    parser.add_argument(
        "--analyzer", default=None, choices=list(ANALYZERS),
        help="Loudness analyzer: ffmpeg (external process) or librosa (in-process)"
    )
    parser.add_argument("--timeout", type=float, default=None, help="Analysis budget in seconds")
    parser.add_argument(
        "--output", "-o", default="output", help="Output directory (default: output)"
    )
    parser.add_argument("--prefix", default="", help="File name prefix for the artifacts")
    parser.add_argument(
        "--levels", default=None,
        help="Re-render from a saved loudness.json instead of analyzing audio"
    )
    parser.add_argument(
        "--request", default=None,
        help="JSON request file with audioUrl, durationSeconds, sampleCount, ..."
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_config(args, environ=None) -> WaveformConfig:
    return WaveformConfig.from_env(environ).with_overrides(
        sample_count=args.samples,
        image_width=args.width,
        image_height=args.height,
        foreground_color=args.color,
        background_color=args.background_color,
        analyzer=args.analyzer,
        analysis_timeout=args.timeout,
    )


def run(args) -> dict:
    config = build_config(args)

    # Step 1: Re-render from stored levels, no audio needed
    if args.levels:
        print(f"Rendering from stored levels: {args.levels}")
        measured = load_series(args.levels)
        artifacts = WaveformPipeline(config).render(measured)
        return save_artifacts(artifacts, args.output, args.prefix)

    # Step 2: Work out what to analyze
    if args.request:
        with open(args.request, "r") as f:
            request = WaveformRequest.from_dict(json.load(f), config)
    else:
        if not args.input:
            raise InvalidArgument("An audio URL/path, --request or --levels is required")
        duration = args.duration
        if duration is None:
            print("Probing duration...")
            duration = probe_duration(args.input, config.ffprobe_path)
        request = WaveformRequest.from_dict(
            {"audioUrl": args.input, "durationSeconds": duration}, config
        )

    print(f"Processing: {request.audio_url}")
    print(
        f"  Duration: {format_duration(request.duration_seconds)}, "
        f"Samples: {request.sample_count}, "
        f"Size: {request.image_width}x{request.image_height}"
    )

    # Step 3: Analyze and render
    sampler = LoudnessSampler(config, make_analyzer(config))
    pipeline = WaveformPipeline(config, sampler)
    artifacts = pipeline.run_request(request)

    # Step 4: Save
    return save_artifacts(artifacts, args.output, args.prefix)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        paths = run(args)
    except WaveformError as exc:
        kind = type(exc).__name__
        hint = " (retryable)" if exc.retryable else ""
        print(f"ERROR: {kind}{hint}: {exc}", file=sys.stderr)
        for cls, code in EXIT_CODES.items():
            if isinstance(exc, cls):
                return code
        return 1
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    for path in paths.values():
        print(f"Saved: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
