"""
Command line front end.

Analyzes an audio file and writes detected events as JSON and/or CSV,
printing a progress bar and a per-channel summary.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from beatscope.core.analyzer import CancelToken
from beatscope.core.combiner import CHANNELS
from beatscope.core.options import AnalysisOptions


def report_progress(pct: int, msg: str) -> None:
    """
    Render a simple text progress bar.

    Updates in place on a terminal; prints one line per update otherwise.
    """
    bar_width = 30
    pct_clamped = max(0, min(100, int(pct)))
    filled = int(bar_width * (pct_clamped / 100.0))
    bar = "[" + "#" * filled + "-" * (bar_width - filled) + "]"

    if sys.stdout.isatty():
        sys.stdout.write(f"\r{bar} {pct_clamped:3d}%  {msg:40.40}")
        sys.stdout.flush()
        if pct_clamped >= 100:
            sys.stdout.write("\n")
    else:
        print(f"{pct_clamped:3d}% {msg}", flush=True)


def _parse_assignment(text: str, cast=float) -> tuple[str, float]:
    """Parse a CHANNEL=VALUE argument."""
    name, sep, value = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected CHANNEL=VALUE, got {text!r}")
    name = name.strip().lower()
    if name not in CHANNELS:
        raise argparse.ArgumentTypeError(
            f"unknown channel {name!r} (choose from {', '.join(CHANNELS)})"
        )
    try:
        return name, cast(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid value in {text!r}") from exc


def build_options(args: argparse.Namespace) -> AnalysisOptions:
    """Translate parsed CLI arguments into :class:`AnalysisOptions`."""
    options = AnalysisOptions()
    if args.channels:
        wanted = [c.strip().lower() for c in args.channels.split(",") if c.strip()]
        options = options.only(*wanted)
    for name, value in args.sensitivity or []:
        options = options.with_channel(name, sensitivity=value)
    for name, value in args.min_interval or []:
        options = options.with_channel(name, min_interval=value)
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beatscope",
        description="Detect kick/snare/hi-hat/bass/melody/vocal onsets and tempo in audio",
    )

    parser.add_argument(
        "audio",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output JSON file (default: <audio>_markers.json)",
    )

    parser.add_argument(
        "--csv",
        type=Path,
        default=None,
        help="Also write a time-ordered CSV of all events",
    )

    parser.add_argument(
        "-c", "--channels",
        default=None,
        help=f"Comma separated channels to detect (default: all but vocal; "
             f"available: {','.join(CHANNELS)})",
    )

    parser.add_argument(
        "-s", "--sensitivity",
        type=_parse_assignment,
        action="append",
        metavar="CHANNEL=VALUE",
        help="Per-channel sensitivity 0-1 (repeatable)",
    )

    parser.add_argument(
        "--min-interval",
        type=_parse_assignment,
        action="append",
        metavar="CHANNEL=SECONDS",
        help="Per-channel minimum time between events (repeatable)",
    )

    parser.add_argument(
        "--sr",
        type=int,
        default=None,
        help="Resample to this rate before analysis (default: native rate)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Hide the progress bar",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        return 1

    try:
        options = build_options(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    output = args.output
    if output is None:
        output = args.audio.with_name(f"{args.audio.stem}_markers.json")

    from beatscope.pipeline import AudioPipeline

    pipeline = AudioPipeline(options=options, sr=args.sr)
    token = CancelToken()
    try:
        processed = pipeline.process(
            args.audio,
            output_path=output,
            csv_path=args.csv,
            progress_callback=None if args.quiet else report_progress,
            cancel_token=token,
        )
    except KeyboardInterrupt:
        token.cancel()
        print("\nCancelled", file=sys.stderr)
        return 130
    except Exception as exc:
        print(f"Error: failed to analyze {args.audio}: {exc}", file=sys.stderr)
        return 1

    if processed is None:
        print("Cancelled", file=sys.stderr)
        return 130

    summary = processed["summary"]
    total = sum(summary.values())
    print(f"\n{args.audio.name}: {processed['duration']:.2f}s, {processed['bpm']:.1f} BPM")
    for name, count in summary.items():
        print(f"  {name:<8} {count:5d}")
    print(f"  {'total':<8} {total:5d}")
    print(f"Wrote {output}")
    if args.csv is not None:
        print(f"Wrote {args.csv}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
