"""CLI script: estimate BPM and key of the live input or an audio file.

Usage:
    # Listen to the default input device for 10 s:
    python scripts/analyze_live.py

    # Shorter window on a named device (loopback / BlackHole / Soundflower):
    python scripts/analyze_live.py --duration 5 --device "BlackHole 2ch"

    # Analyse a recorded file instead of the live input:
    python scripts/analyze_live.py --file loops/track.wav

Output:
    One line per estimator, e.g.
        Tempo: 124 BPM
        Key:   A minor (8A)

Environment variables read:
    ANALYZER_INPUT_DEVICE — input device index or name when --device is omitted

Exit codes:
    0 — analysis completed
    1 — device or file could not be read, or arguments were invalid
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.audio.errors import InvalidArgumentError  # noqa: E402
from core.config import DEFAULT_CONFIG, AnalyzerConfig  # noqa: E402
from ingestion.audio_engine import AudioAnalysisEngine  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Estimate tempo (BPM) and key (Camelot) of live audio or a file."
    )
    parser.add_argument(
        "--file",
        type=str,
        default=None,
        metavar="PATH",
        help="Analyse this audio file instead of the live input.",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        metavar="SEC",
        help=f"Seconds of audio to analyse (default {DEFAULT_CONFIG.tempo_duration_sec:g} live, 30 file).",
    )
    parser.add_argument(
        "--tick-rate",
        type=float,
        default=DEFAULT_CONFIG.tick_rate_hz,
        metavar="HZ",
        help="Energy readings per second (default %(default)s).",
    )
    parser.add_argument(
        "--window-size",
        type=int,
        default=DEFAULT_CONFIG.window_size,
        metavar="N",
        help="FFT size for the key snapshot, a power of two (default %(default)s).",
    )
    parser.add_argument(
        "--device",
        type=str,
        default=None,
        help="Input device index or name (default: ANALYZER_INPUT_DEVICE or system default).",
    )
    return parser.parse_args(argv)


def _device(raw: str | None) -> int | str | None:
    if raw is None:
        return None
    return int(raw) if raw.isdigit() else raw


def _build_config(args: argparse.Namespace) -> AnalyzerConfig:
    config = dataclasses.replace(
        DEFAULT_CONFIG,
        tick_rate_hz=args.tick_rate,
        window_size=args.window_size,
    )
    if args.duration is not None and args.file is None:
        config = dataclasses.replace(config, tempo_duration_sec=args.duration)
    return config


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        config = _build_config(args)
    except ValueError as exc:
        logger.error("Invalid arguments: %s", exc)
        return 1

    engine = AudioAnalysisEngine(config, device=_device(args.device))

    if args.file is not None:
        try:
            result = engine.analyze_file(
                args.file, duration=args.duration if args.duration is not None else 30.0
            )
        except (FileNotFoundError, ValueError, RuntimeError) as exc:
            logger.error("Could not analyse %s: %s", args.file, exc)
            return 1
        tempo, key = result.tempo, result.key
    else:
        try:
            with engine:
                engine.capture()
                logger.info("Listening… press Ctrl+C to stop early")
                try:
                    tempo = engine.analyze_bpm()
                except KeyboardInterrupt:
                    logger.info("Cancelled")
                    return 1
                key = engine.analyze_key()
        except (RuntimeError, InvalidArgumentError) as exc:
            logger.error("Live analysis failed: %s", exc)
            return 1

    suffix = " (fallback: too few energy peaks)" if tempo.is_fallback else ""
    print(f"Tempo: {tempo.bpm} BPM{suffix}")
    print(f"Key:   {key.display_name} ({key.camelot})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
