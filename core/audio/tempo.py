"""
core/audio/tempo.py — Tempo estimation from an RMS energy series.

Pure numpy: no audio backend, no I/O. The caller collects one RMS value
per tick (see ingestion/audio_capture.py) and passes the tick rate
explicitly, since the interval-to-BPM conversion assumes a fixed number
of samples per second.

Algorithm:
    1. threshold = mean + k * stddev (k = 1.5)
    2. peaks = local maxima strictly above the threshold
    3. fewer than 2 peaks → default tempo (120 BPM)
    4. lower median of the inter-peak intervals (in ticks)
    5. bpm = 60 / (median / tick_rate_hz)
    6. one octave fold into [60, 180]
    7. round half-up
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from core.audio.errors import InvalidArgumentError
from core.audio.types import TempoAnalysis
from core.config import DEFAULT_CONFIG, AnalyzerConfig

logger = logging.getLogger(__name__)


def _as_series(samples: Sequence[float] | np.ndarray) -> np.ndarray:
    """Validate an energy series and return it as a 1-D float array."""
    series = np.asarray(samples, dtype=np.float64)
    if series.ndim != 1:
        raise InvalidArgumentError("samples", f"must be one-dimensional, got shape {series.shape}")
    if series.size == 0:
        raise InvalidArgumentError("samples", "energy series is empty")
    if not np.all(np.isfinite(series)):
        raise InvalidArgumentError("samples", "energy series contains non-finite values")
    return series


def _validate_tick_rate(tick_rate_hz: float) -> float:
    try:
        rate = float(tick_rate_hz)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError("tick_rate_hz", f"must be a number, got {tick_rate_hz!r}") from exc
    if not math.isfinite(rate) or rate <= 0:
        raise InvalidArgumentError("tick_rate_hz", f"must be positive, got {tick_rate_hz!r}")
    return rate


def compute_peak_threshold(samples: Sequence[float] | np.ndarray, k: float = 1.5) -> float:
    """Adaptive peak threshold: mean + k * population stddev.

    Args:
        samples: Non-empty energy series.
        k: Stddev multiplier. Default 1.5.

    Returns:
        Threshold as float.

    Raises:
        InvalidArgumentError: If samples is empty or non-finite.
    """
    series = _as_series(samples)
    return float(series.mean() + k * series.std())


def find_peaks(samples: Sequence[float] | np.ndarray, threshold: float) -> tuple[int, ...]:
    """Indices of local maxima strictly above threshold.

    Index i qualifies when 1 <= i <= n-2 and samples[i] is greater than the
    threshold and both neighbours. Plateaus never qualify.

    Returns:
        Strictly increasing tuple of indices. Empty for series shorter than 3.
    """
    series = _as_series(samples)
    if series.size < 3:
        return ()
    centre = series[1:-1]
    mask = (centre > threshold) & (centre > series[:-2]) & (centre > series[2:])
    return tuple(int(i) + 1 for i in np.flatnonzero(mask))


def _fold_octave(bpm: float, config: AnalyzerConfig) -> float:
    """Fold bpm toward [min_bpm, max_bpm] by doubling or halving."""
    if config.iterative_octave_fold:
        while bpm < config.min_bpm:
            bpm *= 2
        while bpm > config.max_bpm:
            bpm /= 2
        return bpm

    # Single correction only: 500 BPM becomes 250, not 125.
    if bpm < config.min_bpm:
        return bpm * 2
    if bpm > config.max_bpm:
        return bpm / 2
    return bpm


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def analyze_tempo(
    samples: Sequence[float] | np.ndarray,
    tick_rate_hz: float,
    *,
    config: AnalyzerConfig = DEFAULT_CONFIG,
) -> TempoAnalysis:
    """Estimate tempo and return the intermediate values.

    Args:
        samples: RMS energy series, one value per tick, collected at a
                 materially constant tick rate.
        tick_rate_hz: Ticks per second the series was sampled at.
        config: Threshold multiplier, fallback tempo and fold range.

    Returns:
        TempoAnalysis with the integer BPM and the peak statistics.

    Raises:
        InvalidArgumentError: Empty/non-finite series or tick rate <= 0.
    """
    series = _as_series(samples)
    rate = _validate_tick_rate(tick_rate_hz)

    threshold = compute_peak_threshold(series, config.threshold_k)
    peaks = find_peaks(series, threshold)

    if len(peaks) < 2:
        logger.debug(
            "Tempo fallback: %d peak(s) in %d samples, using %d BPM",
            len(peaks),
            series.size,
            config.default_bpm,
        )
        return TempoAnalysis(
            bpm=config.default_bpm,
            raw_bpm=float(config.default_bpm),
            peak_count=len(peaks),
            median_interval=None,
            threshold=threshold,
            is_fallback=True,
        )

    intervals = sorted(int(b - a) for a, b in zip(peaks, peaks[1:]))
    median_interval = intervals[len(intervals) // 2]

    seconds_per_beat = median_interval / rate
    bpm = _fold_octave(60.0 / seconds_per_beat, config)

    logger.debug(
        "Tempo: %d peaks, median interval %d ticks @ %.1f Hz → %.2f BPM",
        len(peaks),
        median_interval,
        rate,
        bpm,
    )
    return TempoAnalysis(
        bpm=_round_half_up(bpm),
        raw_bpm=bpm,
        peak_count=len(peaks),
        median_interval=median_interval,
        threshold=threshold,
        is_fallback=False,
    )


def estimate_tempo(
    samples: Sequence[float] | np.ndarray,
    tick_rate_hz: float,
    *,
    config: AnalyzerConfig = DEFAULT_CONFIG,
) -> int:
    """Estimate tempo in integer BPM from an RMS energy series.

    Returns the default tempo (120) when fewer than two peaks are found.

    Raises:
        InvalidArgumentError: Empty/non-finite series or tick rate <= 0.
    """
    return analyze_tempo(samples, tick_rate_hz, config=config).bpm
