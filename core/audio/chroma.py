"""
core/audio/chroma.py — Chromagram from a single spectrum snapshot.

Folds the bins of a dB magnitude spectrum into 12 pitch classes
(C, C#, ..., B) and normalises by the strongest class. Only bins inside
the musically relevant band (60–4000 Hz by default) contribute: sub-bass
rumble and upper harmonics/noise blur the pitch-class estimate.

Bin frequencies use i * sample_rate / (window_size * 2), the convention
of the browser analyser hosts post spectra from. That is half the true
FFT bin frequency: frames from ingestion.audio_capture are read one
octave low, so pitch classes are unchanged but the band covers
2 * min_frequency_hz .. 2 * max_frequency_hz of real frequency.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from core.audio.errors import InvalidArgumentError
from core.audio.types import SpectralFrame
from core.config import DEFAULT_CONFIG, AnalyzerConfig

logger = logging.getLogger(__name__)

_A4_HZ: float = 440.0
_A4_MIDI: int = 69


def _pitch_classes(frequencies: np.ndarray) -> np.ndarray:
    """Vectorised pitch class of positive frequencies: round(MIDI) mod 12."""
    midi = 12.0 * np.log2(frequencies / _A4_HZ) + _A4_MIDI
    return np.mod(np.floor(midi + 0.5).astype(np.int64), 12)


def frequency_to_pitch_class(frequency: float) -> int:
    """Map a frequency in Hz to its nearest pitch class (0 = C .. 11 = B).

    The MIDI number is rounded half-up and reduced with a floor modulo, so
    frequencies far below C-1 still land in [0, 11].

    Raises:
        InvalidArgumentError: If frequency is not a positive finite number.
    """
    if not math.isfinite(frequency) or frequency <= 0:
        raise InvalidArgumentError("frequency", f"must be positive, got {frequency!r}")
    return int(_pitch_classes(np.array([frequency], dtype=np.float64))[0])


def _validate_frame(frame: SpectralFrame) -> np.ndarray:
    if not math.isfinite(frame.sample_rate) or frame.sample_rate <= 0:
        raise InvalidArgumentError(
            "frame.sample_rate", f"must be positive, got {frame.sample_rate!r}"
        )
    if frame.window_size <= 0:
        raise InvalidArgumentError(
            "frame.window_size", f"must be positive, got {frame.window_size!r}"
        )
    magnitudes = np.asarray(frame.magnitudes_db, dtype=np.float64)
    if magnitudes.ndim != 1 or magnitudes.size != frame.window_size // 2:
        raise InvalidArgumentError(
            "frame.magnitudes_db",
            f"expected {frame.window_size // 2} bins for window_size "
            f"{frame.window_size}, got {magnitudes.size}",
        )
    if np.any(np.isnan(magnitudes)) or np.any(magnitudes == np.inf):
        raise InvalidArgumentError("frame.magnitudes_db", "contains NaN or +inf")
    return magnitudes


def build_chromagram(
    frame: SpectralFrame,
    *,
    config: AnalyzerConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """Build a normalised 12-bin chromagram from a dB spectrum snapshot.

    Args:
        frame: One-sided magnitude spectrum in dB with its metadata.
        config: Frequency band limits.

    Returns:
        np.ndarray of shape (12,), values in [0, 1]. The strongest pitch
        class is exactly 1.0; a silent spectrum yields all zeros.

    Raises:
        InvalidArgumentError: Inconsistent sample-rate/window-size metadata
                              or NaN magnitudes.
    """
    magnitudes_db = _validate_frame(frame)

    bins = np.arange(magnitudes_db.size, dtype=np.float64)
    frequencies = bins * frame.sample_rate / (frame.window_size * 2)
    in_band = (frequencies >= config.min_frequency_hz) & (frequencies <= config.max_frequency_hz)
    # 0 Hz can never be folded into a pitch class
    in_band &= frequencies > 0

    chroma = np.zeros(12, dtype=np.float64)
    if not np.any(in_band):
        logger.debug("No spectrum bins inside %.0f–%.0f Hz", config.min_frequency_hz, config.max_frequency_hz)
        return chroma

    band_db = magnitudes_db[in_band]
    loudest_db = band_db.max()
    if not np.isfinite(loudest_db):
        return chroma

    # Relative to the loudest bin: the max normalisation cancels the
    # offset, and 10 ** (dB / 20) cannot overflow for any finite dB.
    # A spread wider than float range becomes -inf, i.e. weight 0.
    with np.errstate(over="ignore", under="ignore"):
        linear = np.power(10.0, (band_db - loudest_db) / 20.0)
    chroma += np.bincount(_pitch_classes(frequencies[in_band]), weights=linear, minlength=12)

    peak = chroma.max()
    if peak > 0:
        return chroma / peak
    return np.zeros(12, dtype=np.float64)
