"""
core/audio/types.py — Frozen data types for tempo and key analysis.

All types are frozen dataclasses — immutable value objects that can be
safely passed between layers and shared across threads.

Design principles:
    - No I/O, no state, no side effects.
    - Invariants are documented but NOT enforced at construction time —
      validation happens at the call sites that consume them
      (tempo.py, chroma.py, key.py).
    - `KeyEstimate.note` and `KeyEstimate.display_name` are computed
      properties to avoid duplicate storage.
"""

from __future__ import annotations

from dataclasses import dataclass

NOTE_NAMES: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)
"""Pitch-class names (sharps), index 0 = C."""

MODES: tuple[str, ...] = ("major", "minor")
"""Key modes in scan order."""

UNKNOWN_CAMELOT: str = "unknown"
"""Camelot code reported for display names missing from the wheel table."""


@dataclass(frozen=True)
class SpectralFrame:
    """One-sided magnitude spectrum snapshot, in dB.

    Invariants:
        len(magnitudes_db) == window_size // 2
        sample_rate > 0
        window_size > 0
    """

    magnitudes_db: tuple[float, ...]
    """Magnitude per frequency bin in dB. -inf marks a silent bin."""

    sample_rate: float
    """Sample rate of the analysed signal in Hz."""

    window_size: int
    """Analysis window (FFT size) in samples."""

    @property
    def bin_count(self) -> int:
        """Number of frequency bins in the snapshot."""
        return len(self.magnitudes_db)


@dataclass(frozen=True)
class TempoAnalysis:
    """Tempo estimate plus the intermediate values it was derived from.

    Invariants:
        bpm is an integer; with the default single octave fold it lies in
        [60, 180] whenever the unfolded tempo lies in [30, 360].
        peak_count >= 0
        median_interval is None exactly when is_fallback is True
    """

    bpm: int
    """Reported tempo in beats per minute (rounded half-up)."""

    raw_bpm: float
    """Tempo after octave folding, before rounding."""

    peak_count: int
    """Number of local maxima above the threshold."""

    median_interval: int | None
    """Lower-median inter-peak distance in ticks. None on fallback."""

    threshold: float
    """Peak threshold used: mean + k * stddev."""

    is_fallback: bool
    """True when fewer than two peaks were found and the default tempo was used."""


@dataclass(frozen=True)
class KeyEstimate:
    """Musical key selected by template correlation.

    Invariants:
        0 <= tonic <= 11
        mode in {"major", "minor"}
        camelot is a wheel code such as "8B" or "unknown"
        margin >= 0.0
    """

    tonic: int
    """Pitch class of the tonic, 0 = C .. 11 = B."""

    mode: str
    """'major' or 'minor'."""

    score: float
    """Correlation of the chromagram with the winning unit-length template.

    The Krumhansl-Schmuckler profiles are scaled to L2 norm 1 before the
    dot product, so this is the raw-profile score divided by the profile
    norm (about 12.8 for major, 13.5 for minor). It is at most ||chroma||,
    i.e. sqrt(12) for a chromagram normalised to max 1.
    """

    camelot: str
    """Camelot Wheel code for display_name, or 'unknown'."""

    margin: float = 0.0
    """Best score minus runner-up score. 0.0 for a tie."""

    @property
    def note(self) -> str:
        """Tonic note name, e.g. 'C', 'F#'."""
        return NOTE_NAMES[self.tonic]

    @property
    def display_name(self) -> str:
        """Human-readable key name, e.g. 'A minor', 'C# major'."""
        return f"{self.note} {self.mode}"

    @property
    def camelot_known(self) -> bool:
        """False when the display name has no Camelot entry."""
        return self.camelot != UNKNOWN_CAMELOT
