"""
Configuration dataclasses for the tempo and key analyzers.

These immutable config objects decouple tuning constants from function
signatures, making it easy to define standard configurations and reuse
them across the live engine, the HTTP layer and the CLI.
"""

from dataclasses import dataclass

# Analysis windows accepted by the spectrum adapter (powers of two, same
# range as a browser AnalyserNode accepts for fftSize).
VALID_WINDOW_SIZES: frozenset[int] = frozenset(2**n for n in range(5, 16))


@dataclass(frozen=True)
class AnalyzerConfig:
    """
    Configuration for tempo and key analysis.

    Immutable configuration object shared by estimate_tempo(),
    build_chromagram() and the capture engine.

    Attributes:
        tick_rate_hz: Energy samples collected per second. Defaults to 60,
            the display-refresh cadence the live sampler was built around.
        tempo_duration_sec: Wall-clock seconds of energy samples collected
            for one tempo estimate. Defaults to 10.
        window_size: Analysis window (FFT size) in samples. The spectrum
            snapshot has window_size // 2 bins. Defaults to 8192.
        threshold_k: Peak threshold multiplier: mean + k * stddev.
        default_bpm: Tempo reported when fewer than two peaks are found.
        min_bpm: Lower bound of the octave-fold range.
        max_bpm: Upper bound of the octave-fold range.
        iterative_octave_fold: Keep doubling/halving until the tempo lands
            in [min_bpm, max_bpm]. Off by default: a single fold is applied.
        min_frequency_hz: Lowest spectrum bin frequency folded into the
            chromagram.
        max_frequency_hz: Highest spectrum bin frequency folded into the
            chromagram.

    Example:
        >>> config = AnalyzerConfig(tick_rate_hz=30.0, tempo_duration_sec=8.0)
        >>> bpm = estimate_tempo(samples, config.tick_rate_hz, config=config)
    """

    tick_rate_hz: float = 60.0
    tempo_duration_sec: float = 10.0
    window_size: int = 8192
    threshold_k: float = 1.5
    default_bpm: int = 120
    min_bpm: float = 60.0
    max_bpm: float = 180.0
    iterative_octave_fold: bool = False
    min_frequency_hz: float = 60.0
    max_frequency_hz: float = 4000.0

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.tick_rate_hz <= 0:
            raise ValueError(f"tick_rate_hz must be positive, got {self.tick_rate_hz}")
        if self.tempo_duration_sec <= 0:
            raise ValueError(
                f"tempo_duration_sec must be positive, got {self.tempo_duration_sec}"
            )
        if self.window_size not in VALID_WINDOW_SIZES:
            raise ValueError(
                f"window_size must be a power of two in [32, 32768], got {self.window_size}"
            )
        if self.threshold_k < 0:
            raise ValueError(f"threshold_k must be non-negative, got {self.threshold_k}")
        if self.min_bpm <= 0:
            raise ValueError(f"min_bpm must be positive, got {self.min_bpm}")
        if self.max_bpm < 2 * self.min_bpm:
            raise ValueError(
                f"max_bpm ({self.max_bpm}) must be at least twice min_bpm ({self.min_bpm})"
            )
        if not self.min_bpm <= self.default_bpm <= self.max_bpm:
            raise ValueError(
                f"default_bpm ({self.default_bpm}) must lie in "
                f"[{self.min_bpm}, {self.max_bpm}]"
            )
        if self.min_frequency_hz < 0:
            raise ValueError(
                f"min_frequency_hz must be non-negative, got {self.min_frequency_hz}"
            )
        if self.max_frequency_hz <= self.min_frequency_hz:
            raise ValueError(
                f"max_frequency_hz ({self.max_frequency_hz}) must be greater than "
                f"min_frequency_hz ({self.min_frequency_hz})"
            )

    @property
    def bins(self) -> int:
        """Number of one-sided spectrum bins for window_size."""
        return self.window_size // 2


# Pre-defined configurations for common use cases

DEFAULT_CONFIG = AnalyzerConfig()
"""Default configuration: 60 Hz ticks, 10 s tempo window, 8192-sample FFT."""

FAST_CONFIG = AnalyzerConfig(tempo_duration_sec=5.0, window_size=4096)
"""Shorter capture and smaller FFT for quick previews."""
