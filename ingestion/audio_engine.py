"""
ingestion/audio_engine.py — Orchestrates capture → analysis.

AudioAnalysisEngine wires the I/O adapters to the pure core:

    live input / audio file
        │
        ├─ LiveAudioSource / load_audio()     [ingestion — I/O boundary]
        │       ↓
        ├─ collect_energy_series()            [ingestion/audio_capture.py]
        │  spectral_frame_from_signal()
        │       ↓
        ├─ analyze_tempo()                    [core/audio/tempo.py — pure]
        │       ↓
        └─ build_chromagram() → classify_key() [core/audio/chroma.py, key.py — pure]

This module is in `ingestion/` because it opens devices, reads files and
waits on wall-clock time. The two estimators stay independent: tempo and
key can be requested in either order over the same capture session.

Usage:
    with AudioAnalysisEngine() as engine:
        engine.capture()
        tempo = engine.analyze_bpm()
        key = engine.analyze_key()
        print(tempo.bpm, key.display_name, key.camelot)
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from core.audio.chroma import build_chromagram
from core.audio.key import classify_key
from core.audio.tempo import analyze_tempo
from core.audio.types import KeyEstimate, SpectralFrame, TempoAnalysis
from core.config import DEFAULT_CONFIG, AnalyzerConfig
from ingestion.audio_capture import (
    LiveAudioSource,
    collect_energy_series,
    energy_series_from_signal,
    spectral_frame_from_signal,
)
from ingestion.audio_loader import load_audio

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# AudioFileAnalysis — result of analysing a recorded file
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AudioFileAnalysis:
    """Output of AudioAnalysisEngine.analyze_file().

    Attributes:
        tempo:              Tempo estimate from the tick-sampled energy series
        key:                Key estimate from the spectrum at the file's midpoint
        chroma:             Normalised chromagram the key was classified from
        duration_sec:       Seconds of audio analysed
        sample_rate:        Sample rate of the decoded audio in Hz
        processing_time_ms: Wall-clock time for the analysis in milliseconds
    """

    tempo: TempoAnalysis
    key: KeyEstimate
    chroma: tuple[float, ...]
    duration_sec: float
    sample_rate: int
    processing_time_ms: float = 0.0


# ---------------------------------------------------------------------------
# AudioAnalysisEngine
# ---------------------------------------------------------------------------


class AudioAnalysisEngine:
    """Single integration point between audio I/O and the analysis core.

    sounddevice is imported lazily when capture() is called (or injected
    for testing); librosa only when analyze_file() loads a file.

    Example:
        engine = AudioAnalysisEngine()
        result = engine.analyze_file("/path/to/loop.wav")
        print(result.tempo.bpm, result.key.display_name)
    """

    def __init__(
        self,
        config: AnalyzerConfig = DEFAULT_CONFIG,
        *,
        device: int | str | None = None,
        sounddevice: Any = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config:      Tick rate, FFT size and estimator constants.
            device:      Input device index or name. None = the
                         ANALYZER_INPUT_DEVICE environment variable, or
                         the system default input.
            sounddevice: Injected sounddevice module. Pass a MagicMock in
                         tests to avoid opening PortAudio.
        """
        self._config = config
        self._device = device if device is not None else os.environ.get("ANALYZER_INPUT_DEVICE")
        self._sounddevice = sounddevice
        self._source: LiveAudioSource | None = None

    @property
    def config(self) -> AnalyzerConfig:
        return self._config

    @property
    def is_capturing(self) -> bool:
        """True while a live input stream is open."""
        return self._source is not None and self._source.is_running

    def _require_source(self) -> LiveAudioSource:
        if self._source is None or not self._source.is_running:
            raise RuntimeError("Audio analyzer is not initialised — call capture() first")
        return self._source

    # ------------------------------------------------------------------
    # Live capture
    # ------------------------------------------------------------------

    def capture(self) -> bool:
        """Open the live input stream.

        Returns:
            True once the stream is running.

        Raises:
            RuntimeError: If the input device cannot be opened.
        """
        if self.is_capturing:
            return True
        source = LiveAudioSource(
            buffer_size=self._config.window_size,
            device=self._device,
            sounddevice=self._sounddevice,
        )
        source.start()
        self._source = source
        return True

    def analyze_bpm(
        self,
        duration_sec: float | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> TempoAnalysis:
        """Sample RMS energy for duration_sec and estimate the tempo.

        Each tick reads the latest window_size // 2 samples from the
        input buffer.

        Args:
            duration_sec: Collection window. None = config.tempo_duration_sec.
            cancel:       Event that stops collection early.

        Returns:
            TempoAnalysis for the collected series.

        Raises:
            RuntimeError: If capture() has not been called.
            InvalidArgumentError: If collection was cancelled before the
                                  first tick.
        """
        source = self._require_source()
        duration = duration_sec if duration_sec is not None else self._config.tempo_duration_sec
        bins = self._config.bins

        logger.info(
            "Collecting energy for %.1fs at %.0f Hz", duration, self._config.tick_rate_hz
        )
        series = collect_energy_series(
            lambda: source.read_block(bins),
            duration,
            self._config.tick_rate_hz,
            cancel=cancel,
        )
        tempo = analyze_tempo(series, self._config.tick_rate_hz, config=self._config)
        logger.info(
            "Tempo: %d BPM (%d peaks%s)",
            tempo.bpm,
            tempo.peak_count,
            ", fallback" if tempo.is_fallback else "",
        )
        return tempo

    def snapshot(self) -> SpectralFrame:
        """Spectrum snapshot of the current input buffer.

        Raises:
            RuntimeError: If capture() has not been called.
        """
        source = self._require_source()
        return spectral_frame_from_signal(
            source.read_block(),
            source.sample_rate,
            window_size=self._config.window_size,
        )

    def analyze_key(self) -> KeyEstimate:
        """Classify the key of the current input buffer.

        Raises:
            RuntimeError: If capture() has not been called.
        """
        frame = self.snapshot()
        chroma = build_chromagram(frame, config=self._config)
        key = classify_key(chroma)
        logger.info("Key: %s (%s)", key.display_name, key.camelot)
        return key

    def close(self) -> None:
        """Release the input stream. Safe to call more than once."""
        source, self._source = self._source, None
        if source is not None:
            source.close()

    def __enter__(self) -> AudioAnalysisEngine:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Recorded files
    # ------------------------------------------------------------------

    def analyze_file(
        self,
        path: str | Path,
        *,
        duration: float = 30.0,
    ) -> AudioFileAnalysis:
        """Load an audio file and estimate tempo and key.

        The energy series is produced by tick sampling over the decoded
        buffer; the key comes from one spectrum snapshot centred on the
        middle of the buffer.

        Args:
            path:     Path to an audio file (mp3, wav, flac, etc.)
            duration: Maximum seconds to load (default 30 s).

        Returns:
            AudioFileAnalysis with tempo, key and chromagram.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: Unsupported format, or audio shorter than one tick.
            RuntimeError: If the audio cannot be decoded.
        """
        t_start = time.monotonic()
        cfg = self._config

        y, sr = load_audio(path, duration=duration)

        series = energy_series_from_signal(y, sr, cfg.tick_rate_hz, window_size=cfg.bins)
        if series.size == 0:
            raise ValueError(
                f"Audio too short to analyse: {len(y)} samples at {sr} Hz "
                f"is less than one {cfg.tick_rate_hz:.0f} Hz tick"
            )
        tempo = analyze_tempo(series, cfg.tick_rate_hz, config=cfg)

        centre = len(y) // 2
        start = max(0, centre - cfg.window_size // 2)
        frame = spectral_frame_from_signal(
            y[start : start + cfg.window_size], sr, window_size=cfg.window_size
        )
        chroma = build_chromagram(frame, config=cfg)
        key = classify_key(chroma)

        processing_ms = (time.monotonic() - t_start) * 1000.0
        logger.info(
            "Analysed %s: %d BPM, %s (%s) in %.0f ms",
            Path(path).name,
            tempo.bpm,
            key.display_name,
            key.camelot,
            processing_ms,
        )

        return AudioFileAnalysis(
            tempo=tempo,
            key=key,
            chroma=tuple(float(c) for c in np.asarray(chroma)),
            duration_sec=float(len(y)) / float(sr),
            sample_rate=sr,
            processing_time_ms=processing_ms,
        )
