"""
ingestion/audio_capture.py — Host adapters that feed the analysis core.

The core (core/audio/) never touches an audio device. This module is the
I/O boundary that turns a live or recorded signal into the two inputs the
core consumes:

    energy series   — one RMS value per tick, collected over a fixed
                      wall-clock window at a fixed tick rate
    spectral frame  — one Blackman-windowed magnitude spectrum in dB
                      (window_size // 2 bins)

sounddevice is imported lazily (or injected) so the pure helpers here can
be tested without PortAudio installed.

Usage:
    with LiveAudioSource(buffer_size=8192) as source:
        series = collect_energy_series(source.read_block, 10.0, 60.0)
        frame = spectral_frame_from_signal(source.read_block(), source.sample_rate)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import numpy as np

from core.audio.errors import InvalidArgumentError
from core.audio.types import SpectralFrame

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-block measurements
# ---------------------------------------------------------------------------


def rms_energy(block: np.ndarray) -> float:
    """Root-mean-square amplitude of a float block in [-1, 1].

    Returns 0.0 for an empty block.
    """
    x = np.asarray(block, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(x))))


def rms_energy_from_bytes(data: bytes | np.ndarray) -> float:
    """RMS of unsigned 8-bit time-domain data centred on 128.

    Browser analysers deliver waveforms in this form; each byte maps to
    (b - 128) / 128.
    """
    raw = np.frombuffer(data, dtype=np.uint8) if isinstance(data, bytes) else np.asarray(data)
    normalized = (raw.astype(np.float64) - 128.0) / 128.0
    return rms_energy(normalized)


def spectral_frame_from_signal(
    window: np.ndarray,
    sample_rate: float,
    *,
    window_size: int | None = None,
) -> SpectralFrame:
    """Magnitude spectrum snapshot of the most recent window_size samples.

    Applies a Blackman window, takes the real FFT and reports
    20 * log10(|X| / N) for the first N / 2 bins. Silent bins are -inf.
    Shorter input is zero-padded at the front.

    Args:
        window: Time-domain samples (mono float).
        sample_rate: Sample rate in Hz.
        window_size: FFT size. None = len(window).

    Raises:
        InvalidArgumentError: Non-positive sample rate or window size < 2.
    """
    if sample_rate <= 0:
        raise InvalidArgumentError("sample_rate", f"must be positive, got {sample_rate!r}")
    x = np.asarray(window, dtype=np.float64).reshape(-1)
    n = int(window_size) if window_size is not None else x.size
    if n < 2:
        raise InvalidArgumentError("window_size", f"must be at least 2, got {n}")

    if x.size >= n:
        x = x[-n:]
    else:
        x = np.concatenate([np.zeros(n - x.size), x])

    spectrum = np.fft.rfft(x * np.blackman(n))
    magnitude = np.abs(spectrum[: n // 2]) / n
    with np.errstate(divide="ignore"):
        magnitudes_db = 20.0 * np.log10(magnitude)

    return SpectralFrame(
        magnitudes_db=tuple(float(v) for v in magnitudes_db),
        sample_rate=float(sample_rate),
        window_size=n,
    )


def energy_series_from_signal(
    y: np.ndarray,
    sample_rate: float,
    tick_rate_hz: float,
    *,
    window_size: int = 4096,
) -> np.ndarray:
    """Offline equivalent of tick sampling over a recorded buffer.

    At every tick (every sample_rate / tick_rate_hz samples) the RMS of
    the latest window_size samples is taken, exactly as a live sampler
    would read its ring buffer.

    Returns:
        1-D float array, one RMS value per complete tick. Empty when the
        buffer is shorter than one tick.

    Raises:
        InvalidArgumentError: Non-positive rates or window size.
    """
    if sample_rate <= 0:
        raise InvalidArgumentError("sample_rate", f"must be positive, got {sample_rate!r}")
    if tick_rate_hz <= 0:
        raise InvalidArgumentError("tick_rate_hz", f"must be positive, got {tick_rate_hz!r}")
    if window_size <= 0:
        raise InvalidArgumentError("window_size", f"must be positive, got {window_size!r}")

    signal = np.asarray(y, dtype=np.float64).reshape(-1)
    hop = sample_rate / tick_rate_hz
    n_ticks = int(signal.size // hop)

    energies = np.empty(n_ticks, dtype=np.float64)
    for k in range(n_ticks):
        end = int(round((k + 1) * hop))
        energies[k] = rms_energy(signal[max(0, end - window_size) : end])
    return energies


# ---------------------------------------------------------------------------
# Tick sampler
# ---------------------------------------------------------------------------


def collect_energy_series(
    read_block: Callable[[], np.ndarray],
    duration_sec: float,
    tick_rate_hz: float,
    *,
    cancel: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> np.ndarray:
    """Sample RMS energy from a block reader at a fixed tick rate.

    Takes round(duration_sec * tick_rate_hz) readings, one per tick.
    Deadlines are computed from the start time so the cadence does not
    drift with the cost of each reading.

    Args:
        read_block: Returns the latest time-domain block on each call.
        duration_sec: Wall-clock collection window in seconds.
        tick_rate_hz: Readings per second.
        cancel: When set, collection stops and the readings so far are
                returned.
        clock: Monotonic clock (injectable for tests).
        sleep: Sleep function (injectable for tests).

    Returns:
        1-D float array of RMS readings (possibly shorter when cancelled).

    Raises:
        InvalidArgumentError: Non-positive duration or tick rate.
    """
    if duration_sec <= 0:
        raise InvalidArgumentError("duration_sec", f"must be positive, got {duration_sec!r}")
    if tick_rate_hz <= 0:
        raise InvalidArgumentError("tick_rate_hz", f"must be positive, got {tick_rate_hz!r}")

    interval = 1.0 / tick_rate_hz
    n_ticks = max(1, int(round(duration_sec * tick_rate_hz)))
    readings: list[float] = []
    start = clock()

    for k in range(n_ticks):
        if cancel is not None and cancel.is_set():
            logger.info("Energy collection cancelled after %d/%d ticks", k, n_ticks)
            break
        readings.append(rms_energy(read_block()))
        if k == n_ticks - 1:
            break
        delay = start + (k + 1) * interval - clock()
        if delay > 0:
            sleep(delay)

    return np.asarray(readings, dtype=np.float64)


# ---------------------------------------------------------------------------
# LiveAudioSource — sounddevice input stream with a ring buffer
# ---------------------------------------------------------------------------


class LiveAudioSource:
    """Mono input stream that keeps the most recent buffer_size samples.

    The PortAudio callback writes into a ring buffer; read_block() returns
    a copy of its tail. Works with any input device sounddevice can open,
    including loopback/monitor devices that carry application audio.

    Example:
        with LiveAudioSource(buffer_size=8192) as source:
            block = source.read_block(4096)
    """

    def __init__(
        self,
        *,
        buffer_size: int = 8192,
        sample_rate: float | None = None,
        device: int | str | None = None,
        sounddevice: Any = None,
    ) -> None:
        """Initialise the source (the stream is opened by start()).

        Args:
            buffer_size: Samples kept in the ring buffer.
            sample_rate: Requested rate. None = device default.
            device: sounddevice device index or name. None = default input.
            sounddevice: Injected sounddevice module. None = import lazily.
        """
        if buffer_size <= 0:
            raise InvalidArgumentError("buffer_size", f"must be positive, got {buffer_size!r}")
        self._buffer_size = buffer_size
        self._requested_rate = sample_rate
        self._device = device
        self._sd = sounddevice
        self._stream: Any = None
        self._sample_rate: float | None = None
        self._buffer = np.zeros(buffer_size, dtype=np.float32)
        self._lock = threading.Lock()

    def _get_sounddevice(self) -> Any:
        """Return sounddevice, importing it lazily if not already injected."""
        if self._sd is None:
            import sounddevice as _sd  # deferred — needs PortAudio at import time

            self._sd = _sd
        return self._sd

    @property
    def is_running(self) -> bool:
        """True between a successful start() and close()."""
        return self._stream is not None

    @property
    def sample_rate(self) -> float:
        """Actual stream sample rate in Hz.

        Raises:
            RuntimeError: If the stream has not been started.
        """
        if self._sample_rate is None:
            raise RuntimeError("Audio source is not running — call start() first")
        return self._sample_rate

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    def _callback(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        data = np.asarray(indata, dtype=np.float32)
        if data.ndim > 1:
            data = data[:, 0]
        n = data.size
        with self._lock:
            if n >= self._buffer_size:
                self._buffer[:] = data[-self._buffer_size :]
            elif n:
                self._buffer[:-n] = self._buffer[n:]
                self._buffer[-n:] = data

    def start(self) -> LiveAudioSource:
        """Open and start the input stream.

        Raises:
            RuntimeError: If the device cannot be opened.
        """
        if self._stream is not None:
            return self
        sd = self._get_sounddevice()
        try:
            stream = sd.InputStream(
                samplerate=self._requested_rate,
                channels=1,
                dtype="float32",
                device=self._device,
                callback=self._callback,
            )
            stream.start()
        except Exception as exc:
            raise RuntimeError(
                f"Could not capture audio from input device {self._device!r}: {exc}"
            ) from exc

        self._stream = stream
        self._sample_rate = float(stream.samplerate)
        logger.info(
            "Audio capture started: device=%r, %.0f Hz, buffer=%d",
            self._device,
            self._sample_rate,
            self._buffer_size,
        )
        return self

    def read_block(self, n: int | None = None) -> np.ndarray:
        """Copy of the most recent n samples (default: the whole buffer).

        Raises:
            RuntimeError: If the stream has not been started.
        """
        if self._stream is None:
            raise RuntimeError("Audio source is not running — call start() first")
        size = self._buffer_size if n is None else min(int(n), self._buffer_size)
        if size <= 0:
            return np.zeros(0, dtype=np.float32)
        with self._lock:
            return self._buffer[-size:].copy()

    def close(self) -> None:
        """Stop and close the stream. Safe to call more than once."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("Audio capture stopped")

    def __enter__(self) -> LiveAudioSource:
        return self.start()

    def __exit__(self, *_: object) -> None:
        self.close()
