"""
ingestion/audio_loader.py — File I/O boundary for recorded audio.

Recorded files take the same route through the analyzers as live input:
load_audio() decodes to a mono float buffer, and the capture helpers
in ingestion/audio_capture.py replay that buffer tick by tick. Nothing
past this module sees a file path.

Usage:
    from ingestion.audio_loader import load_audio
    y, sr = load_audio("/path/to/loop.wav", duration=30.0)
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

# Extensions librosa can decode through soundfile / audioread
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".aiff", ".aif", ".ogg", ".m4a", ".opus"}
)

# Seconds decoded when the caller gives no limit
DEFAULT_DURATION: float = 30.0


def _check_path(path: str | Path) -> Path:
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Audio file not found: {file_path}")
    if file_path.suffix.lower() not in AUDIO_EXTENSIONS:
        raise ValueError(
            f"Unsupported audio format {file_path.suffix!r}. "
            f"Supported: {sorted(AUDIO_EXTENSIONS)}"
        )
    return file_path


def load_audio(
    path: str | Path,
    *,
    duration: float | None = DEFAULT_DURATION,
    offset: float = 0.0,
    sr: int | None = None,
) -> tuple[np.ndarray, int]:
    """Decode an audio file to a mono float32 buffer.

    Args:
        path: Path to an mp3, wav, flac, aiff, ogg, m4a or opus file.
        duration: Seconds to decode. None decodes to the end of the file.
        offset: Seconds to skip before decoding starts.
        sr: Resample to this rate in Hz. None keeps the file's own rate.

    Returns:
        (y, sr) — mono float32 samples and the sample rate as int.

    Raises:
        FileNotFoundError: Nothing at path, or path is a directory.
        ValueError: Unsupported extension, or non-positive duration /
                    negative offset.
        RuntimeError: The decoder rejected the file.
    """
    if duration is not None and duration <= 0:
        raise ValueError(f"duration must be positive, got {duration}")
    if offset < 0:
        raise ValueError(f"offset must be non-negative, got {offset}")

    file_path = _check_path(path)

    import librosa  # deferred — pulls in numba/soundfile on first use

    try:
        y, loaded_sr = librosa.load(
            file_path, sr=sr, mono=True, offset=offset, duration=duration
        )
    except Exception as exc:
        raise RuntimeError(f"Failed to decode audio file {file_path.name!r}: {exc}") from exc

    samples = np.asarray(y, dtype=np.float32)
    logger.debug(
        "Loaded %s: %d samples at %d Hz (%.1fs)",
        file_path.name,
        samples.size,
        int(loaded_sr),
        samples.size / float(loaded_sr) if loaded_sr else 0.0,
    )
    return samples, int(loaded_sr)
