"""
core/audio/key.py — Key classification via Krumhansl-Schmuckler templates.

Pure numpy — no audio backend. Takes a 12-element chromagram (usually the
output of build_chromagram()) and scores it against all 24 key templates
(12 tonics × {major, minor}).

Krumhansl-Schmuckler profiles (1990):
    Psychoacoustic salience weights for each of 12 pitch classes relative
    to a tonal centre. Both profiles are scaled to unit length before
    scoring so the two modes compete on equal footing: the raw minor
    profile is longer and would otherwise win on a pure major input.

Scan order is part of the contract: tonic ascending from C, major before
minor at each tonic, and a later equal score never replaces the current
best. An all-zero chromagram therefore resolves to C major.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from types import MappingProxyType

import numpy as np

from core.audio.errors import InvalidArgumentError
from core.audio.types import MODES, NOTE_NAMES, UNKNOWN_CAMELOT, KeyEstimate

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Krumhansl-Schmuckler profiles (1990)
# Starting from the tonic — 12-element salience weights
# ---------------------------------------------------------------------------

MAJOR_PROFILE: tuple[float, ...] = (
    6.35,
    2.23,
    3.48,
    2.33,
    4.38,
    4.09,
    2.52,
    5.19,
    2.39,
    3.66,
    2.29,
    2.88,
)
MINOR_PROFILE: tuple[float, ...] = (
    6.33,
    2.68,
    3.52,
    5.38,
    2.60,
    3.53,
    2.54,
    4.75,
    3.98,
    2.69,
    3.34,
    3.17,
)


def _unit(profile: tuple[float, ...]) -> np.ndarray:
    arr = np.array(profile, dtype=np.float64)
    unit = arr / np.linalg.norm(arr)
    unit.setflags(write=False)
    return unit


# Paired with MODES in order: major is scored before minor at each tonic
_TEMPLATES: tuple[tuple[str, np.ndarray], ...] = tuple(
    zip(MODES, (_unit(MAJOR_PROFILE), _unit(MINOR_PROFILE)))
)

# ---------------------------------------------------------------------------
# Camelot Wheel — display name → code
# Spellings follow the wheel, not NOTE_NAMES: "Db major" is listed,
# "C# major" is not and resolves to UNKNOWN_CAMELOT.
# ---------------------------------------------------------------------------

CAMELOT_WHEEL: MappingProxyType[str, str] = MappingProxyType(
    {
        "C major": "8B",
        "A minor": "8A",
        "G major": "9B",
        "E minor": "9A",
        "D major": "10B",
        "B minor": "10A",
        "A major": "11B",
        "F# minor": "11A",
        "E major": "12B",
        "C# minor": "12A",
        "B major": "1B",
        "G# minor": "1A",
        "F# major": "2B",
        "D# minor": "2A",
        "Db major": "3B",
        "Bb minor": "3A",
        "Ab major": "4B",
        "F minor": "4A",
        "Eb major": "5B",
        "C minor": "5A",
        "Bb major": "6B",
        "G minor": "6A",
        "F major": "7B",
        "D minor": "7A",
    }
)


def camelot_code(display_name: str) -> str:
    """Camelot code for an exact display name such as 'A minor'.

    Returns 'unknown' for names missing from the wheel table. Never raises.
    """
    return CAMELOT_WHEEL.get(display_name, UNKNOWN_CAMELOT)


def correlate(chroma: np.ndarray, template: np.ndarray, tonic: int) -> float:
    """Score sum(chroma[(i + tonic) % 12] * template[i]) for one rotation."""
    return float(np.dot(np.roll(chroma, -tonic), template))


def _as_chroma(chroma: Sequence[float] | np.ndarray) -> np.ndarray:
    arr = np.asarray(chroma, dtype=np.float64)
    if arr.shape != (12,):
        raise InvalidArgumentError("chroma", f"must have shape (12,), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidArgumentError("chroma", "contains non-finite values")
    return arr


def classify_key(chroma: Sequence[float] | np.ndarray) -> KeyEstimate:
    """Select the best-scoring (tonic, mode) pair for a chromagram.

    Args:
        chroma: 12 pitch-class weights indexed C..B. Any non-negative
                scale works; the winner is invariant to uniform scaling.

    Returns:
        KeyEstimate with tonic, mode, score, Camelot code and the margin
        over the runner-up.

    Raises:
        InvalidArgumentError: If chroma is not 12 finite values.
    """
    arr = _as_chroma(chroma)

    best_score = -np.inf
    runner_up = -np.inf
    best_tonic = 0
    best_mode = "major"

    for tonic in range(12):
        for mode, template in _TEMPLATES:
            score = correlate(arr, template, tonic)
            if score > best_score:
                runner_up = best_score
                best_score = score
                best_tonic = tonic
                best_mode = mode
            elif score > runner_up:
                runner_up = score

    display_name = f"{NOTE_NAMES[best_tonic]} {best_mode}"
    camelot = camelot_code(display_name)
    if camelot == UNKNOWN_CAMELOT:
        logger.debug("No Camelot entry for %s", display_name)

    return KeyEstimate(
        tonic=best_tonic,
        mode=best_mode,
        score=best_score,
        camelot=camelot,
        margin=max(0.0, best_score - runner_up),
    )
