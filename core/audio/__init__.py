"""
core/audio — Pure tempo and key analysis.

Turns already-acquired audio measurements into musical features. All
functions are pure: they take energy series, spectrum snapshots or
chromagrams and return frozen dataclasses. No capture, no file I/O —
that lives in ingestion/.

Public API:
    Types:   SpectralFrame, TempoAnalysis, KeyEstimate
    Errors:  InvalidArgumentError
    Tempo:   estimate_tempo, analyze_tempo
    Chroma:  build_chromagram
    Key:     classify_key, camelot_code
"""

from core.audio.chroma import build_chromagram, frequency_to_pitch_class
from core.audio.errors import InvalidArgumentError
from core.audio.key import CAMELOT_WHEEL, classify_key, camelot_code
from core.audio.tempo import analyze_tempo, estimate_tempo
from core.audio.types import NOTE_NAMES, KeyEstimate, SpectralFrame, TempoAnalysis

__all__ = [
    # Types
    "SpectralFrame",
    "TempoAnalysis",
    "KeyEstimate",
    "NOTE_NAMES",
    # Errors
    "InvalidArgumentError",
    # Tempo
    "estimate_tempo",
    "analyze_tempo",
    # Chroma
    "build_chromagram",
    "frequency_to_pitch_class",
    # Key
    "classify_key",
    "camelot_code",
    "CAMELOT_WHEEL",
]
