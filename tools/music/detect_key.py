"""
detect_key tool — musical key and Camelot code.

Pure computation: no device, no I/O. Accepts either a ready 12-bin
chromagram or a dB magnitude spectrum snapshot with its sample rate and
window size; a spectrum is folded into a chromagram first.
"""

from typing import Any

import numpy as np

from core.audio.chroma import build_chromagram
from core.audio.key import classify_key
from core.audio.types import SpectralFrame
from tools.base import MusicalTool, ToolParameter, ToolResult


class DetectKey(MusicalTool):
    """
    Classify the key of a chromagram or spectrum snapshot.

    Scores all 24 Krumhansl-Schmuckler templates and reports the best
    (tonic, mode) pair with its Camelot Wheel code for harmonic mixing.
    """

    @property
    def name(self) -> str:
        return "detect_key"

    @property
    def description(self) -> str:
        return (
            "Detect the musical key (e.g. 'A minor') and its Camelot Wheel "
            "code (e.g. '8A') from pitch-class content. Pass either "
            "'chroma' (12 values, C..B) or a one-sided spectrum in dB as "
            "'magnitudes_db' together with 'sample_rate' and 'window_size'. "
            "Keys whose sharp spelling has no Camelot entry (e.g. 'C# major') "
            "report camelot 'unknown'."
        )

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="chroma",
                type=list,
                description="12 pitch-class weights indexed C, C#, ..., B.",
                required=False,
            ),
            ToolParameter(
                name="magnitudes_db",
                type=list,
                description="Spectrum magnitudes in dB, window_size / 2 bins. null marks a silent bin.",
                required=False,
            ),
            ToolParameter(
                name="sample_rate",
                type=float,
                description="Sample rate of the spectrum's signal in Hz.",
                required=False,
            ),
            ToolParameter(
                name="window_size",
                type=int,
                description="FFT size the spectrum was computed with.",
                required=False,
            ),
        ]

    def execute(self, **kwargs: Any) -> ToolResult:
        """
        Classify the key of the supplied chroma or spectrum.

        Returns:
            ToolResult with key, note, mode, tonic, camelot, score, margin
            and the chromagram used.
        """
        chroma_raw = kwargs.get("chroma")
        magnitudes = kwargs.get("magnitudes_db")

        if chroma_raw is not None and magnitudes is not None:
            return ToolResult(
                success=False,
                error="Pass either 'chroma' or 'magnitudes_db', not both.",
            )

        source = "chroma"
        if chroma_raw is not None:
            chroma = np.asarray(chroma_raw, dtype=np.float64)
        elif magnitudes is not None:
            sample_rate = kwargs.get("sample_rate")
            window_size = kwargs.get("window_size")
            if sample_rate is None or window_size is None:
                return ToolResult(
                    success=False,
                    error="'sample_rate' and 'window_size' are required with 'magnitudes_db'.",
                )
            frame = SpectralFrame(
                magnitudes_db=tuple(float("-inf") if m is None else float(m) for m in magnitudes),
                sample_rate=float(sample_rate),
                window_size=window_size,
            )
            chroma = build_chromagram(frame)
            source = "spectrum"
        else:
            return ToolResult(
                success=False,
                error="Either 'chroma' or 'magnitudes_db' is required.",
            )

        key = classify_key(chroma)

        return ToolResult(
            success=True,
            data={
                "key": key.display_name,
                "note": key.note,
                "mode": key.mode,
                "tonic": key.tonic,
                "camelot": key.camelot,
                "score": round(key.score, 6),
                "margin": round(key.margin, 6),
                "chroma": [round(float(c), 6) for c in chroma],
            },
            metadata={
                "source": source,
                "camelot_known": key.camelot_known,
            },
        )
