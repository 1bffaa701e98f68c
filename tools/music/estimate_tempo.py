"""
estimate_tempo tool — BPM from an RMS energy series.

Pure computation: no device, no I/O. The caller supplies the energy
readings (one per tick) and the tick rate they were sampled at.
Returns the integer BPM plus the peak statistics behind it, so a caller
can tell a measured tempo from the 120 BPM fallback.
"""

from typing import Any

from core.audio.tempo import analyze_tempo
from tools.base import MusicalTool, ToolParameter, ToolResult


class EstimateTempo(MusicalTool):
    """
    Estimate tempo from energy peaks.

    Peaks above mean + 1.5·stddev are located, the lower-median distance
    between them is converted to BPM, and the result is folded once into
    60–180 BPM.
    """

    @property
    def name(self) -> str:
        return "estimate_tempo"

    @property
    def description(self) -> str:
        return (
            "Estimate the tempo (BPM) of a signal from its RMS energy series. "
            "Pass one energy reading per tick in 'samples' and the sampling "
            "rate in 'tick_rate_hz' (e.g. 60 for display-refresh sampling). "
            "Returns the integer BPM, peak count and median peak interval. "
            "When fewer than two energy peaks are found, 120 BPM is reported "
            "and 'is_fallback' is true."
        )

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="samples",
                type=list,
                description="RMS energy readings in [0, 1], one per tick, oldest first.",
                required=True,
            ),
            ToolParameter(
                name="tick_rate_hz",
                type=float,
                description="Readings per second the samples were collected at.",
                required=True,
            ),
        ]

    def execute(self, **kwargs: Any) -> ToolResult:
        """
        Estimate the tempo of the supplied energy series.

        Returns:
            ToolResult with bpm, raw_bpm, peak_count, median_interval,
            is_fallback.
        """
        samples: list = kwargs["samples"]
        tick_rate_hz = kwargs["tick_rate_hz"]

        tempo = analyze_tempo(samples, tick_rate_hz)

        return ToolResult(
            success=True,
            data={
                "bpm": tempo.bpm,
                "raw_bpm": round(tempo.raw_bpm, 3),
                "peak_count": tempo.peak_count,
                "median_interval": tempo.median_interval,
                "is_fallback": tempo.is_fallback,
            },
            metadata={
                "sample_count": len(samples),
                "tick_rate_hz": float(tick_rate_hz),
                "duration_sec": round(len(samples) / float(tick_rate_hz), 3),
                "threshold": round(tempo.threshold, 6),
            },
        )
