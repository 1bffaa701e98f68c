"""
api/schemas/music.py — Pydantic request/response schemas for analysis endpoints.

Covers:
    /analyze/tempo       — TempoRequest / TempoResponse
    /analyze/chromagram  — SpectrumRequest / ChromagramResponse
    /analyze/key         — KeyRequest / KeyOut
    /analyze/file        — FileAnalyzeRequest / FileAnalyzeResponse
"""

from pydantic import BaseModel, Field, model_validator

# ---------------------------------------------------------------------------
# Shared sub-schemas
# ---------------------------------------------------------------------------


class TempoOut(BaseModel):
    """Tempo estimation result."""

    bpm: int
    raw_bpm: float
    peak_count: int = Field(..., ge=0)
    median_interval: int | None = None
    is_fallback: bool


class KeyOut(BaseModel):
    """Musical key classification result."""

    key: str
    note: str
    mode: str
    tonic: int = Field(..., ge=0, le=11)
    camelot: str
    score: float
    margin: float = Field(..., ge=0.0)


# ---------------------------------------------------------------------------
# /analyze/tempo
# ---------------------------------------------------------------------------


class TempoRequest(BaseModel):
    """Request body for POST /analyze/tempo."""

    samples: list[float] = Field(
        ...,
        description="RMS energy readings in [0, 1], one per tick, oldest first.",
    )
    tick_rate_hz: float = Field(
        ...,
        description="Readings per second the samples were collected at. Required.",
    )


class TempoResponse(TempoOut):
    """Response body for POST /analyze/tempo."""

    sample_count: int
    duration_sec: float


# ---------------------------------------------------------------------------
# /analyze/chromagram
# ---------------------------------------------------------------------------


class SpectrumRequest(BaseModel):
    """Request body for POST /analyze/chromagram — one dB spectrum snapshot."""

    magnitudes_db: list[float | None] = Field(
        ...,
        description="Magnitude per bin in dB, window_size / 2 bins. null marks a silent bin.",
    )
    sample_rate: float = Field(..., description="Sample rate in Hz.")
    window_size: int = Field(..., description="FFT size the spectrum was computed with.")


class ChromagramResponse(BaseModel):
    """Response body for POST /analyze/chromagram."""

    chroma: list[float] = Field(..., min_length=12, max_length=12)


# ---------------------------------------------------------------------------
# /analyze/key
# ---------------------------------------------------------------------------


class KeyRequest(BaseModel):
    """Request body for POST /analyze/key.

    Either ``chroma`` or the spectrum fields (``magnitudes_db``,
    ``sample_rate``, ``window_size``) must be given, not both.
    """

    chroma: list[float] | None = Field(
        default=None,
        description="12 pitch-class weights indexed C..B.",
    )
    magnitudes_db: list[float | None] | None = None
    sample_rate: float | None = None
    window_size: int | None = None

    @model_validator(mode="after")
    def _one_input(self) -> "KeyRequest":
        has_spectrum = self.magnitudes_db is not None
        if self.chroma is None and not has_spectrum:
            raise ValueError("Either 'chroma' or 'magnitudes_db' is required")
        if self.chroma is not None and has_spectrum:
            raise ValueError("Pass either 'chroma' or 'magnitudes_db', not both")
        if has_spectrum and (self.sample_rate is None or self.window_size is None):
            raise ValueError("'sample_rate' and 'window_size' are required with 'magnitudes_db'")
        return self


# ---------------------------------------------------------------------------
# /analyze/file
# ---------------------------------------------------------------------------


class FileAnalyzeRequest(BaseModel):
    """Request body for POST /analyze/file."""

    file_path: str = Field(
        ...,
        description="Absolute path to audio file on the server filesystem.",
    )
    duration: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Maximum seconds to analyse (default 30s).",
    )


class FileAnalyzeResponse(BaseModel):
    """Response body for POST /analyze/file."""

    tempo: TempoOut
    key: KeyOut
    chroma: list[float]
    duration_sec: float
    sample_rate: int
