"""
api/routes/analyze.py — Tempo and key analysis endpoints.

Endpoints:
    POST /analyze/tempo       — BPM from an RMS energy series
    POST /analyze/chromagram  — 12-bin chromagram from a dB spectrum snapshot
    POST /analyze/key         — key + Camelot code from a chromagram or spectrum
    POST /analyze/file        — tempo + key of an audio file on the server

The first three are thin wrappers over the pure core; the host (browser
extension, DAW plugin, capture script) does the audio acquisition and
posts the measurements. /analyze/file delegates to AudioAnalysisEngine
in ingestion/audio_engine.py.
"""

from __future__ import annotations

import logging

import numpy as np
from fastapi import APIRouter, HTTPException

from api.schemas.music import (
    ChromagramResponse,
    FileAnalyzeRequest,
    FileAnalyzeResponse,
    KeyOut,
    KeyRequest,
    SpectrumRequest,
    TempoOut,
    TempoRequest,
    TempoResponse,
)
from core.audio.chroma import build_chromagram
from core.audio.errors import InvalidArgumentError
from core.audio.key import classify_key
from core.audio.tempo import analyze_tempo
from core.audio.types import KeyEstimate, SpectralFrame, TempoAnalysis
from infrastructure.metrics import (
    LatencyTimer,
    record_analysis,
    record_camelot_unknown,
    record_tempo_fallback,
)
from ingestion.audio_engine import AudioAnalysisEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analyze"])

# Shared engine instance — librosa imported lazily on first file request
_engine: AudioAnalysisEngine | None = None


def _get_engine() -> AudioAnalysisEngine:
    global _engine
    if _engine is None:
        _engine = AudioAnalysisEngine()
    return _engine


def _tempo_out(tempo: TempoAnalysis) -> TempoOut:
    return TempoOut(
        bpm=tempo.bpm,
        raw_bpm=tempo.raw_bpm,
        peak_count=tempo.peak_count,
        median_interval=tempo.median_interval,
        is_fallback=tempo.is_fallback,
    )


def _key_out(key: KeyEstimate) -> KeyOut:
    return KeyOut(
        key=key.display_name,
        note=key.note,
        mode=key.mode,
        tonic=key.tonic,
        camelot=key.camelot,
        score=key.score,
        margin=key.margin,
    )


def _frame(magnitudes_db: list[float | None], sample_rate: float, window_size: int) -> SpectralFrame:
    return SpectralFrame(
        magnitudes_db=tuple(float("-inf") if m is None else float(m) for m in magnitudes_db),
        sample_rate=sample_rate,
        window_size=window_size,
    )


def _invalid(estimator: str, timer: LatencyTimer, exc: InvalidArgumentError) -> HTTPException:
    record_analysis(estimator=estimator, status="invalid", latency_seconds=timer.elapsed)
    return HTTPException(status_code=422, detail=str(exc))


# ---------------------------------------------------------------------------
# POST /analyze/tempo
# ---------------------------------------------------------------------------


@router.post("/tempo", response_model=TempoResponse)
def analyze_tempo_endpoint(request: TempoRequest) -> TempoResponse:
    """Estimate tempo from an RMS energy series.

    Args:
        request: TempoRequest with samples and tick_rate_hz.

    Returns:
        TempoResponse with integer BPM and peak statistics. Signals with
        fewer than two energy peaks report 120 BPM with is_fallback=True.

    Raises:
        422: Empty series or non-positive tick rate.
    """
    timer = LatencyTimer()
    try:
        with timer:
            tempo = analyze_tempo(request.samples, request.tick_rate_hz)
    except InvalidArgumentError as exc:
        raise _invalid("tempo", timer, exc) from exc

    record_analysis(estimator="tempo", status="success", latency_seconds=timer.elapsed)
    if tempo.is_fallback:
        record_tempo_fallback()

    return TempoResponse(
        **_tempo_out(tempo).model_dump(),
        sample_count=len(request.samples),
        duration_sec=len(request.samples) / request.tick_rate_hz,
    )


# ---------------------------------------------------------------------------
# POST /analyze/chromagram
# ---------------------------------------------------------------------------


@router.post("/chromagram", response_model=ChromagramResponse)
def analyze_chromagram(request: SpectrumRequest) -> ChromagramResponse:
    """Fold a dB spectrum snapshot into a normalised 12-bin chromagram.

    Raises:
        422: Bin count does not match window_size / 2, or non-positive
             sample rate / window size.
    """
    timer = LatencyTimer()
    try:
        with timer:
            chroma = build_chromagram(
                _frame(request.magnitudes_db, request.sample_rate, request.window_size)
            )
    except InvalidArgumentError as exc:
        raise _invalid("chromagram", timer, exc) from exc

    record_analysis(estimator="chromagram", status="success", latency_seconds=timer.elapsed)
    return ChromagramResponse(chroma=[float(c) for c in chroma])


# ---------------------------------------------------------------------------
# POST /analyze/key
# ---------------------------------------------------------------------------


@router.post("/key", response_model=KeyOut)
def analyze_key(request: KeyRequest) -> KeyOut:
    """Classify key and Camelot code from a chromagram or spectrum snapshot.

    Raises:
        422: Chromagram is not 12 values, or spectrum metadata is inconsistent.
    """
    timer = LatencyTimer()
    try:
        with timer:
            if request.chroma is not None:
                chroma = np.asarray(request.chroma, dtype=np.float64)
            else:
                chroma = build_chromagram(
                    _frame(request.magnitudes_db, request.sample_rate, request.window_size)
                )
            key = classify_key(chroma)
    except InvalidArgumentError as exc:
        raise _invalid("key", timer, exc) from exc

    record_analysis(estimator="key", status="success", latency_seconds=timer.elapsed)
    if not key.camelot_known:
        record_camelot_unknown()
    return _key_out(key)


# ---------------------------------------------------------------------------
# POST /analyze/file
# ---------------------------------------------------------------------------


@router.post("/file", response_model=FileAnalyzeResponse)
def analyze_file(request: FileAnalyzeRequest) -> FileAnalyzeResponse:
    """Estimate tempo and key of an audio file on the server filesystem.

    Raises:
        422: file_path does not exist, extension not supported, or audio
             too short.
        500: Audio decoding failure.
    """
    engine = _get_engine()
    timer = LatencyTimer()
    try:
        with timer:
            result = engine.analyze_file(request.file_path, duration=request.duration)
    except (FileNotFoundError, ValueError) as exc:
        record_analysis(estimator="file", status="invalid", latency_seconds=timer.elapsed)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.error("Audio analysis failed: %s", exc)
        record_analysis(estimator="file", status="error", latency_seconds=timer.elapsed)
        raise HTTPException(status_code=500, detail=f"Audio analysis failed: {exc}") from exc

    record_analysis(estimator="file", status="success", latency_seconds=timer.elapsed)
    if result.tempo.is_fallback:
        record_tempo_fallback()
    if not result.key.camelot_known:
        record_camelot_unknown()

    return FileAnalyzeResponse(
        tempo=_tempo_out(result.tempo),
        key=_key_out(result.key),
        chroma=list(result.chroma),
        duration_sec=result.duration_sec,
        sample_rate=result.sample_rate,
    )
