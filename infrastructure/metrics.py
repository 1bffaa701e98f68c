"""
infrastructure/metrics.py — Prometheus instrumentation for the analyzers.

Every estimator call made through the API is counted by outcome and
timed. Two extra counters track how often the output is a default
rather than a measurement: tempo series with fewer than two energy
peaks (120 BPM fallback) and keys spelled without a Camelot code.

    bka_analysis_requests_total{estimator, status}
    bka_analysis_latency_seconds{estimator}
    bka_tempo_fallback_total
    bka_camelot_unknown_total

estimator is one of tempo / chromagram / key / file; status is one of
success / invalid / error. All series live in a private registry that
GET /metrics exposes through get_metrics_response().
"""

from __future__ import annotations

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_REGISTRY = CollectorRegistry()

# Pure estimators finish in well under a millisecond; file analysis
# spends seconds in the decoder.
_LATENCY_BUCKETS = (0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0)

analysis_requests_total = Counter(
    "bka_analysis_requests_total",
    "Analysis calls by estimator and outcome",
    ["estimator", "status"],
    registry=_REGISTRY,
)

analysis_latency_seconds = Histogram(
    "bka_analysis_latency_seconds",
    "Wall-clock seconds spent in one analysis call",
    ["estimator"],
    buckets=_LATENCY_BUCKETS,
    registry=_REGISTRY,
)

tempo_fallback_total = Counter(
    "bka_tempo_fallback_total",
    "Tempo results reported as the 120 BPM default",
    registry=_REGISTRY,
)

camelot_unknown_total = Counter(
    "bka_camelot_unknown_total",
    "Key results whose name has no Camelot Wheel code",
    registry=_REGISTRY,
)


def record_analysis(*, estimator: str, status: str, latency_seconds: float) -> None:
    """Count one analysis call and add its duration to the histogram."""
    analysis_requests_total.labels(estimator=estimator, status=status).inc()
    analysis_latency_seconds.labels(estimator=estimator).observe(latency_seconds)


def record_tempo_fallback() -> None:
    tempo_fallback_total.inc()


def record_camelot_unknown() -> None:
    camelot_unknown_total.inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Return (exposition body, content type) for GET /metrics."""
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """
    Wall-clock stopwatch for a with-block.

    elapsed stays 0.0 until the block exits, and is set even when the
    block raises, so failed calls can be recorded with their duration:

        timer = LatencyTimer()
        try:
            with timer:
                key = classify_key(chroma)
        except InvalidArgumentError:
            record_analysis(estimator="key", status="invalid", latency_seconds=timer.elapsed)
            raise
    """

    def __init__(self) -> None:
        self.started_at: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        self.started_at = time.perf_counter()
        self.elapsed = 0.0
        return self

    def __exit__(self, *_: object) -> None:
        self.elapsed = time.perf_counter() - self.started_at
