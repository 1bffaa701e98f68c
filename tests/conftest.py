"""
Shared fixtures for the test suite.

Centralizes the fake audio backend and the silent spectrum so individual
test files don't repeat mock/override boilerplate.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.main import app
from core.audio.types import SpectralFrame


@pytest.fixture
def fake_sounddevice() -> MagicMock:
    """MagicMock standing in for the sounddevice module — no PortAudio.

    The stream it opens reports a 44.1 kHz sample rate.
    """
    sd = MagicMock()
    sd.InputStream.return_value.samplerate = 44100.0
    return sd


@pytest.fixture
def silent_frame() -> SpectralFrame:
    """8192-point spectrum with every bin at -inf dB (digital silence)."""
    return SpectralFrame(
        magnitudes_db=tuple([float("-inf")] * 4096),
        sample_rate=44100.0,
        window_size=8192,
    )


@pytest.fixture
def client() -> TestClient:
    """TestClient bound to the FastAPI app."""
    return TestClient(app)
