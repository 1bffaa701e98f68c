"""
Tests for scripts/analyze_live.py — command-line entry point.

The engine class is patched in the script's namespace, so neither an
input device nor an audio file is touched.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from core.audio.types import KeyEstimate, TempoAnalysis
from scripts import analyze_live

_TEMPO = TempoAnalysis(
    bpm=126, raw_bpm=126.3, peak_count=30, median_interval=28, threshold=0.4, is_fallback=False
)
_KEY = KeyEstimate(tonic=9, mode="minor", score=0.8, camelot="8A", margin=0.1)


def _engine_cls() -> MagicMock:
    engine = MagicMock()
    engine.__enter__.return_value = engine
    engine.__exit__.return_value = False
    engine.analyze_bpm.return_value = _TEMPO
    engine.analyze_key.return_value = _KEY
    engine.analyze_file.return_value = MagicMock(tempo=_TEMPO, key=_KEY)
    return MagicMock(return_value=engine)


class TestAnalyzeLiveCli:
    def test_live_capture_prints_tempo_and_key(self, capsys) -> None:
        """Live mode prints BPM and key and honours --duration."""
        engine_cls = _engine_cls()
        with patch.object(analyze_live, "AudioAnalysisEngine", engine_cls):
            code = analyze_live.main(["--duration", "4"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Tempo: 126 BPM" in out
        assert "Key:   A minor (8A)" in out
        config = engine_cls.call_args.args[0]
        assert config.tempo_duration_sec == 4.0

    def test_file_mode(self, capsys) -> None:
        """--file analyses the recording without opening a stream."""
        engine_cls = _engine_cls()
        with patch.object(analyze_live, "AudioAnalysisEngine", engine_cls):
            code = analyze_live.main(["--file", "loop.wav", "--duration", "12"])

        assert code == 0
        engine_cls.return_value.analyze_file.assert_called_once_with("loop.wav", duration=12.0)
        engine_cls.return_value.capture.assert_not_called()

    def test_numeric_device_is_index(self) -> None:
        """A numeric --device is passed as an index."""
        engine_cls = _engine_cls()
        with patch.object(analyze_live, "AudioAnalysisEngine", engine_cls):
            analyze_live.main(["--device", "2"])
        assert engine_cls.call_args.kwargs["device"] == 2

    def test_device_failure_exits_1(self) -> None:
        """A device that cannot open exits with status 1."""
        engine_cls = _engine_cls()
        engine_cls.return_value.capture.side_effect = RuntimeError("Could not capture audio")
        with patch.object(analyze_live, "AudioAnalysisEngine", engine_cls):
            assert analyze_live.main([]) == 1

    def test_invalid_window_size_exits_1(self) -> None:
        """A non power-of-two window exits with status 1."""
        assert analyze_live.main(["--window-size", "1000"]) == 1
