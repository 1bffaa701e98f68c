"""
Tests for ingestion/audio_loader.py — file I/O boundary.

librosa is replaced through patch.dict("sys.modules", ...) so no real
decoder runs; files are placeholder bytes under tmp_path.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from ingestion.audio_loader import AUDIO_EXTENSIONS, DEFAULT_DURATION, load_audio


def _librosa_returning(y: np.ndarray, sr: int = 44100) -> MagicMock:
    mock = MagicMock()
    mock.load.return_value = (y, sr)
    return mock


@pytest.fixture
def wav_file(tmp_path):
    path = tmp_path / "loop.wav"
    path.write_bytes(b"RIFF placeholder")
    return path


class TestLoadAudioErrors:
    def test_missing_file(self):
        """A missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="not found"):
            load_audio("/nonexistent/loop.wav")

    def test_directory_is_not_a_file(self, tmp_path):
        """A directory is not an audio file."""
        with pytest.raises(FileNotFoundError):
            load_audio(tmp_path)

    @pytest.mark.parametrize("name", ["notes.pdf", "lyrics.txt", "session.als"])
    def test_unsupported_extension(self, tmp_path, name):
        """Non-audio extensions raise ValueError."""
        path = tmp_path / name
        path.write_bytes(b"not audio")
        with pytest.raises(ValueError, match="Unsupported audio format"):
            load_audio(path)

    def test_decoder_failure_becomes_runtime_error(self, wav_file):
        """Decoder exceptions are wrapped with the file name."""
        mock_librosa = MagicMock()
        mock_librosa.load.side_effect = Exception("truncated header")
        with patch.dict("sys.modules", {"librosa": mock_librosa}):
            with pytest.raises(RuntimeError, match="Failed to decode audio file 'loop.wav'"):
                load_audio(wav_file)

    @pytest.mark.parametrize("duration", [0.0, -5.0])
    def test_non_positive_duration(self, wav_file, duration):
        """duration must be positive."""
        with pytest.raises(ValueError, match="duration must be positive"):
            load_audio(wav_file, duration=duration)

    def test_negative_offset(self, wav_file):
        """offset must be non-negative."""
        with pytest.raises(ValueError, match="offset must be non-negative"):
            load_audio(wav_file, offset=-1.0)


class TestLoadAudioSuccess:
    def test_returns_float32_mono_and_int_rate(self, wav_file):
        """Samples come back float32 with a plain int rate."""
        mock_librosa = _librosa_returning(np.zeros(1000, dtype=np.float64), np.int64(22050))
        with patch.dict("sys.modules", {"librosa": mock_librosa}):
            y, sr = load_audio(wav_file)

        assert y.dtype == np.float32
        assert type(sr) is int
        assert sr == 22050

    def test_forwards_decoder_options(self, wav_file):
        """duration, offset and sr are passed through, always mono."""
        mock_librosa = _librosa_returning(np.zeros(10, dtype=np.float32))
        with patch.dict("sys.modules", {"librosa": mock_librosa}):
            load_audio(wav_file, duration=12.0, offset=3.0, sr=48000)

        kwargs = mock_librosa.load.call_args.kwargs
        assert kwargs["mono"] is True
        assert kwargs["duration"] == 12.0
        assert kwargs["offset"] == 3.0
        assert kwargs["sr"] == 48000

    def test_default_duration(self, wav_file):
        """Without a duration the default limit applies."""
        mock_librosa = _librosa_returning(np.zeros(10, dtype=np.float32))
        with patch.dict("sys.modules", {"librosa": mock_librosa}):
            load_audio(str(wav_file))

        assert mock_librosa.load.call_args.kwargs["duration"] == DEFAULT_DURATION

    def test_uppercase_extension_accepted(self, tmp_path):
        """Extension matching ignores case."""
        path = tmp_path / "LOOP.FLAC"
        path.write_bytes(b"fLaC")
        mock_librosa = _librosa_returning(np.zeros(10, dtype=np.float32))
        with patch.dict("sys.modules", {"librosa": mock_librosa}):
            y, _ = load_audio(path)
        assert y.size == 10


class TestAudioExtensions:
    def test_common_formats_supported(self):
        """wav, mp3, flac and ogg are accepted."""
        for ext in (".wav", ".mp3", ".flac", ".ogg"):
            assert ext in AUDIO_EXTENSIONS
