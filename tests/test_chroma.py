"""
Tests for core/audio/chroma.py — spectrum → 12-bin chromagram.

Frames are synthetic: every bin at -inf dB except the ones under test.
With sample_rate 44100 and window_size 8192 a bin i maps to
i * 44100 / 16384 ≈ 2.69 Hz.
"""

from __future__ import annotations

import numpy as np
import pytest

from core.audio.chroma import build_chromagram, frequency_to_pitch_class
from core.audio.errors import InvalidArgumentError
from core.audio.types import SpectralFrame
from core.config import AnalyzerConfig

SR = 44100.0
WINDOW = 8192
HZ_PER_BIN = SR / (WINDOW * 2)


def _frame(bins: dict[int, float], *, window_size: int = WINDOW, sample_rate: float = SR) -> SpectralFrame:
    """Spectrum silent except for {bin_index: dB}."""
    magnitudes = [float("-inf")] * (window_size // 2)
    for index, db in bins.items():
        magnitudes[index] = db
    return SpectralFrame(
        magnitudes_db=tuple(magnitudes),
        sample_rate=sample_rate,
        window_size=window_size,
    )


def _bin_for(frequency: float) -> int:
    return int(round(frequency / HZ_PER_BIN))


# ---------------------------------------------------------------------------
# frequency_to_pitch_class
# ---------------------------------------------------------------------------


class TestFrequencyToPitchClass:
    @pytest.mark.parametrize(
        ("frequency", "pitch_class"),
        [
            (440.0, 9),  # A4
            (261.63, 0),  # C4
            (277.18, 1),  # C#4
            (493.88, 11),  # B4
            (55.0, 9),  # A1
            (880.0, 9),  # A5
        ],
    )
    def test_known_frequencies(self, frequency, pitch_class):
        """Reference pitches map to their pitch classes."""
        assert frequency_to_pitch_class(frequency) == pitch_class

    @pytest.mark.parametrize("frequency", [1.0, 0.5, 8.0, 16.35])
    def test_very_low_frequencies_stay_in_range(self, frequency):
        """Sub-audio frequencies still land in 0..11."""
        assert 0 <= frequency_to_pitch_class(frequency) <= 11

    @pytest.mark.parametrize("frequency", [0.0, -440.0, float("nan")])
    def test_non_positive_raises(self, frequency):
        """Zero, negative and NaN frequencies are rejected."""
        with pytest.raises(InvalidArgumentError):
            frequency_to_pitch_class(frequency)


# ---------------------------------------------------------------------------
# build_chromagram
# ---------------------------------------------------------------------------


class TestBuildChromagram:
    def test_silent_spectrum_is_all_zeros(self, silent_frame):
        """An all -inf spectrum gives an all-zero chromagram."""
        chroma = build_chromagram(silent_frame)
        assert chroma.shape == (12,)
        assert np.all(chroma == 0.0)

    def test_single_bin_is_one_hot(self):
        """One A4 bin lights only pitch class A."""
        chroma = build_chromagram(_frame({_bin_for(440.0): 0.0}))
        assert int(np.argmax(chroma)) == 9
        assert chroma[9] == pytest.approx(1.0)
        assert np.count_nonzero(chroma) == 1

    def test_values_in_unit_range_with_max_one(self):
        """Output lies in [0, 1] with the strongest class at 1."""
        frame = _frame({_bin_for(261.63): -6.0, _bin_for(329.63): 0.0, _bin_for(392.0): -12.0})
        chroma = build_chromagram(frame)
        assert np.all(chroma >= 0.0)
        assert np.all(chroma <= 1.0)
        assert chroma.max() == pytest.approx(1.0)
        assert int(np.argmax(chroma)) == 4  # E

    def test_db_converted_to_linear_magnitude(self):
        """-20 dB is one tenth of 0 dB."""
        frame = _frame({_bin_for(261.63): -20.0, _bin_for(440.0): 0.0})
        chroma = build_chromagram(frame)
        assert chroma[0] == pytest.approx(0.1)

    def test_octaves_accumulate_into_one_class(self):
        """Bins an octave apart add into the same class."""
        frame = _frame({_bin_for(220.0): -6.0, _bin_for(440.0): -6.0, _bin_for(261.63): 0.0})
        chroma = build_chromagram(frame)
        # Two A bins at -6 dB (≈0.501 each) outweigh one C at 0 dB
        assert int(np.argmax(chroma)) == 9
        assert chroma[0] == pytest.approx(1.0 / (2 * 10 ** (-6 / 20)))

    def test_bins_below_60hz_ignored(self):
        """Energy under the band floor is dropped."""
        chroma = build_chromagram(_frame({_bin_for(40.0): 0.0}))
        assert np.all(chroma == 0.0)

    def test_bins_above_4000hz_ignored(self):
        """Energy over the band ceiling is dropped."""
        chroma = build_chromagram(_frame({_bin_for(5000.0): 0.0}))
        assert np.all(chroma == 0.0)

    def test_dc_bin_ignored(self):
        """Bin 0 has no pitch and never contributes."""
        config = AnalyzerConfig(min_frequency_hz=0.0)
        chroma = build_chromagram(_frame({0: 0.0}), config=config)
        assert np.all(chroma == 0.0)

    def test_custom_band(self):
        """Band limits come from config."""
        config = AnalyzerConfig(min_frequency_hz=500.0, max_frequency_hz=1000.0)
        frame = _frame({_bin_for(440.0): 0.0, _bin_for(659.26): -6.0})
        chroma = build_chromagram(frame, config=config)
        assert chroma[9] == 0.0
        assert chroma[4] == pytest.approx(1.0)

    def test_zero_db_everywhere_is_not_silence(self):
        """0 dB is linear magnitude 1 — every in-band bin contributes."""
        frame = SpectralFrame(magnitudes_db=tuple([0.0] * 4096), sample_rate=SR, window_size=WINDOW)
        chroma = build_chromagram(frame)
        assert chroma.max() == pytest.approx(1.0)
        assert np.all(chroma > 0.0)

    def test_scaling_spectrum_keeps_chromagram(self):
        """Adding a constant dB offset scales all bins equally."""
        bins = {_bin_for(261.63): -3.0, _bin_for(392.0): -9.0}
        louder = {k: v + 20.0 for k, v in bins.items()}
        np.testing.assert_allclose(build_chromagram(_frame(bins)), build_chromagram(_frame(louder)))

    @pytest.mark.parametrize("bin_index", [23, 100, 164, 733, 1400])
    def test_bin_lands_on_frequency_to_pitch_class(self, bin_index):
        """Each in-band bin is folded exactly as frequency_to_pitch_class maps it."""
        chroma = build_chromagram(_frame({bin_index: 0.0}))
        assert int(np.argmax(chroma)) == frequency_to_pitch_class(bin_index * HZ_PER_BIN)

    def test_huge_finite_db_stays_in_unit_range(self):
        """7000 dB exceeds float range in linear terms but is still a valid reading."""
        chroma = build_chromagram(_frame({_bin_for(440.0): 7000.0}))
        assert np.all(np.isfinite(chroma))
        assert np.all((chroma >= 0.0) & (chroma <= 1.0))
        assert chroma[9] == pytest.approx(1.0)
        assert np.count_nonzero(chroma) == 1

    def test_huge_finite_db_keeps_relative_levels(self):
        """Bins 20 dB apart keep their 10:1 ratio however loud they are."""
        frame = _frame({_bin_for(440.0): 7000.0, _bin_for(261.63): 6980.0})
        chroma = build_chromagram(frame)
        assert chroma[9] == pytest.approx(1.0)
        assert chroma[0] == pytest.approx(0.1)

    def test_very_low_db_against_huge_db_is_negligible(self):
        """Extreme spread underflows to zero rather than producing NaN."""
        frame = _frame({_bin_for(440.0): 1e308, _bin_for(261.63): -1e308})
        chroma = build_chromagram(frame)
        assert np.all(np.isfinite(chroma))
        assert chroma[9] == pytest.approx(1.0)
        assert chroma[0] == 0.0


class TestBuildChromagramValidation:
    def test_bin_count_mismatch_raises(self):
        """Bin count must equal window_size / 2."""
        frame = SpectralFrame(magnitudes_db=tuple([0.0] * 100), sample_rate=SR, window_size=WINDOW)
        with pytest.raises(InvalidArgumentError, match="expected 4096 bins"):
            build_chromagram(frame)

    @pytest.mark.parametrize("sample_rate", [0.0, -44100.0])
    def test_non_positive_sample_rate_raises(self, sample_rate):
        """A non-positive sample rate names frame.sample_rate."""
        frame = SpectralFrame(magnitudes_db=tuple([0.0] * 4096), sample_rate=sample_rate, window_size=WINDOW)
        with pytest.raises(InvalidArgumentError) as exc_info:
            build_chromagram(frame)
        assert exc_info.value.argument == "frame.sample_rate"

    def test_non_positive_window_size_raises(self):
        """A non-positive window size names frame.window_size."""
        frame = SpectralFrame(magnitudes_db=(), sample_rate=SR, window_size=0)
        with pytest.raises(InvalidArgumentError) as exc_info:
            build_chromagram(frame)
        assert exc_info.value.argument == "frame.window_size"

    def test_nan_magnitude_raises(self):
        """A NaN bin is rejected."""
        magnitudes = [float("-inf")] * 4096
        magnitudes[200] = float("nan")
        frame = SpectralFrame(magnitudes_db=tuple(magnitudes), sample_rate=SR, window_size=WINDOW)
        with pytest.raises(InvalidArgumentError, match="NaN"):
            build_chromagram(frame)
