"""Tests for autocorrelation tempo estimation."""

import numpy as np
import pytest

from beatscope.core.tempo import autocorrelation, estimate_bpm, lag_bounds, lag_to_bpm


def _impulses(n, spacing, count, first=5):
    signal = np.zeros(n)
    signal[first:first + spacing * count:spacing] = 1.0
    return signal


def test_lag_bounds_at_44100():
    assert lag_bounds(44100, 512) == (25, 103)


def test_lag_to_bpm_folds_octaves():
    assert lag_to_bpm(43, 44100, 512) == 120.2
    # 206.7 BPM halves to 103.4
    assert lag_to_bpm(25, 44100, 512) == 103.4
    # 50.2 BPM doubles to 100.3
    assert lag_to_bpm(103, 44100, 512) == 100.3


def test_autocorrelation_is_mean_product():
    odf = np.array([1.0, 0.0, 2.0, 0.0, 3.0])
    assert autocorrelation(odf, 2) == pytest.approx((1 * 2 + 0 * 0 + 2 * 3) / 3)
    assert autocorrelation(odf, 10) == 0.0


def test_silence_falls_back_to_min_lag():
    assert estimate_bpm(np.zeros(200)) == 103.4


def test_empty_signal_falls_back_to_min_lag():
    assert estimate_bpm(np.zeros(0)) == 103.4
    assert estimate_bpm(np.zeros(1)) == 103.4


def test_fallback_depends_on_sample_rate():
    # min_lag = floor(0.3 * 48000 / 512) = 28 -> 200.89 BPM -> 100.4
    assert estimate_bpm(np.zeros(100), sample_rate=48000) == 100.4


def test_impulse_train_at_120_bpm():
    # 43 frames = 0.4993 s at 44.1 kHz / hop 512
    signal = _impulses(1000, 43, 20)
    assert estimate_bpm(signal) == 120.2


def test_impulse_train_at_90_bpm():
    # 57 frames = 0.6618 s -> 90.66 BPM
    signal = _impulses(1400, 57, 20)
    assert estimate_bpm(signal) == pytest.approx(90.7)


@pytest.mark.parametrize("seed", range(5))
def test_bpm_always_in_folded_range(seed):
    rng = np.random.default_rng(seed)
    signal = rng.random(rng.integers(10, 3000))
    bpm = estimate_bpm(signal)
    assert 60.0 <= bpm < 200.0


def test_deterministic():
    rng = np.random.default_rng(42)
    signal = rng.random(1500)
    assert estimate_bpm(signal) == estimate_bpm(signal.copy())
