"""Shared synthetic-signal fixtures."""

import numpy as np
import pytest

from beatscope.core.decomposer import SampleBuffer

TEST_SR = 44100


def make_click_train(
    sr: int = TEST_SR,
    duration: float = 10.0,
    interval: float = 0.5,
    offset: float = 0.0,
    click_len: int = 64,
    n_clicks: int | None = None,
) -> np.ndarray:
    """Short rectangular pulses every *interval* seconds."""
    y = np.zeros(int(sr * duration), dtype=np.float32)
    step = int(round(interval * sr))
    starts = range(int(round(offset * sr)), len(y), step)
    for k, start in enumerate(starts):
        if n_clicks is not None and k >= n_clicks:
            break
        y[start:start + click_len] = 1.0
    return y


@pytest.fixture
def pure_sine():
    """A 1 kHz sine at half amplitude, 1 second."""
    sr = TEST_SR
    t = np.arange(sr) / sr
    y = (0.5 * np.sin(2 * np.pi * 1000.0 * t)).astype(np.float32)
    return y, sr


@pytest.fixture
def white_noise():
    rng = np.random.default_rng(1234)
    y = rng.uniform(-0.5, 0.5, TEST_SR).astype(np.float32)
    return y, TEST_SR


@pytest.fixture
def click_train():
    """120 BPM pulse train, 10 seconds."""
    return make_click_train(), TEST_SR


@pytest.fixture
def silent_buffer():
    """Two seconds of digital silence."""
    return SampleBuffer.mono(np.zeros(2 * TEST_SR, dtype=np.float32), TEST_SR)


@pytest.fixture
def mixed_signal():
    """Kick-like pulses plus a sustained 440 Hz tone and a little noise."""
    sr = TEST_SR
    rng = np.random.default_rng(7)
    t = np.arange(4 * sr) / sr
    tone = 0.2 * np.sin(2 * np.pi * 440.0 * t)
    noise = 0.01 * rng.standard_normal(len(t))
    clicks = make_click_train(sr=sr, duration=4.0, interval=0.5, offset=0.25)
    return (tone + noise + clicks).astype(np.float32), sr
