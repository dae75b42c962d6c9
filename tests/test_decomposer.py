"""Tests for sample buffers and audio loading."""

import numpy as np
import pytest
from scipy.io import wavfile

from beatscope.core.decomposer import AudioLoader, SampleBuffer

from conftest import TEST_SR


def test_mono_buffer_is_read_only_copy():
    samples = np.linspace(-1, 1, 100)
    buffer = SampleBuffer.mono(samples, TEST_SR)
    assert buffer.n_channels == 1
    assert buffer.n_samples == 100
    assert buffer.channels[0].dtype == np.float32
    samples[0] = 5.0
    assert buffer.channels[0][0] == -1.0
    with pytest.raises(ValueError):
        buffer.channels[0][0] = 0.0


def test_stereo_mixdown_is_channel_mean():
    left = np.array([1.0, 0.5, -1.0], dtype=np.float32)
    right = np.array([0.0, 0.5, 1.0], dtype=np.float32)
    mono = SampleBuffer.stereo(left, right).to_mono()
    np.testing.assert_array_equal(mono, [0.5, 0.5, 0.0])
    assert mono.dtype == np.float32


def test_duration():
    buffer = SampleBuffer.mono(np.zeros(22050), 44100)
    assert buffer.duration == 0.5


def test_rejects_more_than_two_channels():
    with pytest.raises(ValueError, match="1 or 2 channels"):
        SampleBuffer((np.zeros(10), np.zeros(10), np.zeros(10)))


def test_rejects_unequal_lengths():
    with pytest.raises(ValueError, match="lengths differ"):
        SampleBuffer.stereo(np.zeros(10), np.zeros(11))


def test_accepts_channel_major_array():
    buffer = SampleBuffer(np.zeros((2, 64)), 48000)
    assert buffer.n_channels == 2
    assert buffer.sample_rate == 48000


@pytest.mark.parametrize("sr", [None, 0])
def test_missing_sample_rate_defaults(sr):
    assert SampleBuffer.mono(np.zeros(10), sr).sample_rate == 44100


def test_loader_keeps_stereo(tmp_path):
    t = np.arange(TEST_SR) / TEST_SR
    left = 0.5 * np.sin(2 * np.pi * 220 * t)
    right = 0.25 * np.sin(2 * np.pi * 330 * t)
    path = tmp_path / "stereo.wav"
    wavfile.write(path, TEST_SR, np.stack([left, right], axis=1).astype(np.float32))

    buffer = AudioLoader().load(path)
    assert buffer.n_channels == 2
    assert buffer.sample_rate == TEST_SR
    assert buffer.n_samples == TEST_SR
    np.testing.assert_allclose(buffer.channels[0], left, atol=1e-6)
    np.testing.assert_allclose(buffer.channels[1], right, atol=1e-6)


def test_loader_mono_file(tmp_path):
    path = tmp_path / "mono.wav"
    wavfile.write(path, 22050, np.zeros(22050, dtype=np.float32))
    buffer = AudioLoader().load(path)
    assert buffer.n_channels == 1
    assert buffer.sample_rate == 22050
    assert buffer.duration == pytest.approx(1.0)
