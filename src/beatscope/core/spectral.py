"""
Short-time spectral analysis.

Turns a mono signal into a magnitude spectrogram using Hann-windowed,
fixed-size radix-2 FFT frames.  The transform works on blocks of frames
so the caller's cancellation flag and progress sink can be polled at
regular intervals without exposing partial results.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

import librosa
import numpy as np
from scipy import signal as scipy_signal

logger = logging.getLogger(__name__)

FFT_SIZE = 2048
HOP_LENGTH = 512
DEFAULT_SAMPLE_RATE = 44100

# Polling intervals, in frames
CANCEL_CHECK_INTERVAL = 200
PROGRESS_INTERVAL = 500
_BLOCK_FRAMES = 100

# Share of the overall 0-100 progress scale owned by the transform
PROGRESS_START = 10
PROGRESS_SPAN = 40

ProgressCallback = Callable[[int, str], None]


@dataclass
class Spectrogram:
    """Magnitude spectrogram, one row per frame in temporal order."""

    magnitudes: np.ndarray  # Shape: (n_frames, fft_size // 2)
    sample_rate: int
    fft_size: int = FFT_SIZE
    hop_length: int = HOP_LENGTH

    def __post_init__(self):
        self.magnitudes.setflags(write=False)

    @property
    def n_frames(self) -> int:
        return self.magnitudes.shape[0]

    @property
    def n_bins(self) -> int:
        return self.fft_size // 2

    def bin_for_freq(self, freq: float) -> int:
        """Map a frequency in Hz to the nearest bin, clamped to the spectrum."""
        b = int(np.floor(freq * self.fft_size / self.sample_rate + 0.5))
        return max(0, min(b, self.n_bins - 1))

    def frame_to_time(self, frame: int) -> float:
        return float(
            librosa.frames_to_time(frame, sr=self.sample_rate, hop_length=self.hop_length)
        )


def count_frames(n_samples: int, fft_size: int = FFT_SIZE, hop_length: int = HOP_LENGTH) -> int:
    """Number of full analysis frames in a signal of *n_samples* samples."""
    if n_samples < fft_size:
        return 0
    return (n_samples - fft_size) // hop_length + 1


def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window: 0.5 * (1 - cos(2*pi*i / (size - 1)))."""
    return scipy_signal.get_window("hann", size, fftbins=False)


@lru_cache(maxsize=8)
def _bit_reversal(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    out = np.zeros(n, dtype=np.intp)
    for i in range(n):
        reversed_ = 0
        val = i
        for _ in range(bits):
            reversed_ = (reversed_ << 1) | (val & 1)
            val >>= 1
        out[reversed_] = i
    out.setflags(write=False)
    return out


@lru_cache(maxsize=32)
def _twiddles(size: int) -> tuple:
    angle = -2.0 * np.pi * np.arange(size // 2) / size
    return np.cos(angle), np.sin(angle)


def fft_radix2(frames: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Iterative radix-2 Cooley-Tukey FFT over the last axis.

    Args:
        frames: Real input of shape (n_frames, n) with n a power of two.

    Returns:
        Tuple of (real, imag) arrays with the same shape as the input.
    """
    frames = np.atleast_2d(frames)
    n_frames, n = frames.shape
    if n < 1 or n & (n - 1):
        raise ValueError(f"FFT size must be a power of two, got {n}")

    # Bit-reversal permutation: real[reversed(i)] = input[i]
    real = np.ascontiguousarray(frames[:, _bit_reversal(n)], dtype=np.float64)
    imag = np.zeros_like(real)

    size = 2
    while size <= n:
        half = size // 2
        wr, wi = _twiddles(size)
        r = real.reshape(n_frames, n // size, size)
        im = imag.reshape(n_frames, n // size, size)

        bottom_r = r[..., half:]
        bottom_i = im[..., half:]
        t_real = wr * bottom_r - wi * bottom_i
        t_imag = wr * bottom_i + wi * bottom_r

        r[..., half:] = r[..., :half] - t_real
        im[..., half:] = im[..., :half] - t_imag
        r[..., :half] += t_real
        im[..., :half] += t_imag
        size *= 2

    return real, imag


class SpectralEngine:
    """
    Computes magnitude spectrograms with cooperative cancellation.

    The frame layout is fixed: frames start every ``hop_length`` samples and
    only frames that fit entirely inside the signal are produced.
    """

    def __init__(self, fft_size: int = FFT_SIZE, hop_length: int = HOP_LENGTH):
        """
        Initialize the engine.

        Args:
            fft_size: Frame length, must be a power of two.
            hop_length: Stride between consecutive frames in samples.
        """
        if fft_size < 2 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two, got {fft_size}")
        if hop_length < 1:
            raise ValueError(f"hop_length must be positive, got {hop_length}")
        self.fft_size = fft_size
        self.hop_length = hop_length
        self.window = hann_window(fft_size)

    def _frame_block(self, mono: np.ndarray, start: int, stop: int) -> np.ndarray:
        """Windowed frames [start, stop), reads past the end are zero."""
        offsets = np.arange(start, stop) * self.hop_length
        idx = offsets[:, None] + np.arange(self.fft_size)[None, :]
        padded = mono
        overflow = int(idx.max()) + 1 - len(mono)
        if overflow > 0:
            padded = np.pad(mono, (0, overflow))
        return padded[idx] * self.window

    def magnitudes(self, frames: np.ndarray) -> np.ndarray:
        """Magnitude of the first fft_size/2 bins for each windowed frame."""
        real, imag = fft_radix2(frames)
        half = self.fft_size // 2
        re = real[:, :half]
        im = imag[:, :half]
        return np.sqrt(re * re + im * im)

    def compute(
        self,
        mono: np.ndarray,
        sample_rate: int,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token=None,
    ) -> Optional[Spectrogram]:
        """
        Compute the magnitude spectrogram of a mono signal.

        Args:
            mono: 1-D sample array.
            sample_rate: Sample rate in Hz.
            progress_callback: Optional callback(percent, message).
            cancel_token: Optional object with a ``cancelled`` attribute,
                polled every 200 frames.

        Returns:
            Spectrogram, or None if the run was cancelled.
        """
        mono = np.asarray(mono, dtype=np.float64)
        n_frames = count_frames(len(mono), self.fft_size, self.hop_length)
        rows = []

        for start in range(0, n_frames, _BLOCK_FRAMES):
            for frame in range(start, min(start + _BLOCK_FRAMES, n_frames)):
                if frame % CANCEL_CHECK_INTERVAL == 0 and _is_cancelled(cancel_token):
                    logger.info("Spectral analysis cancelled at frame %d/%d", frame, n_frames)
                    return None
                if progress_callback and frame % PROGRESS_INTERVAL == 0:
                    pct = PROGRESS_START + int(frame / n_frames * PROGRESS_SPAN)
                    progress_callback(
                        pct, f"Spectral analysis: {int(frame / n_frames * 100)}%"
                    )

            stop = min(start + _BLOCK_FRAMES, n_frames)
            rows.append(self.magnitudes(self._frame_block(mono, start, stop)))

        if rows:
            mags = np.concatenate(rows, axis=0)
        else:
            mags = np.zeros((0, self.fft_size // 2))

        logger.debug("Computed spectrogram: %d frames x %d bins", *mags.shape)
        return Spectrogram(
            magnitudes=mags,
            sample_rate=sample_rate,
            fft_size=self.fft_size,
            hop_length=self.hop_length,
        )


def compute_spectrogram(
    mono: np.ndarray,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    fft_size: int = FFT_SIZE,
    hop_length: int = HOP_LENGTH,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_token=None,
) -> Optional[Spectrogram]:
    """Functional shortcut for :meth:`SpectralEngine.compute`."""
    engine = SpectralEngine(fft_size=fft_size, hop_length=hop_length)
    return engine.compute(mono, sample_rate, progress_callback, cancel_token)


def _is_cancelled(cancel_token) -> bool:
    return bool(cancel_token is not None and getattr(cancel_token, "cancelled", False))
