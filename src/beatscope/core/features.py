"""
Auxiliary per-frame spectral features used by the channel recipes.

All functions take a :class:`Spectrogram` and return one float per frame.
"""

import numpy as np

from beatscope.core.bands import rectified_flux
from beatscope.core.spectral import Spectrogram

# Bin ranges (Hz) for melodic and vocal movement
CENTROID_RANGE = (300.0, 6000.0)
VOCAL_RANGE = (300.0, 4000.0)

# Spread is expressed as a fraction of the spectrum width
BROADNESS_SCALE = 0.3


def max_normalize(values: np.ndarray) -> np.ndarray:
    """Divide by the global maximum, treating a zero maximum as 1."""
    if len(values) == 0:
        return values
    peak = float(np.max(values))
    return values / (peak or 1.0)


def _weighted_centroid(energy: np.ndarray, bins: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Per-frame (centroid, total_energy); centroid is 0 where there is no energy."""
    total = np.sum(energy, axis=1)
    weighted = energy @ bins
    centroid = np.divide(weighted, total, out=np.zeros_like(total), where=total > 0)
    return centroid, total


def compute_hfc(spec: Spectrogram) -> np.ndarray:
    """High Frequency Content: sum(mag^2 * (b + 1)) / n_bins."""
    mags = spec.magnitudes
    n_bins = mags.shape[1]
    weights = np.arange(1, n_bins + 1, dtype=np.float64)
    return (mags * mags) @ weights / n_bins


def compute_spectral_broadness(spec: Spectrogram) -> np.ndarray:
    """
    Spectral spread around the centroid, scaled into [0, 1].

    Snare hits are noise-like and spread energy across the whole spectrum,
    so they score high here.  Silent frames score 0.
    """
    mags = spec.magnitudes
    n_bins = mags.shape[1]
    bins = np.arange(n_bins, dtype=np.float64)
    energy = mags * mags

    centroid, total = _weighted_centroid(energy, bins)
    deviation = (bins[None, :] - centroid[:, None]) ** 2
    variance = np.divide(
        np.sum(energy * deviation, axis=1),
        total,
        out=np.zeros_like(total),
        where=total > 0,
    )
    spread = np.sqrt(variance)
    return np.minimum(1.0, spread / (n_bins * BROADNESS_SCALE))


def compute_centroid_flux(spec: Spectrogram) -> np.ndarray:
    """
    Absolute frame-to-frame change of the 300 Hz-6 kHz spectral centroid.

    Normalized by the largest change in the whole track.
    """
    low_bin = spec.bin_for_freq(CENTROID_RANGE[0])
    high_bin = spec.bin_for_freq(CENTROID_RANGE[1])
    section = spec.magnitudes[:, low_bin:high_bin + 1]
    bins = np.arange(low_bin, low_bin + section.shape[1], dtype=np.float64)

    centroid, _ = _weighted_centroid(section * section, bins)
    flux = np.zeros(spec.n_frames)
    if spec.n_frames > 1:
        flux[1:] = np.abs(np.diff(centroid))
    return max_normalize(flux)


def compute_vocal_flux(spec: Spectrogram) -> np.ndarray:
    """Rectified spectral flux restricted to 300 Hz-4 kHz, max-normalized."""
    low_bin = spec.bin_for_freq(VOCAL_RANGE[0])
    high_bin = spec.bin_for_freq(VOCAL_RANGE[1])
    return max_normalize(rectified_flux(spec, low_bin, high_bin))
