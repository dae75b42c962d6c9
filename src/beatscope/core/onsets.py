"""
Adaptive-threshold onset detection.

Peak picking on the half-wave rectified first difference of a detection
signal.  A frame becomes an onset when it is a local maximum above a
threshold derived from the local mean, and when it is far enough from the
previously accepted onset.  A closer candidate replaces the previous
onset if it is strictly stronger.
"""

import math

import numpy as np

from beatscope.core.spectral import DEFAULT_SAMPLE_RATE, HOP_LENGTH

# Keeps silent stretches from triggering on a zero threshold
THRESHOLD_EPSILON = 0.001


def onset_detection_function(signal: np.ndarray) -> np.ndarray:
    """max(0, s[i] - s[i-1]) per frame; frame 0 is 0."""
    signal = np.asarray(signal, dtype=np.float64)
    odf = np.zeros(len(signal))
    if len(signal) > 1:
        odf[1:] = np.maximum(np.diff(signal), 0.0)
    return odf


def threshold_multiplier(sensitivity: float) -> float:
    """Map sensitivity in [0, 1] to a multiplier in [4, 1]; higher is easier to trigger."""
    return 1.0 + (1.0 - sensitivity) * 3.0


def min_gap_frames(min_interval: float, sample_rate: int, hop_length: int) -> int:
    return int(math.floor(min_interval * sample_rate / hop_length))


def detect_onsets(
    signal: np.ndarray,
    sensitivity: float = 0.5,
    min_interval: float = 0.1,
    adaptive_window: int = 15,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    hop_length: int = HOP_LENGTH,
) -> list[int]:
    """
    Detect onset frames in a detection signal.

    Args:
        signal: Per-frame detection signal.
        sensitivity: 0-1, higher yields more detections.
        min_interval: Minimum time between onsets in seconds.
        adaptive_window: Half-width in frames of the local mean window.
            That many frames at each edge are never reported.
        sample_rate: Sample rate of the analysed audio.
        hop_length: Hop between frames in samples.

    Returns:
        Strictly increasing onset frame indices.
    """
    odf = onset_detection_function(signal)
    n = len(odf)
    w = int(adaptive_window)
    multiplier = threshold_multiplier(sensitivity)
    min_gap = min_gap_frames(min_interval, sample_rate, hop_length)

    # Both neighbours must exist, so the first and last frame never qualify
    start = max(w, 1)
    stop = min(n - w, n - 1)
    if stop <= start:
        return []

    # Local mean over [i - w, i + w] for every frame i in [start, stop)
    windows = np.lib.stride_tricks.sliding_window_view(odf, 2 * w + 1)
    local_mean = windows.sum(axis=1) / (2 * w + 1)
    centers = np.arange(start, stop)
    thresholds = local_mean[centers - w] * multiplier + THRESHOLD_EPSILON

    onsets: list[int] = []
    for i, threshold in zip(centers.tolist(), thresholds.tolist()):
        value = odf[i]
        if not (value > threshold and value >= odf[i - 1] and value >= odf[i + 1]):
            continue
        if not onsets or i - onsets[-1] >= min_gap:
            onsets.append(i)
        elif value > odf[onsets[-1]]:
            onsets[-1] = i

    return onsets
