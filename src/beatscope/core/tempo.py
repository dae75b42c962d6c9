"""
Global tempo estimation by autocorrelation of an onset detection function.
"""

import math

import numpy as np

from beatscope.core.onsets import onset_detection_function
from beatscope.core.spectral import DEFAULT_SAMPLE_RATE, HOP_LENGTH

MIN_BPM = 50.0
MAX_BPM = 200.0

# Octave-folding target range
FOLD_LOW = 60.0
FOLD_HIGH = 200.0


def lag_bounds(sample_rate: int, hop_length: int) -> tuple[int, int]:
    """(min_lag, max_lag) in frames covering MAX_BPM down to MIN_BPM."""
    min_lag = int(math.floor(60.0 / MAX_BPM * sample_rate / hop_length))
    max_lag = int(math.floor(60.0 / MIN_BPM * sample_rate / hop_length))
    return max(min_lag, 1), max(max_lag, 1)


def lag_to_bpm(lag: int, sample_rate: int, hop_length: int) -> float:
    """Convert a lag to BPM, octave-folded into [60, 200] and rounded to 0.1."""
    interval = lag * hop_length / sample_rate
    bpm = 60.0 / interval
    while bpm > FOLD_HIGH:
        bpm /= 2.0
    while bpm < FOLD_LOW:
        bpm *= 2.0
    # Round half up
    return math.floor(bpm * 10.0 + 0.5) / 10.0


def autocorrelation(odf: np.ndarray, lag: int) -> float:
    """Mean of odf[i] * odf[i + lag] over the overlapping region."""
    count = len(odf) - lag
    if count <= 0:
        return 0.0
    return float(np.dot(odf[:count], odf[lag:])) / count


def estimate_bpm(
    signal: np.ndarray,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    hop_length: int = HOP_LENGTH,
) -> float:
    """
    Estimate the global tempo of a per-frame energy signal.

    The lag with the strongest autocorrelation wins; ties keep the
    smallest lag.  With no usable lag (silence, very short input) the
    result is the BPM of the minimum lag, 103.4 at 44.1 kHz / hop 512.

    Args:
        signal: Per-frame energy signal.
        sample_rate: Sample rate of the analysed audio.
        hop_length: Hop between frames in samples.

    Returns:
        Tempo in BPM, rounded to one decimal.
    """
    odf = onset_detection_function(signal)
    min_lag, max_lag = lag_bounds(sample_rate, hop_length)
    last_lag = min(max_lag, len(odf) - 1)

    best_lag = min_lag
    best_corr = -np.inf
    for lag in range(min_lag, last_lag + 1):
        corr = autocorrelation(odf, lag)
        if corr > best_corr:
            best_corr = corr
            best_lag = lag

    return lag_to_bpm(best_lag, sample_rate, hop_length)
