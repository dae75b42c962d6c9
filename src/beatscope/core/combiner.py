"""
Channel combiner.

Each detection channel fuses band energies, band flux and auxiliary
spectral features into a single detection signal.  The mixtures and
weights below are fixed; only sensitivity and minimum interval are
user-tunable (see :mod:`beatscope.core.options`).
"""

from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Callable, Mapping, Sequence

import numpy as np

from beatscope.core.bands import BandSeries, compute_band_flux, extract_band_energies
from beatscope.core.features import (
    compute_centroid_flux,
    compute_hfc,
    compute_spectral_broadness,
    compute_vocal_flux,
)
from beatscope.core.spectral import Spectrogram


def combine(
    series_by_name: Mapping[str, np.ndarray],
    names: Sequence[str],
    weights: Sequence[float],
) -> np.ndarray:
    """
    Weighted sum of named series, scaled so the maximum is 1.

    An all-zero (or all-negative) mixture is returned unscaled.
    """
    if len(names) != len(weights):
        raise ValueError("names and weights must have the same length")
    length = len(series_by_name[names[0]])
    combined = np.zeros(length)
    for name, weight in zip(names, weights):
        combined += np.asarray(series_by_name[name], dtype=np.float64) * weight

    peak = float(np.max(combined)) if length else 0.0
    if peak > 0:
        combined /= peak
    return combined


class SpectralFeatures:
    """
    Per-run feature bank built on one spectrogram.

    Band series are computed eagerly; the auxiliary features are computed
    on first use so disabled channels cost nothing.
    """

    def __init__(self, spec: Spectrogram, energies: BandSeries = None, flux: BandSeries = None):
        self.spec = spec
        self.energies = energies if energies is not None else extract_band_energies(spec)
        self.flux = flux if flux is not None else compute_band_flux(spec)

    @cached_property
    def hfc(self) -> np.ndarray:
        return compute_hfc(self.spec)

    @cached_property
    def broadness(self) -> np.ndarray:
        return compute_spectral_broadness(self.spec)

    @cached_property
    def centroid_flux(self) -> np.ndarray:
        return compute_centroid_flux(self.spec)

    @cached_property
    def vocal_flux(self) -> np.ndarray:
        return compute_vocal_flux(self.spec)


@dataclass(frozen=True)
class ChannelSignals:
    """Detection signal driving onset timing, and the values reported as strength."""

    detection: np.ndarray
    strength: np.ndarray


def _kick(f: SpectralFeatures) -> ChannelSignals:
    energy = combine(f.energies, ["subBass", "bass"], [0.7, 0.3])
    return ChannelSignals(energy, energy)


def _snare(f: SpectralFeatures) -> ChannelSignals:
    # Body in low-mid, crack in high-mid; noise-like spectra boost the mix
    energy = combine(f.energies, ["lowMid", "highMid"], [0.4, 0.6])
    signal = energy * (0.6 + 0.4 * f.broadness)
    return ChannelSignals(signal, signal)


def _hihat(f: SpectralFeatures) -> ChannelSignals:
    energy = combine(f.energies, ["presence", "brilliance"], [0.5, 0.5])
    signal = energy * 0.4 + f.hfc * 0.6
    return ChannelSignals(signal, signal)


def _bass(f: SpectralFeatures) -> ChannelSignals:
    # Timing follows note changes (flux); strength reports sustained energy
    energy = combine(f.energies, ["subBass", "bass"], [0.3, 0.7])
    flux = combine(f.flux, ["subBass", "bass"], [0.3, 0.7])
    return ChannelSignals(flux, energy)


def _melody(f: SpectralFeatures) -> ChannelSignals:
    flux = combine(f.flux, ["lowMid", "highMid"], [0.5, 0.5])
    signal = flux * 0.6 + f.centroid_flux * 0.4
    return ChannelSignals(signal, signal)


def _vocal(f: SpectralFeatures) -> ChannelSignals:
    signal = f.vocal_flux
    return ChannelSignals(signal, signal)


@dataclass(frozen=True)
class ChannelRecipe:
    """How one channel is built and how wide its adaptive threshold window is."""

    name: str
    build: Callable[[SpectralFeatures], ChannelSignals]
    adaptive_window: int


CHANNEL_RECIPES: Mapping[str, ChannelRecipe] = MappingProxyType({
    "kick": ChannelRecipe("kick", _kick, 15),
    "snare": ChannelRecipe("snare", _snare, 12),
    "hihat": ChannelRecipe("hihat", _hihat, 8),
    "bass": ChannelRecipe("bass", _bass, 20),
    "melody": ChannelRecipe("melody", _melody, 15),
    "vocal": ChannelRecipe("vocal", _vocal, 18),
})

CHANNELS: tuple[str, ...] = tuple(CHANNEL_RECIPES)

# Cross-band mixture feeding the global tempo estimate
TEMPO_MIX_BANDS = ("subBass", "bass", "lowMid", "highMid")
TEMPO_MIX_WEIGHTS = (0.3, 0.2, 0.25, 0.25)


def tempo_signal(f: SpectralFeatures) -> np.ndarray:
    return combine(f.energies, TEMPO_MIX_BANDS, TEMPO_MIX_WEIGHTS)
