"""
Frequency band model and per-band energy / flux extraction.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import numpy as np

from beatscope.core.spectral import Spectrogram


@dataclass(frozen=True)
class BandDefinition:
    """A named frequency range in Hz."""

    name: str
    low_hz: float
    high_hz: float

    def bin_range(self, spec: Spectrogram) -> tuple[int, int]:
        """Inclusive (low_bin, high_bin) of this band in *spec*."""
        return spec.bin_for_freq(self.low_hz), spec.bin_for_freq(self.high_hz)


BANDS: tuple[BandDefinition, ...] = (
    BandDefinition("subBass", 20, 80),        # kick fundamental
    BandDefinition("bass", 80, 300),          # bass guitar / synth
    BandDefinition("lowMid", 300, 2000),      # snare body, vocals, guitar
    BandDefinition("highMid", 2000, 6000),    # melody clarity, snare crack
    BandDefinition("presence", 6000, 12000),  # hi-hats, cymbals
    BandDefinition("brilliance", 12000, 20000),
)

BANDS_BY_NAME: Mapping[str, BandDefinition] = MappingProxyType({b.name: b for b in BANDS})

BandSeries = dict[str, np.ndarray]


def band_energy(spec: Spectrogram, low_bin: int, high_bin: int) -> np.ndarray:
    """Mean squared magnitude over bins [low_bin, high_bin], per frame."""
    if spec.n_frames == 0:
        return np.zeros(0)
    section = spec.magnitudes[:, low_bin:high_bin + 1]
    if section.shape[1] == 0:
        return np.zeros(spec.n_frames)
    return np.mean(section * section, axis=1)


def rectified_flux(spec: Spectrogram, low_bin: int, high_bin: int) -> np.ndarray:
    """
    Half-wave rectified Euclidean spectral flux over bins [low_bin, high_bin].

    Frame 0 has no predecessor and is always 0.
    """
    flux = np.zeros(spec.n_frames)
    if spec.n_frames < 2:
        return flux
    section = spec.magnitudes[:, low_bin:high_bin + 1]
    rise = np.maximum(np.diff(section, axis=0), 0.0)
    flux[1:] = np.sqrt(np.sum(rise * rise, axis=1))
    return flux


def extract_band_energies(spec: Spectrogram) -> BandSeries:
    """Per-band energy series for every entry of :data:`BANDS`."""
    return {band.name: band_energy(spec, *band.bin_range(spec)) for band in BANDS}


def compute_band_flux(spec: Spectrogram) -> BandSeries:
    """Per-band spectral flux series for every entry of :data:`BANDS`."""
    return {band.name: rectified_flux(spec, *band.bin_range(spec)) for band in BANDS}
