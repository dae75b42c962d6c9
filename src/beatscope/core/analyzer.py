"""
Analysis orchestrator.

Runs the full pipeline on a :class:`SampleBuffer`:

    samples -> mono -> spectrogram -> band energies / flux
            -> per-channel detection signals -> onset events
            -> global tempo

Progress is reported through an optional ``callback(percent, message)``
and a cancel token is polled at the start of every stage (and inside the
spectral transform).  A cancelled run returns None; partial results are
never returned.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import librosa

from beatscope.core.bands import compute_band_flux, extract_band_energies
from beatscope.core.combiner import CHANNEL_RECIPES, CHANNELS, SpectralFeatures, tempo_signal
from beatscope.core.decomposer import SampleBuffer
from beatscope.core.onsets import detect_onsets
from beatscope.core.options import AnalysisOptions, ChannelOptions
from beatscope.core.spectral import FFT_SIZE, HOP_LENGTH, SpectralEngine
from beatscope.core.tempo import estimate_bpm

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]

# (percent, message) reported when each channel's detection starts
_CHANNEL_PROGRESS = {
    "kick": (65, "Detecting kicks..."),
    "snare": (70, "Detecting snares..."),
    "hihat": (75, "Detecting hi-hats..."),
    "bass": (80, "Detecting bass notes..."),
    "melody": (85, "Detecting melody changes..."),
    "vocal": (88, "Detecting vocal onsets..."),
}


class CancelToken:
    """Cooperative cancellation flag shared between a caller and one run."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __bool__(self) -> bool:
        return self.cancelled


@dataclass(frozen=True)
class OnsetEvent:
    """A detected event on one channel."""

    time: float      # seconds
    frame: int
    strength: float  # detection (or, for bass, energy) value at the frame
    channel: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "frame": self.frame,
            "strength": self.strength,
            "type": self.channel,
        }


@dataclass
class AnalysisResult:
    """Onset events per enabled channel plus the global tempo."""

    channels: dict[str, list[OnsetEvent]]
    bpm: float
    duration: float = 0.0
    sample_rate: int = 0
    fft_size: int = FFT_SIZE
    hop_length: int = HOP_LENGTH
    n_frames: int = 0

    def __contains__(self, channel: str) -> bool:
        return channel in self.channels

    def events(self, channel: str) -> list[OnsetEvent]:
        """Events for *channel*; empty when the channel was not analysed."""
        return list(self.channels.get(channel, []))

    @property
    def total_events(self) -> int:
        return sum(len(events) for events in self.channels.values())

    def summary(self) -> dict[str, int]:
        """Event count per analysed channel."""
        return {name: len(events) for name, events in self.channels.items()}

    def all_events(self) -> list[OnsetEvent]:
        """Events from every channel merged in time order."""
        merged = [ev for events in self.channels.values() for ev in events]
        # Stable sort keeps canonical channel order for simultaneous events
        merged.sort(key=lambda ev: ev.time)
        return merged

    def events_in_range(self, start: float, end: float) -> list[OnsetEvent]:
        """Merged events with start <= time <= end."""
        return [ev for ev in self.all_events() if start <= ev.time <= end]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            name: [ev.to_dict() for ev in events]
            for name, events in self.channels.items()
        }
        out["bpm"] = self.bpm
        return out


class BeatAnalyzer:
    """
    Multi-band onset and tempo analyzer.

    Each call to :meth:`analyze` owns all of its intermediate buffers, so
    one analyzer instance can be reused for any number of runs.
    """

    def __init__(self, fft_size: int = FFT_SIZE, hop_length: int = HOP_LENGTH):
        """
        Initialize the analyzer.

        Args:
            fft_size: FFT frame size (power of two).
            hop_length: Hop between frames in samples.
        """
        self.engine = SpectralEngine(fft_size=fft_size, hop_length=hop_length)

    @property
    def fft_size(self) -> int:
        return self.engine.fft_size

    @property
    def hop_length(self) -> int:
        return self.engine.hop_length

    def analyze(
        self,
        buffer: SampleBuffer,
        options: Optional[AnalysisOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token=None,
    ) -> Optional[AnalysisResult]:
        """
        Detect onsets per channel and estimate the global tempo.

        Args:
            buffer: Captured audio.
            options: Per-channel settings; defaults when None.
            progress_callback: Optional callback(percent, message).
            cancel_token: Optional object exposing a boolean ``cancelled``.

        Returns:
            AnalysisResult, or None if the run was cancelled.
        """
        options = options or AnalysisOptions()
        sr = buffer.sample_rate

        def report(pct: int, msg: str) -> None:
            logger.debug("%3d%% %s", pct, msg)
            if progress_callback:
                progress_callback(pct, msg)

        def cancelled() -> bool:
            if cancel_token is not None and getattr(cancel_token, "cancelled", False):
                logger.info("Analysis cancelled")
                return True
            return False

        report(5, "Mixing to mono...")
        if cancelled():
            return None
        mono = buffer.to_mono()

        report(10, "Computing spectral analysis...")
        if cancelled():
            return None
        spec = self.engine.compute(mono, sr, progress_callback, cancel_token)
        if spec is None or cancelled():
            return None

        report(50, "Extracting frequency bands...")
        if cancelled():
            return None
        energies = extract_band_energies(spec)

        report(60, "Computing spectral flux...")
        if cancelled():
            return None
        flux = compute_band_flux(spec)
        features = SpectralFeatures(spec, energies=energies, flux=flux)

        channels: dict[str, list[OnsetEvent]] = {}
        for name in CHANNELS:
            opts = options.channels[name]
            if not opts.enabled:
                continue
            report(*_CHANNEL_PROGRESS[name])
            if cancelled():
                return None
            channels[name] = self._detect_channel(name, features, opts, sr)

        report(92, "Estimating BPM...")
        if cancelled():
            return None
        bpm = estimate_bpm(tempo_signal(features), sr, self.hop_length)

        report(100, "Analysis complete")
        logger.info(
            "Analysis complete: %d events across %d channel(s), %.1f BPM",
            sum(len(v) for v in channels.values()), len(channels), bpm,
        )
        return AnalysisResult(
            channels=channels,
            bpm=bpm,
            duration=buffer.duration,
            sample_rate=sr,
            fft_size=self.fft_size,
            hop_length=self.hop_length,
            n_frames=spec.n_frames,
        )

    def _detect_channel(
        self,
        name: str,
        features: SpectralFeatures,
        opts: ChannelOptions,
        sr: int,
    ) -> list[OnsetEvent]:
        recipe = CHANNEL_RECIPES[name]
        signals = recipe.build(features)
        frames = detect_onsets(
            signals.detection,
            sensitivity=opts.sensitivity,
            min_interval=opts.min_interval,
            adaptive_window=recipe.adaptive_window,
            sample_rate=sr,
            hop_length=self.hop_length,
        )
        times = librosa.frames_to_time(frames, sr=sr, hop_length=self.hop_length)
        logger.debug("%s: %d onsets", name, len(frames))
        return [
            OnsetEvent(
                time=float(t),
                frame=int(i),
                strength=float(signals.strength[i]),
                channel=name,
            )
            for i, t in zip(frames, times)
        ]


def analyze(
    buffer: SampleBuffer,
    options: Optional[AnalysisOptions] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_token=None,
) -> Optional[AnalysisResult]:
    """Run a default :class:`BeatAnalyzer` on *buffer*."""
    return BeatAnalyzer().analyze(buffer, options, progress_callback, cancel_token)
