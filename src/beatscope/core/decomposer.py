"""
Sample buffer capture and mono mixdown.

A :class:`SampleBuffer` holds the raw channels handed to the analyzer;
:class:`AudioLoader` builds one from an audio file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np

from beatscope.core.spectral import DEFAULT_SAMPLE_RATE

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """
    One or two equal-length float32 channels plus a sample rate.

    The channel arrays are copied and made read-only on construction.
    """

    channels: tuple
    sample_rate: int = DEFAULT_SAMPLE_RATE

    def __post_init__(self):
        raw = self.channels
        if isinstance(raw, np.ndarray):
            raw = [raw] if raw.ndim == 1 else list(raw)
        arrays = []
        for ch in raw:
            arr = np.array(ch, dtype=np.float32).reshape(-1)
            arr.setflags(write=False)
            arrays.append(arr)

        if not 1 <= len(arrays) <= 2:
            raise ValueError(f"SampleBuffer supports 1 or 2 channels, got {len(arrays)}")
        if len(arrays) == 2 and len(arrays[0]) != len(arrays[1]):
            raise ValueError(
                f"Channel lengths differ: {len(arrays[0])} vs {len(arrays[1])}"
            )

        object.__setattr__(self, "channels", tuple(arrays))
        object.__setattr__(self, "sample_rate", int(self.sample_rate or DEFAULT_SAMPLE_RATE))

    @classmethod
    def mono(cls, samples: np.ndarray, sample_rate: Optional[int] = DEFAULT_SAMPLE_RATE):
        return cls((samples,), sample_rate)

    @classmethod
    def stereo(
        cls,
        left: np.ndarray,
        right: np.ndarray,
        sample_rate: Optional[int] = DEFAULT_SAMPLE_RATE,
    ):
        return cls((left, right), sample_rate)

    @property
    def n_channels(self) -> int:
        return len(self.channels)

    @property
    def n_samples(self) -> int:
        """Samples per channel."""
        return len(self.channels[0])

    @property
    def duration(self) -> float:
        return self.n_samples / self.sample_rate

    def to_mono(self) -> np.ndarray:
        """Equal-weight average of the channels; a mono buffer is returned as is."""
        if self.n_channels == 1:
            return self.channels[0]
        left, right = self.channels
        return (left + right) * np.float32(0.5)


class AudioLoader:
    """Decodes audio files into :class:`SampleBuffer` objects."""

    def __init__(self, sr: Optional[int] = None):
        """
        Initialize the loader.

        Args:
            sr: Target sample rate. None preserves the file's native rate.
        """
        self.sr = sr

    def load(self, audio_path: Union[str, Path]) -> SampleBuffer:
        """
        Load an audio file (wav, flac, mp3, ...) without mixing it down.

        Files with more than two channels keep their first two.

        Args:
            audio_path: Path to the audio file.

        Returns:
            SampleBuffer with the decoded channels.
        """
        y, sr_out = librosa.load(audio_path, sr=self.sr, mono=False)
        if y.ndim == 1:
            channels = (y,)
        else:
            if y.shape[0] > 2:
                logger.warning(
                    "%s has %d channels, analysing the first two", audio_path, y.shape[0]
                )
            channels = tuple(y[:2])

        buffer = SampleBuffer(channels, sample_rate=sr_out)
        logger.info(
            "Loaded %s: %d channel(s), %d Hz, %.2fs",
            audio_path, buffer.n_channels, buffer.sample_rate, buffer.duration,
        )
        return buffer
