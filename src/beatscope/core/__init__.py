"""Core audio analysis modules."""

from beatscope.core.analyzer import AnalysisResult, BeatAnalyzer, CancelToken, OnsetEvent
from beatscope.core.decomposer import AudioLoader, SampleBuffer
from beatscope.core.spectral import SpectralEngine, Spectrogram

__all__ = [
    "AnalysisResult",
    "AudioLoader",
    "BeatAnalyzer",
    "CancelToken",
    "OnsetEvent",
    "SampleBuffer",
    "SpectralEngine",
    "Spectrogram",
]
