"""Multi-band onset detection and tempo estimation for marker placement."""

from beatscope.core.analyzer import AnalysisResult, BeatAnalyzer, CancelToken, OnsetEvent
from beatscope.core.decomposer import AudioLoader, SampleBuffer
from beatscope.core.options import AnalysisOptions, ChannelOptions
from beatscope.io.exporter import MarkerExporter
from beatscope.pipeline import AudioPipeline

__version__ = "0.1.0"
__all__ = [
    "AnalysisOptions",
    "AnalysisResult",
    "AudioLoader",
    "AudioPipeline",
    "BeatAnalyzer",
    "CancelToken",
    "ChannelOptions",
    "MarkerExporter",
    "OnsetEvent",
    "SampleBuffer",
]
