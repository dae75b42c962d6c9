"""
End-to-end pipeline: audio file -> analysis -> export dictionary.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from beatscope.core.analyzer import AnalysisResult, BeatAnalyzer
from beatscope.core.decomposer import AudioLoader
from beatscope.core.options import AnalysisOptions
from beatscope.io.exporter import MarkerExporter

logger = logging.getLogger(__name__)


class AudioPipeline:
    """
    Loads an audio file, analyzes it and builds the export manifest.

    Example:
        pipeline = AudioPipeline()
        result = pipeline.process("track.wav")
        print(result["bpm"], result["summary"])
    """

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        sr: Optional[int] = None,
        precision: int = 4,
    ):
        """
        Initialize the pipeline.

        Args:
            options: Per-channel analysis options.
            sr: Resample to this rate on load; None keeps the native rate.
            precision: Decimal places in the exported manifest.
        """
        self.options = options or AnalysisOptions()
        self.loader = AudioLoader(sr=sr)
        self.analyzer = BeatAnalyzer()
        self.exporter = MarkerExporter(precision=precision)

    def analyze_file(
        self,
        audio_path: Union[str, Path],
        progress_callback: Optional[Callable[[int, str], None]] = None,
        cancel_token=None,
    ) -> Optional[AnalysisResult]:
        """Load and analyze a file; None when cancelled."""
        buffer = self.loader.load(audio_path)
        return self.analyzer.analyze(buffer, self.options, progress_callback, cancel_token)

    def process(
        self,
        audio_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        csv_path: Optional[Union[str, Path]] = None,
        progress_callback: Optional[Callable[[int, str], None]] = None,
        cancel_token=None,
    ) -> Optional[dict[str, Any]]:
        """
        Run the full pipeline on one file.

        Args:
            audio_path: Input audio file.
            output_path: Optional JSON destination.
            csv_path: Optional CSV destination.
            progress_callback: Optional callback(percent, message).
            cancel_token: Optional cancel token.

        Returns:
            Dict with ``result``, ``manifest``, ``bpm``, ``duration`` and
            ``summary`` keys, or None if cancelled.
        """
        result = self.analyze_file(audio_path, progress_callback, cancel_token)
        if result is None:
            return None

        manifest = self.exporter.build_manifest(result)
        if output_path is not None:
            self.exporter.export_json(result, output_path)
            logger.info("Wrote %s", output_path)
        if csv_path is not None:
            self.exporter.export_csv(result, csv_path)
            logger.info("Wrote %s", csv_path)

        return {
            "result": result,
            "manifest": manifest,
            "bpm": result.bpm,
            "duration": result.duration,
            "summary": result.summary(),
        }
