"""
Result serialization module.

Exports analysis results to JSON (one event list per channel) or CSV
(one time-ordered row per event) for marker placement tools.
"""

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from beatscope.core.analyzer import AnalysisResult, OnsetEvent


@dataclass
class ResultMetadata:
    """Metadata header for the exported result."""

    bpm: float
    duration: float
    sample_rate: int
    fft_size: int
    hop_length: int
    n_frames: int
    schema_version: str = "1.0"


class MarkerExporter:
    """
    Exports :class:`AnalysisResult` objects.

    Times and strengths are rounded to a fixed precision; frame indices are
    exported unchanged so consumers can recompute exact times.
    """

    CSV_COLUMNS = ("time", "frame", "channel", "strength")

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _event(self, event: OnsetEvent) -> dict[str, Any]:
        return {
            "time": self._round(event.time),
            "frame": event.frame,
            "strength": self._round(event.strength),
            "type": event.channel,
        }

    def build_manifest(self, result: AnalysisResult) -> dict[str, Any]:
        """
        Build the complete export dictionary.

        Args:
            result: Analysis result.

        Returns:
            Dictionary ready for JSON serialization.
        """
        metadata = ResultMetadata(
            bpm=result.bpm,
            duration=self._round(result.duration),
            sample_rate=result.sample_rate,
            fft_size=result.fft_size,
            hop_length=result.hop_length,
            n_frames=result.n_frames,
        )

        return {
            "metadata": {
                "bpm": metadata.bpm,
                "duration": metadata.duration,
                "sample_rate": metadata.sample_rate,
                "fft_size": metadata.fft_size,
                "hop_length": metadata.hop_length,
                "n_frames": metadata.n_frames,
                "schema_version": metadata.schema_version,
            },
            "summary": {
                "total_events": result.total_events,
                **result.summary(),
            },
            "channels": {
                name: [self._event(ev) for ev in events]
                for name, events in result.channels.items()
            },
        }

    def export_json(
        self,
        result: AnalysisResult,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Export the result to a JSON file.

        Args:
            result: Analysis result.
            output_path: Path for output JSON file.
            indent: JSON indentation level.

        Returns:
            Path to written file.
        """
        manifest = self.build_manifest(result)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_csv(
        self,
        result: AnalysisResult,
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export all events, merged across channels in time order, as CSV.

        Args:
            result: Analysis result.
            output_path: Path for output CSV file.

        Returns:
            Path to written file.
        """
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(self.CSV_COLUMNS)
            for ev in result.all_events():
                writer.writerow(
                    [self._round(ev.time), ev.frame, ev.channel, self._round(ev.strength)]
                )

        return output_path

    def to_dict(self, result: AnalysisResult) -> dict[str, Any]:
        """Return the export as a dictionary (for in-memory use)."""
        return self.build_manifest(result)
