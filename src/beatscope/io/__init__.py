"""Result export."""

from beatscope.io.exporter import MarkerExporter

__all__ = ["MarkerExporter"]
