"""Registry exporters (CSV report, JSON)."""

from .csv_exporter import MappingReportExporter
from .json_exporter import JsonExporter

__all__ = ["MappingReportExporter", "JsonExporter"]
