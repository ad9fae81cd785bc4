"""Tabular file parsers (CSV and Excel)."""

from .base_parser import ParsedTable, TabularFileParser
from .csv_parser import CsvParser
from .excel_parser import ExcelParser
from .parser_factory import ParserFactory

__all__ = ["ParsedTable", "TabularFileParser", "CsvParser", "ExcelParser", "ParserFactory"]
