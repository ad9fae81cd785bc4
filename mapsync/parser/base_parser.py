"""Abstract base class for tabular file parsers."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mapsync.errors import ParseError
from mapsync.schema.values import Scalar, is_null, normalize_cell


@dataclass
class ParsedTable:
    """Headers plus rows keyed by those headers."""

    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, Scalar]] = field(default_factory=list)


class TabularFileParser(ABC):
    """Abstract base class for spreadsheet/CSV parsers."""

    @abstractmethod
    def parse(self, content: Any, sheet_name: Optional[str] = None) -> ParsedTable:
        """
        Parse file content into a table.

        Args:
            content: Raw file content (text for CSV, bytes for Excel)
            sheet_name: Optional sheet to read (workbooks only)

        Returns:
            ParsedTable: First row as headers, remaining rows as records

        Raises:
            ParseError: If the content is empty or unreadable
        """
        pass

    @staticmethod
    def build_table(raw_rows: Sequence[Sequence[Any]]) -> ParsedTable:
        """Turn a grid of cells into a ParsedTable."""
        if not raw_rows or all(is_null(c) for c in raw_rows[0]):
            raise ParseError("File is empty")

        headers = TabularFileParser._clean_headers(raw_rows[0])
        rows = []

        for raw in raw_rows[1:]:
            cells = [normalize_cell(c) for c in raw]
            if all(is_null(c) for c in cells):
                continue
            rows.append(
                {h: cells[i] if i < len(cells) else None for i, h in enumerate(headers)}
            )

        return ParsedTable(headers=headers, rows=rows)

    @staticmethod
    def _clean_headers(raw_headers: Sequence[Any]) -> List[str]:
        """Trim headers, name blank ones and make duplicates unique."""
        headers: List[str] = []
        seen = set()

        for index, raw in enumerate(raw_headers):
            name = "" if raw is None else str(raw).strip()
            if not name:
                name = f"Column_{index}"

            candidate = name
            suffix = 2
            while candidate in seen:
                candidate = f"{name}_{suffix}"
                suffix += 1

            seen.add(candidate)
            headers.append(candidate)

        return headers
