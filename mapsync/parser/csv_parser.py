"""CSV file parser with auto-delimiter detection."""
import csv
from io import StringIO
from typing import List, Optional, Union

from mapsync.errors import ParseError
from mapsync.parser.base_parser import ParsedTable, TabularFileParser


class CsvParser(TabularFileParser):
    """Parse CSV files into a table."""

    # Common delimiters
    DELIMITERS = [',', ';', '|', '\t']

    def parse(
        self,
        content: Union[str, bytes],
        sheet_name: Optional[str] = None,
    ) -> ParsedTable:
        """
        Parse CSV content.

        Args:
            content: CSV file content (text, or bytes decoded as UTF-8)
            sheet_name: Ignored for CSV

        Returns:
            ParsedTable: Header row plus string-valued records

        Raises:
            ParseError: If the content is empty or cannot be decoded
        """
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise ParseError(f"CSV file is not valid UTF-8: {e}")

        if not content.strip():
            raise ParseError("File is empty")

        delimiter = self._detect_delimiter(content)
        rows = self._read_csv(content, delimiter)

        return self.build_table(rows)

    def _detect_delimiter(self, content: str) -> str:
        """
        Auto-detect CSV delimiter from the header line.

        Returns:
            str: Most likely delimiter
        """
        sample = content.splitlines()[0] if content else ""

        counts = {}
        for delimiter in self.DELIMITERS:
            counts[delimiter] = sample.count(delimiter)

        best_delimiter = max(counts, key=counts.get)

        # Fallback to comma if no clear winner
        if counts[best_delimiter] == 0:
            return ','

        return best_delimiter

    def _read_csv(self, content: str, delimiter: str) -> List[List[str]]:
        """Read CSV content and return rows."""
        try:
            return list(csv.reader(StringIO(content), delimiter=delimiter))
        except csv.Error as e:
            raise ParseError(f"Failed to parse CSV file: {e}")
