"""Excel file parser."""
from io import BytesIO
from typing import List, Optional

from openpyxl import load_workbook

from mapsync.errors import ParseError
from mapsync.parser.base_parser import ParsedTable, TabularFileParser


class ExcelParser(TabularFileParser):
    """Parse one sheet of an Excel workbook into a table."""

    def parse(
        self,
        content: bytes,
        sheet_name: Optional[str] = None,
    ) -> ParsedTable:
        """
        Parse Excel content.

        Args:
            content: Excel file content (as bytes)
            sheet_name: Sheet to read. Defaults to the first sheet.

        Returns:
            ParsedTable: Header row plus records

        Raises:
            ParseError: If the workbook is unreadable, the sheet is missing
                        or the sheet is empty
        """
        try:
            wb = load_workbook(BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            raise ParseError(f"Failed to parse Excel file: {e}")

        try:
            if sheet_name is None:
                ws = wb[wb.sheetnames[0]]
            elif sheet_name in wb.sheetnames:
                ws = wb[sheet_name]
            else:
                raise ParseError(f"Sheet not found: {sheet_name}")

            rows = [list(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

        return self.build_table(rows)

    @staticmethod
    def list_sheets(content: bytes) -> List[str]:
        """Return the workbook's sheet names."""
        try:
            wb = load_workbook(BytesIO(content), read_only=True)
        except Exception as e:
            raise ParseError(f"Failed to parse Excel file: {e}")
        names = list(wb.sheetnames)
        wb.close()
        return names
