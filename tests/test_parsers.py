"""Tests for CSV and Excel parsers."""
from datetime import datetime
from io import BytesIO

import pytest
from openpyxl import Workbook

from mapsync.errors import ParseError
from mapsync.parser.csv_parser import CsvParser
from mapsync.parser.excel_parser import ExcelParser
from mapsync.parser.parser_factory import ParserFactory
from mapsync.schema.models import SemanticType


def workbook_bytes(sheets):
    """Build an .xlsx in memory from {sheet name: rows}."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class TestCsvParser:
    """Test CSV parser."""

    def test_csv_parse_simple(self):
        """Test parsing simple CSV."""
        csv_content = """name,age,city
John,30,New York
Jane,25,Los Angeles
Bob,35,Chicago"""

        table = CsvParser().parse(csv_content)

        assert table.headers == ["name", "age", "city"]
        assert len(table.rows) == 3
        assert table.rows[0] == {"name": "John", "age": "30", "city": "New York"}

    def test_csv_parse_with_semicolon(self):
        """Test parsing CSV with semicolon delimiter."""
        csv_content = """product;price;quantity
Notebook;2500.00;10
Mouse;50.00;100"""

        table = CsvParser().parse(csv_content)

        assert table.headers == ["product", "price", "quantity"]
        assert table.rows[1]["price"] == "50.00"

    def test_csv_parse_tabs_and_bom(self):
        """Test csv parse tabs and bom."""
        content = "\ufeffa\tb\n1\t2\n".encode("utf-8")
        table = CsvParser().parse(content)
        assert table.headers == ["a", "b"]
        assert table.rows == [{"a": "1", "b": "2"}]

    def test_empty_rows_dropped_and_short_rows_padded(self):
        """Test empty rows dropped and short rows padded."""
        table = CsvParser().parse("a,b,c\n1,2,3\n,,\n\n4\n")
        assert len(table.rows) == 2
        assert table.rows[1] == {"a": "4", "b": None, "c": None}

    def test_duplicate_and_blank_headers(self):
        """Test duplicate and blank headers."""
        table = CsvParser().parse("id,id, ,name\n1,2,3,4\n")
        assert table.headers == ["id", "id_2", "Column_2", "name"]

    def test_empty_file(self):
        """Test empty file."""
        with pytest.raises(ParseError):
            CsvParser().parse("   \n")

    def test_invalid_utf8(self):
        """Test invalid utf8."""
        with pytest.raises(ParseError):
            CsvParser().parse(b"\xff\xfe\xfa")


class TestExcelParser:
    """Test Excel parser."""

    def test_excel_parse_first_sheet(self):
        """Test excel parse first sheet."""
        content = workbook_bytes({
            "Staff": [
                ["EmployeeNumber", "Salary", "DateJoined"],
                ["E001", 5000.5, datetime(2023, 1, 15)],
                [None, None, None],
                ["E002", 4200, datetime(2022, 11, 1)],
            ],
            "Other": [["x"], ["y"]],
        })

        table = ExcelParser().parse(content)

        assert table.headers == ["EmployeeNumber", "Salary", "DateJoined"]
        assert len(table.rows) == 2
        assert table.rows[0]["Salary"] == 5000.5
        assert table.rows[1]["DateJoined"] == datetime(2022, 11, 1)

    def test_excel_named_sheet(self):
        """Test excel named sheet."""
        content = workbook_bytes({"First": [["a"], [1]], "Second": [["b"], [2]]})
        table = ExcelParser().parse(content, sheet_name="Second")
        assert table.headers == ["b"]
        assert table.rows == [{"b": 2}]

    def test_excel_missing_sheet(self):
        """Test excel missing sheet."""
        content = workbook_bytes({"First": [["a"], [1]]})
        with pytest.raises(ParseError):
            ExcelParser().parse(content, sheet_name="Nope")

    def test_excel_list_sheets(self):
        """Test excel list sheets."""
        content = workbook_bytes({"First": [["a"]], "Second": [["b"]]})
        assert ExcelParser.list_sheets(content) == ["First", "Second"]

    def test_excel_garbage(self):
        """Test excel garbage."""
        with pytest.raises(ParseError):
            ExcelParser().parse(b"not a workbook")


class TestParserFactory:
    """Test parser selection and dataset loading."""

    def test_create_parser(self):
        """Test create parser."""
        assert isinstance(ParserFactory.create_parser("data.csv"), CsvParser)
        assert isinstance(ParserFactory.create_parser("DATA.TSV"), CsvParser)
        assert isinstance(ParserFactory.create_parser("book.xlsx"), ExcelParser)

    def test_unsupported_format(self):
        """Test unsupported format."""
        with pytest.raises(ParseError):
            ParserFactory.create_parser("legacy.mdb")

    def test_load_dataset(self, tmp_path):
        """Test load dataset."""
        path = tmp_path / "people.csv"
        path.write_text("id,active\n1,yes\n2,no\n", encoding="utf-8")

        dataset = ParserFactory.load_dataset(str(path))

        assert dataset.file_name == "people.csv"
        assert dataset.headers == ("id", "active")
        assert dataset.inferred_type("id") == SemanticType.NUMERIC
        assert dataset.inferred_type("active") == SemanticType.BOOLEAN

    def test_missing_file(self, tmp_path):
        """Test missing file."""
        with pytest.raises(ParseError):
            ParserFactory.load_dataset(str(tmp_path / "missing.csv"))

    def test_demo_dataset(self, demo_dataset):
        """Test demo dataset."""
        assert demo_dataset.file_name == "demo_data.csv"
        assert demo_dataset.headers[:3] == ("EmployeeNumber", "FName", "LName")
        assert len(demo_dataset.rows) == 3
