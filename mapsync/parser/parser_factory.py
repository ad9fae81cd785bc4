"""Factory for creating the appropriate parser based on file type."""
import logging
from pathlib import Path
from typing import Optional

from mapsync.errors import ParseError
from mapsync.parser.base_parser import ParsedTable, TabularFileParser
from mapsync.parser.csv_parser import CsvParser
from mapsync.parser.excel_parser import ExcelParser
from mapsync.schema.catalog import SAMPLE_CSV
from mapsync.schema.models import SourceDataset

logger = logging.getLogger(__name__)


class ParserFactory:
    """Factory for creating tabular file parsers."""

    # Map extensions to parser types
    PARSERS = {
        'csv': 'csv',
        'txt': 'csv',
        'tsv': 'csv',
        'xlsx': 'excel',
        'xlsm': 'excel',
    }

    @staticmethod
    def create_parser(file_path: str) -> TabularFileParser:
        """
        Create parser based on file extension.

        Args:
            file_path: Path to the uploaded file

        Returns:
            TabularFileParser: Appropriate parser instance

        Raises:
            ParseError: If file format is not supported
        """
        file_path = str(file_path).lower()
        ext = file_path.split('.')[-1] if '.' in file_path else ''

        parser_type = ParserFactory.PARSERS.get(ext)
        if parser_type == 'csv':
            return CsvParser()
        if parser_type == 'excel':
            return ExcelParser()

        raise ParseError(f"Unsupported file format: {ext or file_path}")

    @staticmethod
    def parse_file(file_path: str, sheet_name: Optional[str] = None) -> ParsedTable:
        """Parse a file in one call."""
        parser = ParserFactory.create_parser(file_path)

        try:
            content = Path(file_path).read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read {file_path}: {e}")

        return parser.parse(content, sheet_name)

    @staticmethod
    def load_dataset(file_path: str, sheet_name: Optional[str] = None) -> SourceDataset:
        """Parse a file and infer its column types."""
        table = ParserFactory.parse_file(file_path, sheet_name)
        dataset = SourceDataset.from_table(table.headers, table.rows, file_name=Path(file_path).name)
        logger.info(f"Loaded {dataset.file_name}: {len(dataset.headers)} columns, {len(dataset.rows)} rows")
        return dataset

    @staticmethod
    def load_demo_dataset() -> SourceDataset:
        """Return the built-in sample workforce dataset."""
        table = CsvParser().parse(SAMPLE_CSV)
        return SourceDataset.from_table(table.headers, table.rows, file_name="demo_data.csv")
