"""Shared fixtures."""
import pytest

from mapsync.parser.parser_factory import ParserFactory
from mapsync.schema.catalog import DEFAULT_CATALOG


@pytest.fixture
def catalog():
    """Built-in schema catalog."""
    return DEFAULT_CATALOG


@pytest.fixture
def demo_dataset():
    """Sample workforce upload (EmployeeNumber, FName, LName, ...)."""
    return ParserFactory.load_demo_dataset()


@pytest.fixture
def employee_schema(catalog):
    return catalog.get_schema("EMPLOYEE_MASTER")
