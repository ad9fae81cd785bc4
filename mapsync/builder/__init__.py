"""
Builder Module

Applies mapping sets to source rows to produce preview rows and
load-ready rows for a target table.
"""

from .row_builder import RowMaterializer, format_cell, NULL_MARKER

__all__ = [
    "RowMaterializer",
    "format_cell",
    "NULL_MARKER",
]
