"""MapSync - spreadsheet to target-schema mapping engine."""

__version__ = "0.1.0"
