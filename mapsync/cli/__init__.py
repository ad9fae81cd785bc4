"""Command-line interface."""

from .commands import MappingCLI, run_safely

__all__ = ["MappingCLI", "run_safely"]
