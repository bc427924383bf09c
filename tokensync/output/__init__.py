"""Output formatting module."""

from .formatters import OutputFormatter, JSONFormatter, CSVFormatter, TableFormatter

__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "CSVFormatter",
    "TableFormatter",
]
