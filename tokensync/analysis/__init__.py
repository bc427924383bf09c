"""Token analysis module - consumers of resolved token values."""

from .duplicates import detect_duplicate_values

__all__ = ["detect_duplicate_values"]
