"""Custom exceptions for tokensync.

Missing references and cycles are not errors: they are reported as
resolution statuses. Exceptions here cover I/O, configuration and the one
fatal defect, a resolver that answers differently for the same input.
"""

from typing import Any


class TokenSyncError(Exception):
    """Base exception for all tokensync errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TokenSourceError(TokenSyncError):
    """Raised when a token source file cannot be read or parsed."""

    def __init__(self, source: str, message: str):
        full_message = f"[{source}] {message}"
        super().__init__(full_message, {"source": source})
        self.source = source


class ConfigurationError(TokenSyncError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key


class NondeterministicResolutionError(TokenSyncError):
    """Raised when resolving the same path twice gives different results."""

    def __init__(self, path: str, first: Any, second: Any):
        message = f"Resolution of '{path}' is not deterministic: {first!r} != {second!r}"
        super().__init__(message, {"path": path, "first": first, "second": second})
        self.path = path
