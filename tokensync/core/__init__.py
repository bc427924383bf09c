"""Core module - data models, types, configuration and exceptions."""

from .models import (
    RawToken,
    WalkDiagnostic,
    ResolutionResult,
    DuplicateGroup,
    CycleWarning,
    CycleReport,
    ResolutionReport,
)
from .types import (
    ResolutionStatus,
    NodeKind,
    KNOWN_TOKEN_TYPES,
)
from .config import ResolverConfig, get_config, reload_config
from .exceptions import (
    TokenSyncError,
    TokenSourceError,
    ConfigurationError,
    NondeterministicResolutionError,
)

__all__ = [
    # Models
    "RawToken",
    "WalkDiagnostic",
    "ResolutionResult",
    "DuplicateGroup",
    "CycleWarning",
    "CycleReport",
    "ResolutionReport",
    # Types
    "ResolutionStatus",
    "NodeKind",
    "KNOWN_TOKEN_TYPES",
    # Config
    "ResolverConfig",
    "get_config",
    "reload_config",
    # Exceptions
    "TokenSyncError",
    "TokenSourceError",
    "ConfigurationError",
    "NondeterministicResolutionError",
]
