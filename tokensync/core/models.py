"""Pydantic data models for tokensync.

All data structures are immutable (frozen) after creation so that a
resolution session can hand the same objects to every consumer.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from .types import ResolutionStatus, TokenPath


class RawToken(BaseModel):
    """A leaf token exactly as declared in the token tree."""

    path: TokenPath
    type: str  # Free-form type tag, e.g. "color", "border"
    value: Any = None
    extensions: dict[str, Any] = Field(default_factory=dict)
    description: str | None = None

    model_config = {"frozen": True}

    @property
    def segments(self) -> list[str]:
        """Path split back into its group and leaf keys."""
        return self.path.split("/")


class WalkDiagnostic(BaseModel):
    """A tree node skipped by the walker because it has no usable shape."""

    path: TokenPath
    reason: str

    model_config = {"frozen": True}


class ResolutionResult(BaseModel):
    """Outcome of resolving one token path against a graph."""

    path: TokenPath
    status: ResolutionStatus
    value: Any = None  # Terminal value if resolved, declared value otherwise

    model_config = {"frozen": True}

    @property
    def is_resolved(self) -> bool:
        """Check if every reference reached a concrete value."""
        return self.status == ResolutionStatus.RESOLVED


class DuplicateGroup(BaseModel):
    """Tokens sharing the same resolved value."""

    value: str
    tokens: list[TokenPath]

    model_config = {"frozen": True}


class CycleWarning(BaseModel):
    """Human-readable report of one reference cycle."""

    chain: list[TokenPath]
    message: str

    model_config = {"frozen": True}


class CycleReport(BaseModel):
    """All reference cycles found in a graph."""

    has_cycles: bool = False
    cycles: list[list[TokenPath]] = Field(default_factory=list)

    model_config = {"frozen": True}


class ResolutionReport(BaseModel):
    """Complete result of one resolution session."""

    sources: list[str] = Field(default_factory=list)
    results: dict[TokenPath, ResolutionResult] = Field(default_factory=dict)
    cycles: list[CycleWarning] = Field(default_factory=list)
    duplicates: list[DuplicateGroup] = Field(default_factory=list)
    diagnostics: list[WalkDiagnostic] = Field(default_factory=list)
    dangling: dict[TokenPath, list[TokenPath]] = Field(default_factory=dict)  # Missing target -> referrers
    unknown_types: dict[str, int] = Field(default_factory=dict)

    # Metadata
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tool_version: str = "0.1.0"

    model_config = {"frozen": True}

    @property
    def status_counts(self) -> dict[str, int]:
        """Number of results per status, every status present."""
        counts = {status.value: 0 for status in ResolutionStatus}
        for result in self.results.values():
            counts[result.status.value] += 1
        return counts

    @property
    def unresolved(self) -> list[ResolutionResult]:
        """Results that ended missing or cyclic, in graph order."""
        return [r for r in self.results.values() if not r.is_resolved]

    @property
    def is_clean(self) -> bool:
        """Check if every token resolved and no cycle was found."""
        return not self.unresolved and not self.cycles
