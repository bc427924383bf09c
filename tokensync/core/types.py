"""Type definitions and enums for the token resolver."""

from enum import Enum
from typing import Literal


class ResolutionStatus(str, Enum):
    """Outcome of resolving a single token path."""

    RESOLVED = "resolved"
    CYCLIC = "cyclic"
    MISSING = "missing"

    @property
    def severity(self) -> int:
        """Rank used to pick the worst status across composite fields."""
        ranks = {
            self.RESOLVED: 0,
            self.MISSING: 1,
            self.CYCLIC: 2,
        }
        return ranks[self]

    @classmethod
    def worst(cls, statuses: "list[ResolutionStatus]") -> "ResolutionStatus":
        """Return the highest-severity status (RESOLVED for an empty list)."""
        return max(statuses, key=lambda s: s.severity, default=cls.RESOLVED)


class NodeKind(str, Enum):
    """Classification of a node in the token tree."""

    LEAF = "leaf"           # Carries a type marker and a value
    GROUP = "group"         # Mapping traversed recursively
    MALFORMED = "malformed" # Skipped, recorded as a diagnostic


# Token types defined by the DTCG format plus the extras Figma exports emit.
# Type tags are free-form; anything outside this set is reported, not rejected.
KNOWN_TOKEN_TYPES: frozenset[str] = frozenset(
    {
        "color",
        "number",
        "shadow",
        "border",
        "typography",
        "gradient",
        "transition",
        "cubic-bezier",
        "duration",
        "dimension",
        "fontFamily",
        "fontWeight",
        "fontSize",
        "lineHeight",
        "letterSpacing",
        "string",
        "boolean",
        "other",
    }
)

# Type aliases for common patterns
TokenPath = str                        # "Color/brand/primary"
Location = tuple[str | int, ...]       # Keys/indices inside a composite value; () is the whole value

# Literal types for specific fields
OutputFormatType = Literal["json", "csv", "table"]
