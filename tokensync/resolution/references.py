"""Alias reference parsing.

Token values are classified once, when the graph is built, into one of:

- Concrete: holds no references
- Alias: the whole value is a single "{Group/token}" reference
- Composite: a mapping or list with references at one or more locations

The resolver works from these classes and never re-parses strings.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from ..core.types import Location

# A reference is a string of exactly "{<path>}"; braces inside the path are not allowed
REFERENCE_PATTERN = re.compile(r"^\{([^{}]+)\}$")

FIGMA_ALIAS_EXTENSION = "com.figma.aliasData"


@dataclass(frozen=True)
class Reference:
    """A pointer from a token value to another token path."""

    path: str
    raw: str  # The reference string as declared, e.g. "{Color/primary}"

    @classmethod
    def parse(cls, value: Any) -> "Reference | None":
        """Return a Reference if value is a reference string, else None."""
        if not isinstance(value, str):
            return None
        match = REFERENCE_PATTERN.match(value)
        if not match:
            return None
        return cls(path=match.group(1), raw=value)

    @classmethod
    def to_path(cls, path: str) -> "Reference":
        """Build a reference to a path, using the standard brace syntax."""
        return cls(path=path, raw=f"{{{path}}}")


@dataclass(frozen=True)
class ReferenceSite:
    """A reference found at a location inside a composite value."""

    location: Location
    reference: Reference


@dataclass(frozen=True)
class Concrete:
    """A value with no references."""

    value: Any

    @property
    def targets(self) -> frozenset[str]:
        return frozenset()


@dataclass(frozen=True)
class Alias:
    """A value that is entirely one reference."""

    reference: Reference

    @property
    def targets(self) -> frozenset[str]:
        return frozenset({self.reference.path})


@dataclass(frozen=True)
class Composite:
    """A mapping or list holding references in some of its fields."""

    value: Any
    sites: tuple[ReferenceSite, ...]

    @property
    def targets(self) -> frozenset[str]:
        return frozenset(site.reference.path for site in self.sites)


TokenValue = Union[Concrete, Alias, Composite]


def find_reference_sites(value: Any) -> list[ReferenceSite]:
    """
    Scan a composite value for references.

    Nested mappings and lists are scanned too; each site records the
    key/index path from the value root.
    """
    sites: list[ReferenceSite] = []
    stack: list[tuple[Location, Any]] = [((), value)]
    while stack:
        location, node = stack.pop()
        if isinstance(node, Mapping):
            children = [(location + (key,), child) for key, child in node.items()]
        elif isinstance(node, list | tuple):
            children = [(location + (index,), child) for index, child in enumerate(node)]
        else:
            reference = Reference.parse(node)
            if reference is not None and location:
                sites.append(ReferenceSite(location=location, reference=reference))
            continue
        stack.extend(reversed(children))
    return sites


def classify_value(value: Any, extensions: Mapping | None = None) -> TokenValue:
    """
    Classify a raw token value.

    Args:
        value: The declared $value
        extensions: The token's $extensions. When given, Figma alias
            metadata turns an otherwise concrete value into an Alias.

    Returns:
        Concrete, Alias or Composite
    """
    reference = Reference.parse(value)
    if reference is not None:
        return Alias(reference)

    if isinstance(value, Mapping | list | tuple):
        sites = find_reference_sites(value)
        if sites:
            return Composite(value=value, sites=tuple(sites))

    if extensions:
        target = figma_alias_target(extensions)
        if target:
            return Alias(Reference.to_path(target))

    return Concrete(value)


def figma_alias_target(extensions: Mapping) -> str | None:
    """Read the alias target path Figma stores in token extensions."""
    alias_data = extensions.get(FIGMA_ALIAS_EXTENSION)
    if not isinstance(alias_data, Mapping):
        return None
    target = alias_data.get("targetVariableName")
    if isinstance(target, str) and target:
        return target
    return None


def get_at(value: Any, location: Location) -> Any:
    """Read the item at a location inside a composite value."""
    for key in location:
        value = value[key]
    return value


def set_at(value: Any, location: Location, item: Any) -> None:
    """Replace the item at a non-empty location inside a composite value."""
    parent = get_at(value, location[:-1])
    parent[location[-1]] = item
