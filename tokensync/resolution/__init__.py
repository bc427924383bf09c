"""Token resolution module - walks token trees, builds the alias graph and resolves paths."""

from .walker import TokenTreeWalker, walk_tokens, collect_unknown_token_types, get_token_at_path
from .references import Reference, ReferenceSite, Concrete, Alias, Composite, classify_value
from .graph import TokenGraph, build_token_graph
from .resolver import TokenResolver, resolve_token
from .cycles import detect_cycles, format_cycle_warnings

__all__ = [
    "TokenTreeWalker",
    "walk_tokens",
    "collect_unknown_token_types",
    "get_token_at_path",
    "Reference",
    "ReferenceSite",
    "Concrete",
    "Alias",
    "Composite",
    "classify_value",
    "TokenGraph",
    "build_token_graph",
    "TokenResolver",
    "resolve_token",
    "detect_cycles",
    "format_cycle_warnings",
]
