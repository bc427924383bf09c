"""Duplicate value detection.

Groups tokens whose resolved values are equal, so that designers can see
where two names carry the same color. Detection can be scoped to one file
while references are resolved against a larger shared token set.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

from ..core.config import ResolverConfig, get_config
from ..core.models import DuplicateGroup, RawToken
from ..resolution.graph import TokenGraph, build_token_graph
from ..resolution.resolver import TokenResolver, resolve_token
from ..resolution.walker import TokenTreeWalker

logger = logging.getLogger(__name__)


def value_key(value: Any) -> str:
    """Stable string form of a token value used for grouping."""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def group_duplicate_values(
    graph: TokenGraph,
    candidates: Iterable[RawToken],
    types: Iterable[str],
    resolver: TokenResolver | None = None,
) -> list[DuplicateGroup]:
    """
    Group candidate tokens by their resolved value.

    Args:
        graph: Graph the candidates are resolved against
        candidates: Tokens to compare, in output order
        types: Token types to consider
        resolver: Optional resolver bound to ``graph``, to share its cache

    Returns:
        Groups of two or more token paths, largest group first. Tokens whose
        references cannot be resolved, or that are not in the graph, are
        grouped by their declared value.
    """
    wanted = set(types)
    resolver = resolver or TokenResolver(graph)

    groups: dict[str, list[str]] = {}
    for token in candidates:
        if token.type not in wanted or not token.value:
            continue

        result = resolve_token(token.path, graph, resolver)
        if result is not None and result.is_resolved:
            key = value_key(result.value)
        else:
            # Missing, cyclic, or outside the resolution set
            key = value_key(token.value)
        groups.setdefault(key, []).append(token.path)

    duplicates = [
        DuplicateGroup(value=value, tokens=paths)
        for value, paths in groups.items()
        if len(paths) >= 2
    ]
    duplicates.sort(key=lambda g: len(g.tokens), reverse=True)

    logger.debug(f"Found {len(duplicates)} duplicate value groups")
    return duplicates


def detect_duplicate_values(
    tokens: dict[str, Any],
    all_tokens: dict[str, Any] | None = None,
    types: list[str] | tuple[str, ...] | None = None,
    config: ResolverConfig | None = None,
) -> list[DuplicateGroup]:
    """
    Find tokens that share a resolved value.

    Args:
        tokens: Token tree walked for duplicate candidates
        all_tokens: Superset tree used to resolve references. Defaults to
            ``tokens``.
        types: Token types to consider (default: config.duplicate_types)
        config: Optional resolver configuration

    Returns:
        Groups of two or more token paths, largest group first
    """
    config = config or get_config()
    graph = build_token_graph(all_tokens if all_tokens is not None else tokens, config=config)
    candidates = (token for _, token in TokenTreeWalker(config).walk(tokens))

    return group_duplicate_values(
        graph,
        candidates,
        types if types is not None else config.duplicate_types,
        TokenResolver(graph, memoize=config.memoize),
    )
