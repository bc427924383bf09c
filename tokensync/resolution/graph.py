"""Token graph - flat path index plus alias edges.

Built once per resolution session from one or more token trees, then
read-only. Referenced paths are not checked here; a reference to a path
that does not exist is reported as missing when a resolution reaches it.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from ..core.config import ResolverConfig, get_config
from ..core.models import RawToken, WalkDiagnostic
from .references import Alias, Composite, TokenValue, classify_value
from .walker import TokenTreeWalker

logger = logging.getLogger(__name__)


class TokenGraph:
    """Directed graph of tokens keyed by path.

    Attributes:
        tokens: path -> RawToken
        values: path -> classified value (Concrete, Alias or Composite)
        edges: path -> paths it references directly
        diagnostics: nodes skipped while walking the source trees
    """

    def __init__(
        self,
        tokens: dict[str, RawToken],
        values: dict[str, TokenValue],
        diagnostics: list[WalkDiagnostic] | None = None,
    ):
        self._tokens = dict(tokens)
        self._values = dict(values)
        self._edges = {
            path: value.targets for path, value in self._values.items() if value.targets
        }
        self._diagnostics = tuple(diagnostics or ())

    @property
    def tokens(self) -> Mapping[str, RawToken]:
        return MappingProxyType(self._tokens)

    @property
    def values(self) -> Mapping[str, TokenValue]:
        return MappingProxyType(self._values)

    @property
    def edges(self) -> Mapping[str, frozenset[str]]:
        return MappingProxyType(self._edges)

    @property
    def diagnostics(self) -> tuple[WalkDiagnostic, ...]:
        return self._diagnostics

    def __contains__(self, path: object) -> bool:
        return path in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self):
        return iter(self._tokens)

    def get(self, path: str) -> RawToken | None:
        """Get the raw token at a path, if present."""
        return self._tokens.get(path)

    def references_of(self, path: str) -> frozenset[str]:
        """Paths directly referenced by a token (empty if none)."""
        return self._edges.get(path, frozenset())

    def dangling_references(self) -> dict[str, list[str]]:
        """Referenced paths absent from the graph, with the paths that use them."""
        dangling: dict[str, list[str]] = {}
        for source, targets in self._edges.items():
            for target in sorted(targets):
                if target not in self._tokens:
                    dangling.setdefault(target, []).append(source)
        return dangling

    @property
    def alias_count(self) -> int:
        """Number of tokens whose value references another token."""
        return sum(1 for v in self._values.values() if isinstance(v, Alias | Composite))


def build_token_graph(
    *trees: Any,
    config: ResolverConfig | None = None,
) -> TokenGraph:
    """
    Build a token graph from one or more token trees.

    Trees are applied in order; a later tree overwrites a token at the same
    path (e.g. a dark-mode export layered over a light one).

    Args:
        trees: Nested token mappings
        config: Optional resolver configuration

    Returns:
        TokenGraph over every leaf token of every tree
    """
    config = config or get_config()
    tokens: dict[str, RawToken] = {}
    values: dict[str, TokenValue] = {}
    diagnostics: list[WalkDiagnostic] = []

    for tree in trees:
        walker = TokenTreeWalker(config)
        for path, token in walker.walk(tree):
            if path in tokens:
                logger.debug(f"Token '{path}' redeclared, later source wins")
            extensions = token.extensions if config.figma_alias_extension else None
            tokens[path] = token
            values[path] = classify_value(token.value, extensions)
        diagnostics.extend(walker.diagnostics)

    graph = TokenGraph(tokens, values, diagnostics)
    logger.debug(
        f"Built token graph: {len(graph)} tokens, {graph.alias_count} with references, "
        f"{len(diagnostics)} skipped nodes"
    )
    return graph
