"""Token tree walker - finds leaf tokens in a nested token tree.

A token tree is a mapping whose nested mappings are either groups or leaf
tokens. Every node is classified into exactly one of three kinds:

- LEAF: a mapping with a string type marker ($type) and a value field ($value)
- GROUP: a mapping without a type marker; its non-reserved keys are walked
- MALFORMED: anything else; skipped and recorded as a diagnostic

Keys starting with "$" inside a group are reserved metadata ($description,
$extensions, ...) and are never walked.
"""

import copy
import logging
from collections.abc import Iterator, Mapping
from typing import Any

from ..core.config import ResolverConfig, get_config
from ..core.models import RawToken, WalkDiagnostic
from ..core.types import NodeKind

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"
RESERVED_PREFIX = "$"


def join_path(segments: list[str]) -> str:
    """Join group and leaf keys into a token path."""
    return PATH_SEPARATOR.join(segments)


class TokenTreeWalker:
    """Walks a token tree depth-first in its own key order."""

    def __init__(self, config: ResolverConfig | None = None):
        """
        Initialize the walker.

        Args:
            config: Resolver configuration (reserved key names, known types).
                Uses the global config if not provided.
        """
        self.config = config or get_config()
        self.diagnostics: list[WalkDiagnostic] = []

    def classify(self, node: Any) -> tuple[NodeKind, str | None]:
        """
        Classify a tree node.

        Returns:
            Tuple of (kind, reason). The reason is only set for MALFORMED.
        """
        if isinstance(node, list | tuple):
            return NodeKind.MALFORMED, "arrays are not token groups"
        if not isinstance(node, Mapping):
            return NodeKind.MALFORMED, f"unexpected {type(node).__name__} in group position"

        type_key = self.config.type_key
        if type_key not in node:
            return NodeKind.GROUP, None
        if not isinstance(node[type_key], str):
            return NodeKind.MALFORMED, f"{type_key} must be a string"
        if self.config.value_key not in node:
            return NodeKind.MALFORMED, f"{type_key} without {self.config.value_key}"
        return NodeKind.LEAF, None

    def walk(self, tree: Any) -> Iterator[tuple[str, RawToken]]:
        """
        Yield (path, RawToken) for every leaf of the tree.

        Diagnostics for skipped nodes accumulate on ``self.diagnostics``.
        """
        if not isinstance(tree, Mapping):
            self._skip([], "token tree root must be a mapping")
            return

        # Explicit stack of open groups keeps deep trees off the recursion limit
        stack: list[tuple[list[str], Iterator]] = [([], iter(tree.items()))]
        while stack:
            prefix, items = stack[-1]
            entry = next(items, None)
            if entry is None:
                stack.pop()
                continue

            key, child = entry
            if isinstance(key, str) and key.startswith(RESERVED_PREFIX):
                continue
            segments = prefix + [str(key)]
            kind, reason = self.classify(child)

            if kind == NodeKind.LEAF:
                yield join_path(segments), self._make_token(segments, child)
            elif kind == NodeKind.GROUP:
                stack.append((segments, iter(child.items())))
            else:
                self._skip(segments, reason or "unrecognized node")

    def _make_token(self, segments: list[str], node: Mapping) -> RawToken:
        """Build a RawToken from a leaf node, detached from the source tree."""
        extensions = node.get("$extensions")
        description = node.get("$description")
        return RawToken(
            path=join_path(segments),
            type=node[self.config.type_key],
            value=copy.deepcopy(node[self.config.value_key]),
            extensions=copy.deepcopy(dict(extensions)) if isinstance(extensions, Mapping) else {},
            description=description if isinstance(description, str) else None,
        )

    def _skip(self, segments: list[str], reason: str) -> None:
        """Record a malformed node."""
        path = join_path(segments)
        logger.debug(f"Skipping malformed node '{path}': {reason}")
        self.diagnostics.append(WalkDiagnostic(path=path, reason=reason))


def walk_tokens(
    tree: Any,
    config: ResolverConfig | None = None,
) -> list[tuple[str, RawToken]]:
    """
    Collect every leaf token of a tree.

    Args:
        tree: Nested token mapping
        config: Optional resolver configuration

    Returns:
        List of (path, RawToken) pairs in depth-first key order
    """
    return list(TokenTreeWalker(config).walk(tree))


def collect_unknown_token_types(
    tree: Any,
    config: ResolverConfig | None = None,
) -> dict[str, int]:
    """Count leaf type tags outside the known set, by tag."""
    walker = TokenTreeWalker(config)
    counts: dict[str, int] = {}
    for _, token in walker.walk(tree):
        if token.type not in walker.config.known_types:
            counts[token.type] = counts.get(token.type, 0) + 1
    return counts


def get_token_at_path(
    tree: Any,
    segments: list[str],
    config: ResolverConfig | None = None,
) -> dict[str, Any] | None:
    """
    Look up the leaf node at a path.

    Returns:
        The leaf mapping, or None if the path does not exist or does not
        end at a leaf token
    """
    walker = TokenTreeWalker(config)
    node = tree
    for key in segments:
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    if walker.classify(node)[0] != NodeKind.LEAF:
        return None
    return dict(node)
