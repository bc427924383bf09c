"""Token resolution - follows alias references to concrete values.

Resolution never raises for bad references. A path that cannot be reached
comes back MISSING, a path that reaches itself comes back CYCLIC, and in
both cases the token keeps its declared value so consumers can flag it.

Cycle detection is scoped to one resolution chain: two independent calls
that pass through the same non-cyclic token never see each other's
visited paths. Resolved results may be cached for the lifetime of the
resolver, since resolution is a pure function of (path, graph). Values
handed to callers are always copies, never the graph's or the cache's own
objects.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..core.exceptions import NondeterministicResolutionError
from ..core.models import ResolutionResult
from ..core.types import ResolutionStatus
from .graph import TokenGraph
from .references import Alias, Composite, Reference, set_at

logger = logging.getLogger(__name__)


def _thaw(value: Any) -> Any:
    """Copy a value into plain dicts and lists, without recursion.

    Nesting grows with every composite hop, so a long composite chain can
    yield values deeper than the interpreter's recursion limit.
    """
    if not isinstance(value, Mapping | list | tuple):
        return value
    root: Any = {} if isinstance(value, Mapping) else []
    stack = [(value, root)]
    while stack:
        source, target = stack.pop()
        items = source.items() if isinstance(source, Mapping) else enumerate(source)
        for key, item in items:
            if isinstance(item, Mapping):
                child: Any = {}
                stack.append((item, child))
            elif isinstance(item, list | tuple):
                child = []
                stack.append((item, child))
            else:
                child = item
            if isinstance(target, dict):
                target[key] = child
            else:
                target.append(child)
    return root


def _detached(result: ResolutionResult) -> ResolutionResult:
    """Copy of a result whose value shares nothing with the resolver."""
    return ResolutionResult(path=result.path, status=result.status, value=_thaw(result.value))


@dataclass
class _Frame:
    """One reference being followed.

    A frame walks a whole-value alias chain. When the chain ends on a
    composite, the frame pauses while each reference site is resolved by
    a frame pushed above it.
    """

    path: str
    via: Reference | None
    current: str = ""
    chain: list[str] = field(default_factory=list)
    composite: Composite | None = None
    spliced: Any = None
    site_index: int = 0
    statuses: list[ResolutionStatus] = field(default_factory=list)
    status: ResolutionStatus | None = None
    value: Any = None
    cached: ResolutionResult | None = None

    def __post_init__(self) -> None:
        self.current = self.path


class TokenResolver:
    """Resolves token paths against one graph, caching resolved results."""

    def __init__(
        self,
        graph: TokenGraph,
        memoize: bool = True,
        verify_determinism: bool = False,
    ):
        """
        Initialize the resolver.

        Args:
            graph: Token graph to resolve against
            memoize: Cache resolved paths across calls on this resolver
            verify_determinism: Re-resolve each requested path without the
                cache and raise if the two results differ
        """
        self.graph = graph
        self.memoize = memoize
        self.verify_determinism = verify_determinism
        self._cache: dict[str, ResolutionResult] = {}

    def clear_cache(self) -> None:
        """Drop cached results (start of a new session)."""
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def resolve(self, path: str) -> ResolutionResult:
        """
        Resolve a token path to its terminal value.

        Args:
            path: Slash-delimited token path

        Returns:
            ResolutionResult owning its value. A path absent from the graph
            is MISSING with value None.

        Raises:
            NondeterministicResolutionError: If verification is enabled and
                an uncached resolution disagrees with this one
        """
        result = self._resolve(path)

        if self.verify_determinism:
            check = TokenResolver(self.graph, memoize=False)._resolve(path)
            if check != result:
                raise NondeterministicResolutionError(path, result.value, check.value)

        return _detached(result)

    def resolve_all(self) -> dict[str, ResolutionResult]:
        """Resolve every token in the graph, in graph order."""
        results = {path: self.resolve(path) for path in self.graph}
        unresolved = sum(1 for r in results.values() if not r.is_resolved)
        logger.debug(f"Resolved {len(results)} tokens ({unresolved} unresolved)")
        return results

    def _resolve(self, path: str) -> ResolutionResult:
        """Resolve one path with an explicit stack of pending references.

        The returned result may share its value with the cache.
        """
        visiting: set[str] = set()
        stack = [_Frame(path, via=None)]
        outcome: ResolutionResult | None = None

        while stack:
            frame = stack[-1]
            if outcome is not None:
                self._splice(frame, outcome)
                outcome = None
            elif frame.composite is None:
                self._follow(frame, visiting)

            if frame.status is None:
                # Paused on a composite: resolve its next reference site
                site = frame.composite.sites[frame.site_index]
                stack.append(_Frame(site.reference.path, via=site.reference))
                continue

            stack.pop()
            for visited in frame.chain:
                visiting.discard(visited)
            outcome = self._settle(frame)

        return outcome

    def _follow(self, frame: _Frame, visiting: set[str]) -> None:
        """Follow whole-value aliases until a terminal, a failure or a composite."""
        while True:
            cached = self._cache.get(frame.current)
            if cached is not None:
                frame.cached = cached
                frame.status, frame.value = cached.status, cached.value
                return

            token = self.graph.get(frame.current)
            if token is None:
                frame.status = ResolutionStatus.MISSING
                frame.value = frame.via.raw if frame.via is not None else None
                logger.debug(f"Reference to missing token '{frame.current}'")
                return

            if frame.current in visiting:
                frame.status, frame.value = ResolutionStatus.CYCLIC, token.value
                logger.debug(f"Cycle detected at '{frame.current}'")
                return

            visiting.add(frame.current)
            frame.chain.append(frame.current)
            parsed = self.graph.values[frame.current]

            if isinstance(parsed, Alias):
                frame.via = parsed.reference
                frame.current = parsed.reference.path
                continue

            if isinstance(parsed, Composite):
                frame.composite = parsed
                frame.spliced = _thaw(parsed.value)
                return

            frame.status, frame.value = ResolutionStatus.RESOLVED, parsed.value
            return

    def _splice(self, frame: _Frame, outcome: ResolutionResult) -> None:
        """Take the result of one composite site; finish the frame after the last."""
        sites = frame.composite.sites
        frame.statuses.append(outcome.status)
        if outcome.is_resolved:
            set_at(frame.spliced, sites[frame.site_index].location, _thaw(outcome.value))

        frame.site_index += 1
        if frame.site_index == len(sites):
            frame.status = ResolutionStatus.worst(frame.statuses)
            frame.value = frame.spliced

    def _settle(self, frame: _Frame) -> ResolutionResult:
        """Build the result of a finished frame, caching resolved chains."""
        if not frame.chain:
            if frame.cached is not None:
                return frame.cached
            return ResolutionResult(path=frame.path, status=frame.status, value=frame.value)

        if frame.status == ResolutionStatus.RESOLVED:
            results = [
                ResolutionResult(path=p, status=frame.status, value=frame.value)
                for p in frame.chain
            ]
            if self.memoize:
                for result in results:
                    self._cache[result.path] = result
            return results[0]

        # Unresolved: the token keeps its own declared form. A composite at
        # the head of the chain keeps whichever fields did resolve.
        if len(frame.chain) == 1 and frame.composite is not None:
            return ResolutionResult(path=frame.path, status=frame.status, value=frame.spliced)
        return ResolutionResult(
            path=frame.path,
            status=frame.status,
            value=self.graph.tokens[frame.path].value,
        )


def resolve_token(
    path: str,
    graph: TokenGraph,
    resolver: TokenResolver | None = None,
) -> ResolutionResult | None:
    """
    Resolve a single token path.

    Args:
        path: Token path to resolve
        graph: Graph built by build_token_graph
        resolver: Optional resolver to share its cache across calls in one
            session. A fresh resolver is used if not provided.

    Returns:
        ResolutionResult, or None if the path is not a token in the graph
    """
    if path not in graph:
        return None
    if resolver is None:
        resolver = TokenResolver(graph)
    elif resolver.graph is not graph:
        raise ValueError("resolver was built for a different graph")
    return resolver.resolve(path)
