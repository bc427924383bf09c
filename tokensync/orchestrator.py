"""Resolution session - runs the full resolution pipeline over token files.

Coordinates the walker, graph builder, resolver, cycle detector and
duplicate detection to produce a ResolutionReport. One session builds one
graph; nothing is shared between sessions.
"""

import json
import logging
from pathlib import Path
from typing import Any

from . import __version__
from .analysis.duplicates import group_duplicate_values
from .core.config import ResolverConfig, get_config
from .core.exceptions import TokenSourceError
from .core.models import DuplicateGroup, ResolutionReport, ResolutionResult
from .resolution.cycles import detect_cycles, format_cycle_warnings
from .resolution.graph import TokenGraph, build_token_graph
from .resolution.resolver import TokenResolver
from .resolution.walker import TokenTreeWalker, collect_unknown_token_types

logger = logging.getLogger(__name__)


def load_token_file(path: Path | str) -> dict[str, Any]:
    """
    Load one JSON token file.

    Raises:
        TokenSourceError: If the file is missing, unreadable, not JSON, or
            not a JSON object at the top level
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise TokenSourceError(str(path), "file not found")
    except json.JSONDecodeError as e:
        raise TokenSourceError(str(path), f"invalid JSON: {e.msg} (line {e.lineno})")
    except OSError as e:
        raise TokenSourceError(str(path), str(e))

    if not isinstance(data, dict):
        raise TokenSourceError(str(path), "top-level value must be a JSON object")
    return data


def load_token_files(paths: list[Path] | list[str]) -> list[dict[str, Any]]:
    """Load several JSON token files, in order."""
    trees = []
    for path in paths:
        trees.append(load_token_file(path))
        logger.debug(f"Loaded token file {path}")
    return trees


class ResolutionSession:
    """Runs one resolution pass over a complete set of token trees."""

    def __init__(self, config: ResolverConfig | None = None):
        """
        Initialize the session.

        Args:
            config: Resolver configuration. Uses the global config if not
                provided.
        """
        self.config = config or get_config()
        self.graph: TokenGraph | None = None
        self.resolver: TokenResolver | None = None

    def build(self, trees: list[dict[str, Any]]) -> TokenGraph:
        """Build this session's graph from the given trees."""
        self.graph = build_token_graph(*trees, config=self.config)
        self.resolver = TokenResolver(
            self.graph,
            memoize=self.config.memoize,
            verify_determinism=self.config.verify_determinism,
        )
        return self.graph

    def resolve(self, path: str) -> ResolutionResult:
        """Resolve one path against the session graph."""
        if self.resolver is None:
            raise RuntimeError("build() must be called before resolve()")
        return self.resolver.resolve(path)

    def find_duplicates(
        self,
        duplicate_scope: dict[str, Any] | None = None,
        types: list[str] | None = None,
    ) -> list[DuplicateGroup]:
        """
        Group tokens of the session graph that share a resolved value.

        Args:
            duplicate_scope: Tree whose leaves are the candidates. Defaults
                to every token in the graph.
            types: Token types to compare (default: config.duplicate_types)
        """
        if self.graph is None:
            raise RuntimeError("build() must be called before find_duplicates()")
        if duplicate_scope is not None:
            candidates = [token for _, token in TokenTreeWalker(self.config).walk(duplicate_scope)]
        else:
            candidates = list(self.graph.tokens.values())
        return group_duplicate_values(
            self.graph,
            candidates,
            types or self.config.duplicate_types,
            self.resolver,
        )

    def run(
        self,
        trees: list[dict[str, Any]],
        sources: list[str] | None = None,
        duplicate_scope: dict[str, Any] | None = None,
    ) -> ResolutionReport:
        """
        Resolve every token and collect the session report.

        Args:
            trees: Token trees, later trees overriding earlier ones
            sources: Names of the trees' sources, for the report
            duplicate_scope: Tree to search for duplicates. Defaults to every
                token of the session graph.

        Returns:
            ResolutionReport with per-path results and diagnostics
        """
        logger.info(f"Starting resolution session over {len(trees)} source(s)")

        # Step 1: Build graph
        graph = self.build(trees)
        logger.info(f"Step 1: Built graph with {len(graph)} tokens ({graph.alias_count} aliased)")
        for diagnostic in graph.diagnostics:
            logger.debug(f"Skipped '{diagnostic.path}': {diagnostic.reason}")

        # Step 2: Resolve every token
        results = self.resolver.resolve_all()
        for result in results.values():
            if not result.is_resolved:
                logger.warning(f"Token '{result.path}' is {result.status.value}")
        logger.info("Step 2: Resolved all tokens")

        # Step 3: Report cycles across the whole graph
        cycle_warnings = format_cycle_warnings(detect_cycles(graph))
        for warning in cycle_warnings:
            logger.warning(warning.message)

        # Step 4: Duplicate values
        duplicates = self.find_duplicates(duplicate_scope)
        logger.info(f"Step 4: Found {len(duplicates)} duplicate value group(s)")

        unknown_types: dict[str, int] = {}
        for tree in trees:
            for type_name, count in collect_unknown_token_types(tree, self.config).items():
                unknown_types[type_name] = unknown_types.get(type_name, 0) + count

        return ResolutionReport(
            sources=sources or [],
            results=results,
            cycles=cycle_warnings,
            duplicates=duplicates,
            diagnostics=list(graph.diagnostics),
            dangling=graph.dangling_references(),
            unknown_types=unknown_types,
            tool_version=__version__,
        )

    def run_files(
        self,
        paths: list[Path],
        duplicate_scope: Path | None = None,
    ) -> ResolutionReport:
        """Load token files and run a session over them."""
        trees = load_token_files(paths)
        scope = load_token_file(duplicate_scope) if duplicate_scope else None
        return self.run(trees, sources=[str(p) for p in paths], duplicate_scope=scope)
