"""Cycle detection over a token graph.

Unlike the resolver, which flags a cycle only for the path being resolved,
this walks every edge once and reports each distinct cycle as a chain
that starts and ends on the same token, e.g. ["A", "B", "A"].
"""

import logging
from collections.abc import Iterator

from ..core.models import CycleReport, CycleWarning
from .graph import TokenGraph

logger = logging.getLogger(__name__)

CYCLE_ARROW = " → "


def detect_cycles(graph: TokenGraph) -> CycleReport:
    """
    Find reference cycles with a depth-first search over alias edges.

    Targets are visited in sorted order so the report is stable for a
    given graph.

    Args:
        graph: Token graph

    Returns:
        CycleReport listing each cycle found
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()

    for start in graph.edges:
        if start in visited:
            continue

        chain = [start]
        in_chain = {start}
        visited.add(start)
        stack: list[Iterator[str]] = [iter(sorted(graph.references_of(start)))]

        while stack:
            target = next(stack[-1], None)
            if target is None:
                stack.pop()
                in_chain.discard(chain.pop())
                continue

            if target in in_chain:
                cycle = chain[chain.index(target):] + [target]
                cycles.append(cycle)
                logger.debug(f"Found cycle: {CYCLE_ARROW.join(cycle)}")
            elif target not in visited:
                visited.add(target)
                in_chain.add(target)
                chain.append(target)
                stack.append(iter(sorted(graph.references_of(target))))

    return CycleReport(has_cycles=bool(cycles), cycles=cycles)


def format_cycle_warnings(report: CycleReport) -> list[CycleWarning]:
    """Turn a cycle report into human-readable warnings."""
    return [
        CycleWarning(chain=chain, message=f"Circular reference: {CYCLE_ARROW.join(chain)}")
        for chain in report.cycles
    ]
