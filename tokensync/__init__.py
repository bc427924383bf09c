"""tokensync - design token reference graph and resolver.

Walks hierarchical design token trees, builds the graph of alias references
between tokens, and resolves every token to a concrete value with explicit
statuses for missing references and reference cycles.
"""

__version__ = "0.1.0"
