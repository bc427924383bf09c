"""Tests for the token resolver."""

import sys

import pytest

from tokensync.core.exceptions import NondeterministicResolutionError
from tokensync.core.models import ResolutionResult
from tokensync.core.types import ResolutionStatus
from tokensync.resolution.graph import build_token_graph
from tokensync.resolution.resolver import TokenResolver, resolve_token


def chain_tree(length: int, terminal="#abcdef") -> dict:
    """T0 -> T1 -> ... -> T{length-1}, the last holding a concrete value."""
    tree = {f"T{i}": {"$type": "color", "$value": f"{{T{i + 1}}}"} for i in range(length - 1)}
    tree[f"T{length - 1}"] = {"$type": "color", "$value": terminal}
    return tree


class TestLiteralScenarios:
    """Tests for the basic documented scenarios."""

    def test_alias_resolves(self, brand_graph):
        """Color/brand resolves to the primary color."""
        result = resolve_token("Color/brand", brand_graph)
        assert result.status == ResolutionStatus.RESOLVED
        assert result.value == "#ff0000"
        assert result.path == "Color/brand"

    def test_self_reference_is_cyclic(self, config):
        """A token referencing itself is cyclic and keeps its value."""
        graph = build_token_graph({"A": {"$type": "color", "$value": "{A}"}}, config=config)
        result = resolve_token("A", graph)

        assert result.status == ResolutionStatus.CYCLIC
        assert result.value == "{A}"

    def test_absent_path_returns_none(self, brand_graph):
        """resolve_token returns None for a path not in the graph."""
        assert resolve_token("Color/nope", brand_graph) is None


class TestTokenResolver:
    """Tests for TokenResolver statuses."""

    def test_concrete_values_unchanged(self, theme_graph):
        """Non-referential leaves resolve to themselves."""
        resolver = TokenResolver(theme_graph)
        for path in ["Palette/red/500", "Palette/neutral/0", "Spacing/md"]:
            result = resolver.resolve(path)
            assert result.status == ResolutionStatus.RESOLVED
            assert result.value == theme_graph.tokens[path].value

    def test_concrete_object_unchanged(self, config):
        """A composite without references is returned as declared."""
        value = {"fontFamily": "Inter", "fontSize": 16}
        graph = build_token_graph({"T": {"$type": "typography", "$value": value}}, config=config)
        result = TokenResolver(graph).resolve("T")
        assert result.status == ResolutionStatus.RESOLVED
        assert result.value == value

    def test_chain(self, theme_graph):
        """A two-hop alias reaches the terminal value."""
        result = TokenResolver(theme_graph).resolve("Color/error")
        assert result.status == ResolutionStatus.RESOLVED
        assert result.value == "#e53935"

    def test_two_token_cycle(self, theme_graph):
        """Both tokens of A -> B -> A are cyclic with their own values."""
        resolver = TokenResolver(theme_graph)
        a = resolver.resolve("Loop/a")
        b = resolver.resolve("Loop/b")

        assert a.status == ResolutionStatus.CYCLIC
        assert a.value == "{Loop/b}"
        assert b.status == ResolutionStatus.CYCLIC
        assert b.value == "{Loop/a}"

    def test_missing_target(self, theme_graph):
        """An alias to an absent path is missing and keeps its value."""
        result = TokenResolver(theme_graph).resolve("Color/accent")
        assert result.status == ResolutionStatus.MISSING
        assert result.value == "{Palette/blue/500}"

    def test_missing_propagates_with_own_value(self, config):
        """A token one hop before a missing target keeps its own value."""
        tree = {
            "A": {"$type": "color", "$value": "{B}"},
            "B": {"$type": "color", "$value": "{Gone}"},
        }
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("A")
        assert result.status == ResolutionStatus.MISSING
        assert result.value == "{B}"

    def test_cycle_propagates_with_own_value(self, config):
        """A token leading into a cycle is cyclic with its own value."""
        tree = {
            "Entry": {"$type": "color", "$value": "{A}"},
            "A": {"$type": "color", "$value": "{B}"},
            "B": {"$type": "color", "$value": "{A}"},
        }
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("Entry")
        assert result.status == ResolutionStatus.CYCLIC
        assert result.value == "{A}"

    def test_absent_top_level_path(self, brand_graph):
        """Resolving an absent path directly is missing with no value."""
        result = TokenResolver(brand_graph).resolve("Nope")
        assert result == ResolutionResult(path="Nope", status=ResolutionStatus.MISSING, value=None)

    def test_shared_node_not_flagged_as_cycle(self, config):
        """Two chains through one shared token both resolve."""
        tree = {
            "base": {"$type": "color", "$value": "#123456"},
            "shared": {"$type": "color", "$value": "{base}"},
            "left": {"$type": "color", "$value": "{shared}"},
            "right": {"$type": "color", "$value": "{shared}"},
            "pair": {"$type": "other", "$value": {"l": "{left}", "r": "{right}"}},
        }
        graph = build_token_graph(tree, config=config)

        for memoize in (True, False):
            resolver = TokenResolver(graph, memoize=memoize)
            result = resolver.resolve("pair")
            assert result.status == ResolutionStatus.RESOLVED
            assert result.value == {"l": "#123456", "r": "#123456"}

    def test_long_chain_without_recursion_error(self, config):
        """Chains far longer than the recursion limit resolve."""
        length = sys.getrecursionlimit() * 3
        graph = build_token_graph(chain_tree(length), config=config)
        resolver = TokenResolver(graph)

        result = resolver.resolve("T0")
        assert result.status == ResolutionStatus.RESOLVED
        assert result.value == "#abcdef"

    def test_chain_lengths(self, config):
        """Every chain length resolves to the terminal value."""
        for length in range(1, 30):
            graph = build_token_graph(chain_tree(length, terminal=length), config=config)
            result = resolve_token("T0", graph)
            assert result.status == ResolutionStatus.RESOLVED
            assert result.value == length

    def test_long_cycle(self, config):
        """A cycle longer than the recursion limit is detected."""
        length = sys.getrecursionlimit() * 2
        tree = chain_tree(length)
        tree[f"T{length - 1}"]["$value"] = "{T0}"
        graph = build_token_graph(tree, config=config)

        result = TokenResolver(graph).resolve("T5")
        assert result.status == ResolutionStatus.CYCLIC
        assert result.value == "{T6}"

    def test_long_composite_chain(self, config):
        """Composites nesting the next composite resolve past the recursion limit."""
        length = sys.getrecursionlimit() * 2
        tree = {
            f"T{i}": {"$type": "other", "$value": {"x": f"{{T{i + 1}}}"}}
            for i in range(length)
        }
        tree[f"T{length}"] = {"$type": "color", "$value": "#abcdef"}
        graph = build_token_graph(tree, config=config)

        result = TokenResolver(graph).resolve("T0")
        assert result.status == ResolutionStatus.RESOLVED
        node = result.value
        for _ in range(length):
            node = node["x"]
        assert node == "#abcdef"

    def test_long_composite_cycle(self, config):
        """A cycle through many composites is detected without recursion."""
        length = sys.getrecursionlimit() * 2
        tree = {
            f"T{i}": {"$type": "other", "$value": {"x": f"{{T{(i + 1) % length}}}"}}
            for i in range(length)
        }
        graph = build_token_graph(tree, config=config)

        result = TokenResolver(graph).resolve("T0")
        assert result.status == ResolutionStatus.CYCLIC
        assert result.value == {"x": "{T1}"}

    def test_resolve_all(self, theme_graph):
        """resolve_all covers every token in graph order."""
        results = TokenResolver(theme_graph).resolve_all()

        assert list(results) == list(theme_graph)
        statuses = {path: r.status for path, r in results.items()}
        assert statuses["Color/surface"] == ResolutionStatus.RESOLVED
        assert statuses["Color/accent"] == ResolutionStatus.MISSING
        assert statuses["Loop/a"] == ResolutionStatus.CYCLIC
        assert statuses["Border/focus"] == ResolutionStatus.RESOLVED


class TestCompositeResolution:
    """Tests for per-field resolution of composite values."""

    def test_fields_spliced(self, theme_graph):
        """Each reference field is replaced, other fields untouched."""
        result = TokenResolver(theme_graph).resolve("Border/focus")
        assert result.status == ResolutionStatus.RESOLVED
        assert result.value == {"color": "#e53935", "width": "4px", "style": "solid"}

    def test_declared_value_not_mutated(self, theme_graph):
        """Splicing works on a copy."""
        TokenResolver(theme_graph).resolve("Border/focus")
        assert theme_graph.tokens["Border/focus"].value["color"] == "{Color/danger}"

    def test_failed_field_keeps_reference(self, config):
        """A missing field keeps its reference; resolved fields are spliced."""
        tree = {
            "c": {"$type": "color", "$value": "#000"},
            "border": {
                "$type": "border",
                "$value": {"color": "{c}", "width": "{Size/missing}", "style": "dashed"},
            },
        }
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("border")

        assert result.status == ResolutionStatus.MISSING
        assert result.value == {"color": "#000", "width": "{Size/missing}", "style": "dashed"}

    def test_worst_status_wins(self, config):
        """Cyclic outranks missing across fields."""
        tree = {
            "loop": {"$type": "color", "$value": "{loop}"},
            "shadow": {
                "$type": "shadow",
                "$value": {"color": "{loop}", "offsetX": "{gone}", "blur": "2px"},
            },
        }
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("shadow")
        assert result.status == ResolutionStatus.CYCLIC
        assert result.value == {"color": "{loop}", "offsetX": "{gone}", "blur": "2px"}

    def test_composite_referencing_itself(self, config):
        """A composite field pointing back at its own token is cyclic."""
        tree = {"b": {"$type": "border", "$value": {"color": "{b}", "width": "1px"}}}
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("b")
        assert result.status == ResolutionStatus.CYCLIC
        assert result.value == {"color": "{b}", "width": "1px"}

    def test_nested_composites(self, config):
        """A field can resolve to another composite's resolved value."""
        tree = {
            "black": {"$type": "color", "$value": "#000"},
            "shadow": {"$type": "shadow", "$value": {"color": "{black}", "blur": 4}},
            "card": {"$type": "other", "$value": {"shadows": ["{shadow}", "{shadow}"]}},
        }
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("card")
        assert result.status == ResolutionStatus.RESOLVED
        assert result.value == {
            "shadows": [{"color": "#000", "blur": 4}, {"color": "#000", "blur": 4}]
        }

    def test_alias_to_failed_composite(self, config):
        """An alias to a partly-failed composite keeps its own reference."""
        tree = {
            "border": {"$type": "border", "$value": {"color": "{gone}"}},
            "focus": {"$type": "border", "$value": "{border}"},
        }
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("focus")
        assert result.status == ResolutionStatus.MISSING
        assert result.value == "{border}"

    def test_spliced_values_are_independent(self, config):
        """Splicing the same target twice does not share objects."""
        tree = {
            "shadow": {"$type": "shadow", "$value": {"blur": 4}},
            "pair": {"$type": "other", "$value": ["{shadow}", "{shadow}"]},
        }
        result = TokenResolver(build_token_graph(tree, config=config)).resolve("pair")
        first, second = result.value
        assert first == second
        assert first is not second


class TestFigmaAliases:
    """Tests for aliases declared through Figma extension metadata."""

    def test_extension_alias_followed(self, config):
        """The extension target is resolved, not the exported literal."""
        tree = {
            "Primitives": {"blue": {"$type": "color", "$value": "#0000ff"}},
            "Semantic": {
                "link": {
                    "$type": "color",
                    "$value": "#0000fe",
                    "$extensions": {
                        "com.figma.aliasData": {"targetVariableName": "Primitives/blue"}
                    },
                }
            },
        }
        result = resolve_token("Semantic/link", build_token_graph(tree, config=config))
        assert result.status == ResolutionStatus.RESOLVED
        assert result.value == "#0000ff"

    def test_extension_alias_missing(self, config):
        """A missing extension target is missing with the declared value."""
        tree = {
            "link": {
                "$type": "color",
                "$value": "#0000fe",
                "$extensions": {"com.figma.aliasData": {"targetVariableName": "Gone"}},
            }
        }
        result = resolve_token("link", build_token_graph(tree, config=config))
        assert result.status == ResolutionStatus.MISSING
        assert result.value == "#0000fe"


class TestDeterminism:
    """Tests for idempotence and the memo cache."""

    def test_idempotent(self, theme_graph):
        """Resolving twice gives identical results, cached or not."""
        resolver = TokenResolver(theme_graph)
        for path in theme_graph:
            first = resolver.resolve(path)
            second = resolver.resolve(path)
            fresh = TokenResolver(theme_graph, memoize=False).resolve(path)
            assert first == second == fresh

    def test_cache_holds_only_resolved(self, theme_graph):
        """Missing and cyclic results are never cached."""
        resolver = TokenResolver(theme_graph)
        resolver.resolve("Color/accent")
        resolver.resolve("Loop/a")
        assert resolver.cache_size == 0

        resolver.resolve("Color/error")
        # error, danger and the palette entry
        assert resolver.cache_size == 3

    def test_clear_cache(self, theme_graph):
        """clear_cache empties the cache without changing results."""
        resolver = TokenResolver(theme_graph)
        before = resolver.resolve("Border/focus")
        resolver.clear_cache()
        assert resolver.cache_size == 0
        assert resolver.resolve("Border/focus") == before

    def test_memoize_disabled(self, theme_graph):
        """With memoization off nothing is cached."""
        resolver = TokenResolver(theme_graph, memoize=False)
        resolver.resolve_all()
        assert resolver.cache_size == 0

    def test_cached_value_not_shared_with_caller(self, config):
        """Mutating a returned composite does not change later results."""
        tree = {
            "c": {"$type": "color", "$value": "#000"},
            "border": {"$type": "border", "$value": {"color": "{c}"}},
            "focus": {"$type": "border", "$value": {"outline": "{border}"}},
        }
        resolver = TokenResolver(build_token_graph(tree, config=config))
        resolver.resolve("border")

        focus = resolver.resolve("focus")
        focus.value["outline"]["color"] = "#fff"
        assert resolver.resolve("border").value == {"color": "#000"}

    def test_concrete_object_not_shared(self, config):
        """Mutating a returned object leaves the graph and later results intact."""
        tree = {"body": {"$type": "typography", "$value": {"fontSize": 16}}}
        graph = build_token_graph(tree, config=config)
        resolver = TokenResolver(graph)

        resolver.resolve("body").value["fontSize"] = 99
        assert resolver.resolve("body").value == {"fontSize": 16}
        assert graph.tokens["body"].value == {"fontSize": 16}

    def test_alias_value_not_shared_with_target(self, config):
        """An alias result is a separate object from its target's result."""
        tree = {
            "c": {"$type": "color", "$value": "#000"},
            "border": {"$type": "border", "$value": {"color": "{c}"}},
            "focus": {"$type": "border", "$value": "{border}"},
        }
        resolver = TokenResolver(build_token_graph(tree, config=config))

        resolver.resolve("focus").value["color"] = "#fff"
        assert resolver.resolve("border").value == {"color": "#000"}
        assert resolver.resolve("focus").value == {"color": "#000"}

    def test_verify_determinism(self, theme_graph):
        """Verification passes for a well-behaved resolver."""
        resolver = TokenResolver(theme_graph, verify_determinism=True)
        assert resolver.resolve("Border/focus").is_resolved

    def test_verify_determinism_detects_mismatch(self, brand_graph):
        """A corrupted cache is reported as a fatal error."""
        resolver = TokenResolver(brand_graph, verify_determinism=True)
        resolver._cache["Color/brand"] = ResolutionResult(
            path="Color/brand", status=ResolutionStatus.RESOLVED, value="#00ff00"
        )
        with pytest.raises(NondeterministicResolutionError) as exc_info:
            resolver.resolve("Color/brand")
        assert exc_info.value.path == "Color/brand"

    def test_shared_resolver_other_graph(self, brand_graph, theme_graph):
        """A resolver is tied to its own graph."""
        with pytest.raises(ValueError):
            resolve_token("Color/brand", brand_graph, TokenResolver(theme_graph))
