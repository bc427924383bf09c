"""Pytest configuration and fixtures for tokensync tests."""

import json
from pathlib import Path
from typing import Any

import pytest

from tokensync.core.config import ResolverConfig
from tokensync.resolution.graph import TokenGraph, build_token_graph


def color(value: Any, **extra: Any) -> dict[str, Any]:
    """Build a color leaf token."""
    return {"$type": "color", "$value": value, **extra}


@pytest.fixture
def config() -> ResolverConfig:
    """Default config, independent of TOKENSYNC_* environment variables."""
    return ResolverConfig()


@pytest.fixture
def brand_tree() -> dict[str, Any]:
    """Primary color plus one alias to it."""
    return {
        "Color": {
            "primary": color("#ff0000"),
            "brand": color("{Color/primary}"),
        }
    }


@pytest.fixture
def brand_graph(brand_tree: dict[str, Any], config: ResolverConfig) -> TokenGraph:
    return build_token_graph(brand_tree, config=config)


@pytest.fixture
def theme_tree() -> dict[str, Any]:
    """A realistic tree with chains, composites, a cycle and a dangling alias."""
    return {
        "$description": "Theme tokens",
        "Palette": {
            "red": {"500": color("#e53935"), "600": color("#d32f2f")},
            "neutral": {"0": color("#ffffff"), "900": color("#111111")},
        },
        "Color": {
            "danger": color("{Palette/red/500}"),
            "error": color("{Color/danger}"),
            "surface": color("{Palette/neutral/0}"),
            "text": color("{Palette/neutral/900}"),
            "accent": color("{Palette/blue/500}"),
        },
        "Spacing": {
            "sm": {"$type": "dimension", "$value": "4px"},
            "md": {"$type": "dimension", "$value": "8px"},
        },
        "Border": {
            "focus": {
                "$type": "border",
                "$value": {
                    "color": "{Color/danger}",
                    "width": "{Spacing/sm}",
                    "style": "solid",
                },
            },
        },
        "Loop": {
            "a": color("{Loop/b}"),
            "b": color("{Loop/a}"),
        },
    }


@pytest.fixture
def theme_graph(theme_tree: dict[str, Any], config: ResolverConfig) -> TokenGraph:
    return build_token_graph(theme_tree, config=config)


@pytest.fixture
def write_tokens(tmp_path: Path):
    """Write a token tree to a JSON file under tmp_path and return its path."""

    def _write(name: str, tree: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(tree), encoding="utf-8")
        return path

    return _write
