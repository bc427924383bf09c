"""CLI entry point for tokensync.

Usage:
    tokensync resolve tokens/primitives.json tokens/semantic.json
    tokensync resolve tokens/*.json --path Color/brand --output json
    tokensync duplicates tokens/*.json --scope tokens/semantic.json
    tokensync cycles tokens/*.json
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..analysis.duplicates import value_key
from ..core.config import ResolverConfig, get_config, reload_config
from ..core.exceptions import TokenSyncError
from ..orchestrator import ResolutionSession, load_token_file, load_token_files
from ..output.formatters import STATUS_STYLES, CSVFormatter, JSONFormatter, TableFormatter
from ..resolution.cycles import detect_cycles, format_cycle_warnings
from ..resolution.graph import build_token_graph
from ..resolution.resolver import resolve_token

# Initialize app
app = typer.Typer(
    name="tokensync",
    help="Design token reference graph and resolver",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )


def load_settings(config: Optional[Path]) -> ResolverConfig:
    """Load the resolver config, from a YAML file if one was given."""
    if config:
        return reload_config(config)
    return get_config()


def fail(message: str) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error: {escape(message)}[/]")
    raise typer.Exit(1)


@app.command()
def resolve(
    files: List[Path] = typer.Argument(..., help="Token JSON files; later files override earlier ones"),
    path: Optional[str] = typer.Option(
        None,
        "--path", "-p",
        help="Resolve a single token path (e.g. Color/brand)",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json, csv",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save output to file",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML resolver config",
    ),
    unresolved: bool = typer.Option(
        False,
        "--unresolved", "-u",
        help="Only list missing and cyclic tokens",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with status 1 if any token is missing or cyclic",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Resolve every token (or one path) to its concrete value.

    Examples:
        tokensync resolve primitives.json semantic.json
        tokensync resolve tokens.json --path Color/brand
        tokensync resolve tokens.json --output json --save build/resolved
    """
    setup_logging(verbose)

    output_lower = output.lower()
    if output_lower not in ("table", "json", "csv"):
        fail(f"Invalid output format: {output}. Use table, json or csv")

    try:
        settings = load_settings(config)
        session = ResolutionSession(config=settings)

        if path:
            graph = session.build(load_token_files(files))
            result = resolve_token(path, graph, session.resolver)
            if result is None:
                fail(f"Token not found: {path}")
            if output_lower == "json":
                typer.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
            else:
                style = STATUS_STYLES[result.status]
                console.print(
                    f"[cyan]{escape(result.path)}[/] [{style}]{result.status.value}[/] "
                    f"{escape(value_key(result.value))}"
                )
            if strict and not result.is_resolved:
                raise typer.Exit(1)
            return

        report = session.run_files(files)

    except TokenSyncError as e:
        fail(str(e))

    # Format output
    if output_lower == "json":
        formatter = JSONFormatter(include_resolved=not unresolved)
    elif output_lower == "csv":
        formatter = CSVFormatter(only_unresolved=unresolved)
    else:
        formatter = TableFormatter(only_unresolved=unresolved)

    typer.echo(formatter.format(report))

    # Save if requested
    if save:
        save.parent.mkdir(parents=True, exist_ok=True)

        if output_lower == "json":
            save_path = save.with_suffix(".json")
        elif output_lower == "csv":
            save_path = save.with_suffix(".csv")
        else:
            save_path = save.with_suffix(".txt")

        formatter.format_to_file(report, str(save_path))
        console.print(f"[green]Saved to {escape(str(save_path))}[/]")

    if strict and not report.is_clean:
        raise typer.Exit(1)


@app.command()
def duplicates(
    files: List[Path] = typer.Argument(..., help="Token JSON files used to resolve references"),
    scope: Optional[Path] = typer.Option(
        None,
        "--scope",
        help="Only look for duplicates in this token file",
    ),
    token_types: Optional[List[str]] = typer.Option(
        None,
        "--type", "-t",
        help="Token type to compare (repeatable, default from config)",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML resolver config",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    List tokens that resolve to the same value.
    """
    setup_logging(verbose)

    try:
        session = ResolutionSession(config=load_settings(config))
        session.build(load_token_files(files))
        scope_tree = load_token_file(scope) if scope else None
    except TokenSyncError as e:
        fail(str(e))

    groups = session.find_duplicates(scope_tree, types=token_types or None)

    if output.lower() == "json":
        typer.echo(json.dumps([g.model_dump() for g in groups], indent=2, ensure_ascii=False))
        return

    if not groups:
        console.print("[green]No duplicate values found[/]")
        return

    table = Table(title="Duplicate Values")
    table.add_column("Value", style="green")
    table.add_column("#", justify="right")
    table.add_column("Tokens", style="cyan")
    for group in groups:
        table.add_row(escape(group.value), str(len(group.tokens)), escape("\n".join(group.tokens)))
    console.print(table)


@app.command()
def cycles(
    files: List[Path] = typer.Argument(..., help="Token JSON files"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML resolver config",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Report circular references. Exits with status 1 if any are found.
    """
    setup_logging(verbose)

    try:
        settings = load_settings(config)
        graph = build_token_graph(*load_token_files(files), config=settings)
    except TokenSyncError as e:
        fail(str(e))

    warnings = format_cycle_warnings(detect_cycles(graph))
    if not warnings:
        console.print(f"[green]No circular references in {len(graph)} tokens[/]")
        return

    console.print("[bold red]Circular references detected:[/]")
    for warning in warnings:
        console.print(f"  {escape(warning.message)}")
    raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"tokensync v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
