"""Output formatters for resolution reports.

Provides multiple output formats:
- JSON: Machine-readable, complete data
- CSV: Spreadsheet-compatible, one row per token
- Table: Human-readable CLI output
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..analysis.duplicates import value_key
from ..core.models import ResolutionReport
from ..core.types import ResolutionStatus

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    ResolutionStatus.RESOLVED: "green",
    ResolutionStatus.MISSING: "yellow",
    ResolutionStatus.CYCLIC: "red",
}


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, report: ResolutionReport) -> str:
        """Format the report as a string."""
        pass

    @abstractmethod
    def format_to_file(self, report: ResolutionReport, filepath: str) -> None:
        """Write formatted report to a file."""
        pass


class JSONFormatter(OutputFormatter):
    """Formats reports as JSON."""

    def __init__(self, indent: int = 2, include_resolved: bool = True):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            include_resolved: Include resolved tokens, not only failures
        """
        self.indent = indent
        self.include_resolved = include_resolved

    def _serialize(self, obj: Any) -> Any:
        """Custom serialization for complex types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "model_dump"):
            return obj.model_dump()
        if hasattr(obj, "value"):
            # Enum
            return obj.value
        return str(obj)

    def format(self, report: ResolutionReport) -> str:
        """Format report as JSON string."""
        data = report.model_dump()
        data["status_counts"] = report.status_counts

        if not self.include_resolved:
            data["results"] = {
                path: result
                for path, result in data["results"].items()
                if result["status"] != ResolutionStatus.RESOLVED
            }

        return json.dumps(data, default=self._serialize, indent=self.indent, ensure_ascii=False)

    def format_to_file(self, report: ResolutionReport, filepath: str) -> None:
        """Write JSON to file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format(report))


class CSVFormatter(OutputFormatter):
    """Formats resolution results as CSV."""

    def __init__(
        self,
        delimiter: str = ",",
        include_diagnostics: bool = True,
        only_unresolved: bool = False,
    ):
        """
        Initialize CSV formatter.

        Args:
            delimiter: CSV delimiter
            include_diagnostics: Append cycle, duplicate and skipped-node sections
            only_unresolved: List only missing and cyclic tokens
        """
        self.delimiter = delimiter
        self.include_diagnostics = include_diagnostics
        self.only_unresolved = only_unresolved

    def format(self, report: ResolutionReport) -> str:
        """Format report as CSV string."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter)

        # 1. Results
        writer.writerow(["# Resolution Results"])
        writer.writerow(["Path", "Status", "Value"])
        rows = report.unresolved if self.only_unresolved else report.results.values()
        for result in rows:
            writer.writerow([result.path, result.status.value, value_key(result.value)])

        if not self.include_diagnostics:
            return output.getvalue()

        # 2. Cycles
        if report.cycles:
            writer.writerow([])
            writer.writerow(["# Reference Cycles"])
            writer.writerow(["Chain"])
            for warning in report.cycles:
                writer.writerow([" > ".join(warning.chain)])

        # 3. Missing reference targets
        if report.dangling:
            writer.writerow([])
            writer.writerow(["# Missing References"])
            writer.writerow(["Target", "Referenced By"])
            for target, sources in report.dangling.items():
                writer.writerow([target, "; ".join(sources)])

        # 4. Duplicates
        if report.duplicates:
            writer.writerow([])
            writer.writerow(["# Duplicate Values"])
            writer.writerow(["Value", "Count", "Tokens"])
            for group in report.duplicates:
                writer.writerow([group.value, len(group.tokens), "; ".join(group.tokens)])

        # 5. Skipped nodes
        if report.diagnostics:
            writer.writerow([])
            writer.writerow(["# Skipped Nodes"])
            writer.writerow(["Path", "Reason"])
            for diagnostic in report.diagnostics:
                writer.writerow([diagnostic.path, diagnostic.reason])

        return output.getvalue()

    def format_to_file(self, report: ResolutionReport, filepath: str) -> None:
        """Write CSV to file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(self.format(report))


class TableFormatter(OutputFormatter):
    """Formats reports as human-readable tables for CLI output."""

    def __init__(self, use_rich: bool = True, width: int = 100, only_unresolved: bool = False):
        """
        Initialize table formatter.

        Args:
            use_rich: Use rich for colored output
            width: Maximum table width
            only_unresolved: List only missing and cyclic tokens
        """
        self.use_rich = use_rich
        self.width = width
        self.only_unresolved = only_unresolved

    def _rows(self, report: ResolutionReport):
        if self.only_unresolved:
            return report.unresolved
        return list(report.results.values())

    def format(self, report: ResolutionReport) -> str:
        """Format report as readable tables."""
        if self.use_rich:
            return self._format_rich(report)
        return self._format_plain(report)

    def _format_plain(self, report: ResolutionReport) -> str:
        """Plain text formatting without colors."""
        lines = []
        sep = "=" * 60
        counts = report.status_counts

        # Header
        lines.append(sep)
        lines.append("  TOKEN RESOLUTION REPORT")
        if report.sources:
            lines.append(f"  Sources: {', '.join(report.sources)}")
        lines.append(sep)
        lines.append("")

        lines.append("SUMMARY")
        lines.append("-" * 40)
        lines.append(f"  Tokens:    {len(report.results)}")
        lines.append(f"  Resolved:  {counts['resolved']}")
        lines.append(f"  Missing:   {counts['missing']}")
        lines.append(f"  Cyclic:    {counts['cyclic']}")
        lines.append("")

        lines.append("TOKENS")
        lines.append("-" * 40)
        rows = self._rows(report)
        if rows:
            width = max(len(r.path) for r in rows)
            for result in rows:
                lines.append(f"  {result.path:<{width}}  {result.status.value:<8}  {value_key(result.value)}")
        else:
            lines.append("  No tokens to show")
        lines.append("")

        if report.cycles:
            lines.append("REFERENCE CYCLES")
            lines.append("-" * 40)
            for warning in report.cycles:
                lines.append(f"  {warning.message}")
            lines.append("")

        if report.dangling:
            lines.append("MISSING REFERENCES")
            lines.append("-" * 40)
            for target, sources in report.dangling.items():
                lines.append(f"  {target} <- {', '.join(sources)}")
            lines.append("")

        if report.duplicates:
            lines.append("DUPLICATE VALUES")
            lines.append("-" * 40)
            for group in report.duplicates:
                lines.append(f"  {group.value} ({len(group.tokens)} tokens)")
                for path in group.tokens:
                    lines.append(f"    - {path}")
            lines.append("")

        if report.diagnostics:
            lines.append("SKIPPED NODES")
            lines.append("-" * 40)
            for diagnostic in report.diagnostics:
                lines.append(f"  {diagnostic.path or '<root>'}: {diagnostic.reason}")
            lines.append("")

        # Footer
        lines.append(sep)
        lines.append(f"  Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append(sep)

        return "\n".join(lines)

    def _format_rich(self, report: ResolutionReport) -> str:
        """Rich library formatting with colors."""
        output = io.StringIO()
        console = Console(file=output, force_terminal=True, width=self.width)
        counts = report.status_counts

        # Title
        console.print(Panel(
            f"[bold cyan]{len(report.results)}[/] tokens  "
            f"[green]{counts['resolved']} resolved[/]  "
            f"[yellow]{counts['missing']} missing[/]  "
            f"[red]{counts['cyclic']} cyclic[/]",
            title="Token Resolution",
            expand=False,
        ))

        rows = self._rows(report)
        if rows:
            token_table = Table(title="Tokens")
            token_table.add_column("Path", style="cyan")
            token_table.add_column("Status")
            token_table.add_column("Value", style="dim")
            for result in rows:
                style = STATUS_STYLES[result.status]
                token_table.add_row(
                    escape(result.path),
                    f"[{style}]{result.status.value}[/]",
                    escape(value_key(result.value)),
                )
            console.print(token_table)

        if report.cycles:
            console.print("\n[bold red]Reference Cycles:[/]")
            for warning in report.cycles:
                console.print(f"  - {escape(warning.message)}")

        if report.dangling:
            console.print("\n[bold yellow]Missing References:[/]")
            for target, sources in report.dangling.items():
                console.print(f"  - {escape(target)} <- {escape(', '.join(sources))}")

        if report.duplicates:
            dup_table = Table(title="Duplicate Values")
            dup_table.add_column("Value", style="green")
            dup_table.add_column("#", justify="right")
            dup_table.add_column("Tokens", style="cyan")
            for group in report.duplicates:
                dup_table.add_row(escape(group.value), str(len(group.tokens)), escape("\n".join(group.tokens)))
            console.print(dup_table)

        if report.diagnostics:
            console.print("\n[bold yellow]Skipped Nodes:[/]")
            for diagnostic in report.diagnostics:
                console.print(f"  - {escape(diagnostic.path or '<root>')}: {escape(diagnostic.reason)}")

        return output.getvalue()

    def format_to_file(self, report: ResolutionReport, filepath: str) -> None:
        """Write formatted output to file."""
        # For file output, use plain format (no ANSI codes)
        old_rich = self.use_rich
        self.use_rich = False
        content = self.format(report)
        self.use_rich = old_rich

        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
