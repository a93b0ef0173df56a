"""Rich terminal output helpers for the CLI."""

import io

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from prompt_blueprint.dimensions import DIMENSIONS, DimensionCoverage, coverage_score
from prompt_blueprint.document import Document, Section
from prompt_blueprint.linter import LintReport
from prompt_blueprint.toolset import ToolSignature

_STATUS_STYLES = {
    "heading": "green",
    "mention": "yellow",
    "missing": "red",
}


class Renderer:
    """Render lint reports, tables, and outlines in the terminal."""

    def __init__(self, output_file: io.TextIOBase | None = None) -> None:
        if output_file is not None:
            self.console = Console(file=output_file, highlight=False, width=120)
        else:
            self.console = Console(highlight=False)

    def render_markdown(self, text: str) -> None:
        self.console.print(Markdown(text))

    def print_error(self, message: str) -> None:
        """Print a styled error message."""
        self.console.print(f"[red]{escape(message)}[/red]", highlight=False)

    def print_info(self, message: str) -> None:
        """Print a styled informational message."""
        self.console.print(f"[dim]{escape(message)}[/dim]", highlight=False)

    def print_warning(self, message: str) -> None:
        """Print a styled warning message."""
        self.console.print(f"[yellow]{escape(message)}[/yellow]", highlight=False)

    def print_success(self, message: str) -> None:
        """Print a styled success message."""
        self.console.print(f"[green]{escape(message)}[/green]", highlight=False)

    def render_report(self, report: LintReport) -> None:
        """Print one line per issue followed by a summary."""
        name = str(report.path) if report.path else "<text>"
        for issue in report.issues:
            location = f"{name}:{issue.line}" if issue.line else name
            style = "red" if issue.is_error else "yellow"
            self.console.print(
                f"{escape(location)}: [{style}]{issue.severity}[/{style}] "
                f"[bold]{issue.code}[/bold] {escape(issue.message)}",
                highlight=False,
                markup=True,
            )

        summary = (
            f"{len(report.errors)} error(s), {len(report.warnings)} warning(s); "
            f"{report.section_count} top-level section(s), {len(report.signatures)} tool(s)"
        )
        if report.coverages:
            summary += f", dimension coverage {coverage_score(report.coverages):.0%}"
        if report.token_count is not None:
            summary += f", ~{report.token_count} tokens"
        if report.ok:
            self.print_success(f"✓ {name}: {summary}")
        else:
            self.print_error(f"✗ {name}: {summary}")

    def render_coverage(self, coverages: list[DimensionCoverage]) -> None:
        table = Table(title="Dimension coverage")
        table.add_column("#", justify="right")
        table.add_column("Dimension")
        table.add_column("Status")
        table.add_column("Sections")
        table.add_column("Mentions", justify="right")
        for idx, coverage in enumerate(coverages, start=1):
            style = _STATUS_STYLES.get(coverage.status, "")
            table.add_row(
                str(idx),
                coverage.dimension.title,
                f"[{style}]{coverage.status}[/{style}]",
                escape(", ".join(s.title for s in coverage.sections)),
                str(coverage.mentions),
            )
        self.console.print(table)
        self.console.print(f"Coverage: {coverage_score(coverages):.0%}")

    def render_taxonomy(self) -> None:
        table = Table(title="Design dimensions")
        table.add_column("#", justify="right")
        table.add_column("Key")
        table.add_column("Title")
        table.add_column("Description")
        for idx, dimension in enumerate(DIMENSIONS, start=1):
            table.add_row(str(idx), dimension.key, dimension.title, dimension.description)
        self.console.print(table)

    def render_tools(self, signatures: list[ToolSignature]) -> None:
        table = Table(title=f"Tools ({len(signatures)})")
        table.add_column("Signature", no_wrap=True)
        table.add_column("Description")
        for sig in signatures:
            table.add_row(escape(sig.signature_text()), escape(sig.description))
        self.console.print(table)

    def render_outline(self, document: Document) -> None:
        label = document.title or (str(document.path) if document.path else "document")
        tree = Tree(f"[bold]{escape(label)}[/bold]")

        def add(node: Tree, section: Section) -> None:
            branch = node.add(f"{escape(section.title)} [dim](line {section.line})[/dim]")
            for child in section.children:
                add(branch, child)

        for section in document.sections:
            if document.title and section.level == 1:
                for child in section.children:
                    add(tree, child)
            else:
                add(tree, section)
        self.console.print(tree)
