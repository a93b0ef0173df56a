"""prompt-blueprint CLI entry point."""

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from prompt_blueprint.composer import BlueprintError, compose, load_blueprint
from prompt_blueprint.config import ConfigError, LintConfig, apply_cli_overrides, load_config
from prompt_blueprint.dimensions import DIMENSION_KEYS, DIMENSIONS, assess_coverage, coverage_score
from prompt_blueprint.document import DocumentError, load_document
from prompt_blueprint.linter import lint_document
from prompt_blueprint.renderer import Renderer
from prompt_blueprint.tokens import estimate_tokens
from prompt_blueprint.toolset import REFERENCE_TOOLSET, extract_signatures, to_markdown, to_openai_tool

EXIT_LINT_FAILED = 1
EXIT_USAGE_ERROR = 2

_log = logging.getLogger(__name__)


def _fail(message: str) -> NoReturn:
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(EXIT_USAGE_ERROR)


def _load_config(config_path: Path | None, **overrides) -> LintConfig:
    try:
        return apply_cli_overrides(load_config(config_path), **overrides)
    except ConfigError as e:
        _fail(str(e))


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.version_option(package_name="prompt-blueprint")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Lint, inspect, and compose system-prompt design documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Config file (default: .prompt-blueprint.yaml or ~/.prompt-blueprint/config.yaml)")
@click.option("--expected-sections", type=int, default=None, help="Exact number of top-level sections")
@click.option("--expected-tools", type=int, default=None, help="Exact number of appendix tool signatures")
@click.option("--appendix", "appendix_pattern", default=None, help="Regex matching the appendix heading")
@click.option("--require", "required_dimensions", multiple=True, type=click.Choice(DIMENSION_KEYS),
              help="Dimension that must be covered (repeatable)")
@click.option("--disable", "disabled_rules", multiple=True, help="Rule code to skip (repeatable)")
@click.option("--max-tokens", type=int, default=None, help="Token budget for the whole document")
@click.option("--model", default=None, help="Model used for token counting")
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def lint(
    paths: tuple[Path, ...],
    config_path: Path | None,
    expected_sections: int | None,
    expected_tools: int | None,
    appendix_pattern: str | None,
    required_dimensions: tuple[str, ...],
    disabled_rules: tuple[str, ...],
    max_tokens: int | None,
    model: str | None,
    strict: bool,
    output_format: str,
) -> None:
    """Check the structure of one or more documents."""
    config = _load_config(
        config_path,
        expected_sections=expected_sections,
        expected_tools=expected_tools,
        appendix_pattern=appendix_pattern,
        required_dimensions=required_dimensions,
        disabled_rules=disabled_rules,
        max_tokens=max_tokens,
        model=model,
        strict=strict,
    )

    reports = []
    for path in paths:
        try:
            document = load_document(path)
        except DocumentError as e:
            _fail(str(e))
        reports.append(lint_document(document, config))

    if output_format == "json":
        _echo_json([r.to_dict() for r in reports])
    else:
        renderer = Renderer()
        for report in reports:
            renderer.render_report(report)

    if not all(r.ok for r in reports):
        sys.exit(EXIT_LINT_FAILED)


@main.command()
@click.argument("path", required=False, type=click.Path(path_type=Path))
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None)
@click.option("--appendix", "appendix_pattern", default=None, help="Regex matching the appendix heading")
@click.option("--format", "output_format",
              type=click.Choice(["table", "openai", "markdown", "json"]), default="table")
def tools(path: Path | None, config_path: Path | None, appendix_pattern: str | None, output_format: str) -> None:
    """List tool signatures from a document's appendix (or the reference toolset)."""
    if path is None:
        signatures = list(REFERENCE_TOOLSET)
    else:
        pattern = _load_config(config_path, appendix_pattern=appendix_pattern).appendix_pattern
        try:
            document = load_document(path)
        except DocumentError as e:
            _fail(str(e))
        appendix = document.find_appendix(pattern)
        if appendix is None:
            _fail(f"No section heading matches {pattern!r} in {path}")
        signatures, errors = extract_signatures(appendix)
        stderr = Renderer(output_file=sys.stderr)
        for line, message in errors:
            stderr.print_warning(f"{path}:{line}: {message}")

    if output_format == "openai":
        _echo_json([to_openai_tool(s) for s in signatures])
    elif output_format == "json":
        _echo_json([s.to_dict() for s in signatures])
    elif output_format == "markdown":
        click.echo(to_markdown(signatures))
    else:
        Renderer().render_tools(signatures)


@main.command()
@click.argument("path", required=False, type=click.Path(path_type=Path))
@click.option("--min-mentions", type=int, default=2, show_default=True,
              help="Keyword hits needed when no heading matches")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
def dimensions(path: Path | None, min_mentions: int, output_format: str) -> None:
    """Show dimension coverage for a document (or the taxonomy itself)."""
    if path is None:
        if output_format == "json":
            _echo_json([
                {"key": d.key, "title": d.title, "description": d.description, "keywords": list(d.keywords)}
                for d in DIMENSIONS
            ])
        else:
            Renderer().render_taxonomy()
        return

    try:
        document = load_document(path)
    except DocumentError as e:
        _fail(str(e))
    coverages = assess_coverage(document, min_mentions=min_mentions)

    if output_format == "json":
        _echo_json({
            "score": coverage_score(coverages),
            "dimensions": [
                {
                    "key": c.dimension.key,
                    "status": c.status,
                    "sections": [s.title for s in c.sections],
                    "mentions": c.mentions,
                }
                for c in coverages
            ],
        })
    else:
        Renderer().render_coverage(coverages)


@main.command()
@click.argument("path", type=click.Path(path_type=Path))
def outline(path: Path) -> None:
    """Print the heading tree of a document."""
    try:
        document = load_document(path)
    except DocumentError as e:
        _fail(str(e))
    Renderer().render_outline(document)


@main.command(name="compose")
@click.argument("blueprint_path", type=click.Path(path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Write the prompt to a file instead of stdout")
@click.option("--no-project-instructions", is_flag=True,
              help="Do not include AGENTS.md / CLAUDE.md / global instructions")
@click.option("--render", is_flag=True, help="Show the prompt as formatted markdown instead of raw text")
def compose_command(
    blueprint_path: Path, output: Path | None, no_project_instructions: bool, render: bool
) -> None:
    """Build a system prompt from a YAML blueprint."""
    try:
        blueprint = load_blueprint(blueprint_path)
    except BlueprintError as e:
        _fail(str(e))

    prompt, loaded_files = compose(blueprint, include_project_instructions=not no_project_instructions)
    stderr = Renderer(output_file=sys.stderr)
    for path in loaded_files:
        stderr.print_info(f"Loaded project instructions from: {path}")

    if output is None:
        if render:
            Renderer().render_markdown(prompt)
        else:
            click.echo(prompt, nl=False)
        return
    try:
        output.write_text(prompt, encoding="utf-8")
    except OSError as e:
        _fail(f"Could not write {output}: {e}")
    stderr.print_info(f"Wrote {output}")


@main.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--model", default="gpt-4", show_default=True, help="Model whose tokenizer to use")
def tokens(path: Path, model: str) -> None:
    """Estimate the token count of a document."""
    try:
        document = load_document(path)
    except DocumentError as e:
        _fail(str(e))
    click.echo(str(estimate_tokens(document.text, model)))
