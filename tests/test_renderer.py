"""Tests for Rich-based terminal renderer."""

import io
from unittest.mock import MagicMock, patch

from rich.markdown import Markdown

from conftest import ESSAY
from prompt_blueprint.dimensions import assess_coverage
from prompt_blueprint.document import parse_document
from prompt_blueprint.linter import lint_document
from prompt_blueprint.renderer import Renderer
from prompt_blueprint.toolset import REFERENCE_TOOLSET


def render_to_text(callback) -> str:
    buffer = io.StringIO()
    callback(Renderer(output_file=buffer))
    return buffer.getvalue()


class TestStatusMessages:
    """Verify styled one-line output."""

    @patch("prompt_blueprint.renderer.Console")
    def test_render_markdown_prints_markdown(self, mock_console_cls):
        mock_console = MagicMock()
        mock_console_cls.return_value = mock_console
        Renderer().render_markdown("# Hello")
        assert isinstance(mock_console.print.call_args.args[0], Markdown)

    @patch("prompt_blueprint.renderer.Console")
    def test_print_error_outputs_styled_message(self, mock_console_cls):
        """print_error() prints red-styled message without auto-highlighting."""
        mock_console = MagicMock()
        mock_console_cls.return_value = mock_console
        Renderer().print_error("boom")
        mock_console.print.assert_called_once_with("[red]boom[/red]", highlight=False)

    @patch("prompt_blueprint.renderer.Console")
    def test_markup_in_message_is_escaped(self, mock_console_cls):
        mock_console = MagicMock()
        mock_console_cls.return_value = mock_console
        Renderer().print_warning("list[bold]")
        mock_console.print.assert_called_once_with("[yellow]list\\[bold][/yellow]", highlight=False)


class TestReports:
    """Verify rendered reports and tables contain the expected text."""

    def test_clean_report_summary(self):
        report = lint_document(parse_document(ESSAY))
        text = render_to_text(lambda r: r.render_report(report))
        assert "DIMENSION_UNCOVERED" in text
        assert "0 error(s), 5 warning(s)" in text
        assert "11 tool(s)" in text
        assert "✓" in text

    def test_failing_report_shows_line(self):
        report = lint_document(parse_document("## Appendix\n- `ls(path: list[str]`\n"))
        text = render_to_text(lambda r: r.render_report(report))
        assert "<text>:2:" in text
        assert "MALFORMED_SIGNATURE" in text
        assert "✗" in text

    def test_coverage_table(self):
        coverages = assess_coverage(parse_document(ESSAY))
        text = render_to_text(lambda r: r.render_coverage(coverages))
        assert "Role and Identity" in text
        assert "missing" in text
        assert "Coverage: 62%" in text

    def test_taxonomy_table(self):
        text = render_to_text(lambda r: r.render_taxonomy())
        assert "agentic_loop" in text
        assert "examples" in text

    def test_tools_table_keeps_brackets(self):
        text = render_to_text(lambda r: r.render_tools(list(REFERENCE_TOOLSET)))
        assert "Tools (11)" in text
        assert "list[str]" in text

    def test_outline(self):
        text = render_to_text(lambda r: r.render_outline(parse_document(ESSAY)))
        assert "Designing System Prompts for Agentic Assistants" in text
        assert "Parallel Calls" in text
        assert "Introduction (line 5)" in text

    def test_outline_keeps_headings_before_title(self):
        text = render_to_text(lambda r: r.render_outline(parse_document("## Preamble\nx\n# Title\n## A\ny\n")))
        assert "Preamble (line 1)" in text
        assert "A (line 4)" in text
