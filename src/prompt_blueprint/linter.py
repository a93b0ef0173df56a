"""Structural lint rules for system-prompt design documents."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from prompt_blueprint.config import LintConfig
from prompt_blueprint.dimensions import DimensionCoverage, assess_coverage
from prompt_blueprint.document import Document, Section
from prompt_blueprint.issues import ERROR, WARNING, LintIssue
from prompt_blueprint.tokens import estimate_tokens
from prompt_blueprint.toolset import ToolSignature, extract_signatures, unknown_types

_log = logging.getLogger(__name__)


@dataclass
class LintReport:
    """Outcome of linting one document."""

    path: Path | None
    issues: list[LintIssue] = field(default_factory=list)
    coverages: list[DimensionCoverage] = field(default_factory=list)
    signatures: list[ToolSignature] = field(default_factory=list)
    section_count: int = 0
    token_count: int | None = None

    @property
    def errors(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> list[LintIssue]:
        return [i for i in self.issues if i.severity == WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def to_dict(self) -> dict:
        return {
            "path": str(self.path) if self.path else None,
            "ok": self.ok,
            "section_count": self.section_count,
            "tool_count": len(self.signatures),
            "token_count": self.token_count,
            "issues": [i.to_dict() for i in self.issues],
            "dimensions": {c.dimension.key: c.status for c in self.coverages},
        }


def _normalise_title(title: str) -> str:
    return re.sub(r"\s+", " ", title).strip().lower()


class _Collector:
    def __init__(self, config: LintConfig) -> None:
        self._config = config
        self.issues: list[LintIssue] = []

    def add(self, code: str, severity: str, message: str, line: int | None = None) -> None:
        if code in self._config.disabled_rules:
            return
        if self._config.strict:
            severity = ERROR
        self.issues.append(LintIssue(code, severity, message, line))


def _check_sections(document: Document, config: LintConfig, out: _Collector) -> int:
    top = document.top_level_sections
    count = len(top)
    if config.expected_sections is not None and count != config.expected_sections:
        out.add(
            "SECTION_COUNT", ERROR,
            f"Expected {config.expected_sections} top-level sections, found {count}",
        )
    elif count < config.min_sections:
        out.add(
            "SECTION_COUNT", ERROR,
            f"Expected at least {config.min_sections} top-level sections, found {count}",
        )
    return count


def _check_structure(document: Document, out: _Collector) -> None:
    previous_level: int | None = None
    for section in document.iter_sections():
        if previous_level is not None and section.level > previous_level + 1:
            out.add(
                "HEADING_LEVEL_SKIP", WARNING,
                f"Heading '{section.title}' jumps from level {previous_level} to {section.level}",
                section.line,
            )
        previous_level = section.level
        if section.is_empty:
            out.add("EMPTY_SECTION", WARNING, f"Section '{section.title}' is empty", section.line)

    sibling_groups: list[list[Section]] = [document.sections]
    sibling_groups.extend(s.children for s in document.iter_sections() if s.children)
    for siblings in sibling_groups:
        seen: dict[str, Section] = {}
        for section in siblings:
            key = _normalise_title(section.title)
            if key in seen:
                out.add(
                    "DUPLICATE_HEADING", WARNING,
                    f"Duplicate heading '{section.title}' (first at line {seen[key].line})",
                    section.line,
                )
            else:
                seen[key] = section

    if not document.fences_closed:
        out.add(
            "UNCLOSED_FENCE", WARNING,
            "Code fence is never closed", document.unclosed_fence_line,
        )


def _check_appendix(document: Document, config: LintConfig, out: _Collector) -> list[ToolSignature]:
    appendix = document.find_appendix(config.appendix_pattern)
    if appendix is None:
        severity = ERROR if config.expected_tools is not None else WARNING
        out.add(
            "MISSING_APPENDIX", severity,
            f"No section heading matches {config.appendix_pattern!r}",
        )
        return []

    signatures, errors = extract_signatures(appendix)
    for line, message in errors:
        out.add("MALFORMED_SIGNATURE", ERROR, message, line)

    if config.expected_tools is not None and len(signatures) != config.expected_tools:
        out.add(
            "TOOL_COUNT", ERROR,
            f"Expected {config.expected_tools} tool signatures in '{appendix.title}', "
            f"found {len(signatures)}",
            appendix.line,
        )

    seen: set[str] = set()
    for sig in signatures:
        if sig.name in seen:
            out.add("DUPLICATE_TOOL", ERROR, f"Tool '{sig.name}' is listed more than once", sig.line)
        seen.add(sig.name)
        if not sig.description:
            out.add("MISSING_TOOL_DESCRIPTION", WARNING, f"Tool '{sig.name}' has no description", sig.line)
        for type_str in unknown_types(sig):
            out.add(
                "UNKNOWN_TYPE", WARNING,
                f"Type '{type_str}' in '{sig.name}' has no JSON Schema mapping",
                sig.line,
            )
    return signatures


def _check_dimensions(coverages: list[DimensionCoverage], config: LintConfig, out: _Collector) -> None:
    for coverage in coverages:
        if coverage.covered:
            continue
        key = coverage.dimension.key
        severity = ERROR if key in config.required_dimensions else WARNING
        out.add(
            "DIMENSION_UNCOVERED", severity,
            f"Dimension '{key}' ({coverage.dimension.title}) is not addressed",
        )


def lint_document(document: Document, config: LintConfig | None = None) -> LintReport:
    """Run every enabled rule against a parsed document.

    Args:
        document: Parsed document.
        config: Lint settings. Defaults to LintConfig().

    Returns:
        LintReport with issues sorted by line (document-level issues first).
    """
    config = config or LintConfig()
    out = _Collector(config)
    report = LintReport(path=document.path)

    if not document.has_headings:
        out.add("EMPTY_DOCUMENT", ERROR, "Document has no headings")
        report.issues = out.issues
        return report

    report.section_count = _check_sections(document, config, out)
    _check_structure(document, out)
    report.signatures = _check_appendix(document, config, out)

    report.coverages = assess_coverage(document, min_mentions=config.min_mentions)
    _check_dimensions(report.coverages, config, out)

    if config.max_tokens is not None:
        report.token_count = estimate_tokens(document.text, config.model)
        if report.token_count > config.max_tokens:
            out.add(
                "TOKEN_BUDGET", ERROR,
                f"Estimated {report.token_count} tokens exceeds budget of {config.max_tokens}",
            )

    report.issues = sorted(out.issues, key=lambda i: (i.line or 0))
    _log.debug(
        "Linted %s: %d errors, %d warnings",
        document.path or "<text>", len(report.errors), len(report.warnings),
    )
    return report
