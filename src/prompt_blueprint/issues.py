"""Lint issue record and the catalogue of rule codes."""

from __future__ import annotations

from dataclasses import dataclass

ERROR = "error"
WARNING = "warning"

RULES: dict[str, str] = {
    "EMPTY_DOCUMENT": "Document has no headings",
    "SECTION_COUNT": "Number of top-level sections",
    "HEADING_LEVEL_SKIP": "Heading jumps more than one level",
    "DUPLICATE_HEADING": "Sibling sections share a title",
    "EMPTY_SECTION": "Section has neither text nor subsections",
    "UNCLOSED_FENCE": "Fenced code block is never closed",
    "MISSING_APPENDIX": "No appendix section",
    "MALFORMED_SIGNATURE": "Appendix item does not parse as a tool signature",
    "TOOL_COUNT": "Number of appendix tool signatures",
    "DUPLICATE_TOOL": "Tool name listed more than once",
    "MISSING_TOOL_DESCRIPTION": "Tool signature has no description",
    "UNKNOWN_TYPE": "Type does not map to JSON Schema",
    "DIMENSION_UNCOVERED": "Design dimension not addressed",
    "TOKEN_BUDGET": "Document exceeds the token budget",
}

RULE_CODES: tuple[str, ...] = tuple(RULES)


@dataclass
class LintIssue:
    code: str
    severity: str
    message: str
    line: int | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
            "line": self.line,
        }
