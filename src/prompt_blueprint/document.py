"""Markdown section parser for system-prompt design documents."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_log = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_CLOSING_HASHES_RE = re.compile(r"(?:^|[ \t]+)#+$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")


class DocumentError(Exception):
    """Raised when a document cannot be read or parsed."""


@dataclass
class Section:
    """A heading and the text up to the next heading."""

    title: str
    level: int
    line: int
    body: str = ""
    body_start: int = 0
    children: list["Section"] = field(default_factory=list)
    parent: "Section | None" = field(default=None, repr=False, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.body.strip() and not self.children

    def iter_sections(self) -> Iterator["Section"]:
        """Yield this section and all descendants in document order."""
        yield self
        for child in self.children:
            yield from child.iter_sections()

    def full_text(self) -> str:
        """Return the body of this section and every subsection, joined."""
        return "\n".join(s.body for s in self.iter_sections())


@dataclass
class Document:
    """Parsed markdown document."""

    text: str
    sections: list[Section]
    path: Path | None = None
    front_matter: dict[str, Any] = field(default_factory=dict)
    fences_closed: bool = True
    unclosed_fence_line: int | None = None
    # 1-based numbers of lines inside fenced code blocks
    code_lines: frozenset[int] = frozenset()
    # First line after any front matter
    body_start_line: int = 1

    @property
    def title(self) -> str | None:
        h1 = [s for s in self.sections if s.level == 1]
        if len(h1) == 1:
            return h1[0].title
        return None

    @property
    def top_level_sections(self) -> list[Section]:
        """Sections below the title, or the shallowest heading level when untitled."""
        if not self.sections:
            return []
        h1 = [s for s in self.sections if s.level == 1]
        if len(h1) == 1:
            return list(h1[0].children)
        shallowest = min(s.level for s in self.iter_sections())
        return [s for s in self.iter_sections() if s.level == shallowest]

    @property
    def has_headings(self) -> bool:
        return bool(self.sections)

    def iter_sections(self) -> Iterator[Section]:
        for section in self.sections:
            yield from section.iter_sections()

    def find_sections(self, pattern: str) -> list[Section]:
        regex = re.compile(pattern, re.IGNORECASE)
        return [s for s in self.iter_sections() if regex.search(s.title)]

    def find_appendix(self, pattern: str = "appendix") -> Section | None:
        matches = self.find_sections(pattern)
        return matches[0] if matches else None

    def prose_lines(self) -> list[str]:
        """Return the document lines that are not inside fenced code blocks."""
        return [
            line
            for number, line in enumerate(self.text.splitlines(), start=1)
            if number >= self.body_start_line and number not in self.code_lines
        ]


def _split_front_matter(lines: list[str]) -> tuple[dict[str, Any], int]:
    """Return (front matter, index of the first body line)."""
    if not lines or lines[0].strip() != "---":
        return {}, 0
    for idx in range(1, len(lines)):
        if lines[idx].strip() in ("---", "..."):
            block = "\n".join(lines[1:idx])
            try:
                data = yaml.safe_load(block) if block.strip() else {}
            except yaml.YAMLError as e:
                raise DocumentError(f"Invalid front matter: {e}") from None
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise DocumentError("Invalid front matter: expected a YAML mapping")
            return data, idx + 1
    # No closing marker: treat the dashes as an ordinary line
    return {}, 0


def _clean_title(raw: str | None) -> str:
    if not raw:
        return ""
    return _CLOSING_HASHES_RE.sub("", raw).strip()


def parse_document(text: str, path: Path | None = None) -> Document:
    """Parse markdown text into a section tree.

    Args:
        text: Raw markdown.
        path: Optional source path, kept for reporting.

    Returns:
        Parsed Document.

    Raises:
        DocumentError: If the front matter is not a valid YAML mapping.
    """
    lines = text.splitlines()
    front_matter, start = _split_front_matter(lines)

    roots: list[Section] = []
    stack: list[Section] = []
    body: list[str] = []
    code_lines: set[int] = set()
    fence: str | None = None
    fence_line: int | None = None

    def flush() -> None:
        if stack:
            joined = "\n".join(body)
            leading = len(joined) - len(joined.lstrip("\n"))
            stack[-1].body = joined.strip("\n")
            stack[-1].body_start = stack[-1].line + 1 + leading
        body.clear()

    for idx in range(start, len(lines)):
        line = lines[idx]
        number = idx + 1

        fence_match = _FENCE_RE.match(line)
        if fence is not None:
            code_lines.add(number)
            if fence_match and fence_match.group(1)[0] == fence[0] and len(fence_match.group(1)) >= len(fence):
                if not line.strip()[len(fence_match.group(1)):].strip():
                    fence = None
                    fence_line = None
            body.append(line)
            continue
        if fence_match:
            fence = fence_match.group(1)
            fence_line = number
            code_lines.add(number)
            body.append(line)
            continue

        heading = _HEADING_RE.match(line)
        if heading is None:
            body.append(line)
            continue

        flush()
        level = len(heading.group(1))
        section = Section(title=_clean_title(heading.group(2)), level=level, line=number)
        while stack and stack[-1].level >= level:
            stack.pop()
        if stack:
            section.parent = stack[-1]
            stack[-1].children.append(section)
        else:
            roots.append(section)
        stack.append(section)

    flush()

    if fence is not None:
        _log.debug("Unclosed code fence opened at line %s", fence_line)

    return Document(
        text=text,
        sections=roots,
        path=path,
        front_matter=front_matter,
        fences_closed=fence is None,
        unclosed_fence_line=fence_line,
        code_lines=frozenset(code_lines),
        body_start_line=start + 1,
    )


def load_document(path: Path) -> Document:
    """Read and parse a markdown file.

    Raises:
        DocumentError: If the file is missing, unreadable, or not valid UTF-8.
    """
    if not path.exists():
        raise DocumentError(f"Document not found: {path}")
    if not path.is_file():
        raise DocumentError(f"Not a file: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(f"Could not read {path}: {e}") from None
    _log.debug("Loaded %s (%d chars)", path, len(text))
    return parse_document(text, path=path)
