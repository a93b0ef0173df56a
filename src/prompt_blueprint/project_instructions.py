"""AGENTS.md / CLAUDE.md discovery and their sections in a composed prompt."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from prompt_blueprint.document import DocumentError, parse_document

DEFAULT_CONFIG_DIR = Path.home() / ".prompt-blueprint"
GLOBAL_INSTRUCTIONS_FILE = DEFAULT_CONFIG_DIR / "AGENTS.md"

# Checked in order at the git root; the first readable one wins
INSTRUCTION_FILES = ("AGENTS.md", "CLAUDE.md")

GLOBAL_TITLE = "Global Instructions"
PROJECT_TITLE = "Project Instructions"

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstructionSource:
    """An instruction file rendered as one ``##`` section of a prompt."""

    title: str
    path: Path
    section: str


def find_git_root(start_path: Path | None = None) -> Path | None:
    """Return the nearest directory at or above *start_path* holding ``.git``."""
    current = (start_path or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / ".git").is_dir():
            return directory
    return None


def nest_headings(text: str, parent_level: int = 2) -> str:
    """Shift the headings of *text* so its shallowest one sits just below *parent_level*.

    Relative nesting is kept and levels are capped at 6. Front matter is dropped.

    Raises:
        DocumentError: If the front matter is invalid.
    """
    document = parse_document(text)
    skipped = document.body_start_line - 1
    lines = text.splitlines()[skipped:]
    headings = list(document.iter_sections())
    if headings:
        offset = parent_level + 1 - min(s.level for s in headings)
        for section in headings:
            level = min(section.level + offset, 6)
            lines[section.line - 1 - skipped] = f"{'#' * level} {section.title}".rstrip()
    return "\n".join(lines).strip()


def _load_source(title: str, path: Path) -> InstructionSource | None:
    try:
        text = path.read_text(encoding="utf-8")
        body = nest_headings(text)
    except (OSError, UnicodeDecodeError, DocumentError) as e:
        _log.warning("Skipping unreadable %s: %s", path, e)
        return None
    if not body:
        _log.debug("Skipping empty %s", path)
        return None
    section = f"## {title}\nFrom `{path.name}`:\n\n{body}"
    return InstructionSource(title=title, path=path, section=section)


def find_project_instructions(start_path: Path | None = None) -> InstructionSource | None:
    """Load AGENTS.md (or else CLAUDE.md) from the git root, if any."""
    git_root = find_git_root(start_path)
    if git_root is None:
        return None
    for name in INSTRUCTION_FILES:
        path = git_root / name
        if path.is_file():
            source = _load_source(PROJECT_TITLE, path)
            if source is not None:
                return source
    return None


def load_global_instructions() -> InstructionSource | None:
    """Load ~/.prompt-blueprint/AGENTS.md, if present."""
    if not GLOBAL_INSTRUCTIONS_FILE.is_file():
        return None
    return _load_source(GLOBAL_TITLE, GLOBAL_INSTRUCTIONS_FILE)


def collect_instructions(start_path: Path | None = None) -> list[InstructionSource]:
    """Global instructions first, then the project's own."""
    sources = [load_global_instructions(), find_project_instructions(start_path)]
    return [s for s in sources if s is not None]
