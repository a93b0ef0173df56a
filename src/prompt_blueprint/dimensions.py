"""The thirteen design dimensions of an agentic system prompt.

Each dimension names a concern a complete system prompt should address,
plus the keywords used to recognise it in a document's headings or prose.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

from prompt_blueprint.document import Document, Section

COVERED_BY_HEADING = "heading"
COVERED_BY_MENTION = "mention"
MISSING = "missing"


@dataclass(frozen=True)
class Dimension:
    """One axis of the system-prompt taxonomy."""

    key: str
    title: str
    description: str
    keywords: tuple[str, ...]


DIMENSIONS: tuple[Dimension, ...] = (
    Dimension(
        "identity",
        "Role and Identity",
        "Who the agent is, who it serves, and the persona it keeps.",
        ("role", "identity", "persona", "who you are"),
    ),
    Dimension(
        "capabilities",
        "Capabilities and Scope",
        "What the agent can and cannot do, and where its responsibility ends.",
        ("capabilities", "capability", "scope", "limitations"),
    ),
    Dimension(
        "tools",
        "Tool Usage",
        "The tools available, their parameters, and when to call each one.",
        ("tool", "tools", "toolset", "function calling", "tool use"),
    ),
    Dimension(
        "agentic_loop",
        "Agentic Loop",
        "The analyze, act, observe, iterate cycle the agent runs until done.",
        ("agentic loop", "agent loop", "loop", "iterate", "iteration", "workflow"),
    ),
    Dimension(
        "planning",
        "Planning and Task Decomposition",
        "How work is broken into steps and tracked before acting.",
        ("planning", "plan", "planner", "decomposition", "task breakdown", "todo"),
    ),
    Dimension(
        "context",
        "Environment and Context",
        "The workspace, operating system, and project facts the agent can rely on.",
        ("environment", "context", "workspace"),
    ),
    Dimension(
        "code_quality",
        "Code Quality and Editing Conventions",
        "Conventions for writing and editing code in an existing project.",
        ("code quality", "coding", "conventions", "editing", "code style"),
    ),
    Dimension(
        "communication",
        "Communication and Output Formatting",
        "Tone, verbosity, and the markdown or message format of replies.",
        ("communication", "tone", "formatting", "response format", "output format"),
    ),
    Dimension(
        "safety",
        "Safety and Refusals",
        "Permissions, destructive operations, and how to decline requests.",
        ("safety", "security", "permissions", "refusal", "refusals", "refuse", "destructive"),
    ),
    Dimension(
        "error_handling",
        "Error Handling and Recovery",
        "What to do when a tool call, command, or test fails.",
        ("error handling", "error", "errors", "recovery", "failure", "failures", "debugging"),
    ),
    Dimension(
        "memory",
        "Memory and State",
        "What persists between steps or sessions and how it is recorded.",
        ("memory", "state", "persistence", "long-term"),
    ),
    Dimension(
        "clarification",
        "User Interaction and Clarification",
        "When to ask the user, when to assume, and how to confirm.",
        ("clarification", "clarify", "user interaction", "questions", "confirmation"),
    ),
    Dimension(
        "examples",
        "Examples",
        "Worked demonstrations of good and bad agent behavior.",
        ("example", "examples", "demonstration", "demonstrations"),
    ),
)

DIMENSION_KEYS: tuple[str, ...] = tuple(d.key for d in DIMENSIONS)


@dataclass
class DimensionCoverage:
    """How a document addresses one dimension."""

    dimension: Dimension
    status: str
    sections: list[Section] = field(default_factory=list)
    mentions: int = 0

    @property
    def covered(self) -> bool:
        return self.status != MISSING


def get_dimension(key: str) -> Dimension:
    """Look up a dimension by key.

    Raises:
        KeyError: If the key is not one of the thirteen dimensions.
    """
    for dimension in DIMENSIONS:
        if dimension.key == key:
            return dimension
    raise KeyError(f"Unknown dimension {key!r}. Valid keys: {', '.join(DIMENSION_KEYS)}")


@lru_cache(maxsize=None)
def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = sorted(
        (re.escape(k).replace(r"\ ", r"\s+") for k in keywords),
        key=len,
        reverse=True,
    )
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)


def match_heading(dimension: Dimension, title: str) -> bool:
    return _keyword_pattern(dimension.keywords).search(title) is not None


def count_mentions(dimension: Dimension, text: str) -> int:
    return len(_keyword_pattern(dimension.keywords).findall(text))


def assess_coverage(document: Document, min_mentions: int = 2) -> list[DimensionCoverage]:
    """Classify every dimension as covered by a heading, by mentions, or missing.

    Text inside fenced code blocks is ignored. Heading lines are not counted
    as mentions.
    """
    prose = "\n".join(
        line for line in document.prose_lines() if not line.lstrip().startswith("#")
    )
    sections = list(document.iter_sections())

    coverages: list[DimensionCoverage] = []
    for dimension in DIMENSIONS:
        matched = [s for s in sections if match_heading(dimension, s.title)]
        mentions = count_mentions(dimension, prose)
        if matched:
            status = COVERED_BY_HEADING
        elif mentions >= min_mentions:
            status = COVERED_BY_MENTION
        else:
            status = MISSING
        coverages.append(DimensionCoverage(dimension, status, matched, mentions))
    return coverages


def coverage_score(coverages: list[DimensionCoverage]) -> float:
    """Fraction of dimensions that are not missing."""
    if not coverages:
        return 0.0
    return sum(1 for c in coverages if c.covered) / len(coverages)
