"""Shared pytest fixtures and helpers for prompt_blueprint tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from prompt_blueprint.linter import LintReport
from prompt_blueprint.toolset import REFERENCE_APPENDIX

ESSAY_TITLE = "Designing System Prompts for Agentic Assistants"

ESSAY = f"""# {ESSAY_TITLE}

A system prompt configures an assistant before the first user message arrives.

## Introduction

This essay surveys how production assistants structure their instructions.
It keeps a calm tone and light formatting throughout.

## Role and Identity

Open with a single sentence that names the assistant and the people it serves.

## Tool Usage

Describe every tool with its parameters. Prefer one precise tool per action.

### Parallel Calls

Independent reads can be issued together.

## The Agentic Loop

Analyze, act, observe, then iterate until the task is done.

## Planning and Task Decomposition

Break large requests into steps before touching any file.

## Environment and Context

Name the operating system, the shell, and the workspace root.

## Safety and Refusals

Confirm before destructive commands. Decline requests outside policy with a short refusal.

## Error Handling and Recovery

When a command fails, read the error, adjust, and retry once.

## Appendix: Toolset

The toolset below is listed informally.

""" + "\n".join(f"- {line}" for line in REFERENCE_APPENDIX) + "\n"

# Line of the first appendix item in ESSAY (1-based).
ESSAY_FIRST_TOOL_LINE = ESSAY.splitlines().index(f"- {REFERENCE_APPENDIX[0]}") + 1

ESSAY_SECTIONS = 9
ESSAY_TOOLS = 11
ESSAY_UNCOVERED = {"capabilities", "code_quality", "memory", "clarification", "examples"}


@pytest.fixture
def essay_path(tmp_path):
    """The sample essay written to a temporary file."""
    return make_file(tmp_path, "essay.md", ESSAY)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point global config and instruction files at an empty temp directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr("prompt_blueprint.project_instructions.GLOBAL_INSTRUCTIONS_FILE", home / "AGENTS.md")
    monkeypatch.setattr("prompt_blueprint.config.DEFAULT_CONFIG_FILE", home / "config.yaml")
    return home


# ── Plain helper functions ─────────────────────────────────────────────────
# Each test file imports these directly:
#   from conftest import ESSAY, make_file, issues_with

def make_file(workspace: Path, relative_path: str, content: str = "hello\n") -> Path:
    p = workspace / relative_path
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


def issues_with(report: LintReport, code: str) -> list:
    return [i for i in report.issues if i.code == code]
