"""Compose a system prompt from a YAML blueprint."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from prompt_blueprint.dimensions import DIMENSION_KEYS, DIMENSIONS
from prompt_blueprint.project_instructions import InstructionSource, collect_instructions
from prompt_blueprint.toolset import (
    REFERENCE_TOOLSET,
    SignatureError,
    ToolSignature,
    parse_signature,
    to_markdown,
)

_log = logging.getLogger(__name__)

REFERENCE = "reference"

XML_CALL_FORMAT = """To use a tool, output the following XML format in your response:

<tool_call>
<function=tool_name>
<parameter=param_name>value</parameter>
</function>
</tool_call>"""


class BlueprintError(Exception):
    """Raised when a blueprint file is missing or invalid."""


class Blueprint(BaseModel):
    """Declarative description of a system prompt."""

    model_config = ConfigDict(extra="forbid")

    name: str = "assistant"
    identity: str
    sections: dict[str, str] = {}
    tools: list[str] | Literal["reference"] = []
    tool_call_format: Literal["native", "xml"] = "native"
    guidelines: list[str] = []

    @field_validator("identity")
    @classmethod
    def validate_identity(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must not be empty")
        return v.strip()

    @field_validator("sections")
    @classmethod
    def validate_sections(cls, v: dict[str, str]) -> dict[str, str]:
        unknown = [k for k in v if k not in DIMENSION_KEYS]
        if unknown:
            raise ValueError(
                f"Unknown dimension(s) {', '.join(unknown)}; valid: {', '.join(DIMENSION_KEYS)}"
            )
        return v

    @field_validator("tools")
    @classmethod
    def validate_tools(cls, v: list[str] | str) -> list[str] | str:
        if isinstance(v, str):
            return v
        for entry in v:
            try:
                parse_signature(entry)
            except SignatureError as e:
                raise ValueError(f"{entry!r}: {e}") from None
        return v

    def tool_signatures(self) -> list[ToolSignature]:
        if self.tools == REFERENCE:
            return list(REFERENCE_TOOLSET)
        return [parse_signature(entry) for entry in self.tools]


def load_blueprint(path: Path) -> Blueprint:
    """Load and validate a blueprint YAML file.

    Raises:
        BlueprintError: If the file is missing, not a mapping, or fails validation.
    """
    if not path.is_file():
        raise BlueprintError(f"Blueprint not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise BlueprintError(f"Could not read {path}: {e}") from None
    except yaml.YAMLError as e:
        raise BlueprintError(f"Invalid YAML in {path}:\n\n  {e}") from None

    if not isinstance(data, dict):
        raise BlueprintError(f"Invalid blueprint in {path}\n\n  Expected a YAML mapping.")

    try:
        return Blueprint(**data)
    except ValidationError as e:
        errors = []
        for err in e.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            errors.append(f"  - {field}: {err['msg']}")
        raise BlueprintError(f"Invalid blueprint in {path}\n\n" + "\n".join(errors)) from None


def _xml_example(tool: ToolSignature) -> str:
    lines = ["<tool_call>", f"<function={tool.name}>"]
    for param in tool.parameters:
        if param.required:
            lines.append(f"<parameter={param.name}>...</parameter>")
    lines += ["</function>", "</tool_call>"]
    return "\n".join(lines)


def render_prompt(blueprint: Blueprint, instructions: list[InstructionSource] | None = None) -> str:
    """Render the blueprint as markdown, dimensions in taxonomy order.

    Instruction sections, when given, follow the identity paragraph.
    """
    parts: list[str] = [blueprint.identity]
    parts.extend(source.section for source in instructions or [])

    for dimension in DIMENSIONS:
        text = blueprint.sections.get(dimension.key)
        if text and text.strip():
            parts.append(f"## {dimension.title}\n{text.strip()}")

    tools = blueprint.tool_signatures()
    if tools:
        parts.append(f"## Available Tools\nYou have access to the following tools:\n\n{to_markdown(tools)}")
        if blueprint.tool_call_format == "xml":
            parts.append(
                f"## How to Call Tools\n{XML_CALL_FORMAT}\n\n"
                f"Example - {tools[0].name}:\n{_xml_example(tools[0])}"
            )

    if blueprint.guidelines:
        bullets = "\n".join(f"- {g}" for g in blueprint.guidelines)
        parts.append(f"## Guidelines\n{bullets}")

    return "\n\n".join(parts) + "\n"


def compose(
    blueprint: Blueprint,
    include_project_instructions: bool = True,
    start_path: Path | None = None,
) -> tuple[str, list[str]]:
    """Compose the final system prompt.

    Args:
        blueprint: Validated blueprint.
        include_project_instructions: Add AGENTS.md/CLAUDE.md and global instructions
            as sections after the identity.
        start_path: Where project instruction discovery starts. Defaults to CWD.

    Returns:
        Tuple of (prompt, list of loaded instruction file paths).
    """
    instructions = collect_instructions(start_path) if include_project_instructions else []
    for source in instructions:
        _log.info("Included %s from %s", source.title.lower(), source.path)
    return render_prompt(blueprint, instructions), [str(s.path) for s in instructions]
