"""Informal tool signatures: parsing, JSON Schema mapping, and export.

Appendix entries are written for humans, e.g.::

    - `read_files(paths: list[str]) -> dict[str, str]` — Read files by path.

They carry a name, typed parameters, an optional return type, and a one-line
description. Nothing here executes a tool; signatures are data.
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from prompt_blueprint.document import Section

_log = logging.getLogger(__name__)

_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.*)$")
_NAME_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_.]*)\s*\(")
_LOOKS_LIKE_RE = re.compile(r"^`?[A-Za-z_][A-Za-z0-9_.]*\(")
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_LEADING_SEPARATOR_RE = re.compile(r"^\s*(?:—|–|-(?!>)|:)\s*")
_FENCE_RE = re.compile(r"^\s*(`{3,}|~{3,})")

_OPENERS = "([{"
_CLOSERS = ")]}"

_SCALARS: dict[str, dict[str, Any]] = {
    "str": {"type": "string"},
    "string": {"type": "string"},
    "path": {"type": "string"},
    "int": {"type": "integer"},
    "integer": {"type": "integer"},
    "float": {"type": "number"},
    "number": {"type": "number"},
    "bool": {"type": "boolean"},
    "boolean": {"type": "boolean"},
    "none": {"type": "null"},
    "null": {"type": "null"},
    "any": {},
}
_ARRAYS = {"list", "sequence", "iterable", "set", "frozenset", "tuple", "array"}
_OBJECTS = {"dict", "mapping", "object", "json"}


class SignatureError(ValueError):
    """Raised when a tool signature cannot be parsed."""


@dataclass
class Parameter:
    name: str
    type: str = "Any"
    default: str | None = None
    required: bool = True


@dataclass
class ToolSignature:
    """A tool as described in a design document."""

    name: str
    parameters: list[Parameter] = field(default_factory=list)
    returns: str | None = None
    description: str = ""
    line: int | None = None

    def signature_text(self) -> str:
        params = []
        for p in self.parameters:
            text = f"{p.name}: {p.type}"
            if p.default is not None:
                text += f" = {p.default}"
            params.append(text)
        text = f"{self.name}({', '.join(params)})"
        if self.returns is not None:
            text += f" -> {self.returns}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [
                {"name": p.name, "type": p.type, "default": p.default, "required": p.required}
                for p in self.parameters
            ],
            "returns": self.returns,
        }


# ── Splitting helpers ──────────────────────────────────────────────────────

def _split_top_level(text: str, sep: str) -> list[str]:
    """Split on a single-character separator at bracket depth 0, outside quotes."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []
    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def _matching_paren(text: str, open_idx: int) -> int:
    depth = 0
    quote: str | None = None
    for idx in range(open_idx, len(text)):
        ch = text[idx]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0:
                return idx
    return -1


def _split_return_and_description(text: str) -> tuple[str, str]:
    """Split ``ret — description`` at the first separator outside brackets."""
    depth = 0
    for idx, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif depth == 0:
            if ch in "—–:":
                return text[:idx].strip(), text[idx + 1:].strip()
            if text.startswith(" - ", idx):
                return text[:idx].strip(), text[idx + 3:].strip()
    return text.strip(), ""


def _split_generic(type_str: str) -> tuple[str, list[str]]:
    type_str = type_str.strip()
    if type_str.endswith("]") and "[" in type_str:
        base, _, inner = type_str.partition("[")
        args = [a.strip() for a in _split_top_level(inner[:-1], ",")]
        return base.strip(), [a for a in args if a]
    return type_str, []


def is_optional_type(type_str: str) -> bool:
    base, args = _split_generic(type_str)
    if base in ("Optional", "typing.Optional"):
        return True
    if base in ("Union", "typing.Union"):
        return any(a in ("None", "null") for a in args)
    members = [m.strip() for m in _split_top_level(type_str, "|")]
    return len(members) > 1 and any(m in ("None", "null") for m in members)


# ── Parsing ────────────────────────────────────────────────────────────────

def _parse_parameter(raw: str, seen: set[str]) -> Parameter:
    pieces = _split_top_level(raw, "=")
    head = pieces[0].strip()
    default = "=".join(pieces[1:]).strip() if len(pieces) > 1 else None
    if default == "":
        raise SignatureError(f"Parameter {head!r} has an empty default")

    name, sep, type_str = head.partition(":")
    name = name.strip()
    type_str = type_str.strip() if sep else "Any"
    if sep and not type_str:
        raise SignatureError(f"Parameter {name!r} has an empty type annotation")
    if not _IDENT_RE.match(name) or keyword.iskeyword(name):
        raise SignatureError(f"Invalid parameter name: {name!r}")
    if name in seen:
        raise SignatureError(f"Duplicate parameter: {name!r}")
    seen.add(name)

    required = default is None and not is_optional_type(type_str)
    return Parameter(name=name, type=type_str, default=default, required=required)


def looks_like_signature(line: str) -> bool:
    """True when the text starts with an identifier directly followed by '('."""
    match = _LIST_ITEM_RE.match(line)
    text = match.group(1) if match else line
    return _LOOKS_LIKE_RE.match(text.strip()) is not None


def parse_signature(line: str, line_number: int | None = None) -> ToolSignature:
    """Parse one informal signature, with or without a list marker and backticks.

    Raises:
        SignatureError: If the name, parameter list, or return type is malformed.
    """
    match = _LIST_ITEM_RE.match(line)
    text = (match.group(1) if match else line).strip()
    if not text:
        raise SignatureError("Empty signature")

    quoted = text.startswith("`")
    if quoted:
        end = text.find("`", 1)
        if end == -1:
            raise SignatureError("Unterminated backtick")
        sig, rest = text[1:end].strip(), text[end + 1:]
    else:
        sig, rest = text, ""

    name_match = _NAME_RE.match(sig)
    if name_match is None:
        raise SignatureError(f"Expected 'name(...)' but got {sig[:40]!r}")
    name = name_match.group(1)
    if "." in name or keyword.iskeyword(name):
        raise SignatureError(f"Invalid tool name: {name!r}")

    open_idx = name_match.end() - 1
    close_idx = _matching_paren(sig, open_idx)
    if close_idx == -1:
        raise SignatureError(f"Unbalanced parentheses in {name!r}")

    params_text = sig[open_idx + 1:close_idx].strip()
    after = sig[close_idx + 1:].strip()

    returns: str | None = None
    description = ""
    if quoted:
        if after.startswith("->"):
            returns = after[2:].strip()
        elif after:
            raise SignatureError(f"Unexpected text after parameters: {after!r}")
        rest = rest.strip()
        if rest.startswith("->"):
            if returns is not None:
                raise SignatureError(f"Return type given twice in {name!r}")
            returns, description = _split_return_and_description(rest[2:])
            returns = returns.strip("`").strip()
        else:
            description = _LEADING_SEPARATOR_RE.sub("", rest, count=1).strip()
    elif after.startswith("->"):
        returns, description = _split_return_and_description(after[2:])
    else:
        description = _LEADING_SEPARATOR_RE.sub("", after, count=1).strip()

    if returns is not None and not returns:
        raise SignatureError(f"Empty return type in {name!r}")

    parameters: list[Parameter] = []
    if params_text:
        raw_params = _split_top_level(params_text, ",")
        if not raw_params[-1].strip():
            raw_params = raw_params[:-1]
        seen: set[str] = set()
        for raw in raw_params:
            if not raw.strip():
                raise SignatureError(f"Empty parameter in {name!r}")
            parameters.append(_parse_parameter(raw, seen))

    return ToolSignature(
        name=name,
        parameters=parameters,
        returns=returns,
        description=description.strip("`").strip(),
        line=line_number,
    )


def extract_signatures(section: Section) -> tuple[list[ToolSignature], list[tuple[int, str]]]:
    """Collect signatures from list items in a section and its subsections.

    Returns:
        Tuple of (signatures, errors) where errors are (line, message) pairs
        for items that look like signatures but fail to parse.
    """
    signatures: list[ToolSignature] = []
    errors: list[tuple[int, str]] = []

    for sub in section.iter_sections():
        in_fence = False
        for offset, line in enumerate(sub.body.splitlines()):
            number = sub.body_start + offset
            if _FENCE_RE.match(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            item = _LIST_ITEM_RE.match(line)
            if item is None or not looks_like_signature(item.group(1)):
                continue
            try:
                signatures.append(parse_signature(line, line_number=number))
            except SignatureError as e:
                _log.debug("Line %d: %s", number, e)
                errors.append((number, str(e)))

    return signatures, errors


# ── Schema mapping ─────────────────────────────────────────────────────────

def _schema(type_str: str, unknown: list[str]) -> dict[str, Any]:
    type_str = type_str.strip()

    members = [m.strip() for m in _split_top_level(type_str, "|")]
    if len(members) > 1:
        return _union_schema(members, unknown)

    base, args = _split_generic(type_str)
    base_key = base.split(".")[-1].lower()

    if base_key == "optional" and args:
        return _schema(args[0], unknown)
    if base_key == "union" and args:
        return _union_schema(args, unknown)
    if base_key == "literal" and args:
        values = [a.strip("\"'") for a in args]
        return {"type": "string", "enum": values}
    if base_key in _SCALARS and not args:
        return dict(_SCALARS[base_key])
    if base_key in _ARRAYS:
        schema: dict[str, Any] = {"type": "array"}
        item_args = [a for a in args if a != "..."]
        if item_args and (len(set(item_args)) == 1 or base_key != "tuple"):
            items = _schema(item_args[0], unknown)
            if items:
                schema["items"] = items
        return schema
    if base_key in _OBJECTS:
        schema = {"type": "object"}
        if len(args) == 2:
            values = _schema(args[1], unknown)
            if values:
                schema["additionalProperties"] = values
        return schema

    unknown.append(type_str)
    return {}


def _union_schema(members: list[str], unknown: list[str]) -> dict[str, Any]:
    non_null = [m for m in members if m not in ("None", "null")]
    if len(non_null) == 1:
        return _schema(non_null[0], unknown)
    options = [_schema(m, unknown) for m in non_null]
    if any(not o for o in options):
        return {}
    return {"anyOf": options}


def type_to_schema(type_str: str) -> dict[str, Any]:
    """Map an informal type annotation to JSON Schema ({} when unknown)."""
    return _schema(type_str, [])


def unknown_types(signature: ToolSignature) -> list[str]:
    """Return the parameter and return types that do not map to JSON Schema."""
    unknown: list[str] = []
    for p in signature.parameters:
        _schema(p.type, unknown)
    if signature.returns is not None:
        _schema(signature.returns, unknown)
    return unknown


# ── Export ─────────────────────────────────────────────────────────────────

def to_openai_tool(signature: ToolSignature) -> dict[str, Any]:
    """Return the OpenAI function-tool schema for a signature."""
    return {
        "type": "function",
        "function": {
            "name": signature.name,
            "description": signature.description or signature.name,
            "parameters": {
                "type": "object",
                "properties": {p.name: type_to_schema(p.type) for p in signature.parameters},
                "required": [p.name for p in signature.parameters if p.required],
            },
        },
    }


def _json_type_label(type_str: str) -> str:
    schema = type_to_schema(type_str)
    if "type" in schema:
        return schema["type"]
    return type_str


def to_markdown(signatures: list[ToolSignature]) -> str:
    """Render an "Available Tools" style listing."""
    lines: list[str] = []
    for sig in signatures:
        lines.append(f"- {sig.name}: {sig.description or sig.name}")
        if sig.parameters:
            params = ", ".join(
                f"{p.name} ({_json_type_label(p.type)}, {'required' if p.required else 'optional'})"
                for p in sig.parameters
            )
            lines.append(f"  - Parameters: {params}")
        else:
            lines.append("  - Parameters: none")
        if sig.returns is not None:
            lines.append(f"  - Returns: {sig.returns}")
    return "\n".join(lines)


REFERENCE_APPENDIX: tuple[str, ...] = (
    '`ls(path: str = ".") -> list[str]` — List the files and directories at a path.',
    "`read_files(paths: list[str]) -> dict[str, str]` — Read one or more files and return their contents keyed by path.",
    "`write_file(path: str, content: str) -> bool` — Create or overwrite a file with the given content.",
    "`edit_file(path: str, old_text: str, new_text: str) -> bool` — Replace an exact text span in an existing file.",
    "`delete_file(path: str) -> bool` — Delete a file from the workspace.",
    '`search_files(pattern: str, path: str = ".") -> list[str]` — Search file contents for a regular expression.',
    "`run_command(command: str, timeout: int = 120) -> str` — Run a shell command and return its combined output.",
    "`run_subtask(instructions: str, context: list[str] = []) -> str` — Delegate a self-contained subtask to a sub-agent and return its report.",
    "`web_search(query: str) -> list[str]` — Search the web and return result snippets.",
    "`ask_user(question: str) -> str` — Ask the user a clarifying question and wait for the answer.",
    "`complete(summary: str) -> None` — Signal that the task is finished, with a short summary.",
)

REFERENCE_TOOLSET: tuple[ToolSignature, ...] = tuple(parse_signature(s) for s in REFERENCE_APPENDIX)
