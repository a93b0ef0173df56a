"""Tests for informal tool signature parsing and schema export."""

import pytest

from conftest import ESSAY, ESSAY_FIRST_TOOL_LINE, ESSAY_TOOLS
from prompt_blueprint.document import parse_document
from prompt_blueprint.toolset import (
    REFERENCE_TOOLSET,
    SignatureError,
    extract_signatures,
    is_optional_type,
    looks_like_signature,
    parse_signature,
    to_markdown,
    to_openai_tool,
    type_to_schema,
    unknown_types,
)


class TestParseSignature:
    """parse_signature accepts the informal appendix grammar."""

    def test_backticked_with_em_dash(self):
        sig = parse_signature("- `read_files(paths: list[str]) -> dict[str, str]` — Read files by path.")
        assert sig.name == "read_files"
        assert [(p.name, p.type, p.required) for p in sig.parameters] == [("paths", "list[str]", True)]
        assert sig.returns == "dict[str, str]"
        assert sig.description == "Read files by path."

    def test_plain_with_colon_separator(self):
        sig = parse_signature("ls(path: str) -> list[str]: List a directory")
        assert sig.returns == "list[str]"
        assert sig.description == "List a directory"

    def test_plain_with_hyphen_separator(self):
        sig = parse_signature("* ask_user(question: str) -> str - Ask something")
        assert sig.returns == "str"
        assert sig.description == "Ask something"

    def test_return_type_after_closing_backtick(self):
        sig = parse_signature("- `ls(path: str)` -> list[str] — List files")
        assert sig.returns == "list[str]"
        assert sig.description == "List files"

    def test_backticked_return_type_after_closing_backtick(self):
        sig = parse_signature("`ls(path: str)` -> `list[str]`: List files")
        assert sig.returns == "list[str]"
        assert sig.description == "List files"

    def test_no_return_type(self):
        sig = parse_signature("`noop()` – does nothing")
        assert sig.returns is None
        assert sig.parameters == []
        assert sig.description == "does nothing"

    def test_no_description(self):
        sig = parse_signature("1. `ls(path: str)`")
        assert sig.description == ""

    def test_nested_generic_stays_one_parameter(self):
        sig = parse_signature("f(a: dict[str, list[int]], b: int)")
        assert [p.name for p in sig.parameters] == ["a", "b"]
        assert sig.parameters[0].type == "dict[str, list[int]]"

    def test_default_makes_optional(self):
        sig = parse_signature('f(path: str = ".", limit: int = 10)')
        assert [(p.default, p.required) for p in sig.parameters] == [('"."', False), ("10", False)]

    def test_default_containing_comma(self):
        sig = parse_signature('f(sep: str = ", ")')
        assert sig.parameters[0].default == '", "'

    def test_optional_type_not_required(self):
        sig = parse_signature("f(a: Optional[str], b: int | None, c: str)")
        assert [p.required for p in sig.parameters] == [False, False, True]

    def test_untyped_parameter_is_any(self):
        sig = parse_signature("f(x)")
        assert sig.parameters[0].type == "Any"

    def test_trailing_comma_tolerated(self):
        assert len(parse_signature("f(a: int,)").parameters) == 1

    def test_line_number_kept(self):
        assert parse_signature("f()", line_number=7).line == 7

    @pytest.mark.parametrize("line, reason", [
        ("", "Empty"),
        ("no parens here", "Expected"),
        ("`f(a: int`", "Unbalanced"),
        ("`f(a: int) extra`", "Unexpected text"),
        ("f(a: int, a: str)", "Duplicate parameter"),
        ("f(1a: int)", "Invalid parameter name"),
        ("f(class: int)", "Invalid parameter name"),
        ("f(a: int, , b: int)", "Empty parameter"),
        ("f(a: )", "empty type"),
        ("f(a=)", "empty default"),
        ("`f() ->` — x", "Empty return type"),
        ("`f()", "Unterminated backtick"),
        ("`f() -> str` -> int — x", "Return type given twice"),
        ("`f()` -> — x", "Empty return type"),
        ("os.path(a: str)", "Invalid tool name"),
    ])
    def test_malformed(self, line, reason):
        with pytest.raises(SignatureError, match=reason):
            parse_signature(line)

    def test_signature_text_round_trip(self):
        text = 'search_files(pattern: str, path: str = ".") -> list[str]'
        assert parse_signature(text).signature_text() == text


class TestLooksLikeSignature:

    @pytest.mark.parametrize("line", ["ls(path)", "- `ls()`", "  * run_subtask(x: str)"])
    def test_positive(self, line):
        assert looks_like_signature(line)

    @pytest.mark.parametrize("line", ["Parameters: path (string)", "- see below", "call ls() first"])
    def test_negative(self, line):
        assert not looks_like_signature(line)


class TestExtractSignatures:
    """Appendix scanning."""

    def test_essay_appendix(self):
        appendix = parse_document(ESSAY).find_appendix()
        signatures, errors = extract_signatures(appendix)
        assert errors == []
        assert len(signatures) == ESSAY_TOOLS
        assert signatures[0].name == "ls"
        assert signatures[0].line == ESSAY_FIRST_TOOL_LINE
        assert signatures[-1].line == ESSAY_FIRST_TOOL_LINE + ESSAY_TOOLS - 1

    def test_subsections_and_errors(self):
        text = (
            "## Appendix\n"
            "Intro prose.\n"
            "\n"
            "### Files\n"
            "- `ls(path: str)` — list\n"
            "  - Parameters: path (string)\n"
            "- `broken(a: int` — oops\n"
            "\n"
            "### Shell\n"
            "- `run(cmd: str) -> str` — run\n"
            "- Not a tool at all\n"
        )
        signatures, errors = extract_signatures(parse_document(text).find_appendix())
        assert [s.name for s in signatures] == ["ls", "run"]
        assert [s.line for s in signatures] == [5, 10]
        assert len(errors) == 1
        assert errors[0][0] == 7
        assert "Unbalanced" in errors[0][1]

    def test_fenced_items_skipped(self):
        text = "## Appendix\n```\n- fake(a: int)\n```\n- real()\n"
        signatures, _ = extract_signatures(parse_document(text).find_appendix())
        assert [s.name for s in signatures] == ["real"]


class TestTypeMapping:
    """Informal types to JSON Schema."""

    @pytest.mark.parametrize("type_str, expected", [
        ("str", {"type": "string"}),
        ("int", {"type": "integer"}),
        ("float", {"type": "number"}),
        ("bool", {"type": "boolean"}),
        ("None", {"type": "null"}),
        ("Any", {}),
        ("list[str]", {"type": "array", "items": {"type": "string"}}),
        ("List[int]", {"type": "array", "items": {"type": "integer"}}),
        ("list", {"type": "array"}),
        ("tuple[int, ...]", {"type": "array", "items": {"type": "integer"}}),
        ("tuple[int, str]", {"type": "array"}),
        ("dict[str, str]", {"type": "object", "additionalProperties": {"type": "string"}}),
        ("dict", {"type": "object"}),
        ("Optional[int]", {"type": "integer"}),
        ("str | None", {"type": "string"}),
        ("int | str", {"anyOf": [{"type": "integer"}, {"type": "string"}]}),
        ('Literal["a", "b"]', {"type": "string", "enum": ["a", "b"]}),
        ("Widget", {}),
    ])
    def test_type_to_schema(self, type_str, expected):
        assert type_to_schema(type_str) == expected

    def test_is_optional_type(self):
        assert is_optional_type("Optional[str]")
        assert is_optional_type("Union[str, None]")
        assert is_optional_type("str | None")
        assert not is_optional_type("str")
        assert not is_optional_type("Union[str, int]")

    def test_unknown_types(self):
        sig = parse_signature("f(a: Widget, b: list[Gadget], c: Any) -> Thing")
        assert unknown_types(sig) == ["Widget", "Gadget", "Thing"]

    def test_reference_toolset_fully_mapped(self):
        for sig in REFERENCE_TOOLSET:
            assert unknown_types(sig) == [], sig.name


class TestExport:
    """OpenAI and markdown rendering."""

    def test_reference_toolset(self):
        names = [s.name for s in REFERENCE_TOOLSET]
        assert len(names) == 11
        assert names[0] == "ls"
        assert "run_subtask" in names
        assert "read_files" in names

    def test_to_openai_tool(self):
        sig = parse_signature('`ls(path: str = ".", all: bool) -> list[str]` — List files.')
        assert to_openai_tool(sig) == {
            "type": "function",
            "function": {
                "name": "ls",
                "description": "List files.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "path": {"type": "string"},
                        "all": {"type": "boolean"},
                    },
                    "required": ["all"],
                },
            },
        }

    def test_openai_description_falls_back_to_name(self):
        assert to_openai_tool(parse_signature("ping()"))["function"]["description"] == "ping"

    def test_to_markdown(self):
        sigs = [
            parse_signature("`write_file(path: str, content: str = \"\") -> bool` — Write a file."),
            parse_signature("`ping()` — Check liveness."),
        ]
        assert to_markdown(sigs) == (
            "- write_file: Write a file.\n"
            "  - Parameters: path (string, required), content (string, optional)\n"
            "  - Returns: bool\n"
            "- ping: Check liveness.\n"
            "  - Parameters: none"
        )
