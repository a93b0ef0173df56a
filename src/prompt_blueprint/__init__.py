"""prompt-blueprint - structural tooling for agentic system-prompt documents."""

from importlib.metadata import version

__version__ = version("prompt-blueprint")

from prompt_blueprint.composer import Blueprint, BlueprintError, compose, load_blueprint
from prompt_blueprint.config import ConfigError, LintConfig, load_config
from prompt_blueprint.dimensions import DIMENSIONS, Dimension, assess_coverage, get_dimension
from prompt_blueprint.document import Document, DocumentError, Section, load_document, parse_document
from prompt_blueprint.linter import LintReport, lint_document
from prompt_blueprint.toolset import (
    REFERENCE_TOOLSET,
    SignatureError,
    ToolSignature,
    extract_signatures,
    parse_signature,
    to_openai_tool,
)
