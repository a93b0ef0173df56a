"""Configuration management - Pydantic model with YAML loading and CLI overrides."""

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from prompt_blueprint.dimensions import DIMENSION_KEYS
from prompt_blueprint.issues import RULE_CODES
from prompt_blueprint.project_instructions import DEFAULT_CONFIG_DIR, find_git_root

DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_NAME = ".prompt-blueprint.yaml"

_log = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


class LintConfig(BaseModel):
    """Lint settings with validation."""

    model_config = ConfigDict(extra="forbid")

    expected_sections: int | None = None
    min_sections: int = 1
    expected_tools: int | None = None
    appendix_pattern: str = "appendix"
    required_dimensions: list[str] = []
    min_mentions: int = 2
    disabled_rules: list[str] = []
    strict: bool = False

    # Token budget
    max_tokens: int | None = None
    model: str = "gpt-4"

    @field_validator("expected_sections", "expected_tools", "max_tokens")
    @classmethod
    def validate_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("Must be zero or greater")
        return v

    @field_validator("min_sections", "min_mentions")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Must be at least 1")
        return v

    @field_validator("appendix_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regular expression {v!r}: {e}") from None
        return v

    @field_validator("required_dimensions")
    @classmethod
    def validate_dimensions(cls, v: list[str]) -> list[str]:
        unknown = [d for d in v if d not in DIMENSION_KEYS]
        if unknown:
            raise ValueError(
                f"Unknown dimension(s) {', '.join(unknown)}; valid: {', '.join(DIMENSION_KEYS)}"
            )
        return v

    @field_validator("disabled_rules")
    @classmethod
    def validate_rules(cls, v: list[str]) -> list[str]:
        normalised = [r.upper() for r in v]
        unknown = [r for r in normalised if r not in RULE_CODES]
        if unknown:
            raise ValueError(f"Unknown rule(s) {', '.join(unknown)}")
        return normalised


def _format_validation_error(e: ValidationError) -> str:
    errors = []
    for err in e.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        msg = err["msg"]
        errors.append(f"  - {field}: {msg}")
    return "\n".join(errors)


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Locate .prompt-blueprint.yaml at the git root or CWD, else the global file."""
    start = (start_path or Path.cwd()).resolve()
    git_root = find_git_root(start)
    for directory in dict.fromkeys(d for d in (git_root, start) if d is not None):
        project_file = directory / PROJECT_CONFIG_NAME
        if project_file.is_file():
            return project_file
    if DEFAULT_CONFIG_FILE.is_file():
        return DEFAULT_CONFIG_FILE
    return None


def load_config(config_path: Path | None = None, start_path: Path | None = None) -> LintConfig:
    """Load and validate config from YAML file.

    Args:
        config_path: Explicit config file. When omitted, the project file and
            then ~/.prompt-blueprint/config.yaml are tried; if neither exists
            the defaults are used.
        start_path: Where project config discovery starts. Defaults to CWD.

    Returns:
        Validated LintConfig instance.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")
        path = config_path
    else:
        path = find_config_file(start_path)
        if path is None:
            _log.debug("No config file found; using defaults")
            return LintConfig()

    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}:\n\n  {e}") from None

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid configuration in {path}\n\n"
            f"  Config file is not a YAML mapping.\n\n"
            f"Example:\n"
            f"  expected_sections: 9\n"
            f"  expected_tools: 11\n"
            f"  required_dimensions: [tools, safety]"
        )

    _log.debug("Loaded config from %s", path)
    try:
        return LintConfig(**data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}\n\n{_format_validation_error(e)}"
        ) from None


def apply_cli_overrides(config: LintConfig, **overrides) -> LintConfig:
    """Apply CLI flag overrides to config. Returns a new LintConfig instance.

    Override precedence: Defaults → YAML → CLI flags. A value of None (or an
    empty tuple from a multiple option) means the flag was not given; list
    values extend the configured list. ``strict`` only switches on.
    """
    changes = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            existing = getattr(config, key, [])
            changes[key] = list(dict.fromkeys([*existing, *value]))
        elif key == "strict" and value is False:
            continue
        else:
            changes[key] = value

    if not changes:
        return config

    try:
        return LintConfig.model_validate(config.model_dump() | changes)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid CLI override:\n\n{_format_validation_error(e)}"
        ) from None
