"""
Configuration for SecCopilot.

Persistent settings live in ``~/.sec-copilot/config.json`` (camelCase keys)
and are handled by ConfigManager. Per-run options are validated by
ScanOptions. Environment variables are read only by apply_environment, which
the CLI calls once at startup; everything below the CLI receives explicit
configuration objects.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .constants import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_REASONING_TIMEOUT_SECONDS,
    MAX_SCANNED_FILE_SIZE,
)
from .core.exceptions import ConfigurationError, InvalidConfigError, InvalidOptionsError
from .models import CamelModel, Severity

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".sec-copilot"
CONFIG_FILE_NAME = "config.json"

# Checked in order; the first non-empty value wins
API_KEY_VARIABLES = {
    "anthropic": ("SECCOPILOT_API_KEY", "ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
    "openai": ("SECCOPILOT_API_KEY", "OPENAI_API_KEY"),
}

# Path globs dropped from scans when include_tests is off
TEST_PATH_PATTERNS = (
    "test/*",
    "tests/*",
    "*/test/*",
    "*/tests/*",
    "test_*.py",
    "*/test_*.py",
    "*_test.py",
    "*.test.*",
    "*.spec.*",
)


class SettingsModel(CamelModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class ReasoningSettings(SettingsModel):
    """External reasoning service used for correlation delegation.

    Delegation happens only when ``enabled`` is true and an API key is set.
    """

    provider: Literal["anthropic", "openai"] = "anthropic"
    api_key: str | None = None
    model: str | None = None
    timeout_seconds: float = Field(default=DEFAULT_REASONING_TIMEOUT_SECONDS, gt=0)
    enabled: bool = True

    @field_validator("provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() == "claude":
            return "anthropic"
        return value

    @property
    def delegation_enabled(self) -> bool:
        return self.enabled and bool(self.api_key)

    @property
    def resolved_model(self) -> str:
        if self.model:
            return self.model
        return DEFAULT_OPENAI_MODEL if self.provider == "openai" else DEFAULT_ANTHROPIC_MODEL


class ScanningSettings(SettingsModel):
    default_severity: Severity = Severity.MEDIUM
    include_tests: bool = True
    max_file_size: int = Field(default=MAX_SCANNED_FILE_SIZE, gt=0)
    exclude_patterns: list[str] = Field(default_factory=list)
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)

    def effective_exclude_patterns(self) -> tuple[str, ...]:
        patterns = list(self.exclude_patterns)
        if not self.include_tests:
            patterns.extend(TEST_PATH_PATTERNS)
        return tuple(patterns)


class ReportingSettings(SettingsModel):
    default_format: Literal["table", "json", "markdown"] = "table"
    save_reports: bool = False
    report_dir: str = "./security-reports"


class SecCopilotConfig(SettingsModel):
    ai: ReasoningSettings = Field(default_factory=ReasoningSettings)
    scanning: ScanningSettings = Field(default_factory=ScanningSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ScanOptions(CamelModel):
    """Validated options for one scan run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    repo: str = "."
    cloud: Literal["aws", "azure", "gcp"] = "aws"
    severity: Severity = Severity.MEDIUM
    output: Literal["table", "json", "markdown"] = "table"
    mode: Literal["technical", "executive", "compliance"] = "technical"
    demo: bool = False

    @classmethod
    def parse(cls, **raw: Any) -> "ScanOptions":
        """
        Validate raw option values; ``None`` values fall back to defaults.

        Raises:
            InvalidOptionsError: If any option is unknown or out of range
        """
        values = {key: value for key, value in raw.items() if value is not None}
        if isinstance(values.get("cloud"), str):
            values["cloud"] = values["cloud"].lower()
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise InvalidOptionsError(f"Invalid scan options: {problems}") from e


def apply_environment(
    config: SecCopilotConfig,
    environ: Mapping[str, str] | None = None,
) -> SecCopilotConfig:
    """Return ``config`` with the reasoning API key taken from the environment, if set."""
    environ = os.environ if environ is None else environ
    for variable in API_KEY_VARIABLES[config.ai.provider]:
        value = environ.get(variable)
        if value:
            logger.debug(f"Using reasoning API key from {variable}")
            ai = config.ai.model_copy(update={"api_key": value})
            return config.model_copy(update={"ai": ai})
    return config


def _decode_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _lookup_key(data: Mapping[str, Any], key: str) -> str | None:
    """Match a key segment by its camelCase or snake_case spelling."""
    for candidate in (key, to_camel(key)):
        if candidate in data:
            return candidate
    return None


class ConfigManager:
    """Loads and saves the persistent configuration file."""

    def __init__(self, config_dir: str | Path | None = None):
        self.config_dir = Path(config_dir) if config_dir else Path.home() / CONFIG_DIR_NAME
        self.config_file = self.config_dir / CONFIG_FILE_NAME

    def read(self) -> SecCopilotConfig:
        """
        Read the configuration file; a missing file yields the defaults.

        Raises:
            InvalidConfigError: If the file is unreadable or invalid
        """
        if not self.config_file.exists():
            return SecCopilotConfig()
        try:
            data = json.loads(self.config_file.read_text(encoding="utf-8"))
            return SecCopilotConfig.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise InvalidConfigError(f"Invalid configuration file {self.config_file}: {e}") from e

    def load(self) -> SecCopilotConfig:
        """Read the configuration, falling back to defaults if it is invalid."""
        try:
            return self.read()
        except InvalidConfigError as e:
            logger.warning(f"Failed to load config, using defaults: {e}")
            return SecCopilotConfig()

    def save(self, config: SecCopilotConfig) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(json.dumps(config.to_dict(), indent=2) + "\n", encoding="utf-8")
        logger.debug(f"Saved configuration to {self.config_file}")

    def get_value(self, key: str) -> Any:
        """
        Value at a dotted key path such as ``ai.model``.

        Raises:
            ConfigurationError: If the key does not exist
        """
        current: Any = self.load().to_dict()
        for part in key.split("."):
            found = _lookup_key(current, part) if isinstance(current, dict) else None
            if found is None:
                raise ConfigurationError(f"Key '{key}' not found")
            current = current[found]
        return current

    def set_value(self, key: str, raw_value: str) -> SecCopilotConfig:
        """
        Set a dotted key path and persist the result.

        ``raw_value`` is decoded as JSON when possible, so ``true``, ``5`` and
        ``["a"]`` become typed values; anything else is stored as a string.

        Raises:
            ConfigurationError: If the key does not exist
            InvalidConfigError: If the value fails validation
        """
        data = self.load().to_dict()
        *parents, leaf = key.split(".")
        target: Any = data
        for part in parents:
            found = _lookup_key(target, part) if isinstance(target, dict) else None
            if found is None or not isinstance(target[found], dict):
                raise ConfigurationError(f"Key '{key}' not found")
            target = target[found]
        target[_lookup_key(target, leaf) or leaf] = _decode_value(raw_value)

        try:
            config = SecCopilotConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid value for {key}: {e}") from e
        self.save(config)
        return config

    def list_config(self) -> dict[str, Any]:
        return self.load().to_dict()
