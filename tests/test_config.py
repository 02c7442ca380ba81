"""Tests for persistent configuration and scan options."""

import json

import pytest

from seccopilot.config import (
    ConfigManager,
    ReasoningSettings,
    ScanningSettings,
    ScanOptions,
    SecCopilotConfig,
    apply_environment,
)
from seccopilot.core.exceptions import ConfigurationError, InvalidConfigError, InvalidOptionsError
from seccopilot.models import Severity


@pytest.fixture
def manager(tmp_path):
    return ConfigManager(tmp_path / "config")


class TestScanOptions:
    def test_defaults(self):
        options = ScanOptions.parse()

        assert options.repo == "."
        assert options.cloud == "aws"
        assert options.severity == Severity.MEDIUM
        assert options.output == "table"
        assert options.mode == "technical"
        assert options.demo is False

    def test_none_values_fall_back_to_defaults(self):
        options = ScanOptions.parse(repo=None, cloud="GCP", severity="high", output=None)

        assert options.repo == "."
        assert options.cloud == "gcp"
        assert options.severity == Severity.HIGH

    @pytest.mark.parametrize(
        "field,value",
        [
            ("cloud", "digitalocean"),
            ("severity", "urgent"),
            ("output", "html"),
            ("mode", "verbose"),
            ("unknown", "x"),
        ],
    )
    def test_invalid_values_are_rejected(self, field, value):
        with pytest.raises(InvalidOptionsError) as exc_info:
            ScanOptions.parse(**{field: value})
        assert field in str(exc_info.value)

    def test_options_are_immutable(self):
        options = ScanOptions.parse()
        with pytest.raises(Exception):
            options.repo = "elsewhere"


class TestSettings:
    def test_delegation_needs_key_and_enabled(self):
        assert not ReasoningSettings().delegation_enabled
        assert ReasoningSettings(api_key="k").delegation_enabled
        assert not ReasoningSettings(api_key="k", enabled=False).delegation_enabled

    def test_claude_is_an_alias_for_anthropic(self):
        assert ReasoningSettings(provider="claude").provider == "anthropic"

    def test_resolved_model(self):
        assert ReasoningSettings().resolved_model.startswith("claude")
        assert ReasoningSettings(provider="openai").resolved_model == "gpt-4o-mini"
        assert ReasoningSettings(model="custom").resolved_model == "custom"

    def test_timeout_must_be_positive(self):
        with pytest.raises(Exception):
            ReasoningSettings(timeout_seconds=0)

    def test_test_paths_excluded_only_when_disabled(self):
        assert ScanningSettings(exclude_patterns=["gen/*"]).effective_exclude_patterns() == ("gen/*",)
        patterns = ScanningSettings(include_tests=False).effective_exclude_patterns()
        assert "tests/*" in patterns

    def test_camel_case_round_trip(self):
        data = SecCopilotConfig().to_dict()

        assert data["ai"]["timeoutSeconds"] == 30.0
        assert data["scanning"]["includeTests"] is True
        assert data["reporting"]["saveReports"] is False
        assert SecCopilotConfig.model_validate(data) == SecCopilotConfig()


class TestApplyEnvironment:
    def test_first_variable_wins(self):
        config = apply_environment(
            SecCopilotConfig(),
            {"ANTHROPIC_API_KEY": "second", "SECCOPILOT_API_KEY": "first"},
        )
        assert config.ai.api_key == "first"

    def test_provider_specific_variable(self):
        config = SecCopilotConfig.model_validate({"ai": {"provider": "openai"}})

        assert apply_environment(config, {"OPENAI_API_KEY": "sk-o"}).ai.api_key == "sk-o"
        assert apply_environment(config, {"ANTHROPIC_API_KEY": "sk-a"}).ai.api_key is None

    def test_empty_variables_are_ignored(self):
        config = SecCopilotConfig.model_validate({"ai": {"apiKey": "stored"}})
        assert apply_environment(config, {"SECCOPILOT_API_KEY": ""}).ai.api_key == "stored"


class TestConfigManager:
    def test_missing_file_yields_defaults(self, manager):
        assert manager.read() == SecCopilotConfig()

    def test_save_and_read(self, manager):
        config = SecCopilotConfig.model_validate({"reporting": {"defaultFormat": "json"}})
        manager.save(config)

        stored = json.loads(manager.config_file.read_text())
        assert stored["reporting"]["defaultFormat"] == "json"
        assert manager.read() == config

    def test_invalid_file(self, manager, caplog):
        manager.config_dir.mkdir(parents=True)
        manager.config_file.write_text("{not json")

        with pytest.raises(InvalidConfigError):
            manager.read()
        assert manager.load() == SecCopilotConfig()
        assert "using defaults" in caplog.text

    def test_set_value_decodes_json(self, manager):
        manager.set_value("scanning.maxWorkers", "4")
        manager.set_value("scanning.exclude_patterns", '["legacy/*"]')
        manager.set_value("ai.apiKey", "sk-test")

        config = manager.read()
        assert config.scanning.max_workers == 4
        assert config.scanning.exclude_patterns == ["legacy/*"]
        assert config.ai.api_key == "sk-test"

    def test_get_value(self, manager):
        manager.set_value("reporting.saveReports", "true")

        assert manager.get_value("reporting.saveReports") is True
        assert manager.get_value("reporting")["reportDir"] == "./security-reports"

    def test_unknown_key(self, manager):
        with pytest.raises(ConfigurationError, match="not found"):
            manager.get_value("ai.nothing")
        with pytest.raises(ConfigurationError, match="not found"):
            manager.set_value("nothing.here", "1")

    def test_invalid_value_is_not_saved(self, manager):
        with pytest.raises(InvalidConfigError):
            manager.set_value("scanning.maxWorkers", "0")
        assert not manager.config_file.exists()

    def test_list_config(self, manager):
        assert set(manager.list_config()) == {"ai", "scanning", "reporting"}
