"""
Test configuration for the ticket agent orchestrator.
"""

import pytest
import tempfile
import os
from unittest.mock import patch

from ticket_agent_orchestrator.config import Config, ConfigManager, MAX_ITERATIONS
from ticket_agent_orchestrator.exceptions import ConfigurationError
from ticket_agent_orchestrator.models import AgentRole


@pytest.fixture
def temp_config_file():
    """Create a temporary config file for testing."""
    config_content = """
aws:
  region: "us-west-2"
  model: "test-model"

slack:
  bot_token: "${TEST_SLACK_TOKEN:-xoxb-default}"
  default_channel: "#tickets"

orchestration:
  entry_role: project_manager
  max_iterations: 4
  roles: [PROJECT_MANAGER, DEVOPS, QA_TESTER]

team:
  mentions:
    DEVOPS: ["U123", "U456"]

deduplication:
  ttl_seconds: 60
  max_events: 10

logging:
  level: "DEBUG"
  file: "test_logs/test.log"
"""

    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write(config_content)
        f.flush()
        yield f.name

    os.unlink(f.name)


@pytest.fixture
def config_manager(temp_config_file):
    """Create a config manager instance for testing."""
    return ConfigManager(temp_config_file)


@pytest.fixture
def test_config(config_manager):
    """Create a test configuration."""
    return config_manager.load_config()


class TestConfigManager:
    """Test configuration manager functionality."""

    def test_load_config_success(self, config_manager):
        """Test successful configuration loading."""
        config = config_manager.load_config()
        assert isinstance(config, Config)
        assert config.aws.region == "us-west-2"
        assert config.slack.default_channel == "#tickets"
        assert config.orchestration.max_iterations == 4
        assert config.team.mentions["DEVOPS"] == ["U123", "U456"]
        assert config.deduplication.max_events == 10

    def test_load_config_missing_file(self):
        """Test loading config with missing file."""
        config_manager = ConfigManager("nonexistent.yaml")

        with pytest.raises(ConfigurationError) as exc_info:
            config_manager.load_config()

        assert exc_info.value.error_code == "CONFIG_NOT_FOUND"

    def test_load_config_invalid_yaml(self):
        """Test loading config with invalid YAML."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("orchestration: [unclosed")
            path = f.name

        try:
            with pytest.raises(ConfigurationError) as exc_info:
                ConfigManager(path).load_config()
            assert exc_info.value.error_code == "CONFIG_LOAD_ERROR"
        finally:
            os.unlink(path)

    def test_defaults_fill_missing_sections(self, test_config):
        """Test that omitted sections fall back to defaults."""
        assert test_config.aws.temperature == 0.1
        assert test_config.orchestration.assignment_confidence == 0.8
        assert test_config.slack.api_url == "https://slack.com/api"

    def test_default_config_registers_all_roles(self):
        config = Config()
        assert config.orchestration.max_iterations == MAX_ITERATIONS
        assert [AgentRole.parse(name) for name in config.orchestration.roles] == list(AgentRole)

    def test_env_var_default_used(self, config_manager):
        """Test ${VAR:-default} falls back when the variable is unset."""
        with patch.dict(os.environ, {}, clear=True):
            config = config_manager.load_config()
        assert config.slack.bot_token == "xoxb-default"

    def test_env_var_substitution(self, config_manager):
        """Test environment variable substitution."""
        with patch.dict(os.environ, {"TEST_SLACK_TOKEN": "xoxb-from-env"}):
            config = config_manager.load_config()
        assert config.slack.bot_token == "xoxb-from-env"

    def test_substitute_env_vars_nested(self, config_manager):
        with patch.dict(os.environ, {"NESTED_VAR": "value"}):
            result = config_manager._substitute_env_vars({"a": ["${NESTED_VAR}", "plain"], "b": {"c": "${MISSING_VAR_XYZ}"}})
        assert result == {"a": ["value", "plain"], "b": {"c": ""}}


class TestConfigValidation:
    """Test configuration validation."""

    def test_validate_config_success(self, config_manager, test_config):
        """Test successful configuration validation."""
        config_manager.validate_config(test_config)

    def test_validate_max_iterations(self, config_manager, test_config):
        test_config.orchestration.max_iterations = 0
        with pytest.raises(ConfigurationError, match="max_iterations"):
            config_manager.validate_config(test_config)

    def test_validate_assignment_confidence(self, config_manager, test_config):
        test_config.orchestration.assignment_confidence = 1.5
        with pytest.raises(ConfigurationError, match="assignment_confidence"):
            config_manager.validate_config(test_config)

    def test_validate_unknown_role(self, config_manager, test_config):
        """Test that unknown role names abort startup."""
        test_config.orchestration.roles.append("JANITOR")
        with pytest.raises(ConfigurationError) as exc_info:
            config_manager.validate_config(test_config)
        assert exc_info.value.error_code == "UNKNOWN_ROLE"

    def test_validate_unknown_mention_role(self, config_manager, test_config):
        test_config.team.mentions["DESIGNER"] = ["U999"]
        with pytest.raises(ConfigurationError) as exc_info:
            config_manager.validate_config(test_config)
        assert exc_info.value.error_code == "UNKNOWN_ROLE"

    def test_validate_entry_role_registered(self, config_manager, test_config):
        test_config.orchestration.entry_role = "SOFTWARE_ENGINEER"
        with pytest.raises(ConfigurationError, match="Entry role"):
            config_manager.validate_config(test_config)

    def test_validate_empty_roles(self, config_manager, test_config):
        test_config.orchestration.roles = []
        with pytest.raises(ConfigurationError):
            config_manager.validate_config(test_config)

    def test_validate_deduplication(self, config_manager, test_config):
        test_config.deduplication.ttl_seconds = 0
        with pytest.raises(ConfigurationError, match="deduplication"):
            config_manager.validate_config(test_config)

    def test_validate_temperature(self, config_manager, test_config):
        test_config.aws.temperature = 2.0
        with pytest.raises(ConfigurationError, match="Temperature"):
            config_manager.validate_config(test_config)
