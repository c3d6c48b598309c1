"""
Configuration management for the ticket agent orchestrator.
"""

import os
import yaml
from typing import Dict, Any, Optional, List
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .models import AgentRole

# Iteration cap of the triage loop.
MAX_ITERATIONS = 5

# Placeholder confidence reported for a pipeline agent assignment. Not calibrated.
DEFAULT_ASSIGNMENT_CONFIDENCE = 0.8

DEFAULT_DEDUP_TTL_SECONDS = 300
DEFAULT_DEDUP_MAX_EVENTS = 1000


class AWSConfig(BaseModel):
    """AWS Bedrock configuration for the AI text-generation service."""
    region: str = "us-east-1"
    model: str = "anthropic.claude-3-5-sonnet-20240620-v1:0"
    temperature: float = 0.1
    max_tokens: int = 1000


class SlackConfig(BaseModel):
    """Slack Web API configuration for the messaging service."""
    bot_token: str = ""
    api_url: str = "https://slack.com/api"
    timeout: int = 10
    default_channel: str = "#support"


class OrchestrationConfig(BaseModel):
    """Triage loop and pipeline settings."""
    entry_role: str = AgentRole.PROJECT_MANAGER.value
    max_iterations: int = MAX_ITERATIONS
    assignment_confidence: float = DEFAULT_ASSIGNMENT_CONFIDENCE
    roles: List[str] = Field(default_factory=lambda: [role.value for role in AgentRole])


class TeamConfig(BaseModel):
    """Slack user ids to mention per agent role."""
    mentions: Dict[str, List[str]] = Field(default_factory=dict)


class DeduplicationConfig(BaseModel):
    """Inbound event deduplication settings."""
    ttl_seconds: float = DEFAULT_DEDUP_TTL_SECONDS
    max_events: int = DEFAULT_DEDUP_MAX_EVENTS


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str = "logs/ticket_orchestrator.log"
    console: bool = False


class Config(BaseModel):
    """Main configuration class."""
    aws: AWSConfig = Field(default_factory=AWSConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    orchestration: OrchestrationConfig = Field(default_factory=OrchestrationConfig)
    team: TeamConfig = Field(default_factory=TeamConfig)
    deduplication: DeduplicationConfig = Field(default_factory=DeduplicationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Configuration manager for the ticket agent orchestrator."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager."""
        self.config_path = config_path or "config.yaml"
        load_dotenv()  # Load environment variables

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        config_file = Path(self.config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}", "CONFIG_NOT_FOUND")

        try:
            with open(config_file, 'r', encoding='utf-8') as file:
                config_data = yaml.safe_load(file) or {}

            # Substitute environment variables
            config_data = self._substitute_env_vars(config_data)

            return Config(**config_data)

        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}", "CONFIG_LOAD_ERROR")

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute environment variables in configuration."""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
            env_var = data[2:-1]
            # Handle default values like ${SLACK_API_URL:-https://slack.com/api}
            if ":-" in env_var:
                var_name, default_value = env_var.split(":-", 1)
                return os.getenv(var_name, default_value)
            else:
                return os.getenv(env_var, "")
        else:
            return data

    def validate_config(self, config: Config) -> None:
        """Validate configuration values."""
        orchestration = config.orchestration

        if orchestration.max_iterations < 1:
            raise ConfigurationError("orchestration.max_iterations must be at least 1")

        if orchestration.assignment_confidence < 0 or orchestration.assignment_confidence > 1:
            raise ConfigurationError("orchestration.assignment_confidence must be between 0 and 1")

        if not orchestration.roles:
            raise ConfigurationError("orchestration.roles must list at least one agent role")

        # Every role name must belong to the closed role set
        role_names = list(orchestration.roles) + list(config.team.mentions.keys()) + [orchestration.entry_role]
        for name in role_names:
            try:
                AgentRole.parse(name)
            except ValueError:
                raise ConfigurationError(f"Unknown agent role in configuration: {name}", "UNKNOWN_ROLE")

        entry_role = AgentRole.parse(orchestration.entry_role)
        if entry_role not in {AgentRole.parse(name) for name in orchestration.roles}:
            raise ConfigurationError(f"Entry role {entry_role.value} is not among the registered roles")

        if config.deduplication.ttl_seconds <= 0 or config.deduplication.max_events < 1:
            raise ConfigurationError("deduplication.ttl_seconds and deduplication.max_events must be positive")

        if config.slack.timeout < 1:
            raise ConfigurationError("slack.timeout must be positive")

        if config.aws.temperature < 0 or config.aws.temperature > 1:
            raise ConfigurationError("Temperature must be between 0 and 1")

        if config.aws.max_tokens < 1:
            raise ConfigurationError("Max tokens must be positive")

        # Create necessary directories
        logs_dir = Path(config.logging.file).parent
        logs_dir.mkdir(parents=True, exist_ok=True)
