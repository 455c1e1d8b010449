"""Configuration management for the CNB reviewer."""

import logging
from typing import Any, Dict, Optional

import yaml
from pydantic import AliasChoices, Field
try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ModuleNotFoundError as exc:
    raise ModuleNotFoundError(
        "pydantic-settings is required for Pydantic v2. "
        "Install it with: pip install pydantic-settings>=2.0"
    ) from exc
from dotenv import load_dotenv

from .languages import DEFAULT_LANGUAGES

load_dotenv()

logger = logging.getLogger(__name__)

DASHSCOPE_COMPATIBLE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"


class CnbConfig(BaseSettings):
    """CNB platform API configuration."""

    model_config = SettingsConfigDict(env_prefix="CNB_")

    base_url: str = "https://api.cnb.cool"
    api_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    timeout: float = 30.0


class AIConfig(BaseSettings):
    """AI provider configuration."""

    model_config = SettingsConfigDict(env_prefix="AI_", populate_by_name=True)

    provider: str = "openai"
    model: str = "qwen-plus"
    base_url: Optional[str] = DASHSCOPE_COMPATIBLE_URL
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AI_API_KEY", "DASHSCOPE_API_KEY"),
    )
    max_tokens: int = 1000
    temperature: float = 0.1


class ReviewConfig(BaseSettings):
    """Review process configuration."""

    model_config = SettingsConfigDict(env_prefix="REVIEW_")

    max_files_per_pr: Optional[int] = None
    comment_position: int = 1
    summary_path: str = "README.md"


class ServerConfig(BaseSettings):
    """Webhook server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", populate_by_name=True)

    host: str = "0.0.0.0"
    port: int = Field(default=3000, validation_alias=AliasChoices("SERVER_PORT", "PORT"))


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    file: Optional[str] = None


class Config:
    """Main configuration class."""

    def __init__(self, config_file: str = "config.yaml"):
        self.cnb = CnbConfig()
        self.ai = AIConfig()
        self.review = ReviewConfig()
        self.server = ServerConfig()
        self.logging = LoggingConfig()

        # Load YAML configuration
        self.rules = self._load_yaml_config(config_file)

    def _load_yaml_config(self, config_file: str) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            logger.warning(f"Config file {config_file} not found. Using defaults.")
            return {}
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file {config_file}: {e}")
            return {}

        if not isinstance(data, dict):
            return {}
        return data

    def get_language_map(self) -> Dict[str, str]:
        """Built-in extension map extended with the YAML ``languages`` section."""
        languages = dict(DEFAULT_LANGUAGES)
        for extension, label in (self.rules.get("languages") or {}).items():
            extension = str(extension).lower()
            if not extension.startswith("."):
                extension = f".{extension}"
            languages[extension] = str(label)
        return languages
