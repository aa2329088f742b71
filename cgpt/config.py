"""
Configuration handling for cgpt
Loads environment settings and the persisted CLI state
"""
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cgpt.errors import ConfigError
from cgpt.models.config import CliConfig

logger = logging.getLogger(__name__)

DEFAULT_HOME = os.path.join("~", ".cgpt")
DEFAULT_SAVE_DIRECTORY = os.path.join(DEFAULT_HOME, "chats")


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API settings
    CGPT_TOKEN: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    CGPT_MODEL: str = "gpt-3.5-turbo"
    CGPT_TIMEOUT: float = 30.0

    # Storage settings
    SAVE_PATH: Optional[str] = None
    CGPT_CONFIG_PATH: str = os.path.join(DEFAULT_HOME, "config.json")

    # Logging settings
    LOG_DIR: str = os.path.join(DEFAULT_HOME, "logs")
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level name"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {', '.join(allowed)}")
        return v.upper()

    @field_validator("CGPT_TIMEOUT")
    @classmethod
    def validate_timeout(cls, v):
        """Timeout must be positive"""
        if v <= 0:
            raise ValueError("Timeout must be greater than zero")
        return v

    @property
    def api_token(self) -> Optional[str]:
        """CGPT_TOKEN, falling back to OPENAI_API_KEY"""
        return self.CGPT_TOKEN or self.OPENAI_API_KEY or None

    def require_token(self) -> str:
        """Return the API token or raise ConfigError when none is set"""
        token = self.api_token
        if not token:
            raise ConfigError("No API token found: set CGPT_TOKEN (or OPENAI_API_KEY)")
        return token


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process"""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


class ConfigStore:
    """
    JSON file holding the CLI state (save directory and current conversation)
    Missing files yield defaults; only an explicit checkout writes it back
    """

    def __init__(self, path: str, default_save_directory: str, save_directory_override: Optional[str] = None):
        self.path = Path(path).expanduser()
        self.default_save_directory = default_save_directory
        self.save_directory_override = save_directory_override

    def load(self, apply_override: bool = True) -> CliConfig:
        """
        Read the stored state, or the defaults when there is none
        With apply_override, SAVE_PATH replaces the stored save directory
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"No config at {self.path}, using defaults")
            raw = None
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Config file {self.path} could not be read: {e}") from e

        if raw is None:
            config = CliConfig(save_directory=self.default_save_directory)
        else:
            try:
                config = CliConfig.model_validate_json(raw)
            except ValidationError as e:
                raise ConfigError(f"Config file {self.path} is invalid: {e}") from e

        if apply_override and self.save_directory_override:
            config = config.model_copy(update={"save_directory": self.save_directory_override})
        return config

    def save(self, config: CliConfig) -> None:
        """Write the state, creating the parent directory if needed"""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Config file {self.path} could not be written: {e}") from e
        logger.info(f"Saved config to {self.path}")
