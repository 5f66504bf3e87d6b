import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from streamrelay.core.errors import ConfigurationError
from streamrelay.core.logging import get_logger

from .logging import LoggingSettings
from .relay import PageSettings, RelaySettings
from .server import ServerSettings


__all__ = ["Settings", "ConfigurationError", "get_settings", "find_toml_config_file"]


logger = get_logger(__name__)

CONFIG_FILE_NAME = ".streamrelay.toml"


class Settings(BaseSettings):
    """
    Configuration settings for the streamrelay server.

    Settings are loaded from environment variables, .env files, and TOML configuration files.
    Environment variables take precedence over TOML values, and explicit
    overrides (e.g. from the CLI) take precedence over both.
    The TOML file is looked up in the following order:
    1. the path passed to ``from_config``
    2. the ``CONFIG_FILE`` environment variable
    3. .streamrelay.toml in the current directory
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    relay: RelaySettings = Field(
        default_factory=RelaySettings,
        description="Streaming relay defaults",
    )

    page: PageSettings = Field(
        default_factory=PageSettings,
        description="Index page content",
    )

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "Settings":
        """Create Settings from a TOML file, the environment and explicit overrides.

        Args:
            config_path: Optional TOML file; discovered when omitted
            **overrides: Nested values (``server={"port": 9000}``) applied last

        Raises:
            ConfigurationError: If the file cannot be read or a value is invalid
        """
        if config_path is None:
            config_path = find_toml_config_file()
        elif isinstance(config_path, str):
            config_path = Path(config_path)

        config_data: dict[str, Any] = {}
        if config_path is not None:
            config_data = cls.load_toml_config(config_path)
            logger.debug("config_file_loaded", path=str(config_path))

        try:
            # Values explicitly set through the environment win over the file
            from_env = cls().model_dump(exclude_unset=True)
            merged = _deep_merge(_deep_merge(config_data, from_env), overrides)
            return cls(**merged)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"errors": e.errors(include_url=False)},
            ) from e


def find_toml_config_file() -> Path | None:
    """Return the TOML config file to use, if any."""
    config_path_env = os.environ.get("CONFIG_FILE")
    if config_path_env:
        return Path(config_path_env)

    candidate = Path.cwd() / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate
    return None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings.from_config()
