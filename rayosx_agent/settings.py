"""
Configuration settings for the X-ray agent.

This module provides a settings class for the agent, with support for loading
configuration from a TOML file and environment variables.
"""

import socket
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from rayosx_agent.exceptions import ConfigError
from rayosx_agent.utils.logger import logger

DEFAULT_CONFIG_FILE = "rayosx-agent.toml"
DEFAULT_EXTENSIONS = [".dcm", ".jpg", ".jpeg", ".png"]
DICOM_EXTENSION = ".dcm"


class Settings(BaseSettings):
    """Main settings class for the agent.

    Values come from environment variables (``RAYOSX_`` prefix) first, then
    from the TOML configuration file. ``server_url`` and ``watch_dir`` have no
    defaults: an agent without them has nothing to do.
    """

    model_config = SettingsConfigDict(
        toml_file=DEFAULT_CONFIG_FILE, env_prefix="RAYOSX_", extra="ignore"
    )

    # Server settings
    server_url: str
    upload_path: str = "/api/equipos/recibir-imagen"
    status_path: str = "/api/equipos/estados"
    station_name: str = Field(default_factory=socket.gethostname)
    request_timeout: float = 30.0

    # Monitoring settings
    watch_dir: Path
    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    processed_dir_name: str = "procesados"
    poll_interval_ms: int = Field(default=5000, gt=0)
    debounce_seconds: float = Field(default=2.0, ge=0)
    max_concurrent_uploads: int | None = Field(default=None, gt=0)

    # Logging settings
    log_level: str = "INFO"
    log_file: Path | None = Path("agente-rayosx.log")
    log_rotation: str = "20 MB"
    log_retention: str = "4 weeks"

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"server_url must be an http(s) URL, got '{value}'")
        return value

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, value: list[str]) -> list[str]:
        normalized = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in normalized:
                normalized.append(ext)
        if not normalized:
            raise ValueError("at least one extension must be configured")
        return normalized

    @field_validator("processed_dir_name")
    @classmethod
    def plain_directory_name(cls, value: str) -> str:
        if not value or Path(value).name != value:
            raise ValueError(f"processed_dir_name must be a plain folder name, got '{value}'")
        return value

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        try:
            logger.level(value)
        except ValueError:
            raise ValueError(f"unknown log_level '{value}'") from None
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the sources for settings.

        Priority order: explicit arguments, environment variables, then the TOML file
        """
        return init_settings, env_settings, TomlConfigSettingsSource(settings_cls)

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000

    def is_allowed(self, filename: str) -> bool:
        """Check whether a filename carries one of the configured extensions."""
        return Path(filename).suffix.lower() in self.extensions


def load_settings(config_file: str | Path | None = None) -> Settings:
    """Load settings once at startup.

    Args:
        config_file: Path to a TOML file. When omitted, ``rayosx-agent.toml``
            in the working directory is used if it exists.

    Returns:
        Validated Settings instance

    Raises:
        ConfigError: If the given file does not exist or the resulting
            configuration is incomplete or invalid
    """
    if config_file is None:
        settings_cls: type[Settings] = Settings
    else:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")

        class FileSettings(Settings):
            model_config = SettingsConfigDict(toml_file=path)

        settings_cls = FileSettings

    try:
        return settings_cls()  # type: ignore[call-arg]
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    except (OSError, ValueError) as e:
        # tomllib.TOMLDecodeError is a ValueError
        raise ConfigError(f"Cannot read configuration: {e}") from e
