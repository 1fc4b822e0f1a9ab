"""Configuration for the filesystem facade."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gmsfs.protocols import FailureRecorder
from gmsfs.recorder import (
    DEFAULT_LOG_PREFIX,
    DEFAULT_SENTINEL,
    LogFileRecorder,
    NullRecorder,
    SentinelRecorder,
)

# Default configuration file looked up in the working directory
CONFIG_FILE = Path("gmsfs.yaml")

DebugMode = Literal["off", "on", "sentinel"]


class ConfigError(Exception):
    """Error loading configuration."""

    pass


class Settings(BaseModel):
    """Failure logging settings.

    ``debug`` selects how failures are logged:
    - ``off``: never
    - ``on``: always, to the dated log file
    - ``sentinel``: only while the sentinel file exists
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    debug: DebugMode = "sentinel"
    sentinel_name: str = Field(default=DEFAULT_SENTINEL, alias="sentinelName")
    log_dir: Path = Field(default=Path("."), alias="logDir")
    log_prefix: str = Field(default=DEFAULT_LOG_PREFIX, alias="logPrefix")

    @field_validator("debug", mode="before")
    @classmethod
    def coerce_yaml_bool(cls, value: object) -> object:
        # YAML reads bare on/off as booleans
        if value is True:
            return "on"
        if value is False:
            return "off"
        return value

    @property
    def sentinel_path(self) -> Path:
        """Sentinel location, relative to the working directory."""
        return Path(self.sentinel_name)

    def build_recorder(self) -> FailureRecorder:
        """Create the failure recorder these settings describe."""
        if self.debug == "off":
            return NullRecorder()
        log_recorder = LogFileRecorder(log_dir=self.log_dir, prefix=self.log_prefix)
        if self.debug == "on":
            return log_recorder
        return SentinelRecorder(log_recorder, self.sentinel_path)


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a YAML file.

    Args:
        path: Configuration file. Defaults to ``gmsfs.yaml`` in the
            working directory.

    Returns:
        Parsed Settings, or defaults when the file does not exist.

    Raises:
        ConfigError: If the file is not a valid YAML mapping of settings.
    """
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return Settings()

    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {config_path} must be a mapping")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
