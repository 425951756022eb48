""" Settings for the step-graph compiler, loaded from YAML. """

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

CONFIG_ENV_VAR = "STEPGRAPH_CONFIG"


class LayoutSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    origin_x: float = 0
    origin_y: float = 0
    rank_gap: float = Field(default=150, gt=0)     # distance between layers
    sibling_gap: float = Field(default=250, gt=0)  # distance between nodes of one layer


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    document_version: str = "1.0"
    export_version: str = "1.0"
    label_max_length: int = Field(default=15, ge=1)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    log_level: str = "WARNING"


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from a YAML file.

    Without a path, the file named by $STEPGRAPH_CONFIG is used; without
    either, defaults are returned.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return Settings()

    try:
        raw = yaml.safe_load(Path(path).read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read settings file {path}: {e}")
    if not isinstance(raw, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")

    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Settings validation error: {e}")


def configure_logging(settings: Settings) -> None:
    """Apply the configured level to this package's loggers."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {settings.log_level}")
    logging.getLogger("src").setLevel(level)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
