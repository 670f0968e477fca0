"""
Configuration management system for bayesprep.

Provides a flexible, hierarchical configuration system with support for
file-based configuration, environment variables, and runtime updates.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum

from ..core.exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DataConfig(BaseModel):
    """Response data preparation configuration."""
    model_config = ConfigDict(validate_assignment=True)

    check_response: bool = True
    equality_tolerance: float = 1.5e-8
    emit_advisories: bool = True

    @field_validator('equality_tolerance')
    @classmethod
    def validate_tolerance(cls, v):
        if v < 0:
            raise ValueError("equality_tolerance must be non-negative")
        return v


class BaselineHazardConfig(BaseModel):
    """Defaults for the spline basis of Cox baseline hazards."""
    model_config = ConfigDict(validate_assignment=True)

    df: int = 5
    intercept: bool = True
    degree: int = 3
    boundary_knot_fraction: float = 1 / 50

    @field_validator('df', 'degree')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    model_config = ConfigDict(validate_assignment=True, use_enum_values=True)

    level: LogLevel = LogLevel.INFO
    file_logging: bool = False
    log_file: Optional[Path] = None
    console_logging: bool = True
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator('log_file', mode='before')
    @classmethod
    def validate_log_file(cls, v):
        return Path(v) if v else None


class BayesPrepConfig(BaseModel):
    """Main configuration class for bayesprep."""
    model_config = ConfigDict(validate_assignment=True, use_enum_values=True)

    data: DataConfig = Field(default_factory=DataConfig)
    baseline_hazard: BaselineHazardConfig = Field(default_factory=BaselineHazardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, config_file: Optional[Union[str, Path]] = None, **kwargs):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
            **kwargs: Override specific configuration values
        """
        # Load from file if provided
        config_data = {}
        if config_file:
            config_data = _load_config_file(config_file)

        # Override with environment variables
        for section, values in _load_environment_variables().items():
            config_data.setdefault(section, {}).update(values)

        # Override with explicit kwargs
        config_data.update(kwargs)

        super().__init__(**config_data)

        if self.logging.file_logging and self.logging.log_file is None:
            self.logging.log_file = Path.home() / ".bayesprep" / "logs" / "bayesprep.log"

    def save_config(self, config_file: Union[str, Path]) -> None:
        """Save current configuration to YAML file."""
        config_path = Path(config_file)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode='json'), f, default_flow_style=False, indent=2)

    def update(self, **kwargs) -> None:
        """Update configuration values, using 'section.key' for nested settings."""
        for key, value in kwargs.items():
            if '.' in key:
                section, subkey = key.split('.', 1)
                section_obj = getattr(self, section, None)
                if not isinstance(section_obj, BaseModel) or subkey not in type(section_obj).model_fields:
                    raise ConfigurationError(config_key=key)
                setattr(section_obj, subkey, value)
            elif key in type(self).model_fields:
                setattr(self, key, value)
            else:
                raise ConfigurationError(config_key=key)


def _load_config_file(config_file: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    config_path = Path(config_file)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def _load_environment_variables() -> Dict[str, Dict[str, Any]]:
    """Load configuration from environment variables."""
    config: Dict[str, Dict[str, Any]] = {}

    env_mappings = {
        'BAYESPREP_LOG_LEVEL': ('logging', 'level'),
        'BAYESPREP_CHECK_RESPONSE': ('data', 'check_response'),
        'BAYESPREP_EMIT_ADVISORIES': ('data', 'emit_advisories'),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            if key in ['check_response', 'emit_advisories']:
                value = value.lower() in ('true', '1', 'yes', 'on')
            elif key == 'level':
                value = value.upper()
            config.setdefault(section, {})[key] = value

    return config


# Default configuration instance
_default_config: Optional[BayesPrepConfig] = None


def get_default_config() -> BayesPrepConfig:
    """Get the default configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = BayesPrepConfig()
    return _default_config


def reset_default_config() -> None:
    """Drop the cached default configuration so it is rebuilt on next access."""
    global _default_config
    _default_config = None
