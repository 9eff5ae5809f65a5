"""
Teemiao Configuration Module

Handles configuration loading from environment variables and config files.
"""

import os
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = 'config.yaml'


def get_config_dir() -> Path:
    """Get the configuration directory."""
    # Check environment variable first
    if "TEEMIAO_CONFIG" in os.environ:
        return Path(os.environ["TEEMIAO_CONFIG"])

    # Use XDG_CONFIG_HOME or default
    xdg_config = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(xdg_config) / "teemiao"


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', '1', 'yes', 'on'):
        return True
    if isinstance(value, str) and value.lower() in ('false', '0', 'no', 'off'):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


@dataclass
class TeemiaoConfig:
    """Configuration for Teemiao.

    Loads configuration from:
    1. Environment variables (highest priority)
    2. Config file (config.yaml in the config directory)
    3. Defaults (lowest priority)
    """
    config_dir: str = ""

    # Default build-info destination when the CLI is given none
    output: Optional[str] = None

    # Write through a temp file + rename
    atomic_write: bool = True

    # Added to the -v/-q count on the command line
    verbosity: int = 0

    @classmethod
    def load(cls, config_dir: Optional[str] = None) -> 'TeemiaoConfig':
        """Load configuration from environment and config file."""
        config = cls()
        config.config_dir = str(config_dir) if config_dir else str(get_config_dir())

        config_file = Path(config.config_dir) / CONFIG_FILE_NAME
        if config_file.exists():
            try:
                with open(config_file, encoding='utf-8') as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file {config_file}: {e}")
            else:
                if not isinstance(file_config, dict):
                    raise ConfigError(f"{config_file} must contain a mapping")
                config._apply_dict(file_config)
                logger.debug(f"Loaded config from {config_file}")

        # Override with environment variables (highest priority)
        config._apply_env()

        return config

    def _apply_dict(self, data: Dict[str, Any]):
        """Apply configuration from dictionary."""
        build_info = data.get('build_info') or {}
        if not isinstance(build_info, dict):
            raise ConfigError("build_info must be a mapping")

        if build_info.get('output') is not None:
            self.output = str(build_info['output'])
        if 'atomic_write' in build_info:
            self.atomic_write = _parse_bool('build_info.atomic_write', build_info['atomic_write'])
        if 'verbosity' in data:
            self.verbosity = _parse_int('verbosity', data['verbosity'])

    def _apply_env(self):
        """Apply configuration from environment variables."""
        if os.environ.get('TEEMIAO_BUILD_INFO_OUT'):
            self.output = os.environ['TEEMIAO_BUILD_INFO_OUT']
        if os.environ.get('TEEMIAO_ATOMIC_WRITE'):
            self.atomic_write = _parse_bool('TEEMIAO_ATOMIC_WRITE', os.environ['TEEMIAO_ATOMIC_WRITE'])
        if os.environ.get('TEEMIAO_VERBOSITY'):
            self.verbosity = _parse_int('TEEMIAO_VERBOSITY', os.environ['TEEMIAO_VERBOSITY'])
