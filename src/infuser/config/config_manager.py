"""
Configuration management for Infuser.

Handles loading the YAML configuration file, filling in defaults and applying
environment overrides.
"""

import logging
import os
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import find_dotenv, load_dotenv

from ..errors import InfuserError

logger = logging.getLogger(__name__)


class ConfigError(InfuserError):
    """The configuration file exists but could not be parsed."""


@dataclass
class InfuserConfig:
    """
    Infuser settings.

    Attributes:
        db_path: SQLite database file holding clients and jobs
        db_name: Database qualifier written into job assignment references
        default_client: Client name used when registering this machine
        log_path: File the run log is flushed to
    """
    db_path: str = "infuser.db"
    db_name: str = "DefaultDB"
    default_client: str = field(default_factory=socket.gethostname)
    log_path: str = "infuser.log"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InfuserConfig':
        defaults = cls()
        return cls(
            db_path=str(data.get("DbPath", defaults.db_path)),
            db_name=str(data.get("DbName", defaults.db_name)),
            default_client=str(data.get("DefaultClient", defaults.default_client)),
            log_path=str(data.get("LogPath", defaults.log_path)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "DbPath": self.db_path,
            "DbName": self.db_name,
            "DefaultClient": self.default_client,
            "LogPath": self.log_path,
        }


# Environment variable -> InfuserConfig attribute
ENV_OVERRIDES = {
    "INFUSER_DB_PATH": "db_path",
    "INFUSER_DB_NAME": "db_name",
    "INFUSER_DEFAULT_CLIENT": "default_client",
    "INFUSER_LOG_PATH": "log_path",
}


class ConfigurationManager:
    """Loads, overrides and saves the Infuser configuration."""

    def __init__(self, config_path: Optional[Path] = None, use_env: bool = True):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file (optional)
            use_env: Apply INFUSER_* environment overrides (and .env file)
        """
        self.config_path = config_path
        self._config = InfuserConfig()

        if config_path and config_path.exists():
            self.load_from_file(config_path)
        else:
            logger.info("No config file provided, using defaults")

        if use_env:
            self.apply_env_overrides()

    def load_from_file(self, config_path: Path) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Raises:
            ConfigError: If the file does not contain a YAML mapping
        """
        with open(config_path, 'r', encoding='utf-8') as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse config {config_path}: {e}") from e

        if loaded is None:
            logger.warning(f"Empty config file {config_path}, using defaults")
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Could not parse config {config_path}: expected a mapping")

        self._config = InfuserConfig.from_dict(loaded)
        logger.info(f"Loaded configuration from {config_path}")

    def apply_env_overrides(self) -> None:
        """Override settings from INFUSER_* environment variables."""
        load_dotenv(find_dotenv(usecwd=True))
        for env_name, attr in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                setattr(self._config, attr, value)
                logger.debug(f"{attr} overridden by {env_name}")

    def get_config(self) -> InfuserConfig:
        return self._config

    def save_to_file(self, output_path: Path) -> None:
        """
        Save current configuration to YAML file.

        Args:
            output_path: Path where configuration should be saved
        """
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self._config.to_dict(), f, default_flow_style=False, sort_keys=False)
        logger.info(f"Saved configuration to {output_path}")


def read_config(config_path: Union[str, Path], use_env: bool = True) -> InfuserConfig:
    """
    Read the configuration file, creating it with defaults if it is missing.

    Args:
        config_path: Path to the YAML configuration file
        use_env: Apply INFUSER_* environment overrides

    Returns:
        InfuserConfig object
    """
    config_path = Path(config_path)
    if not config_path.exists():
        ConfigurationManager(use_env=False).save_to_file(config_path)
        logger.info(f"Created default configuration file at {config_path}")
    return ConfigurationManager(config_path, use_env=use_env).get_config()
