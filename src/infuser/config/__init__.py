from .config_manager import (
    ConfigError,
    ConfigurationManager,
    InfuserConfig,
    read_config,
)

__all__ = [
    'ConfigError',
    'ConfigurationManager',
    'InfuserConfig',
    'read_config',
]
