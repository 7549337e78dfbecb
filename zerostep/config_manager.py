#!/usr/bin/env python3
"""
config_manager.py - Configuration Management

Configuration of a lifecycle manager and helpers to assemble the environment
mapping it validates modules against.

Features:
- Manager configuration from a dataclass, a dict or defaults
- Environment assembled from a JSON file and the process environment
- Prefix filtering for shared process environments
- Search helper for environment files
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

import json
import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .module_base import ConfigError, LoggerFactory, LogLevel, console_logger_factory

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Type Definitions
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

# Environment values are strings, or numbers coming from declared defaults
EnvDict = Dict[str, Union[str, int, float]]

DEFAULT_NAME = 'ZeroStep'

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Manager Configuration
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

@dataclass
class ZeroStepConfig:
    """
    Configuration of a lifecycle manager.

    Attributes:
        name: Manager name used in its own diagnostics
        logger_factory: Callable ``(name) -> logger``; defaults to console loggers
        env: Environment source; defaults to the process environment
        log_level: Minimum level of the default console loggers
    """
    name: str = DEFAULT_NAME
    logger_factory: Optional[LoggerFactory] = None
    env: Optional[Mapping[str, Any]] = None
    log_level: Union[str, LogLevel] = LogLevel.INFO

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ConfigError("Manager name must be a non-empty string")
        if self.logger_factory is not None and not callable(self.logger_factory):
            raise ConfigError("logger_factory must be callable")
        if self.env is not None and not isinstance(self.env, Mapping):
            raise ConfigError("env must be a mapping of variable names to values")
        if isinstance(self.log_level, str):
            self.log_level = LogLevel.from_string(self.log_level)

    @classmethod
    def from_value(cls, config: Optional[Union['ZeroStepConfig', Dict[str, Any]]]) -> 'ZeroStepConfig':
        """
        Normalize the ``config`` argument accepted by the manager.

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        if config is None:
            return cls()
        if isinstance(config, cls):
            return config
        if isinstance(config, Mapping):
            known = {f.name for f in fields(cls)}
            unknown = sorted(str(key) for key in config if key not in known)
            if unknown:
                raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
            return cls(**config)
        raise ConfigError(f"Unsupported configuration type: {type(config).__name__}")

    def resolve_logger_factory(self) -> LoggerFactory:
        return self.logger_factory or console_logger_factory(self.log_level)

    def resolve_env(self) -> EnvDict:
        """Private copy of the configured environment source."""
        return dict(os.environ if self.env is None else self.env)

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Environment Sources
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

def load_env_file(env_file: Union[str, Path]) -> EnvDict:
    """
    Load environment values from a JSON object file.

    Raises:
        ConfigError: If the file is missing, not JSON, or not a flat object
            of string/number values
    """
    try:
        with open(env_file, 'r') as f:
            values = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Environment file not found: {env_file}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in environment file: {e}")
    except OSError as e:
        raise ConfigError(f"Error loading environment file: {e}")

    if not isinstance(values, dict):
        raise ConfigError(f"Environment file {env_file} must contain a JSON object")

    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ConfigError(
                f"Environment file {env_file} has a non string/number value for {key}"
            )
    return values


def load_environment(
    env_file: Optional[Union[str, Path]] = None,
    env_prefix: str = '',
    base: Optional[Mapping[str, Any]] = None
) -> EnvDict:
    """
    Assemble an environment mapping for a manager.

    Values from ``env_file`` are overridden by ``base`` (the process
    environment when omitted). With ``env_prefix`` only the ``base`` keys
    carrying the prefix are applied, with the prefix removed.

    Args:
        env_file: Optional JSON file with variable values
        env_prefix: Prefix selecting the variables meant for this manager
        base: Environment overriding file values

    Returns:
        New dict suitable as ``ZeroStepConfig.env``
    """
    env: EnvDict = load_env_file(env_file) if env_file else {}
    overrides = os.environ if base is None else base

    for key, value in overrides.items():
        if not env_prefix:
            env[key] = value
        elif key.startswith(env_prefix) and len(key) > len(env_prefix):
            env[key[len(env_prefix):]] = value

    return env


def find_env_file(
    file_name: str = 'env.json',
    search_paths: Optional[List[Union[str, Path]]] = None
) -> Optional[Path]:
    """
    Find an environment file in search paths.

    Args:
        file_name: Name of the environment file
        search_paths: List of paths to search (defaults to common locations)

    Returns:
        Path to the file or None if not found
    """
    if search_paths is None:
        search_paths = [
            Path.cwd(),
            Path.home(),
        ]

        # Application directory first
        app_dir = Path(sys.argv[0]).resolve().parent
        if app_dir not in search_paths:
            search_paths.insert(0, app_dir)

    for path in search_paths:
        candidate = Path(path) / file_name
        if candidate.is_file():
            return candidate

    return None
