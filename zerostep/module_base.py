#!/usr/bin/env python3
"""
module_base.py - Shared Building Blocks

Types, exceptions and helpers shared by every part of the lifecycle manager.

Features:
- Standard log levels and a console logger used when none is injected
- Reusable predicates for environment variable declarations
- The exception hierarchy raised by registration, init and teardown
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

import enum
import inspect
import re
import sys
from typing import Any, Awaitable, Callable, List, Optional, Pattern, Union

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Type Definitions
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class LogLevel(str, enum.Enum):
    """Standard log levels used across the manager and its modules."""
    VERBOSE = 'VERBOSE'
    INFO = 'INFO'
    WARNING = 'WARNING'
    ERROR = 'ERROR'

    @classmethod
    def from_string(cls, level_str: str) -> 'LogLevel':
        """Convert string to LogLevel, defaulting to INFO for unknown values."""
        try:
            return cls[level_str.upper()]
        except (KeyError, AttributeError):
            return cls.INFO

    @classmethod
    def default(cls) -> 'LogLevel':
        """Get default log level."""
        return cls.INFO

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]


_LEVEL_RANKS = {
    LogLevel.VERBOSE: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
}

# Predicate over a resolved environment value
ValidatorType = Callable[[Any], bool]

# Factory producing a logger for a given name
LoggerFactory = Callable[[str], Any]


async def settle(result: Union[Any, Awaitable[Any]]) -> Any:
    """Await ``result`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(result):
        return await result
    return result

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Validators
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        return None


class Validator:
    """
    Common predicates for the ``valid`` attribute of environment declarations.

    Environment values usually arrive as strings, while declared defaults may
    be numbers, so every numeric check accepts both forms.
    """

    @staticmethod
    def non_empty(value: Any) -> bool:
        """Validate that a value is not an empty or blank string."""
        return str(value).strip() != ''

    @staticmethod
    def integer(value: Any) -> bool:
        """Validate that a value is an integer or an integer literal."""
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        return re.match(r'^[+-]?\d+$', str(value).strip()) is not None

    @staticmethod
    def positive(value: Any) -> bool:
        """Validate that a number is positive (> 0)."""
        number = _as_number(value)
        return number is not None and number > 0

    @staticmethod
    def non_negative(value: Any) -> bool:
        """Validate that a number is non-negative (>= 0)."""
        number = _as_number(value)
        return number is not None and number >= 0

    @staticmethod
    def port_number(value: Any) -> bool:
        """Validate that a value is a valid port (1-65535)."""
        return Validator.integer(value) and 1 <= int(str(value).strip()) <= 65535

    @staticmethod
    def boolean(value: Any) -> bool:
        """Validate that a value reads as a boolean flag."""
        if isinstance(value, bool):
            return True
        return str(value).strip().lower() in ('true', 'false', 'yes', 'no', '1', '0', 'on', 'off')

    @staticmethod
    def in_range(min_val: Union[int, float], max_val: Union[int, float]) -> ValidatorType:
        """Create a validator that checks if a number is within a range."""
        def validate_range(value):
            number = _as_number(value)
            return number is not None and min_val <= number <= max_val
        return validate_range

    @staticmethod
    def one_of(valid_values: List[Any]) -> ValidatorType:
        """Create a validator that checks if a value is one of a set of valid values."""
        return lambda x: x in valid_values

    @staticmethod
    def matches(pattern: Union[str, Pattern]) -> ValidatorType:
        """Create a validator that checks if a string matches a regex pattern."""
        if isinstance(pattern, str):
            compiled_pattern = re.compile(pattern)
        else:
            compiled_pattern = pattern

        return lambda x: (isinstance(x, str) and
                          compiled_pattern.match(x) is not None)

    @staticmethod
    def ip_address(value: Any) -> bool:
        """Validate that a string is an IPv4 address."""
        if not isinstance(value, str) or not re.match(r'^(\d{1,3}\.){3}\d{1,3}$', value):
            return False
        return all(0 <= int(octet) <= 255 for octet in value.split('.'))

    @staticmethod
    def hostname(value: Any) -> bool:
        """Validate that a string is a valid hostname (RFC 1123)."""
        pattern = r'^(([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9\-]*[a-zA-Z0-9])\.)*([A-Za-z0-9]|[A-Za-z0-9][A-Za-z0-9\-]*[A-Za-z0-9])$'
        return isinstance(value, str) and re.match(pattern, value) is not None

    @staticmethod
    def email(value: Any) -> bool:
        """Validate that a string is an email address."""
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return isinstance(value, str) and re.match(pattern, value) is not None

    @staticmethod
    def url(value: Any) -> bool:
        """Validate that a string is an http(s) URL."""
        pattern = r'^(http|https)://[a-zA-Z0-9]+([\-\.]{1}[a-zA-Z0-9]+)*(\.[a-zA-Z]{2,5})?(:[0-9]{1,5})?(\/.*)?$'
        return isinstance(value, str) and re.match(pattern, value) is not None

    @staticmethod
    def length(min_len: int = 0, max_len: Optional[int] = None) -> ValidatorType:
        """Create a validator that checks string length."""
        def validate_length(value):
            text = str(value)
            if max_len is not None:
                return min_len <= len(text) <= max_len
            return min_len <= len(text)
        return validate_length

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Exceptions
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ZeroStepError(Exception):
    """Base exception for all lifecycle manager errors."""
    pass

class ConfigError(ZeroStepError):
    """Invalid manager configuration or environment file."""
    pass

class RegistrationError(ZeroStepError):
    """A module descriptor was rejected by ``register``."""
    pass

class EnvironmentVariableError(ZeroStepError):
    """One or more declared environment variables are missing or invalid."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__('\n'.join(self.errors))

class InitializationError(ZeroStepError):
    """A module failed during its init step."""

    def __init__(self, module_name: str, message: str, cause: Optional[BaseException] = None):
        self.module_name = module_name
        self.cause = cause
        super().__init__(message)

    @classmethod
    def from_cause(cls, module_name: str, cause: BaseException) -> 'InitializationError':
        return cls(module_name, f"Could not initialize module {module_name}: {cause}", cause)

class ContractViolationError(InitializationError):
    """A module declared an export but its init step produced nothing."""

    def __init__(self, module_name: str, export: str):
        self.export = export
        super().__init__(
            module_name,
            f"Module {module_name} broke contract and did not export service {export}"
        )

class TeardownError(ZeroStepError):
    """A module failed during its destroy step. Logged, never raised."""

    def __init__(self, module_name: str, cause: BaseException):
        self.module_name = module_name
        self.cause = cause
        super().__init__(f"Error destroying {module_name}: {cause}")

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Helper Classes
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ConsoleLogger:
    """Standard console logger used when no logger factory is configured."""

    def __init__(self, min_level: LogLevel = LogLevel.default(), prefix: Optional[str] = None):
        self.min_level = min_level
        self.prefix = f"[{prefix}] " if prefix else ""

    def _should_log(self, level: LogLevel) -> bool:
        """Check if this level should be logged."""
        return level.rank >= self.min_level.rank

    async def log(self, level: LogLevel, message: str):
        """Log a message if level is sufficient."""
        if self._should_log(level):
            print(f"{self.prefix}[{level.value}] {message}", file=sys.stderr)

    async def verbose(self, message: str):
        await self.log(LogLevel.VERBOSE, message)

    async def info(self, message: str):
        await self.log(LogLevel.INFO, message)

    async def warning(self, message: str):
        await self.log(LogLevel.WARNING, message)

    async def error(self, message: str):
        await self.log(LogLevel.ERROR, message)


def console_logger_factory(min_level: LogLevel = LogLevel.default()) -> LoggerFactory:
    """Build a logger factory handing out a ConsoleLogger per name."""
    return lambda name: ConsoleLogger(min_level, prefix=name)
