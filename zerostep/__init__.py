"""
ZeroStep

An in-process lifecycle manager: register modules with init/destroy logic,
environment requirements and named services, then bring them up in
registration order and tear them down in reverse.
"""

__version__ = "0.1.0"

# Import core components for easy access
from .module_base import (
    LogLevel,
    Validator,
    ConsoleLogger,
    ZeroStepError,
    ConfigError,
    RegistrationError,
    EnvironmentVariableError,
    InitializationError,
    ContractViolationError,
    TeardownError,
)

from .environment import EnvDeclaration
from .registry import ModuleDescriptor
from .context import ModuleContext
from .lifecycle import ZeroStep, LifecycleState

from .config_manager import (
    ZeroStepConfig,
    load_environment,
    find_env_file,
)

from .log_manager import (
    LogManager,
    ComponentLogger,
    LogEvent,
    LoggingError,
    create_log_manager,
)

from .application import ApplicationRunner, ExitCode, run_application

# Define what's available via import *
__all__ = [
    # module_base exports
    "LogLevel",
    "Validator",
    "ConsoleLogger",
    "ZeroStepError",
    "ConfigError",
    "RegistrationError",
    "EnvironmentVariableError",
    "InitializationError",
    "ContractViolationError",
    "TeardownError",

    # lifecycle exports
    "EnvDeclaration",
    "ModuleDescriptor",
    "ModuleContext",
    "ZeroStep",
    "LifecycleState",

    # config_manager exports
    "ZeroStepConfig",
    "load_environment",
    "find_env_file",

    # log_manager exports
    "LogManager",
    "ComponentLogger",
    "LogEvent",
    "LoggingError",
    "create_log_manager",

    # application exports
    "ApplicationRunner",
    "ExitCode",
    "run_application",
]
