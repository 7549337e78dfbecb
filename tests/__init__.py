"""
Test suite for ZeroStep.

This package contains tests for all components of the package:
- lifecycle.py: Registration, init, rollback and teardown
- environment.py: Environment variable declarations
- registry.py, services.py, context.py: Descriptors, services and contexts
- module_base.py: Log levels, validators, exceptions and console logger
- log_manager.py: Logging system
- config_manager.py: Configuration and environment loading
- application.py: Signal-driven application runner
"""

# Import test modules to make them discoverable
from .test_lifecycle import TestZeroStepClass, TestRegistration, TestInit, TestDestroy
from .test_environment import TestEnvDeclaration, TestValidationPass, TestManagerEnvironment
from .test_registry import TestBuildDescriptor, TestModuleRegistry, TestServiceCatalog, TestModuleContext
from .test_module_base import TestLogLevel, TestSettle, TestValidators, TestExceptions, TestConsoleLogger
from .test_log_manager import TestLogEvent, TestLogManager, TestComponentLogger
from .test_config_manager import TestZeroStepConfig, TestEnvironmentLoading, TestFindEnvFile
from .test_application import TestApplicationRunner, TestRunApplication

# Define what's available via import *
__all__ = [
    # lifecycle tests
    "TestZeroStepClass",
    "TestRegistration",
    "TestInit",
    "TestDestroy",

    # environment tests
    "TestEnvDeclaration",
    "TestValidationPass",
    "TestManagerEnvironment",

    # registry tests
    "TestBuildDescriptor",
    "TestModuleRegistry",
    "TestServiceCatalog",
    "TestModuleContext",

    # module_base tests
    "TestLogLevel",
    "TestSettle",
    "TestValidators",
    "TestExceptions",
    "TestConsoleLogger",

    # log_manager tests
    "TestLogEvent",
    "TestLogManager",
    "TestComponentLogger",

    # config_manager tests
    "TestZeroStepConfig",
    "TestEnvironmentLoading",
    "TestFindEnvFile",

    # application tests
    "TestApplicationRunner",
    "TestRunApplication",
]
