#!/usr/bin/env python3
"""
lifecycle.py - Module Lifecycle Manager

Brings registered modules up in registration order and tears them down in
reverse order. Any module whose init step completed is given the chance to
clean up, even when a later module fails to start.

Features:
- Chainable registration with early validation
- Named services exported by one module and imported by later ones
- Environment declarations checked before any module runs
- Sequential init with rollback of the already initialized prefix
- Best-effort reverse teardown with per-module error isolation
- Single-flight init and destroy shared by concurrent callers
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

import asyncio
import enum
import sys
import traceback
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .config_manager import ZeroStepConfig
from .context import ModuleContext, build_context
from .environment import check_and_prepare_env, collect_env_report
from .module_base import (
    ContractViolationError,
    EnvironmentVariableError,
    InitializationError,
    RegistrationError,
    TeardownError,
    ZeroStepError,
    settle,
)
from .registry import ModuleDescriptor, ModuleRegistry
from .services import ServiceCatalog

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Type Definitions
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class LifecycleState(str, enum.Enum):
    """Progress of a manager's initialization."""
    PENDING = 'PENDING'
    RUNNING = 'RUNNING'
    SUCCEEDED = 'SUCCEEDED'
    FAILED = 'FAILED'

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Lifecycle Manager
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ZeroStep:
    """
    Lifecycle manager for registered modules.

    Modules are initialized in the order they were registered, so order
    matters: a module may only import services exported by modules
    registered before it.

    Example:
        zs = ZeroStep({'env': {'GREETING': 'hello'}})
        zs.register({'name': 'one', 'export': 'greeter', 'init': make_greeter})
        zs.register({'name': 'two', 'imports': ['greeter'], 'init': greet})
        await zs.init()
        await zs.destroy()
    """

    def __init__(self, config: Optional[Union[ZeroStepConfig, Dict[str, Any]]] = None):
        """
        Initialize the manager.

        Args:
            config: ZeroStepConfig, dict with the same keys, or None for defaults

        Raises:
            ConfigError: If the configuration is invalid
        """
        self._config = ZeroStepConfig.from_value(config)

        self.name = self._config.name
        self._logger_factory = self._config.resolve_logger_factory()
        self._logger = self._logger_factory(self.name)
        self._env = self._config.resolve_env()

        self._registry = ModuleRegistry()
        self._services = ServiceCatalog()

        self._init_task: Optional[asyncio.Future] = None
        self._destroy_task: Optional[asyncio.Future] = None

    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
    # Read-only state
    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

    @property
    def state(self) -> LifecycleState:
        task = self._init_task
        if task is None:
            return LifecycleState.PENDING
        if not task.done():
            return LifecycleState.RUNNING
        if task.cancelled() or task.exception() is not None:
            return LifecycleState.FAILED
        return LifecycleState.SUCCEEDED

    @property
    def destroyed(self) -> bool:
        return self._destroy_task is not None and self._destroy_task.done()

    @property
    def env(self) -> Mapping[str, Any]:
        """Read-only view of the manager environment, defaults included."""
        return MappingProxyType(self._env)

    @property
    def services(self) -> Mapping[str, Any]:
        """Read-only view of the services published so far."""
        return self._services.view()

    @property
    def logger_factory(self) -> Callable[[str], Any]:
        return self._logger_factory

    @property
    def modules(self) -> Tuple[str, ...]:
        """Names of the registered modules in registration order."""
        return self._registry.names

    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
    # Public operations
    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

    def register(self, module: Any) -> 'ZeroStep':
        """
        Register a module.

        The manager keeps a shallow copy; the caller's object is never
        modified.

        Args:
            module: ModuleDescriptor, dict, or object with the descriptor attributes

        Returns:
            The manager itself, for chaining register calls

        Raises:
            RegistrationError: If the module is malformed, imports an unknown
                service, exports an already claimed one, or init or destroy was
                already called
        """
        if self._init_task is not None or self._destroy_task is not None:
            name = module.get('name') if isinstance(module, Mapping) else getattr(module, 'name', None)
            called = 'init' if self._init_task is not None else 'destroy'
            raise RegistrationError(
                f"Refusing to register a module {name} after {self.name}.{called}() has been called"
            )

        self._registry.add(module)
        return self

    async def init(self) -> None:
        """
        Initialize registered modules in the order they were registered.

        Repeated and concurrent calls share one run and its outcome.

        Raises:
            EnvironmentVariableError: If declared variables are missing or invalid
            ContractViolationError: If a module did not produce its export
            InitializationError: If a module's init step failed
            ZeroStepError: If destroy() was already called
        """
        if self._init_task is None:
            if self._destroy_task is not None:
                raise ZeroStepError(f"Refusing to initialize {self.name} after destroy() has been called")
            self._init_task = asyncio.ensure_future(self._run_init())
        await asyncio.shield(self._init_task)

    async def destroy(self) -> None:
        """
        Destroy modules in the reverse order of their registration.

        Waits for a running init to settle first. After an init only modules
        whose init completed are destroyed; without one, every registered
        module is. Never raises; errors of
        individual modules are logged.
        """
        if self._destroy_task is None and self._init_task is not None:
            # Outcome is reported by init(); here we only wait for it
            await asyncio.wait([self._init_task])

        await asyncio.shield(self._teardown(self._teardown_order()))

    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
    # Engine
    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

    async def _run_init(self) -> None:
        modules = self._registry.snapshot()

        errors = check_and_prepare_env(modules, self._env)
        if errors:
            for msg in errors:
                await self._log_error(msg)
            raise EnvironmentVariableError(errors)

        for line in collect_env_report(modules, self._env):
            await self._log_info(line)

        undo_list: List[ModuleDescriptor] = []
        for module in modules:
            try:
                await self._init_module(module)
            except Exception as e:
                await self._safe_log(self._log_error, f"Could not initialize module {module.name}: {e}")
                await self._safe_log(self._log_error, traceback.format_exc())
                await self._safe_log(self._log_error, 'Attempting to shutdown already initialized modules gracefully!')
                await asyncio.shield(self._teardown(list(reversed(undo_list))))

                if isinstance(e, InitializationError):
                    raise
                raise InitializationError.from_cause(module.name, e) from e

            undo_list.append(module)

        await self._log_info(
            f"Initialization of all registered modules completed successfully for <{self.name}>"
        )

    async def _init_module(self, module: ModuleDescriptor) -> None:
        module.ctx = self._build_context(module)
        await self._log_info(f"Initializing module {module.describe()}")

        value = await settle(module.init(module.ctx))
        module.init_value = value

        if module.export is not None:
            if value is None:
                raise ContractViolationError(module.name, module.export)
            self._services.publish(module.export, value)

        module.initialized = True

    def _teardown_order(self) -> List[ModuleDescriptor]:
        """
        Modules to destroy, newest registration first.

        Without a prior init every registered module is visited and receives
        None as its init value; otherwise only modules whose init completed.
        """
        modules = list(reversed(self._registry.snapshot()))
        if self._init_task is None:
            return modules
        return [module for module in modules if module.initialized]

    def _teardown(self, modules: List[ModuleDescriptor]) -> asyncio.Future:
        """Start the teardown once; every later call gets the same task."""
        if self._destroy_task is None:
            self._destroy_task = asyncio.ensure_future(self._run_teardown(modules))
        return self._destroy_task

    async def _run_teardown(self, modules: List[ModuleDescriptor]) -> None:
        for module in modules:
            await self._safe_log(self._log_info, f"Destroying module {module.name}")
            try:
                ctx = self._build_context(module)
                await settle(module.destroy(ctx, module.init_value))
            except Exception as e:
                # Keep going: later modules may still shut down cleanly
                error = TeardownError(module.name, e)
                await self._safe_log(self._log_error, str(error))
                await self._safe_log(
                    self._log_error, ''.join(traceback.format_exception(type(e), e, e.__traceback__))
                )

        await self._safe_log(self._log_info, f"Destroyed all modules for <{self.name}>")

    def _build_context(self, module: ModuleDescriptor) -> ModuleContext:
        return build_context(module, self._logger_factory, self._env, self._services)

    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
    # Logging
    #-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

    async def _log_info(self, message: str) -> None:
        await settle(self._logger.info(message))

    async def _log_error(self, message: str) -> None:
        await settle(self._logger.error(message))

    async def _safe_log(self, log: Callable[[str], Any], message: str) -> None:
        """Log on a path (rollback, teardown) that a broken logger must not interrupt."""
        try:
            await log(message)
        except Exception as e:
            print(f"Logger failed during shutdown of {self.name}: {e}", file=sys.stderr)
