#!/usr/bin/env python3
"""
context.py - Module Context

The capability object handed to a module's init and destroy functions: a
logger scoped to the module, a snapshot of the environment and the services
the module imports.
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

from typing import Any, Dict, Mapping

from .environment import snapshot_env
from .module_base import LoggerFactory
from .services import ServiceCatalog

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Context
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ModuleContext:
    """
    Per-module view of the manager.

    Imported services are reachable as attributes (``ctx.database``) and as
    items (``ctx["module1-service"]``) for names that are not identifiers.
    ``logger`` and ``env`` always refer to the logger and environment, even if
    a service of the same name is imported; use item access for those.
    """

    def __init__(self, name: str, logger: Any, env: Dict[str, Any], imports: Dict[str, Any]):
        self.name = name
        self.logger = logger
        self.env = env
        self._imports = imports

    @property
    def imports(self) -> Dict[str, Any]:
        return dict(self._imports)

    def __getattr__(self, name: str) -> Any:
        # Only called when normal attribute lookup fails
        imports = self.__dict__.get('_imports', {})
        if name in imports:
            return imports[name]
        raise AttributeError(f"Module {self.__dict__.get('name')} has no import or attribute '{name}'")

    def __getitem__(self, name: str) -> Any:
        return self._imports[name]

    def __contains__(self, name: object) -> bool:
        return name in self._imports

    def __repr__(self) -> str:
        return f"ModuleContext(name={self.name!r}, imports={sorted(self._imports)!r})"


def build_context(
    module: Any,
    logger_factory: LoggerFactory,
    env: Mapping[str, Any],
    services: ServiceCatalog
) -> ModuleContext:
    """
    Build a fresh context for ``module``.

    Args:
        module: Registered descriptor
        logger_factory: Produces the module's logger from its name
        env: Current manager environment, copied into the context
        services: Catalog the imports are resolved from

    Returns:
        ModuleContext bound to the module's imports
    """
    imports = {name: services.get(name) for name in module.imports if name in services}
    return ModuleContext(
        name=module.name,
        logger=logger_factory(module.name),
        env=snapshot_env(env),
        imports=imports,
    )
