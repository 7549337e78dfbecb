#!/usr/bin/env python3
"""
registry.py - Module Registry

Validates module descriptors and keeps them in registration order, together
with the export names they claim.

Features:
- One capability check per descriptor, at registration time
- Descriptors given as dataclasses, mappings or plain objects
- Globally unique export names
- Imports resolved against exports registered earlier
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .environment import EnvDeclaration, normalize_env_declarations
from .module_base import RegistrationError

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Module Descriptor
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

_DESCRIPTOR_KEYS = ('name', 'init', 'destroy', 'export', 'imports', 'env')


async def _noop_destroy(ctx: Any, init_value: Any) -> None:
    return None


@dataclass
class ModuleDescriptor:
    """
    One registered unit of init/destroy logic.

    ``init`` receives a ModuleContext and returns the init value, directly or
    as an awaitable. ``destroy`` receives the context and that init value.
    The last three fields are filled in by the manager on its private copy.
    """
    name: str
    init: Callable[[Any], Any]
    destroy: Optional[Callable[[Any, Any], Any]] = None
    export: Optional[str] = None
    imports: List[str] = field(default_factory=list)
    env: List[EnvDeclaration] = field(default_factory=list)

    ctx: Any = field(default=None, repr=False, compare=False)
    init_value: Any = field(default=None, repr=False, compare=False)
    initialized: bool = field(default=False, repr=False, compare=False)

    def describe(self) -> str:
        """Short form used in init diagnostics: ``<name>(imports) -> [export]``."""
        return f"<{self.name}>({', '.join(self.imports)}) -> [{self.export or ''}]"


def _read_fields(raw: Any) -> Dict[str, Any]:
    """Pull the descriptor fields out of a dataclass, mapping or object."""
    if isinstance(raw, ModuleDescriptor):
        return {key: getattr(raw, key) for key in _DESCRIPTOR_KEYS}

    if isinstance(raw, Mapping):
        unknown = sorted(str(key) for key in raw if key not in _DESCRIPTOR_KEYS)
        if unknown:
            raise RegistrationError(
                f"Refusing to register module {raw.get('name')} with unknown attributes "
                f"[{', '.join(unknown)}]"
            )
        return dict(raw)

    return {key: getattr(raw, key, None) for key in _DESCRIPTOR_KEYS}


def build_descriptor(raw: Any) -> ModuleDescriptor:
    """
    Check a raw descriptor and return a normalized shallow copy.

    Only shape is checked here; imports and exports are resolved by the
    registry.

    Raises:
        RegistrationError: If any attribute has the wrong shape
    """
    fields = _read_fields(raw)

    name = fields.get('name')
    if not isinstance(name, str) or not name:
        raise RegistrationError('Refusing to register module w/o name attribute')

    if not callable(fields.get('init')):
        raise RegistrationError(f"Refusing to register module {name} w/o init method")

    destroy = fields.get('destroy')
    if destroy is not None and not callable(destroy):
        raise RegistrationError(
            f"Refusing to register module {name} with non function as destroy attribute"
        )

    export = fields.get('export')
    if export is not None and not isinstance(export, str):
        raise RegistrationError(
            f"Refusing to register module {name} which has a non string type export attribute"
        )

    imports = fields.get('imports')
    if imports is None:
        imports = []
    if (not isinstance(imports, (list, tuple))
            or not all(isinstance(imp, str) for imp in imports)):
        raise RegistrationError(
            f"Refusing to register module {name} which has an imports attribute "
            f"which is not a list of only strings"
        )
    if len(set(imports)) != len(imports):
        raise RegistrationError(
            f"Refusing to register module {name} which imports the same service more than once"
        )

    env = fields.get('env')
    declarations = [] if env is None else normalize_env_declarations(env, name)

    return ModuleDescriptor(
        name=name,
        init=fields['init'],
        destroy=destroy or _noop_destroy,
        export=export,
        imports=list(imports),
        env=declarations,
    )

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Registry
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ModuleRegistry:
    """Ordered collection of module descriptors and their export claims."""

    def __init__(self):
        self._modules: List[ModuleDescriptor] = []
        self._claims: Dict[str, ModuleDescriptor] = {}

    def add(self, raw: Any) -> ModuleDescriptor:
        """
        Validate ``raw`` and append a copy of it.

        Nothing is recorded unless every check passes.

        Returns:
            The stored descriptor copy

        Raises:
            RegistrationError: On any shape, import or export violation
        """
        module = build_descriptor(raw)

        missing = [imp for imp in module.imports if imp not in self._claims]
        if missing:
            raise RegistrationError(
                f"Refusing to register module {module.name} which wants to import "
                f"missing services [{', '.join(missing)}]"
            )

        if module.export is not None:
            owner = self._claims.get(module.export)
            if owner is not None:
                raise RegistrationError(
                    f"Refusing to register service {module.export} from module {module.name} "
                    f"but module {owner.name} registered it already"
                )
            self._claims[module.export] = module

        self._modules.append(module)
        return module

    def snapshot(self) -> List[ModuleDescriptor]:
        """Registered descriptors in registration order."""
        return list(self._modules)

    def owner_of(self, export: str) -> Optional[ModuleDescriptor]:
        return self._claims.get(export)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(module.name for module in self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self):
        return iter(list(self._modules))
