#!/usr/bin/env python3
"""
environment.py - Environment Variable Declarations

Modules declare the environment variables they need. Declarations are checked
for shape when a module is registered, and checked against the actual
environment once, right before the first module is initialized.

Features:
- Declarative requirements with defaults, hints and validity predicates
- Default substitution into the manager-owned environment
- Aggregated diagnostics for every missing or rejected variable
- Environment report with masking of secret values
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence, Union

from .module_base import RegistrationError, ValidatorType

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Constants
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

MASKED_VALUE = '**** NOT SHOWN ****'

_DECLARATION_KEYS = ('name', 'default', 'hint', 'show_value', 'valid')


def _always_valid(value: Any) -> bool:
    return True

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Declaration
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

@dataclass
class EnvDeclaration:
    """
    A module's requirement for one environment variable.

    Attributes:
        name: Variable key
        default: Value written into the environment when the variable is absent
        hint: Extra guidance appended to the missing-variable diagnostic
        show_value: When False the value is masked in every report
        valid: Predicate rejecting a present but unusable value
    """
    name: str
    default: Optional[Union[str, int, float]] = None
    hint: Optional[str] = None
    show_value: bool = True
    valid: Optional[ValidatorType] = None

    @classmethod
    def normalize(cls, raw: Any, module_name: str) -> 'EnvDeclaration':
        """
        Validate one raw declaration and return a normalized copy.

        Args:
            raw: EnvDeclaration instance or mapping with the same keys
            module_name: Owning module, used in diagnostics

        Returns:
            A new EnvDeclaration with a boolean show_value and callable valid

        Raises:
            RegistrationError: If the declaration is malformed
        """
        prefix = f"Refusing to register module {module_name} which has an env declaration"

        if isinstance(raw, EnvDeclaration):
            fields = {key: getattr(raw, key) for key in _DECLARATION_KEYS}
        elif isinstance(raw, Mapping):
            unknown = sorted(str(key) for key in raw if key not in _DECLARATION_KEYS)
            if unknown:
                raise RegistrationError(f"{prefix} with unknown attributes [{', '.join(unknown)}]")
            fields = dict(raw)
        else:
            raise RegistrationError(f"{prefix} which is neither a mapping nor an EnvDeclaration")

        name = fields.get('name')
        hint = fields.get('hint')
        default = fields.get('default')
        valid = fields.get('valid')
        show_value = fields.get('show_value')

        if not isinstance(name, str):
            raise RegistrationError(f"{prefix} w/o a string name attribute")
        if hint is not None and not isinstance(hint, str):
            raise RegistrationError(f"{prefix} with a non string hint attribute")
        if default is not None and (isinstance(default, bool) or not isinstance(default, (str, int, float))):
            raise RegistrationError(f"{prefix} with a non string/number default attribute")
        if valid is not None and not callable(valid):
            raise RegistrationError(f"{prefix} with a non function valid attribute")
        if show_value is not None and not isinstance(show_value, bool):
            raise RegistrationError(f"{prefix} with a non boolean show_value attribute")

        return cls(
            name=name,
            default=default,
            hint=hint,
            show_value=True if show_value is None else show_value,
            valid=valid or _always_valid,
        )

    def display_value(self, env: Mapping[str, Any]) -> Any:
        """Value as it may appear in diagnostic output."""
        return env.get(self.name) if self.show_value else MASKED_VALUE


def normalize_env_declarations(raw: Any, module_name: str) -> List[EnvDeclaration]:
    """
    Validate and normalize a module's ``env`` attribute.

    Raises:
        RegistrationError: If ``raw`` is not a list or holds a bad declaration
    """
    if not isinstance(raw, (list, tuple)):
        raise RegistrationError(
            f"Refusing to register module {module_name} which has a non list type env attribute"
        )
    return [EnvDeclaration.normalize(declaration, module_name) for declaration in raw]

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Validation Pass
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

def check_and_prepare_env(modules: Sequence[Any], env: MutableMapping[str, Any]) -> List[str]:
    """
    Check every declaration of every module against ``env``.

    Missing variables with a default get the default written into ``env``.

    Args:
        modules: Registered descriptors, in registration order
        env: The manager-owned environment, updated in place

    Returns:
        One diagnostic per missing or rejected variable, in scan order
    """
    errors = []

    for module in modules:
        for declaration in module.env or ():
            if env.get(declaration.name) is None:
                if declaration.default is not None:
                    env[declaration.name] = declaration.default
                else:
                    msg = f"Module {module.name} needs environment variable <{declaration.name}>"
                    if declaration.hint:
                        msg += f": {declaration.hint}"
                    errors.append(msg)
                    continue

            try:
                accepted = declaration.valid(env[declaration.name])
            except Exception:
                # A raising predicate rejects the value
                accepted = False

            if not accepted:
                errors.append(
                    f"Module {module.name} has variable <{declaration.name}> "
                    f"which was rejected by 'valid' predicate"
                )

    return errors


def collect_env_report(modules: Sequence[Any], env: Mapping[str, Any]) -> List[str]:
    """One line per declared variable, masking values that must stay hidden."""
    return [
        f"Module {module.name} env[{declaration.name}] := <{declaration.display_value(env)}>"
        for module in modules
        for declaration in module.env or ()
    ]


def snapshot_env(env: Mapping[str, Any]) -> Dict[str, Any]:
    """Shallow copy of the environment handed to a module."""
    return dict(env)
