#!/usr/bin/env python3
"""
Tests for the module registry, the service catalog and module contexts.
"""

import sys
from pathlib import Path
from unittest import mock

import pytest

# Add parent directory to sys.path to allow importing the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from zerostep import ModuleDescriptor, ModuleContext, EnvDeclaration, RegistrationError
from zerostep.context import build_context
from zerostep.registry import ModuleRegistry, build_descriptor
from zerostep.services import ServiceCatalog

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Test Cases
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class TestBuildDescriptor:
    """Test cases for descriptor normalization."""

    def test_mapping_is_copied(self):
        """Test the descriptor is a normalized copy of the mapping."""
        init = mock.Mock()
        raw = {'name': 'one', 'init': init, 'imports': ('a', 'b'), 'env': [{'name': 'X'}]}
        descriptor = build_descriptor(raw)

        assert isinstance(descriptor, ModuleDescriptor)
        assert descriptor.init is init
        assert descriptor.imports == ['a', 'b']
        assert descriptor.env == [EnvDeclaration.normalize({'name': 'X'}, 'one')]
        assert descriptor.initialized is False
        assert callable(descriptor.destroy)

    def test_object_attributes(self):
        """Test a plain object with descriptor attributes is accepted."""
        class Module:
            name = 'object'
            export = 'svc'

            def init(self, ctx):
                return 'value'

        descriptor = build_descriptor(Module())

        assert descriptor.name == 'object'
        assert descriptor.export == 'svc'
        assert descriptor.init(None) == 'value'

    def test_dataclass_not_shared(self):
        """Test a ModuleDescriptor argument is copied, not stored."""
        original = ModuleDescriptor(name='dc', init=lambda ctx: None)
        descriptor = build_descriptor(original)

        assert descriptor is not original
        descriptor.initialized = True
        assert original.initialized is False

    def test_describe(self):
        """Test the short form used in diagnostics."""
        descriptor = build_descriptor({'name': 'two', 'init': len, 'imports': ['a', 'b'], 'export': 'c'})
        assert descriptor.describe() == '<two>(a, b) -> [c]'

        plain = build_descriptor({'name': 'plain', 'init': len})
        assert plain.describe() == '<plain>() -> []'


class TestModuleRegistry:
    """Test cases for ModuleRegistry."""

    def test_registration_order(self):
        """Test modules are kept in registration order."""
        registry = ModuleRegistry()
        for name in ('c', 'a', 'b'):
            registry.add({'name': name, 'init': len})

        assert registry.names == ('c', 'a', 'b')
        assert [m.name for m in registry] == ['c', 'a', 'b']
        assert len(registry) == 3

    def test_export_owner(self):
        """Test export claims are tracked by owner."""
        registry = ModuleRegistry()
        stored = registry.add({'name': 'one', 'init': len, 'export': 'svc'})

        assert registry.owner_of('svc') is stored
        assert registry.owner_of('other') is None

    def test_missing_import_checked_before_export(self):
        """Test a module failing on imports does not claim its export."""
        registry = ModuleRegistry()
        with pytest.raises(RegistrationError, match='missing services'):
            registry.add({'name': 'one', 'init': len, 'export': 'svc', 'imports': ['nope']})

        assert registry.owner_of('svc') is None
        assert len(registry) == 0

    def test_snapshot_is_a_copy(self):
        """Test the snapshot does not expose the internal list."""
        registry = ModuleRegistry()
        registry.add({'name': 'one', 'init': len})

        snapshot = registry.snapshot()
        snapshot.clear()
        assert len(registry) == 1


class TestServiceCatalog:
    """Test cases for ServiceCatalog."""

    def test_publish_and_get(self):
        """Test published values can be read back."""
        catalog = ServiceCatalog()
        catalog.publish('svc', 'value')

        assert catalog.get('svc') == 'value'
        assert 'svc' in catalog
        assert list(catalog) == ['svc']
        assert len(catalog) == 1

    def test_publish_rejects_none_and_duplicates(self):
        """Test a name is published once and never with None."""
        catalog = ServiceCatalog()
        with pytest.raises(ValueError):
            catalog.publish('svc', None)

        catalog.publish('svc', 0)
        with pytest.raises(ValueError):
            catalog.publish('svc', 1)
        assert catalog.get('svc') == 0

    def test_view_is_live_and_read_only(self):
        """Test the view follows later publications but rejects writes."""
        catalog = ServiceCatalog()
        view = catalog.view()
        catalog.publish('svc', 'value')

        assert view['svc'] == 'value'
        with pytest.raises(TypeError):
            view['svc'] = 'other'


class TestModuleContext:
    """Test cases for ModuleContext and build_context."""

    def test_attribute_and_item_access(self):
        """Test imports are reachable both ways."""
        ctx = ModuleContext('m', logger=None, env={}, imports={'db': 'conn', 'module1-service': 42})

        assert ctx.db == 'conn'
        assert ctx['module1-service'] == 42
        assert 'db' in ctx
        assert 'missing' not in ctx

    def test_unknown_attribute(self):
        """Test unknown names raise the usual errors."""
        ctx = ModuleContext('m', logger=None, env={}, imports={})

        with pytest.raises(AttributeError, match="has no import or attribute 'db'"):
            ctx.db
        with pytest.raises(KeyError):
            ctx['db']

    def test_logger_and_env_take_precedence(self):
        """Test services named like context fields stay reachable by item."""
        logger = object()
        ctx = ModuleContext('m', logger=logger, env={'A': '1'}, imports={'logger': 'service'})

        assert ctx.logger is logger
        assert ctx['logger'] == 'service'

    def test_imports_property_is_a_copy(self):
        """Test callers cannot add imports through the property."""
        ctx = ModuleContext('m', logger=None, env={}, imports={'db': 'conn'})
        ctx.imports['other'] = 1

        assert 'other' not in ctx

    def test_build_context(self):
        """Test only the declared imports are bound."""
        catalog = ServiceCatalog()
        catalog.publish('a', 'A')
        catalog.publish('b', 'B')
        module = build_descriptor({'name': 'm', 'init': len, 'imports': ['a']})
        env = {'X': '1'}
        factory = mock.Mock(return_value='logger')

        ctx = build_context(module, factory, env, catalog)

        factory.assert_called_once_with('m')
        assert ctx.logger == 'logger'
        assert ctx.imports == {'a': 'A'}
        assert ctx.env == env
        assert ctx.env is not env
