#!/usr/bin/env python3
"""
services.py - Service Catalog

Run-time mapping from export name to the value the exporting module's init
step produced. Filled by the lifecycle manager, read when building contexts.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional


class ServiceCatalog:
    """Export name -> init value, each name published at most once."""

    def __init__(self):
        self._services: Dict[str, Any] = {}

    def publish(self, name: str, value: Any) -> None:
        """
        Publish ``value`` under ``name``.

        Raises:
            ValueError: If ``value`` is None or ``name`` was already published
        """
        if value is None:
            raise ValueError(f"Service {name} cannot be published without a value")
        if name in self._services:
            raise ValueError(f"Service {name} has already been published")
        self._services[name] = value

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        return self._services.get(name, default)

    def view(self) -> Mapping[str, Any]:
        """Read-only live view of the published services."""
        return MappingProxyType(self._services)

    def __contains__(self, name: object) -> bool:
        return name in self._services

    def __iter__(self) -> Iterator[str]:
        return iter(self._services)

    def __len__(self) -> int:
        return len(self._services)
