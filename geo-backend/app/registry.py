from __future__ import annotations

from typing import Any, Dict, List, Type, TypeVar

T = TypeVar("T")

CATALOG = "crs.catalog"
SETTINGS = "settings"


class ServiceNotFound(KeyError):
    pass


class ServiceRegistry:
    """String-keyed service locator. Lookups are type-checked."""

    def __init__(self) -> None:
        self._services: Dict[str, Any] = {}

    def register(self, key: str, service: Any) -> None:
        if key in self._services:
            raise ValueError(f"service '{key}' already registered")
        self._services[key] = service

    def resolve(self, key: str, expected: Type[T]) -> T:
        try:
            service = self._services[key]
        except KeyError:
            raise ServiceNotFound(key) from None
        if not isinstance(service, expected):
            raise TypeError(f"service '{key}' is {type(service).__name__}, expected {expected.__name__}")
        return service

    def has(self, key: str) -> bool:
        return key in self._services

    def keys(self) -> List[str]:
        return sorted(self._services)

    def clear(self) -> None:
        self._services.clear()


__all__ = ["CATALOG", "SETTINGS", "ServiceNotFound", "ServiceRegistry"]
