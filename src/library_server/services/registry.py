"""Service registry for dependency injection.

Services are keyed by their class. A provider is either a ready instance
(``register_singleton``) or a zero-argument factory (``register_factory``);
the GraphQL context resolves them with ``context.service(BookService)``.
"""

from collections.abc import Callable
from functools import lru_cache
from typing import Any, TypeVar, cast

T = TypeVar("T")
ServiceFactory = Callable[[], T]


class ServiceRegistry:
    """Registry for all shared services with support for singletons and factories."""

    def __init__(self):
        """Initialize an empty service registry."""
        self._instances: dict[type, Any] = {}
        self._factories: dict[type, ServiceFactory[Any]] = {}

    def register_singleton(self, service_type: type[T], instance: T) -> None:
        """Register a ready-made instance, replacing any earlier provider for the type."""
        self._factories.pop(service_type, None)
        self._instances[service_type] = instance

    def register_factory(self, service_type: type[T], factory: ServiceFactory[T]) -> None:
        """Register a factory called on every lookup, replacing any earlier provider for the type."""
        self._instances.pop(service_type, None)
        self._factories[service_type] = factory

    def is_registered(self, service_type: type) -> bool:
        return service_type in self._instances or service_type in self._factories

    def get(self, service_type: type[T]) -> T:
        """Get a service instance by type.

        Raises:
            KeyError: If the requested service is not registered
        """
        if service_type in self._instances:
            return cast(T, self._instances[service_type])
        if service_type in self._factories:
            return cast(T, self._factories[service_type]())
        raise KeyError(f"Service {service_type.__name__} not registered")

    def clear(self) -> None:
        """Forget every registered provider."""
        self._instances.clear()
        self._factories.clear()


@lru_cache
def get_service_registry() -> ServiceRegistry:
    """Get the singleton service registry instance."""
    return ServiceRegistry()
