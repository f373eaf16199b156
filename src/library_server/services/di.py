"""Dependency injection setup module.

Centralized service registration for the server and for tests.
"""

from loguru import logger

from library_server.event_bus import EventBus, get_event_bus
from library_server.services.auth_service import AuthService, get_auth_service
from library_server.services.author_service import AuthorService, get_author_service
from library_server.services.book_service import BookService, get_book_service
from library_server.services.registry import ServiceRegistry
from library_server.services.user_service import UserService, get_user_service


def register_core_services(registry: ServiceRegistry) -> None:
    """Register infrastructure services in the service registry.

    Args:
        registry: Service registry instance to register services in
    """
    logger.debug("Registering core services in DI container")

    registry.register_factory(EventBus, get_event_bus)
    registry.register_factory(AuthService, get_auth_service)


def register_app_services(registry: ServiceRegistry) -> None:
    """Register the catalog services in the service registry.

    Registered as factories because their get_*_service() functions already
    provide singleton behavior via @lru_cache.

    Args:
        registry: Service registry instance to register services in
    """
    logger.debug("Registering application services in DI container")

    registry.register_factory(AuthorService, get_author_service)
    registry.register_factory(BookService, get_book_service)
    registry.register_factory(UserService, get_user_service)


def register_all_services(registry: ServiceRegistry) -> None:
    """Register all services in the service registry.

    Args:
        registry: Service registry instance to register services in
    """
    register_core_services(registry)
    register_app_services(registry)
