"""GraphQL context with service registry integration."""

from typing import Any, TypeVar

from sqlmodel import Session
from strawberry.fastapi import BaseContext

from library_server.exceptions import NotAuthenticatedError
from library_server.models.api_model import UserResponse
from library_server.services.registry import get_service_registry

T = TypeVar("T")


class GraphQLContext(BaseContext):
    """Per-request (or per-WebSocket-connection) GraphQL context.

    Holds the database session, the current user resolved from the bearer
    credential, and access to the service registry. For WebSocket
    connections, strawberry fills ``connection_params`` with the
    ``connection_init`` payload and the current user is resolved from it.
    """

    def __init__(self, db_session: Session, current_user: UserResponse | None = None, **kwargs: Any):
        """Initialize the GraphQL context.

        Args:
            db_session: The database session
            current_user: The authenticated user, if any
            **kwargs: Additional context values
        """
        super().__init__()
        self.db_session = db_session
        self.current_user = current_user
        self.connection_params: Any = None
        self._registry = get_service_registry()

        for key, value in kwargs.items():
            setattr(self, key, value)

    def service(self, service_type: type[T]) -> T:
        """Get a service by type from the registry.

        Raises:
            KeyError: If the requested service is not registered in the registry
        """
        try:
            return self._registry.get(service_type)
        except KeyError as e:
            raise KeyError(f"Service {service_type.__name__} not registered") from e

    def require_user(self) -> UserResponse:
        """Return the current user.

        Raises:
            NotAuthenticatedError: If the request carries no valid user
        """
        if self.current_user is None:
            raise NotAuthenticatedError()
        return self.current_user
