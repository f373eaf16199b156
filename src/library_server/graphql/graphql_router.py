"""GraphQL router for the library server.

Serves queries and mutations over HTTP and subscriptions over WebSocket on the
same path. HTTP requests authenticate with the ``Authorization`` header;
WebSocket connections authenticate once, with the ``authorization`` field of
the ``connection_init`` payload.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.requests import HTTPConnection
from loguru import logger
from sqlmodel import Session
from strawberry.exceptions import ConnectionRejectionError
from strawberry.fastapi import GraphQLRouter
from strawberry.subscriptions import GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL

from library_server.database import get_db_session
from library_server.exceptions import InvalidTokenError
from library_server.graphql.context import GraphQLContext
from library_server.graphql.schema import schema
from library_server.services.auth_service import AuthService
from library_server.services.registry import get_service_registry
from library_server.settings import get_settings

# Create a module-level dependency for the database session
db_dependency = Depends(get_db_session)


async def get_context(
    connection: HTTPConnection,
    db_session: Session = db_dependency,
) -> GraphQLContext:
    """Get the GraphQL context with database session and current user.

    For HTTP requests the current user is resolved from the ``Authorization``
    header here. WebSocket connections resolve it later, in
    ``LibraryGraphQLRouter.on_ws_connect``, once ``connection_init`` arrives.

    Args:
        connection: The incoming HTTP request or WebSocket connection
        db_session: The database session from the dependency

    Returns:
        A GraphQLContext instance for GraphQL resolvers

    Raises:
        HTTPException: 401 if a bearer token is present but invalid
    """
    current_user = None
    if connection.scope["type"] == "http":
        auth_service = get_service_registry().get(AuthService)
        try:
            current_user = auth_service.resolve_current_user(db_session, connection.headers.get("Authorization"))
        except InvalidTokenError as e:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message) from e

    return GraphQLContext(db_session=db_session, current_user=current_user)


class LibraryGraphQLRouter(GraphQLRouter):
    """GraphQL router that authenticates WebSocket connections on connect."""

    async def on_ws_connect(self, context: GraphQLContext):
        params = context.connection_params if isinstance(context.connection_params, dict) else {}
        auth_service = context.service(AuthService)
        try:
            context.current_user = auth_service.resolve_current_user(context.db_session, params.get("authorization"))
        except InvalidTokenError as e:
            logger.info("Rejecting WebSocket connection with invalid token")
            raise ConnectionRejectionError({"message": e.message}) from e
        finally:
            # The connection may stay open for hours; give the pooled connection back now
            context.db_session.close()

        logger.debug(f"WebSocket connection accepted for user {context.current_user.id if context.current_user else None}")
        return await super().on_ws_connect(context)


def create_graphql_router() -> APIRouter:
    """Create the GraphQL router serving HTTP and WebSocket transports.

    Returns:
        The GraphQL router
    """
    settings = get_settings()
    graphql_router = LibraryGraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql",
        subscription_protocols=(GRAPHQL_TRANSPORT_WS_PROTOCOL, GRAPHQL_WS_PROTOCOL),
        connection_init_wait_timeout=timedelta(seconds=settings.ws_connection_init_timeout),
        tags=["GraphQL"],
    )
    return graphql_router
