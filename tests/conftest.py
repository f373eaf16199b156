"""Shared fixtures: an in-memory SQLite store, test settings and a wired service registry."""

from unittest.mock import patch

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from library_server.event_bus import EventBus
from library_server.graphql.context import GraphQLContext
from library_server.models import db_model  # noqa: F401
from library_server.services.auth_service import AuthService
from library_server.services.author_service import AuthorService
from library_server.services.book_service import BookService
from library_server.services.registry import ServiceRegistry
from library_server.services.user_service import UserService
from library_server.settings import Settings
from library_server.utils.passwords import hash_password

LOGIN_PASSWORD = "secret"


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def settings() -> Settings:
    # Low iteration count keeps the hash check fast in tests
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret="test-secret",
        login_password_hash=hash_password(LOGIN_PASSWORD, iterations=1000),
    )


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus(queue_size=10)


@pytest.fixture
def author_service() -> AuthorService:
    return AuthorService()


@pytest.fixture
def user_service() -> UserService:
    return UserService()


@pytest.fixture
def book_service(author_service, event_bus) -> BookService:
    return BookService(author_service=author_service, event_bus=event_bus)


@pytest.fixture
def auth_service(settings, user_service) -> AuthService:
    return AuthService(settings=settings, user_service=user_service)


@pytest.fixture
def registry(event_bus, author_service, book_service, user_service, auth_service):
    """Service registry holding the test services, patched in where the GraphQL layer looks it up."""
    registry = ServiceRegistry()
    registry.register_singleton(EventBus, event_bus)
    registry.register_singleton(AuthorService, author_service)
    registry.register_singleton(BookService, book_service)
    registry.register_singleton(UserService, user_service)
    registry.register_singleton(AuthService, auth_service)

    with (
        patch("library_server.graphql.context.get_service_registry", return_value=registry),
        patch("library_server.graphql.graphql_router.get_service_registry", return_value=registry),
    ):
        yield registry


@pytest.fixture
def user(session, user_service):
    from library_server.models.api_model import UserCreateInput

    return user_service.create_user(session, UserCreateInput(username="mluukkai", favorite_genre="refactoring"))


@pytest.fixture
def make_context(session, registry):
    """Build a GraphQL context for direct schema execution."""

    def _make(current_user=None) -> GraphQLContext:
        return GraphQLContext(db_session=session, current_user=current_user)

    return _make
