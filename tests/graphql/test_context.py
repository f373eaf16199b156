"""Tests for the GraphQL context class."""

from unittest.mock import MagicMock, patch

import pytest
from sqlmodel import Session

from library_server.exceptions import NotAuthenticatedError
from library_server.graphql.context import GraphQLContext
from library_server.services.registry import ServiceRegistry


class MockService:
    """A mock service class for testing."""

    def __init__(self, value: str = "default"):
        self.value = value


@pytest.fixture
def mock_db_session():
    return MagicMock(spec=Session)


@pytest.fixture
def patch_registry():
    test_registry = ServiceRegistry()
    with patch("library_server.graphql.context.get_service_registry", return_value=test_registry):
        yield test_registry


def test_graphql_context_service_access(mock_db_session, patch_registry):
    test_service = MockService("test_value")
    patch_registry.register_singleton(MockService, test_service)

    context = GraphQLContext(db_session=mock_db_session)
    assert context.service(MockService) is test_service


def test_graphql_context_additional_values(mock_db_session):
    context = GraphQLContext(db_session=mock_db_session, custom_value="custom", another_value=42)
    assert context.custom_value == "custom"
    assert context.another_value == 42
    assert context.db_session is mock_db_session
    assert context.current_user is None
    assert context.connection_params is None


def test_graphql_context_service_not_found(mock_db_session, patch_registry):  # noqa: ARG001
    context = GraphQLContext(db_session=mock_db_session)
    with pytest.raises(KeyError, match="Service MockService not registered"):
        context.service(MockService)


def test_require_user(mock_db_session, user):
    assert GraphQLContext(db_session=mock_db_session, current_user=user).require_user() is user

    with pytest.raises(NotAuthenticatedError):
        GraphQLContext(db_session=mock_db_session).require_user()
