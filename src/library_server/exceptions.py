"""Common exceptions for the server.

Every error a client can see derives from ``LibraryError`` and carries the
GraphQL error ``code`` it is reported with. The GraphQL layer converts them
(see ``library_server.graphql.errors``); services never import GraphQL.
"""

from typing import Any


class LibraryError(Exception):
    """Base class for errors surfaced to API clients."""

    code = "INTERNAL_SERVER_ERROR"
    default_message = "internal server error"

    def __init__(self, message: str | None = None, **extensions: Any):
        self.message = message or self.default_message
        self.extensions = extensions
        super().__init__(self.message)


class NotAuthenticatedError(LibraryError):
    """Raised when an operation requires a current user and there is none."""

    code = "UNAUTHENTICATED"
    default_message = "not authenticated"


class InvalidCredentialsError(LibraryError):
    """Raised by login for an unknown username or a wrong password.

    Both cases share one message so callers cannot probe for usernames.
    """

    code = "BAD_USER_INPUT"
    default_message = "wrong credentials"


class ValidationFailedError(LibraryError):
    """Raised when input or a store constraint rejects a write."""

    code = "BAD_USER_INPUT"
    default_message = "invalid input"

    def __init__(self, message: str | None = None, invalid_args: list[str] | None = None):
        self.invalid_args = invalid_args or []
        super().__init__(message, invalidArgs=self.invalid_args)


class InvalidTokenError(LibraryError):
    """Raised when a bearer token fails signature or expiry verification."""

    code = "UNAUTHENTICATED"
    default_message = "invalid token"


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing or invalid."""
