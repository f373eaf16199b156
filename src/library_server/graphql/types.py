"""GraphQL types for the library server.

The types are backed by the pydantic response models; resolvers return those
models directly.
"""

import strawberry

from library_server.models.api_model import AuthorResponse, BookResponse, TokenResponse, UserResponse


@strawberry.experimental.pydantic.type(model=AuthorResponse)
class Author:
    """GraphQL type for an author."""

    name: strawberry.auto
    born: strawberry.auto
    book_count: strawberry.auto

    @strawberry.field
    def id(self) -> strawberry.ID:
        """Get author ID."""
        return strawberry.ID(str(self.id))


@strawberry.experimental.pydantic.type(model=BookResponse)
class Book:
    """GraphQL type for a book, author resolved."""

    title: strawberry.auto
    published: strawberry.auto
    author: strawberry.auto
    genres: strawberry.auto

    @strawberry.field
    def id(self) -> strawberry.ID:
        """Get book ID."""
        return strawberry.ID(str(self.id))


@strawberry.experimental.pydantic.type(model=UserResponse)
class User:
    """GraphQL type for a user."""

    username: strawberry.auto
    favorite_genre: strawberry.auto

    @strawberry.field
    def id(self) -> strawberry.ID:
        """Get user ID."""
        return strawberry.ID(str(self.id))


@strawberry.experimental.pydantic.type(model=TokenResponse)
class Token:
    """GraphQL type for a login token."""

    value: strawberry.auto
