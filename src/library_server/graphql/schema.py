"""GraphQL schema for the library server."""

import asyncio
from collections.abc import AsyncGenerator

import strawberry
from loguru import logger

from library_server.constants import BOOK_ADDED
from library_server.event_bus import EventBus
from library_server.exceptions import LibraryError
from library_server.graphql.errors import parse_input, to_graphql_error
from library_server.graphql.types import Author, Book, Token, User
from library_server.models.api_model import BookCreateInput, UserCreateInput
from library_server.services.auth_service import AuthService
from library_server.services.author_service import AuthorService
from library_server.services.book_service import BookService
from library_server.services.user_service import UserService


@strawberry.type
class Query:
    """Root query type for the GraphQL schema."""

    @strawberry.field
    async def me(self, info: strawberry.Info) -> User | None:
        """Get the user the request's bearer token belongs to, if any."""
        return info.context.current_user

    @strawberry.field
    async def book_count(self, info: strawberry.Info) -> int:
        book_service = info.context.service(BookService)
        return book_service.count_books(info.context.db_session)

    @strawberry.field
    async def author_count(self, info: strawberry.Info) -> int:
        author_service = info.context.service(AuthorService)
        return author_service.count_authors(info.context.db_session)

    @strawberry.field
    async def all_books(
        self,
        info: strawberry.Info,
        author: str | None = None,
        genre: str | None = None,
    ) -> list[Book]:
        """Get books, optionally filtered.

        Args:
            info: GraphQL resolver info
            author: Only books by the author with this exact name
            genre: Only books listing this genre

        Returns:
            List of Book objects matching every given filter
        """
        logger.debug(f"GraphQL query: all_books with author={author}, genre={genre}")

        book_service = info.context.service(BookService)
        return book_service.get_books(info.context.db_session, author=author, genre=genre)

    @strawberry.field
    async def all_authors(self, info: strawberry.Info) -> list[Author]:
        """Get every author with its book count."""
        logger.debug("GraphQL query: all_authors")

        author_service = info.context.service(AuthorService)
        return author_service.get_all_authors(info.context.db_session)


@strawberry.type
class Mutation:
    """Root mutation type for the GraphQL schema."""

    @strawberry.mutation
    async def add_book(
        self,
        info: strawberry.Info,
        title: str,
        published: int,
        author: str,
        genres: list[str],
    ) -> Book:
        """Add a book, creating its author on first mention.

        Requires an authenticated user. Subscribers of ``bookAdded`` receive
        the created book.

        Args:
            info: GraphQL resolver info
            title: Book title
            published: Publication year
            author: Author name
            genres: Genre labels

        Returns:
            The created Book with its author resolved
        """
        logger.debug(f"GraphQL mutation: add_book with title={title}, author={author}")

        try:
            info.context.require_user()
            book_input = parse_input(BookCreateInput, title=title, published=published, author=author, genres=genres)
            book_service = info.context.service(BookService)
            return book_service.add_book(info.context.db_session, book_input)
        except LibraryError as e:
            raise to_graphql_error(e) from e

    @strawberry.mutation
    async def edit_author(self, info: strawberry.Info, name: str, set_born_to: int) -> Author | None:
        """Set an author's birth year.

        Requires an authenticated user. Returns null when no author has the
        given name.
        """
        logger.debug(f"GraphQL mutation: edit_author with name={name}, set_born_to={set_born_to}")

        try:
            info.context.require_user()
        except LibraryError as e:
            raise to_graphql_error(e) from e

        author_service = info.context.service(AuthorService)
        return author_service.edit_born(info.context.db_session, name, set_born_to)

    @strawberry.mutation
    async def create_user(self, info: strawberry.Info, username: str, favorite_genre: str) -> User | None:
        """Register a user.

        Args:
            info: GraphQL resolver info
            username: Unique username, at least three characters
            favorite_genre: The user's favourite genre

        Returns:
            The created User
        """
        logger.debug(f"GraphQL mutation: create_user with username={username}")

        try:
            user_input = parse_input(UserCreateInput, username=username, favorite_genre=favorite_genre)
            user_service = info.context.service(UserService)
            return user_service.create_user(info.context.db_session, user_input)
        except LibraryError as e:
            raise to_graphql_error(e) from e

    @strawberry.mutation
    async def login(self, info: strawberry.Info, username: str, password: str) -> Token | None:
        """Exchange a username and the shared password for a bearer token.

        The password hash check is CPU-bound, so it runs in a worker thread and
        the event loop keeps serving other requests and subscription streams.
        """
        logger.debug(f"GraphQL mutation: login with username={username}")

        try:
            auth_service = info.context.service(AuthService)
            return await asyncio.to_thread(auth_service.login, info.context.db_session, username, password)
        except LibraryError as e:
            raise to_graphql_error(e) from e


@strawberry.type
class Subscription:
    """Root subscription type for the GraphQL schema."""

    @strawberry.subscription
    async def book_added(self, info: strawberry.Info) -> AsyncGenerator[Book, None]:
        """Stream every book created after the subscription starts.

        Each subscription gets its own bus subscriber; the subscriber is
        removed when the client stops the operation or disconnects.
        """
        event_bus = info.context.service(EventBus)
        async with event_bus.subscribe(BOOK_ADDED) as subscriber:
            logger.debug(f"GraphQL subscription: book_added started ({subscriber!r})")
            async for book in subscriber:
                yield book
        logger.debug("GraphQL subscription: book_added ended")


schema = strawberry.Schema(query=Query, mutation=Mutation, subscription=Subscription)
