"""Service for author-related operations."""

from collections.abc import Iterable
from datetime import UTC, datetime
from functools import lru_cache
from uuid import UUID

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from library_server.models.api_model import AuthorResponse
from library_server.models.db_model import Author as AuthorModel
from library_server.models.db_model import Book as BookModel


class AuthorService:
    """Service for author-related operations."""

    def get_author_by_name(self, session: Session, name: str) -> AuthorModel | None:
        """Get an author record by exact name.

        Args:
            session: Database session
            name: Author name

        Returns:
            The author record if found, None otherwise
        """
        stmt = select(AuthorModel).where(AuthorModel.name == name)
        return session.exec(stmt).first()

    def find_or_create_author(self, session: Session, name: str) -> AuthorModel:
        """Return the author with the given name, inserting it when absent.

        A new author is only flushed; the caller commits it together with
        whatever it writes next, so call this before any other pending write.
        ``authors.name`` is unique, so two concurrent inserts for the same new
        name cannot both succeed: the loser rolls back and reads the winner's
        row instead.

        Args:
            session: Database session
            name: Author name

        Returns:
            The existing or newly created author record
        """
        author = self.get_author_by_name(session, name)
        if author is not None:
            logger.debug(f"Service: find_or_create_author - found existing author {author.id}")
            return author

        author = AuthorModel(name=name)
        session.add(author)
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            logger.debug(f"Service: find_or_create_author - concurrent insert for '{name}', re-reading")
            existing = self.get_author_by_name(session, name)
            if existing is None:
                raise
            return existing

        logger.debug(f"Service: find_or_create_author - created author {author.id} for '{name}'")
        return author

    def edit_born(self, session: Session, name: str, born: int) -> AuthorResponse | None:
        """Set an author's birth year.

        Args:
            session: Database session
            name: Name of the author to update
            born: New birth year

        Returns:
            The updated author, or None if no author has that name
        """
        logger.debug(f"Service: edit_born with name={name}, born={born}")

        author = self.get_author_by_name(session, name)
        if author is None:
            logger.debug(f"Service: edit_born - author not found: {name}")
            return None

        author.born = born
        author.updated_at = datetime.now(UTC)
        session.add(author)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(author)

        return self.to_response(author, self.count_books_by_author(session, [author.id]).get(author.id, 0))

    def count_authors(self, session: Session) -> int:
        """Get the total number of authors."""
        return session.exec(select(func.count(AuthorModel.id))).one()

    def count_books_by_author(self, session: Session, author_ids: Iterable[UUID]) -> dict[UUID, int]:
        """Count books per author for the given author ids.

        Authors without books are absent from the result.
        """
        ids = set(author_ids)
        if not ids:
            return {}
        stmt = (
            select(BookModel.author_id, func.count(BookModel.id))
            .where(BookModel.author_id.in_(ids))
            .group_by(BookModel.author_id)
        )
        return {author_id: count for author_id, count in session.exec(stmt).all()}

    def get_all_authors(self, session: Session) -> list[AuthorResponse]:
        """Get every author together with its book count.

        Returns:
            List of AuthorResponse objects in store order
        """
        stmt = (
            select(AuthorModel, func.count(BookModel.id))
            .outerjoin(BookModel, BookModel.author_id == AuthorModel.id)
            .group_by(AuthorModel.id)
        )
        rows = session.exec(stmt).all()
        logger.debug(f"Service: get_all_authors found {len(rows)} authors")
        return [self.to_response(author, book_count) for author, book_count in rows]

    @staticmethod
    def to_response(author: AuthorModel, book_count: int) -> AuthorResponse:
        return AuthorResponse(id=author.id, name=author.name, born=author.born, book_count=book_count)


@lru_cache
def get_author_service() -> AuthorService:
    """Get the author service singleton."""
    return AuthorService()
