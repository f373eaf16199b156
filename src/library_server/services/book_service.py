"""Service for book-related operations."""

from functools import lru_cache

from loguru import logger
from sqlalchemy import func
from sqlmodel import Session, select

from library_server.constants import BOOK_ADDED
from library_server.event_bus import EventBus, get_event_bus
from library_server.models.api_model import BookCreateInput, BookResponse
from library_server.models.db_model import Book as BookModel
from library_server.models.db_model import BookGenre as BookGenreModel
from library_server.services.author_service import AuthorService, get_author_service


class BookService:
    """Service for book-related operations."""

    def __init__(self, author_service: AuthorService | None = None, event_bus: EventBus | None = None):
        """Initialize the book service.

        Args:
            author_service: Author service used for find-or-create and book counts
            event_bus: Bus that receives a BOOK_ADDED event for every created book
        """
        self.author_service = author_service or get_author_service()
        self.event_bus = event_bus or get_event_bus()

    def add_book(self, session: Session, book: BookCreateInput) -> BookResponse:
        """Create a book, creating its author on first mention.

        On success the created book, author resolved, is published on the
        ``BOOK_ADDED`` topic.

        Args:
            session: Database session
            book: Validated book input

        Returns:
            The created book with its author fully populated
        """
        logger.debug(f"Service: add_book - adding '{book.title}' by '{book.author}'")

        author = self.author_service.find_or_create_author(session, book.author)

        new_book = BookModel(
            title=book.title,
            published=book.published,
            author_id=author.id,
            genre_entries=[BookGenreModel(position=i, genre=genre) for i, genre in enumerate(book.genres)],
        )
        session.add(new_book)
        try:
            session.commit()
        except Exception as e:
            logger.error(f"Service: add_book - failed to create book: {e}")
            session.rollback()
            raise
        session.refresh(new_book)

        book_response = self._to_responses(session, [new_book])[0]
        logger.debug(f"Service: add_book - created book {new_book.id}")

        self.event_bus.publish(BOOK_ADDED, book_response)
        return book_response

    def count_books(self, session: Session) -> int:
        """Get the total number of books."""
        return session.exec(select(func.count(BookModel.id))).one()

    def get_books(self, session: Session, author: str | None = None, genre: str | None = None) -> list[BookResponse]:
        """Get books, optionally filtered by author name and genre.

        Both filters combine with AND. An author name that matches nobody
        yields an empty list.

        Args:
            session: Database session
            author: Exact author name
            genre: Genre the book must list

        Returns:
            List of BookResponse objects
        """
        logger.debug(f"Service: get_books with author={author}, genre={genre}")

        stmt = select(BookModel)
        if author is not None:
            author_record = self.author_service.get_author_by_name(session, author)
            if author_record is None:
                logger.debug(f"Service: get_books - unknown author: {author}")
                return []
            stmt = stmt.where(BookModel.author_id == author_record.id)
        if genre is not None:
            stmt = stmt.where(BookModel.id.in_(select(BookGenreModel.book_id).where(BookGenreModel.genre == genre)))

        books = session.exec(stmt).unique().all()
        logger.debug(f"Service: get_books found {len(books)} books")
        return self._to_responses(session, books)

    def _to_responses(self, session: Session, books: list[BookModel]) -> list[BookResponse]:
        counts = self.author_service.count_books_by_author(session, (book.author_id for book in books))
        return [
            BookResponse(
                id=book.id,
                title=book.title,
                published=book.published,
                genres=book.genres,
                author=self.author_service.to_response(book.author, counts.get(book.author_id, 0)),
            )
            for book in books
        ]


@lru_cache
def get_book_service() -> BookService:
    """Get the book service singleton.

    The @lru_cache decorator ensures this functions as a singleton,
    returning the same instance for all calls.
    """
    return BookService()
