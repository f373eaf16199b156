"""Tests for the book service."""

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from library_server.constants import BOOK_ADDED
from library_server.models.api_model import BookCreateInput, BookResponse


@pytest.fixture
def catalog(session, book_service):
    books = [
        ("Clean Code", 2008, "Robert Martin", ["refactoring"]),
        ("Agile software development", 2002, "Robert Martin", ["agile", "patterns", "design"]),
        ("Refactoring, edition 2", 2018, "Martin Fowler", ["refactoring"]),
        ("Practical Object-Oriented Design", 2012, "Sandi Metz", ["refactoring", "design"]),
        ("Crime and punishment", 1866, "Fyodor Dostoevsky", ["classic", "crime"]),
    ]
    for title, published, author, genres in books:
        book_service.add_book(session, BookCreateInput(title=title, published=published, author=author, genres=genres))


def test_add_book_creates_author(session, book_service, author_service):
    book = book_service.add_book(
        session, BookCreateInput(title="Clean Code", published=2008, author="Robert Martin", genres=["refactoring"])
    )

    assert book.title == "Clean Code"
    assert book.author.name == "Robert Martin"
    assert book.author.book_count == 1
    assert book.genres == ["refactoring"]
    assert author_service.count_authors(session) == 1


def test_add_book_keeps_genre_order_without_duplicates(session, book_service):
    book = book_service.add_book(
        session,
        BookCreateInput(title="Patterns", published=1994, author="Gang of Four", genres=["design", "oop", "design"]),
    )
    assert book.genres == ["design", "oop"]
    assert book_service.get_books(session)[0].genres == ["design", "oop"]


def test_blank_genre_rejected():
    with pytest.raises(ValidationError):
        BookCreateInput(title="Patterns", published=1994, author="Gang of Four", genres=["design", "  "])


def test_names_and_genres_stored_verbatim(session, book_service, author_service):
    book = book_service.add_book(
        session, BookCreateInput(title=" Demons ", published=1872, author=" Fyodor ", genres=[" classic"])
    )

    assert book.title == " Demons "
    assert book.author.name == " Fyodor "
    assert [b.id for b in book_service.get_books(session, author=" Fyodor ")] == [book.id]
    assert [b.id for b in book_service.get_books(session, genre=" classic")] == [book.id]
    assert book_service.get_books(session, author="Fyodor") == []
    assert author_service.edit_born(session, " Fyodor ", 1821).born == 1821


async def test_add_book_publishes_event(session, book_service, event_bus):
    subscriber = event_bus.subscribe(BOOK_ADDED)

    book = book_service.add_book(session, BookCreateInput(title="Demons", published=1872, author="Fyodor Dostoevsky"))

    event = await anext(subscriber)
    assert isinstance(event, BookResponse)
    assert event.id == book.id
    assert event.author.name == "Fyodor Dostoevsky"


def test_counts(session, book_service, author_service, catalog):
    assert book_service.count_books(session) == 5
    assert author_service.count_authors(session) == 4


def test_get_books_unfiltered(session, book_service, catalog):
    books = book_service.get_books(session)
    assert len(books) == 5
    assert all(book.author.name for book in books)


def test_get_books_by_author(session, book_service, catalog):
    titles = {book.title for book in book_service.get_books(session, author="Robert Martin")}
    assert titles == {"Clean Code", "Agile software development"}


def test_get_books_by_genre(session, book_service, catalog):
    titles = {book.title for book in book_service.get_books(session, genre="refactoring")}
    assert titles == {"Clean Code", "Refactoring, edition 2", "Practical Object-Oriented Design"}


def test_get_books_by_author_and_genre(session, book_service, catalog):
    books = book_service.get_books(session, author="Robert Martin", genre="refactoring")
    assert [book.title for book in books] == ["Clean Code"]


def test_get_books_unknown_author(session, book_service, catalog):
    assert book_service.get_books(session, author="Nobody") == []


def test_book_author_count_reflects_all_books(session, book_service, catalog):
    books = book_service.get_books(session, author="Robert Martin", genre="agile")
    assert books[0].author.book_count == 2


def test_failed_book_insert_leaves_no_author(session, book_service, author_service, monkeypatch: pytest.MonkeyPatch):
    def fail_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(session, "commit", fail_commit)

    with pytest.raises(SQLAlchemyError):
        book_service.add_book(session, BookCreateInput(title="Demons", published=1872, author="Fyodor Dostoevsky"))

    monkeypatch.undo()
    assert author_service.count_authors(session) == 0
    assert book_service.count_books(session) == 0
