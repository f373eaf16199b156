"""Tests for the author service."""

import pytest
from sqlmodel import Session

from library_server.models.api_model import BookCreateInput


def add(book_service, session, title: str, author: str, genres: list[str] | None = None):
    book = BookCreateInput(title=title, published=2008, author=author, genres=genres or [])
    return book_service.add_book(session, book)


def test_find_or_create_reuses_existing(session, author_service):
    created = author_service.find_or_create_author(session, "Robert Martin")
    found = author_service.find_or_create_author(session, "Robert Martin")

    assert found.id == created.id
    assert author_service.count_authors(session) == 1


def test_find_or_create_recovers_from_concurrent_insert(engine, session, author_service, monkeypatch: pytest.MonkeyPatch):
    with Session(engine) as other:
        existing_id = author_service.find_or_create_author(other, "Martin Fowler").id
        other.commit()

    real_lookup = author_service.get_author_by_name
    calls: list[str] = []

    def miss_first(s, name):
        calls.append(name)
        return None if len(calls) == 1 else real_lookup(s, name)

    # The first lookup misses, as if the other insert had not committed yet
    monkeypatch.setattr(author_service, "get_author_by_name", miss_first)

    author = author_service.find_or_create_author(session, "Martin Fowler")
    assert author.id == existing_id
    assert author_service.count_authors(session) == 1


def test_get_all_authors_counts_books(session, author_service, book_service):
    add(book_service, session, "Clean Code", "Robert Martin")
    add(book_service, session, "Agile software development", "Robert Martin")
    add(book_service, session, "Refactoring", "Martin Fowler")
    author_service.find_or_create_author(session, "Sandi Metz")

    counts = {a.name: a.book_count for a in author_service.get_all_authors(session)}
    assert counts == {"Robert Martin": 2, "Martin Fowler": 1, "Sandi Metz": 0}


def test_edit_born(session, author_service, book_service):
    add(book_service, session, "Clean Code", "Robert Martin")

    updated = author_service.edit_born(session, "Robert Martin", 1952)
    assert updated.born == 1952
    assert updated.book_count == 1
    assert author_service.get_author_by_name(session, "Robert Martin").born == 1952


def test_edit_born_unknown_author(session, author_service):
    assert author_service.edit_born(session, "Nobody", 1900) is None
    assert author_service.count_authors(session) == 0
