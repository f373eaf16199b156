from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

from library_server.models.base_model import AuthorBase, BookBase, UserBase


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(UserBase, table=True):
    """User model."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=_utcnow)


class Author(AuthorBase, table=True):
    """Author model.

    The name is the natural key used by find-or-create, hence unique.
    """

    __tablename__ = "authors"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    books: list["Book"] = Relationship(back_populates="author")


class Book(BookBase, table=True):
    """Book model."""

    __tablename__ = "books"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    author_id: UUID = Field(foreign_key="authors.id", index=True)
    created_at: datetime = Field(default_factory=_utcnow)

    # Relationships
    author: "Author" = Relationship(back_populates="books", sa_relationship_kwargs={"lazy": "joined"})
    genre_entries: list["BookGenre"] = Relationship(
        back_populates="book",
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "BookGenre.position", "cascade": "all, delete-orphan"},
    )

    @property
    def genres(self) -> list[str]:
        """Genres in the order they were given when the book was added."""
        return [entry.genre for entry in self.genre_entries]


class BookGenre(SQLModel, table=True):
    """One genre of a book, keyed by its position in the book's genre list."""

    __tablename__ = "book_genres"

    book_id: UUID = Field(foreign_key="books.id", primary_key=True)
    position: int = Field(primary_key=True)
    genre: str = Field(index=True)

    book: "Book" = Relationship(back_populates="genre_entries")
