from sqlmodel import SQLModel


class UserBase(SQLModel):
    """Base model for a user."""

    username: str
    favorite_genre: str


class AuthorBase(SQLModel):
    """Base model for an author."""

    name: str
    born: int | None = None


class BookBase(SQLModel):
    """Base model for a book."""

    title: str
    published: int
