"""API models for the library server.

Input models validate mutation arguments before anything touches the store;
response models are what services return and what the event bus carries.

Names, titles and genres are stored exactly as given: they are natural keys
that later queries match verbatim, so they are never trimmed or re-cased.
"""

from uuid import UUID

from pydantic import BaseModel, field_validator
from sqlmodel import Field

from library_server.models.base_model import AuthorBase, BookBase, UserBase


def _reject_blank(v: str) -> str:
    if isinstance(v, str) and not v.strip():
        raise ValueError("must not be blank")
    return v


class UserCreateInput(UserBase):
    username: str = Field(min_length=3)
    favorite_genre: str = Field(min_length=1)

    @field_validator("username", "favorite_genre")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _reject_blank(v)


class UserResponse(UserBase):
    id: UUID


class AuthorResponse(AuthorBase):
    id: UUID
    # Derived from the books table at read time, never stored
    book_count: int = 0


class BookCreateInput(BookBase):
    """Arguments of addBook."""

    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    genres: list[str] = Field(default_factory=list)

    @field_validator("title", "author")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _reject_blank(v)

    @field_validator("genres")
    @classmethod
    def unique_genres(cls, v: list[str]) -> list[str]:
        """Reject blank genres and drop repeats, keeping first-seen order."""
        for genre in v:
            _reject_blank(genre)
        return list(dict.fromkeys(v))


class BookResponse(BookBase):
    id: UUID
    author: AuthorResponse
    genres: list[str] = Field(default_factory=list)


class TokenResponse(BaseModel):
    value: str


class TokenClaims(BaseModel):
    """Identity claims embedded in a login token."""

    username: str
    id: UUID
