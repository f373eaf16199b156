"""Service for user-related operations."""

from functools import lru_cache
from uuid import UUID

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from library_server.exceptions import ValidationFailedError
from library_server.models.api_model import UserCreateInput, UserResponse
from library_server.models.db_model import User as UserModel


class UserService:
    """Service for user-related operations."""

    def create_user(self, session: Session, user: UserCreateInput) -> UserResponse:
        """Register a new user.

        Args:
            session: Database session
            user: Validated user input

        Returns:
            The created user

        Raises:
            ValidationFailedError: If the username is already taken
        """
        logger.debug(f"Service: create_user - creating user '{user.username}'")

        new_user = UserModel(username=user.username, favorite_genre=user.favorite_genre)
        session.add(new_user)
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.debug(f"Service: create_user - username already taken: {user.username}")
            raise ValidationFailedError(f"Username '{user.username}' is already taken", invalid_args=["username"]) from e

        session.refresh(new_user)
        logger.debug(f"Service: create_user - created user {new_user.id}")
        return self._to_response(new_user)

    def get_user_by_id(self, session: Session, id_: UUID) -> UserResponse | None:
        stmt = select(UserModel).where(UserModel.id == id_)
        user = session.exec(stmt).first()
        return self._to_response(user) if user else None

    def get_user_by_username(self, session: Session, username: str) -> UserResponse | None:
        stmt = select(UserModel).where(UserModel.username == username)
        user = session.exec(stmt).first()
        return self._to_response(user) if user else None

    @staticmethod
    def _to_response(user: UserModel) -> UserResponse:
        return UserResponse(id=user.id, username=user.username, favorite_genre=user.favorite_genre)


@lru_cache
def get_user_service() -> UserService:
    """Get the user service singleton."""
    return UserService()
