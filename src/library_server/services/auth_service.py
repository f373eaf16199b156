"""Authentication service: login tokens and bearer credential resolution.

Tokens are HS-signed JWTs (Authlib) embedding ``{username, id}`` plus ``iat``
and ``exp``. The same resolution runs for the HTTP ``Authorization`` header
and for the ``authorization`` field of a WebSocket ``connection_init``
payload; both carry ``"Bearer <token>"``.
"""

import time
from functools import lru_cache

from authlib.jose import JoseError, JsonWebToken
from loguru import logger
from pydantic import ValidationError
from sqlmodel import Session

from library_server.constants import BEARER_PREFIX, REFERENCE_LOGIN_PASSWORD
from library_server.exceptions import ConfigurationError, InvalidCredentialsError, InvalidTokenError
from library_server.models.api_model import TokenClaims, TokenResponse, UserResponse
from library_server.services.user_service import UserService, get_user_service
from library_server.settings import Settings, get_settings
from library_server.utils.passwords import hash_password, verify_password


class AuthService:
    """Issues and verifies login tokens and resolves the current user."""

    def __init__(self, settings: Settings | None = None, user_service: UserService | None = None):
        """Initialize the auth service.

        Args:
            settings: Settings holding the signing secret and password hash
            user_service: User service used for identity lookups
        """
        self.settings = settings or get_settings()
        self.user_service = user_service or get_user_service()
        self._jwt = JsonWebToken([self.settings.jwt_algorithm])

        if self.settings.login_password_hash:
            self._password_hash = self.settings.login_password_hash
        else:
            logger.warning("LIBRARY_SERVER_LOGIN_PASSWORD_HASH is not set, accepting the reference login password")
            self._password_hash = hash_password(REFERENCE_LOGIN_PASSWORD)

    def _signing_key(self) -> str:
        secret = self.settings.jwt_secret
        if secret is None or not secret.get_secret_value():
            raise ConfigurationError("JWT signing secret not configured")
        return secret.get_secret_value()

    def issue_token(self, user: UserResponse) -> str:
        """Sign a token for a user.

        Args:
            user: The authenticated user

        Returns:
            The encoded token
        """
        now = int(time.time())
        payload = {
            "username": user.username,
            "id": str(user.id),
            "iat": now,
            "exp": now + self.settings.token_expire_minutes * 60,
        }
        header = {"alg": self.settings.jwt_algorithm, "typ": "JWT"}
        token = self._jwt.encode(header, payload, self._signing_key())
        return token.decode() if isinstance(token, bytes) else token

    def decode_token(self, token: str) -> TokenClaims:
        """Verify a token's signature and expiry and return its identity claims.

        Raises:
            InvalidTokenError: If the token is malformed, forged, expired or lacks claims
        """
        try:
            claims = self._jwt.decode(token, self._signing_key())
            claims.validate()
            return TokenClaims.model_validate(dict(claims))
        except (JoseError, ValidationError, ValueError) as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise InvalidTokenError(f"invalid token: {e}") from e

    def verify_password(self, password: str) -> bool:
        return verify_password(password, self._password_hash)

    def login(self, session: Session, username: str, password: str) -> TokenResponse:
        """Exchange a username and password for a token.

        Args:
            session: Database session
            username: Username to log in as
            password: Shared login password

        Returns:
            TokenResponse carrying the signed token

        Raises:
            InvalidCredentialsError: For an unknown user or a wrong password alike
        """
        logger.debug(f"Service: login attempt for '{username}'")

        # Hash check first so both failure paths take comparable time
        password_ok = self.verify_password(password)
        user = self.user_service.get_user_by_username(session, username)
        if user is None or not password_ok:
            logger.info("Service: login rejected")
            raise InvalidCredentialsError()

        logger.debug(f"Service: login succeeded for user {user.id}")
        return TokenResponse(value=self.issue_token(user))

    def resolve_current_user(self, session: Session, authorization: str | None) -> UserResponse | None:
        """Resolve a bearer credential to the current user.

        Args:
            session: Database session
            authorization: Raw ``"Bearer <token>"`` value, or None

        Returns:
            The user, or None when no bearer credential was given or the
            token's user no longer exists

        Raises:
            InvalidTokenError: If a bearer token was given but fails verification
        """
        token = self.extract_bearer_token(authorization)
        if token is None:
            return None

        claims = self.decode_token(token)
        user = self.user_service.get_user_by_id(session, claims.id)
        if user is None:
            logger.debug(f"Token user {claims.id} no longer exists")
        return user

    @staticmethod
    def extract_bearer_token(authorization: str | None) -> str | None:
        """Return the token part of a ``"Bearer <token>"`` value, if any."""
        if not isinstance(authorization, str):
            return None
        if authorization[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX.lower():
            return None
        return authorization[len(BEARER_PREFIX) :].strip() or None


@lru_cache
def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    return AuthService()
