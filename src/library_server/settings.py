"""Application configuration using Pydantic Settings.

This module centralizes runtime configuration for the library server. Values
can be provided via environment variables (preferred) or fall back to the
defaults below. A ``Settings`` instance is intended to be retrieved via
``get_settings`` which caches the object for reuse across the process.

Environment variable prefix: ``LIBRARY_SERVER_`` (e.g. ``LIBRARY_SERVER_PORT``).

``database_url`` and ``jwt_secret`` have no usable default. They are optional
here so the module can be imported (and CLI overrides applied) before they are
known; ``require_runtime_settings`` enforces them when the server starts.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from library_server.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Runtime application settings.

    Attributes map directly to environment variables using the
    ``LIBRARY_SERVER_`` prefix (case-insensitive). For example,
    ``jwt_secret`` <- ``LIBRARY_SERVER_JWT_SECRET``.
    """

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host interface to bind the server",
    )  # fmt: skip
    port: int = Field(
        default=4000,
        description="Server port",
    )  # fmt: skip
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Application log level",
    )
    reload: bool = Field(
        default=False,
        description="Enable auto-reload in development",
    )  # fmt: skip

    # Entity store
    database_url: str | None = Field(
        default=None,
        description="Database connection string (required at startup)",
    )  # fmt: skip
    sql_log: bool = Field(
        default=False,
        description="Enable SQL query logging",
    )  # fmt: skip

    # Authentication
    jwt_secret: SecretStr | None = Field(
        default=None,
        description="Secret used to sign and verify login tokens (required at startup)",
    )  # fmt: skip
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256",
        description="Token signing algorithm",
    )  # fmt: skip
    token_expire_minutes: int = Field(
        default=60 * 24,
        gt=0,
        description="Lifetime of issued tokens in minutes",
    )  # fmt: skip
    login_password_hash: str | None = Field(
        default=None,
        description="PBKDF2 hash of the shared login password; the reference password is used when unset",
    )  # fmt: skip

    # Subscriptions
    event_queue_size: int = Field(
        default=100,
        gt=0,
        description="Per-subscriber event queue bound; the oldest event is dropped on overflow",
    )  # fmt: skip
    ws_connection_init_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds a WebSocket client has to send connection_init",
    )  # fmt: skip

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    model_config = SettingsConfigDict(
        env_prefix="LIBRARY_SERVER_",  # Prefix for env vars
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars
        env_file=".env",  # Optional .env loading (if present)
        env_file_encoding="utf-8",
    )


def require_runtime_settings(settings: Settings) -> None:
    """Check the settings the server cannot start without.

    Args:
        settings: Settings to validate

    Raises:
        ConfigurationError: If the database URL or the signing secret is missing
    """
    missing = []
    if not settings.database_url:
        missing.append("LIBRARY_SERVER_DATABASE_URL")
    if settings.jwt_secret is None or not settings.jwt_secret.get_secret_value():
        missing.append("LIBRARY_SERVER_JWT_SECRET")
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return Settings()


__all__ = ["Settings", "get_settings", "require_runtime_settings"]
