"""Tests for library_server.settings.Settings behavior."""

import pytest
from pydantic import ValidationError

from library_server.exceptions import ConfigurationError
from library_server.settings import Settings, get_settings, require_runtime_settings

ENV_VARS = [
    "LIBRARY_SERVER_HOST",
    "LIBRARY_SERVER_PORT",
    "LIBRARY_SERVER_LOG_LEVEL",
    "LIBRARY_SERVER_SQL_LOG",
    "LIBRARY_SERVER_RELOAD",
    "LIBRARY_SERVER_DATABASE_URL",
    "LIBRARY_SERVER_JWT_SECRET",
    "LIBRARY_SERVER_EVENT_QUEUE_SIZE",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
        monkeypatch.delenv(var.lower(), raising=False)
    return monkeypatch


def test_settings_defaults(clean_env):
    """Defaults should be stable even if external env or .env sets values."""
    s = Settings(_env_file=None)
    assert s.host == "0.0.0.0"
    assert s.port == 4000
    assert s.log_level == "INFO"
    assert s.sql_log is False
    assert s.reload is False
    assert s.database_url is None
    assert s.jwt_secret is None
    assert s.jwt_algorithm == "HS256"
    assert s.event_queue_size == 100


def test_env_overrides(clean_env):
    clean_env.setenv("LIBRARY_SERVER_HOST", "127.0.0.1")
    clean_env.setenv("LIBRARY_SERVER_PORT", "9090")
    clean_env.setenv("LIBRARY_SERVER_SQL_LOG", "true")
    clean_env.setenv("LIBRARY_SERVER_JWT_SECRET", "s3cr3t")
    clean_env.setenv("LIBRARY_SERVER_EVENT_QUEUE_SIZE", "5")
    s = Settings(_env_file=None)
    assert s.host == "127.0.0.1"
    assert s.port == 9090
    assert s.sql_log is True
    assert s.jwt_secret.get_secret_value() == "s3cr3t"
    assert s.event_queue_size == 5


def test_case_insensitive_env_name(clean_env):
    # lower-case variable name should still be picked up due to case_sensitive=False
    clean_env.setenv("library_server_host", "10.10.10.10")
    s = Settings(_env_file=None)
    assert s.host == "10.10.10.10"


@pytest.mark.parametrize("raw, expected", [("debug", "DEBUG"), ("Warning", "WARNING"), ("trace", "TRACE")])
def test_log_level_normalized(clean_env, raw: str, expected: str):
    clean_env.setenv("LIBRARY_SERVER_LOG_LEVEL", raw)
    assert Settings(_env_file=None).log_level == expected


def test_invalid_log_level(clean_env):
    clean_env.setenv("LIBRARY_SERVER_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_queue_size_must_be_positive(clean_env):
    clean_env.setenv("LIBRARY_SERVER_EVENT_QUEUE_SIZE", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_secret_is_masked(clean_env):
    s = Settings(_env_file=None, jwt_secret="hidden")
    assert "hidden" not in repr(s)


def test_runtime_settings_missing(clean_env):
    with pytest.raises(ConfigurationError) as exc_info:
        require_runtime_settings(Settings(_env_file=None))
    assert "LIBRARY_SERVER_DATABASE_URL" in str(exc_info.value)
    assert "LIBRARY_SERVER_JWT_SECRET" in str(exc_info.value)


def test_runtime_settings_present(clean_env):
    require_runtime_settings(Settings(_env_file=None, database_url="sqlite://", jwt_secret="x"))


def test_get_settings_cached():
    assert get_settings() is get_settings()
