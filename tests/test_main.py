"""Tests for the command line entry point."""

import pytest
from typer.testing import CliRunner

from library_server import main
from library_server.settings import get_settings

runner = CliRunner()

EXPORTED = [
    "LIBRARY_SERVER_DATABASE_URL",
    "LIBRARY_SERVER_JWT_SECRET",
    "LIBRARY_SERVER_PORT",
    "LIBRARY_SERVER_EVENT_QUEUE_SIZE",
    "LIBRARY_SERVER_TOKEN_EXPIRE_MINUTES",
    "LIBRARY_SERVER_LOG_LEVEL",
]


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Isolate the environment the CLI exports into and record uvicorn launches."""
    monkeypatch.chdir(tmp_path)  # no .env file
    for var in EXPORTED:
        # setenv first so monkeypatch restores the variable after the CLI overwrites it
        monkeypatch.setenv(var, "1")
        monkeypatch.delenv(var)

    launches: list[dict] = []
    monkeypatch.setattr(main.uvicorn, "run", lambda target, **kwargs: launches.append({"target": target, **kwargs}))
    yield monkeypatch, launches
    get_settings.cache_clear()


def test_missing_configuration_exits_with_1(cli_env):
    _, launches = cli_env

    result = runner.invoke(main.app, [])

    assert result.exit_code == 1
    assert launches == []


def test_options_override_settings(cli_env):
    monkeypatch, launches = cli_env
    monkeypatch.setenv("LIBRARY_SERVER_JWT_SECRET", "s3cr3t")

    result = runner.invoke(
        main.app,
        ["--database-url", "sqlite://", "--port", "5055", "--event-queue-size", "7", "--token-expire-minutes", "30"],
    )

    assert result.exit_code == 0, result.output
    settings = get_settings()
    assert settings.port == 5055
    assert settings.event_queue_size == 7
    assert settings.token_expire_minutes == 30
    assert launches[0]["port"] == 5055
    assert launches[0]["reload"] is False


def test_reload_passes_import_string(cli_env):
    monkeypatch, launches = cli_env
    monkeypatch.setenv("LIBRARY_SERVER_JWT_SECRET", "s3cr3t")
    monkeypatch.setenv("LIBRARY_SERVER_RELOAD", "false")

    result = runner.invoke(main.app, ["--database-url", "sqlite://", "--reload"])

    assert result.exit_code == 0, result.output
    assert launches[0]["target"] == "library_server.app:app"


def test_invalid_option_value(cli_env):
    _, launches = cli_env

    result = runner.invoke(main.app, ["--event-queue-size", "0"])

    assert result.exit_code != 0
    assert launches == []


def test_invalid_log_level_exits_with_1(cli_env):
    _, launches = cli_env

    result = runner.invoke(main.app, ["--log-level", "chatty"])

    assert result.exit_code == 1
    assert launches == []
