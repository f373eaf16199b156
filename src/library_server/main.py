"""Command line entry point: ``library-server [OPTIONS]``.

Options override the matching ``LIBRARY_SERVER_*`` environment variables.
They are applied by exporting those variables, so the settings are the same
in this process and in the worker uvicorn spawns when ``--reload`` is on.
"""

import os
from typing import Any

import typer
import uvicorn
from loguru import logger
from pydantic import ValidationError

from library_server.constants import GRAPHQL_PATH
from library_server.exceptions import ConfigurationError
from library_server.logging import setup_logging
from library_server.settings import Settings, get_settings, require_runtime_settings

app = typer.Typer(help="GraphQL library catalog server")

ENV_PREFIX = Settings.model_config["env_prefix"]


def apply_overrides(**overrides: Any) -> Settings:
    """Export the given non-None overrides and reload the cached settings.

    Returns:
        The settings with the overrides applied
    """
    for name, value in overrides.items():
        if value is None:
            continue
        os.environ[f"{ENV_PREFIX}{name.upper()}"] = str(value).lower() if isinstance(value, bool) else str(value)

    get_settings.cache_clear()
    return get_settings()


@app.command()
def run(
    host: str = typer.Option(None, "--host", help="Interface to bind", metavar="<host>"),
    port: int = typer.Option(None, "--port", "-p", help="Port to listen on", metavar="<port>"),
    database_url: str = typer.Option(None, "--database-url", help="Entity store URL", metavar="<dsn>"),
    log_level: str = typer.Option(None, "--log-level", "-l", help="TRACE, DEBUG, INFO, WARNING or ERROR", metavar="<level>"),
    sql_log: bool = typer.Option(None, "--sql-log/--no-sql-log", help="Echo SQL statements"),
    event_queue_size: int = typer.Option(None, "--event-queue-size", min=1, help="Per-subscriber event backlog before the oldest is dropped"),
    token_expire_minutes: int = typer.Option(None, "--token-expire-minutes", min=1, help="Lifetime of issued login tokens"),
    reload: bool = typer.Option(None, "--reload/--no-reload", help="Restart on source changes (development)"),
) -> None:
    """Serve the GraphQL API over HTTP and WebSocket."""
    try:
        settings = apply_overrides(
            host=host,
            port=port,
            database_url=database_url,
            log_level=log_level,
            sql_log=sql_log,
            event_queue_size=event_queue_size,
            token_expire_minutes=token_expire_minutes,
            reload=reload,
        )
    except ValidationError as e:
        typer.echo(f"Invalid option: {e}", err=True)
        raise typer.Exit(code=1) from e

    setup_logging(settings.log_level)

    try:
        require_runtime_settings(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e

    logger.info(f"Starting library server on {settings.host}:{settings.port}{GRAPHQL_PATH} (reload={settings.reload})")

    # The reloader imports the app itself in a child process
    target = "library_server.app:app" if settings.reload else _load_app()
    uvicorn.run(
        target,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


def _load_app():
    from library_server.app import app as fastapi_app

    return fastapi_app


if __name__ == "__main__":
    app()
