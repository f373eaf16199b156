"""Main FastAPI application module."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from library_server import __version__
from library_server.api.health_check import router as health_router
from library_server.api.ping import router as ping_router
from library_server.constants import GRAPHQL_PATH
from library_server.database import dispose_db, init_db
from library_server.event_bus import get_event_bus
from library_server.exceptions import ConfigurationError
from library_server.graphql.graphql_router import create_graphql_router
from library_server.logging import setup_logging
from library_server.services.di import register_all_services
from library_server.services.registry import get_service_registry
from library_server.settings import Settings, get_settings, require_runtime_settings


def _log_server_endpoints_summary(settings: Settings) -> None:
    """Log the server URL and the available endpoints.

    Args:
        settings: Application settings containing host and port
    """
    server_url = f"http://{settings.host}:{settings.port}"
    logger.info(f"Server ready at: {server_url}{GRAPHQL_PATH}")

    endpoints = [
        ("GraphQL (HTTP + WebSocket)", GRAPHQL_PATH),
        ("Health Check", "/health-check"),
        ("Ping", "/ping"),
        ("API Docs", "/docs"),
    ]
    logger.info("Available endpoints:")
    for name, path in endpoints:
        logger.info(f"   {name}: {server_url}{path}")


@asynccontextmanager
async def app_lifespan(_app: FastAPI):
    """Handle startup and shutdown events for the main application."""
    settings = get_settings()
    _app.state.settings = settings  # type: ignore[attr-defined]

    setup_logging(log_level=settings.log_level)

    # `library-server run` checks this before starting uvicorn; other ASGI runners
    # report the exception as a failed startup
    try:
        require_runtime_settings(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        raise

    logger.info("Registering services in the service registry")
    register_all_services(get_service_registry())

    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    _log_server_endpoints_summary(settings)

    yield

    logger.info("Library server shutting down")

    # Ends every open subscription stream
    get_event_bus().shutdown()

    dispose_db()


app = FastAPI(
    lifespan=app_lifespan,
    title="Library server",
    description="GraphQL catalog of books and authors with live book-added subscriptions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Browser clients on other origins may call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="")
app.include_router(ping_router, prefix="")
app.include_router(create_graphql_router(), prefix=GRAPHQL_PATH)
