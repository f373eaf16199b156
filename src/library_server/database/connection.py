"""Database configuration and connection setup.

The SQLModel engine is created lazily, after application settings have been
loaded and possibly overridden by CLI flags, so importing this module never
requires ``LIBRARY_SERVER_DATABASE_URL`` to be set.
"""

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, text
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from library_server.settings import get_settings

_engine = None  # type: ignore[var-annotated]


def _build_engine():  # type: ignore[return-value]
    """Create and return a new engine from current settings.

    Raises:
        ValueError: if database URL not configured.
    """
    settings = get_settings()
    database_url = settings.database_url
    if not database_url:
        raise ValueError("Database URL missing: provide LIBRARY_SERVER_DATABASE_URL env or --database-url CLI argument")

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # SQLite is for development; the in-memory variant must share one connection
        engine_kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs = {
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "connect_args": {"connect_timeout": 10},
        }

    engine_local = create_engine(database_url, echo=settings.sql_log, **engine_kwargs)
    logger.info("SQL echo is {}", "enabled" if settings.sql_log else "disabled")
    return engine_local


def get_engine():  # type: ignore[return-value]
    """Return a singleton engine instance, creating it lazily."""
    global _engine
    if _engine is None:
        _engine = _build_engine()
    return _engine


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
    retry=retry_if_exception_type(Exception),
    before_sleep=before_sleep_log(logger, "DEBUG"),
)
def init_db() -> None:
    """Create the library tables if they do not exist yet.

    Retried with exponential backoff so the server can start alongside a
    database container that is still coming up.
    """
    # Import for side effect: registers the table models on SQLModel.metadata
    from library_server.models import db_model  # noqa: F401

    logger.info("Initializing database...")
    SQLModel.metadata.create_all(get_engine())
    logger.info("Database tables ready: {}", ", ".join(sorted(SQLModel.metadata.tables)))


def dispose_db() -> None:
    """Dispose of the database engine if it was created."""
    global _engine
    if _engine is not None:
        logger.info("Closing database connections")
        _engine.dispose()
        _engine = None


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
    retry=retry_if_exception_type(Exception),
    before_sleep=before_sleep_log(logger, "DEBUG"),
)
def _create_session() -> Session:
    """Create a database session with retry logic.

    Handles connection failures by disposing and recreating the engine on each
    retry attempt.

    Returns:
        Session: A new database session

    Raises:
        Exception: If all retry attempts fail
    """
    global _engine
    try:
        session = Session(get_engine())
        # Test the connection immediately
        session.execute(text("SELECT 1"))
        return session
    except Exception as e:
        # Connection failed - dispose engine so it can be recreated on retry
        if _engine is not None:
            logger.warning("Database connection failed, disposing engine for retry...")
            _engine.dispose()
            _engine = None
        logger.error("Failed to create database session: {}", e)
        raise


@contextmanager
def borrow_db_session() -> Generator[Session]:
    """Public context manager for ad-hoc database usage.

    Use this for health checks and any non-FastAPI context. For request
    handlers, use ``get_db_session()`` as a dependency instead.

    Example:
        with borrow_db_session() as session:
            session.exec(text("SELECT 1"))
    """
    session = _create_session()
    session_id = id(session)

    try:
        yield session
    except Exception as e:  # noqa: BLE001
        logger.error("Error during database session {}: {}", session_id, e)
        raise
    finally:
        session.close()
        logger.trace("Database session {} closed and resources released", session_id)


def get_db_session() -> Generator[Session]:
    """FastAPI dependency yielding a database session.

    Usage in route:
        def endpoint(session: Session = Depends(get_db_session)): ...
    """
    with borrow_db_session() as session:
        yield session
