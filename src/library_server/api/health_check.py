"""Health check API endpoint."""

from typing import Literal

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel
from sqlalchemy import text

from library_server import __version__
from library_server.constants import BOOK_ADDED
from library_server.database import get_engine
from library_server.event_bus import EventBus, get_event_bus

router = APIRouter(tags=["System"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: Literal["ok", "degraded"]
    version: str
    database: bool
    book_added_subscribers: int

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "ok",
                "version": "0.1.0",
                "database": True,
                "book_added_subscribers": 2,
            }
        }
    }


# Define the dependencies as module-level variables
event_bus_dependency = Depends(get_event_bus)


def check_database() -> bool:
    """Run a single ``SELECT 1`` without the session retry loop."""
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Health check: database unreachable: {e}")
        return False


@router.get("/health-check", response_model=HealthResponse)
async def health_check(event_bus: EventBus = event_bus_dependency) -> HealthResponse:
    """Report database reachability and the number of live ``bookAdded`` subscribers."""
    logger.debug("Health check requested")

    database_ok = check_database()
    return HealthResponse(
        status="ok" if database_ok else "degraded",
        version=__version__,
        database=database_ok,
        book_added_subscribers=event_bus.subscriber_count(BOOK_ADDED),
    )
