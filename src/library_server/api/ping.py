"""Ping API endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(tags=["System"])


class PingResponse(BaseModel):
    ping: str = "pong"


@router.get("/ping", response_model=PingResponse)
async def ping() -> PingResponse:
    """Liveness probe; touches neither the database nor authentication."""
    return PingResponse()
