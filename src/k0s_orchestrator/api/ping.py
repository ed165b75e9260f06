"""Ping API endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from k0s_orchestrator import __version__

router = APIRouter(tags=["System"])


class PingResponse(BaseModel):
    """Ping response model."""

    ping: str = "pong"
    version: str = __version__


@router.get("/ping", response_model=PingResponse)
async def ping() -> PingResponse:
    """Connectivity check; touches neither hosts nor the database."""
    return PingResponse()
