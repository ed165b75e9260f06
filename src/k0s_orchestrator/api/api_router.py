"""API router initialization."""

from fastapi import APIRouter
from loguru import logger

from k0s_orchestrator.api.clusters import router as clusters_router

# Create main API router
router = APIRouter()

# Mount API endpoints
router.include_router(clusters_router, tags=["clusters"])

logger.debug("API router initialized (clusters router mounted)")
