"""Main FastAPI application module."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from k0s_orchestrator import __version__
from k0s_orchestrator.api.api_router import router as api_router
from k0s_orchestrator.api.ping import router as ping_router
from k0s_orchestrator.database import dispose_db
from k0s_orchestrator.exception_handlers import register_exception_handlers
from k0s_orchestrator.logging import setup_logging, setup_sqlalchemy_logging
from k0s_orchestrator.services.di import register_all_services
from k0s_orchestrator.services.registry import get_service_registry
from k0s_orchestrator.settings import Settings, get_settings


def _log_server_endpoints_summary(settings: Settings) -> None:
    """Log the server URL and the available endpoints."""
    server_url = f"http://{settings.host}:{settings.port}"
    logger.info(f"Server running at: {server_url}")

    endpoints = [
        ("Ping", "/ping"),
        ("Clusters", "/api/clusters"),
        ("OpenAPI Schema", "/openapi.json"),
        ("API Docs", "/docs"),
    ]
    logger.info("Available endpoints:")
    for name, path in endpoints:
        logger.info(f"   {name}: {server_url}{path}")

    logger.info(f"Lock backend: {settings.lock_backend}, provisioning backend: {settings.backend}")
    logger.info(f"Cluster records: {'database' if settings.database_url else 'in memory'}")


@asynccontextmanager
async def app_lifespan(_app: FastAPI):
    """Handle startup and shutdown events for the main application."""
    settings = get_settings()
    _app.state.settings = settings  # type: ignore[attr-defined]

    setup_logging(log_level=settings.log_level)
    if settings.sql_log:
        setup_sqlalchemy_logging()

    logger.info("Registering services in the service registry")
    register_all_services(get_service_registry())

    _log_server_endpoints_summary(settings)

    yield

    logger.info("Orchestrator shutting down")
    dispose_db()


app = FastAPI(
    lifespan=app_lifespan,
    title="k0s orchestrator",
    description="Declarative create, read, update and delete of k0s clusters over SSH",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(ping_router, prefix="")
app.include_router(api_router, prefix="/api")

