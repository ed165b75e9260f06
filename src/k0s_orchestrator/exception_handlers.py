"""Global exception handlers for the FastAPI application.

This module converts orchestrator exceptions into HTTP responses with a
JSON body of the form ``{"detail": ..., "step": ..., "errors": [...]}``.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from k0s_orchestrator.exceptions import (
    ClusterLockedError,
    PipelineExecutionError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    SpecificationValidationError,
)
from k0s_orchestrator.models.api_model import ErrorResponse


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance
    """

    @app.exception_handler(SpecificationValidationError)
    async def specification_validation_handler(_request: Request, exc: SpecificationValidationError) -> JSONResponse:
        return _error_response(
            422,
            ErrorResponse(detail="Invalid cluster specification", errors=exc.errors),
        )

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_handler(_request: Request, exc: ResourceNotFoundError) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, ErrorResponse(detail=str(exc)))

    @app.exception_handler(ResourceAlreadyExistsError)
    async def already_exists_handler(_request: Request, exc: ResourceAlreadyExistsError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, ErrorResponse(detail=str(exc)))

    @app.exception_handler(ClusterLockedError)
    async def cluster_locked_handler(_request: Request, exc: ClusterLockedError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, ErrorResponse(detail=exc.diagnostic, step=exc.step))

    @app.exception_handler(PipelineExecutionError)
    async def pipeline_execution_handler(_request: Request, exc: PipelineExecutionError) -> JSONResponse:
        logger.warning(f"Request failed at step '{exc.step}': {exc.diagnostic}")
        return _error_response(status.HTTP_502_BAD_GATEWAY, ErrorResponse(detail=exc.diagnostic, step=exc.step))

    logger.debug("Registered exception handlers")
