"""FastAPI application setup for the transformation tracker."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from transformation_tracker.api.dependencies import get_app_settings, get_manager
from transformation_tracker.api.routes_transformations import router as transformations_router
from transformation_tracker.core.errors import (
    IllegalStateError,
    NotFoundError,
    ProcessingError,
    TransformationError,
    ValidationError,
)
from transformation_tracker.core.logging import configure_logging, get_logger

_settings = get_app_settings()
configure_logging(level=_settings.log_level, use_json=_settings.log_json)
logger = get_logger(__name__)

app = FastAPI(
    title="Transformation Tracker",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(transformations_router, prefix="/transformations", tags=["transformations"])


def _error_response(status_code: int, exc: TransformationError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "details": exc.details})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(404, exc)


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(400, exc)


@app.exception_handler(ProcessingError)
async def processing_handler(request: Request, exc: ProcessingError) -> JSONResponse:
    logger.error("processing failed", exc_info=exc, extra={"ctx_path": request.url.path})
    return _error_response(500, exc)


@app.exception_handler(IllegalStateError)
async def illegal_state_handler(request: Request, exc: IllegalStateError) -> JSONResponse:
    logger.warning("rejected state transition", extra={"ctx_path": request.url.path, "ctx_error": str(exc)})
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_manager()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
