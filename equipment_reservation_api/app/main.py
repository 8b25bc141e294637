"""
Main entrypoint for the Equipment Reservation API.

This module assembles the FastAPI application, sets up logging, maps
domain errors to HTTP responses and includes versioned routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn equipment_reservation_api.app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import get_store, reset_store
from .core.exceptions import (
    DuplicateEmailError,
    EquipmentUnavailableError,
    NotFoundError,
    ReservationSystemError,
    StaleWriteError,
    StorageCorruptionError,
)
from .core.logging_config import setup_logging


logger = logging.getLogger(__name__)

# Ordered from most to least specific; the first match wins.
ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateEmailError, status.HTTP_409_CONFLICT),
    (EquipmentUnavailableError, status.HTTP_409_CONFLICT),
    (StaleWriteError, status.HTTP_409_CONFLICT),
    (StorageCorruptionError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: ReservationSystemError) -> int:
    for error_class, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST


async def handle_domain_error(request: Request, exc: ReservationSystemError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(
        status_code=code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Configures logging, opens the entity store for the configured
    database (applying migrations), registers the domain error handler
    and mounts the v1 routes under ``/api/v1``.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.add_exception_handler(ReservationSystemError, handle_domain_error)
    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event() -> None:
        reset_store()
        store = get_store()
        logger.info("Entity store ready at %s", store.db_path)

    return app


app = create_app()
