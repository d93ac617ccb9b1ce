"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_checks import __version__
from payroll_checks.api.routes import batches_router, health_router
from payroll_checks.config import get_settings
from payroll_checks.database import create_schema, dispose_db, init_db
from payroll_checks.services.exceptions import (
    BatchCommitError,
    CheckWriteError,
    EmptyBatchError,
    NoBankConfiguredError,
)

logger = logging.getLogger(__name__)

# First match wins; anything else is a server error
COMMIT_ERROR_STATUS: list[tuple[type[BatchCommitError], int]] = [
    (EmptyBatchError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NoBankConfiguredError, status.HTTP_409_CONFLICT),
    (CheckWriteError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the engine on start-up, dispose it on shutdown."""
    engine, _ = init_db()
    if get_settings().auto_create_schema:
        logger.info("Creating database schema")
        await create_schema(engine)
    yield
    await dispose_db()


async def commit_error_handler(request: Request, exc: BatchCommitError) -> JSONResponse:
    """Surface a halted commit with its code and, for write failures, the written count."""
    status_code = next(
        (code for error_type, code in COMMIT_ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    content: dict[str, object] = {"detail": str(exc), "code": exc.code}
    if isinstance(exc, CheckWriteError):
        content["written_count"] = exc.written_count
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Payroll Checks API",
        description="Multi-client check batch review and commit",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BatchCommitError, commit_error_handler)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
        )

    app.include_router(health_router)
    app.include_router(batches_router, prefix="/api/v1")

    return app


app = create_app()
