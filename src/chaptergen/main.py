"""Main entry point for the chaptergen HTTP service."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chaptergen import __version__
from chaptergen.api.deps import init_generation_service
from chaptergen.api.routes import health, timestamps
from chaptergen.api.schemas import ErrorResponse
from chaptergen.config import settings
from chaptergen.errors import (
    ChaptergenError,
    GenerationFailedError,
    InputError,
    ProposerError,
    ProposerUnavailableError,
)

logger = logging.getLogger(__name__)


def _status_for(exc: ChaptergenError) -> int:
    if isinstance(exc, InputError):
        return exc.status_code
    if isinstance(exc, ProposerUnavailableError):
        return 503
    if isinstance(exc, (GenerationFailedError, ProposerError)):
        return 502
    return 500


async def chaptergen_error_handler(request: Request, exc: ChaptergenError) -> JSONResponse:
    """Map domain errors to HTTP responses."""
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)

    body = ErrorResponse(
        error=type(exc).__name__,
        detail=str(exc),
        retryable=getattr(exc, "retryable", False),
        failed_chunks=getattr(exc, "failed_chunks", {}),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup, clean up on shutdown."""
    service = init_generation_service(settings)
    if service.proposer is None:
        logger.warning("No moment proposer configured; generate endpoints will return 503")
    else:
        logger.info("Using moment proposer: %s", service.proposer.name)
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="chaptergen",
        description="Chapter timestamps from SRT subtitles",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_exception_handler(ChaptergenError, chaptergen_error_handler)

    # Include API routes
    app.include_router(health.router)
    app.include_router(timestamps.router)

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        "chaptergen.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
