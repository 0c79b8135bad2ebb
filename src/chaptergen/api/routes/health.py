"""Health check endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chaptergen.api.deps import get_generation_service
from chaptergen.services.generation import TimestampGenerationService

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    proposer: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(
    service: TimestampGenerationService = Depends(get_generation_service),
) -> HealthResponse:
    """Return the health status and the active moment proposer."""
    from chaptergen import __version__

    proposer = service.proposer
    return HealthResponse(
        status="healthy",
        version=__version__,
        proposer=proposer.name if proposer is not None else None,
    )
