"""Health check endpoint."""

from fastapi import APIRouter, Request, status

from migop.api.schemas import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check(request: Request) -> HealthResponse:
    """Liveness check; does not contact the document gateway."""
    settings = request.app.state.settings
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
        gateway="remote" if settings.uses_remote_gateway else "in-memory",
    )
