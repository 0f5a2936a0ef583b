"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> ORJSONResponse:
    """Readiness probe - checks that the comment store is reachable."""
    settings = request.app.state.settings
    store = getattr(request.app.state, "comment_store", None)
    store_ready = store is not None and await store.is_ready()

    return ORJSONResponse(
        status_code=status.HTTP_200_OK
        if store_ready
        else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if store_ready else "not_ready",
            "store": store_ready,
            "environment": settings.environment,
        },
    )


@router.get("")
async def health(request: Request) -> dict[str, str]:
    """General health check endpoint."""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "identity_service": settings.auth_service_url,
    }
