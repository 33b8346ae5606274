"""GET /health endpoint handler."""
from datetime import datetime, timezone
from fastapi import APIRouter, status
from src.server.models.responses import HealthResponse
from src.state.database import DatabaseManager


def create_health_router(db: DatabaseManager) -> APIRouter:
    """Create health router with injected dependencies."""
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK, tags=["status"])
    async def health_check() -> HealthResponse:
        """Check that the service and its database are reachable."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        database_ok = await db.ping()
        return HealthResponse(
            status="healthy" if database_ok else "degraded",
            database=database_ok,
            timestamp=timestamp,
        )

    return router
