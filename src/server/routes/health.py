"""GET /api/health endpoint handler."""
from datetime import datetime, timezone
from fastapi import APIRouter, status
from src.server.config import ServerConfig
from src.server.models.responses import HealthResponse
from src.state.database import DatabaseManager


def create_health_router(config: ServerConfig, db: DatabaseManager) -> APIRouter:
    """Create health router with injected dependencies."""
    router = APIRouter()

    @router.get("/api/health", response_model=HealthResponse, status_code=status.HTTP_200_OK, tags=["status"])
    async def health_check() -> HealthResponse:
        """Check if the service is operational."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        if not db.is_initialized:
            return HealthResponse(
                status="degraded", version=config.version, timestamp=timestamp,
                message="Database not initialized",
            )
        return HealthResponse(status="healthy", version=config.version, timestamp=timestamp)

    return router
