"""Health check with database connectivity; unauthenticated."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

SERVICE_VERSION = "0.1.0"

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """Used by load balancers and monitoring; reports 'degraded' rather than failing."""
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        version=SERVICE_VERSION,
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
    )
