"""Health check endpoint with database and mail transport status."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """
    Liveness plus database connectivity. Reports 'degraded' rather than
    failing when the database is unreachable, so load balancers still get a body.
    """
    settings = get_settings()
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        environment=settings.APP_ENV,
        database="connected" if connected else "disconnected",
        mail_transport=settings.MAIL_TRANSPORT,
        email_verification_required=settings.REQUIRE_EMAIL_VERIFICATION,
    )
