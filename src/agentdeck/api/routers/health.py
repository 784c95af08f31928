"""Health router."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from agentdeck import __version__
from agentdeck.api.deps import Services
from agentdeck.api.schemas import HealthResponse
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(services: Services):
    """Report database connectivity and whether a model key is configured.

    Returns 200 when the database answers, 503 otherwise.
    """
    db_ok = await services.database.check_health()
    body = HealthResponse(
        status="healthy" if db_ok else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        database="connected" if db_ok else "error",
        model="configured" if services.model_configured else "missing_api_key",
        version=__version__,
    )
    if not db_ok:
        logger.warning("health_check_degraded", database=body.database)
    return JSONResponse(status_code=200 if db_ok else 503, content=body.model_dump())
