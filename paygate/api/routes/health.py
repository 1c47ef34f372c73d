from fastapi import APIRouter, Depends, Response

from paygate.api.deps import get_services
from paygate.core.errors import UpstreamError
from paygate.services.factory import Services


router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe - always returns 200 if app is running."""
    return {"status": "ok"}


@router.get("/ready")
async def readiness(response: Response, services: Services = Depends(get_services)) -> dict:
    """Readiness probe - returns 503 if the purchase ledger is unavailable."""
    if services.ledger is None:
        return {"status": "ready", "ledger": "disabled"}
    try:
        await services.ledger.ping()
        return {"status": "ready"}
    except UpstreamError as e:
        response.status_code = 503
        return {"status": "not_ready", "error": str(e)}
