"""
Buyer-facing endpoints. Query params: ?p=product-slug&session_id=cs_xxx

/verify   -> {"ok": bool}, always 200, never leaks upstream detail
/download -> 302 to a signed storage URL, or 403/404/500 with a text body
/config   -> public (anon) Supabase credentials for client-side catalog browsing
"""
import logging

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from paygate.api.deps import get_issuer, get_settings, get_verifier
from paygate.core.config import Settings
from paygate.paywall.issuer import DownloadLinkIssuer
from paygate.paywall.verifier import PaymentVerifier
from paygate.schemas.api import PublicConfig, VerifyResponse


logger = logging.getLogger(__name__)

router = APIRouter(tags=["downloads"])


@router.get("/verify", response_model=VerifyResponse)
async def verify(
    p: str = Query(""),
    session_id: str = Query(""),
    verifier: PaymentVerifier = Depends(get_verifier),
) -> VerifyResponse:
    try:
        decision = await verifier.verify(session_id, p)
    except Exception:
        logger.exception("verify_unexpected_error", extra={"session_id": session_id, "slug": p})
        return VerifyResponse(ok=False)
    return VerifyResponse(ok=decision.ok)


@router.get("/download", response_model=None)
async def download(
    p: str = Query(""),
    session_id: str = Query(""),
    issuer: DownloadLinkIssuer = Depends(get_issuer),
) -> Response:
    result = await issuer.issue(session_id, p)
    if result.location:
        return RedirectResponse(result.location, status_code=result.status_code)
    return PlainTextResponse(result.message, status_code=result.status_code)


@router.get("/config", response_model=PublicConfig)
def public_config(response: Response, settings: Settings = Depends(get_settings)) -> PublicConfig:
    """Only the anon key leaves the server; service and Stripe keys never do."""
    response.headers["Cache-Control"] = "no-cache"
    return PublicConfig(
        public_api_url=settings.supabase_url,
        public_anon_key=settings.supabase_anon_key,
    )
