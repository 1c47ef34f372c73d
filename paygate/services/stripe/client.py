"""
Stripe client wrapper using httpx async client.
Read-only: the only call is GET /v1/checkout/sessions/{id}.
"""
import logging
import time
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from paygate.core.errors import UpstreamError
from paygate.schemas.checkout import CheckoutSession, StripeErrorBody
from paygate.utils.metrics import record_upstream


logger = logging.getLogger(__name__)

UPSTREAM = "stripe"


class StripeClient:
    """
    Fetches checkout sessions with the secret key (HTTP basic auth, empty password).
    The httpx client is shared and owned by the application lifespan.
    """

    def __init__(self, http: httpx.AsyncClient, secret_key: str, api_base: str = "https://api.stripe.com") -> None:
        self._http = http
        self._auth = httpx.BasicAuth(secret_key, "")
        self._base_url = f"{api_base.rstrip('/')}/v1"

    async def get_checkout_session(self, session_id: str) -> CheckoutSession:
        """Return the session or raise UpstreamError on any failure."""
        url = f"{self._base_url}/checkout/sessions/{quote(session_id, safe='')}"
        start = time.monotonic()
        try:
            resp = await self._http.get(url, auth=self._auth)
        except httpx.HTTPError as e:
            record_upstream(UPSTREAM, "error", time.monotonic() - start)
            raise UpstreamError(f"Stripe request failed: {type(e).__name__}", upstream=UPSTREAM) from e

        record_upstream(UPSTREAM, str(resp.status_code), time.monotonic() - start)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(
                "Stripe returned non-JSON body",
                upstream=UPSTREAM,
                status_code=resp.status_code,
            ) from e

        if resp.is_error:
            err = StripeErrorBody.model_validate(data if isinstance(data, dict) else {}).error
            logger.warning(
                "stripe_session_fetch_failed",
                extra={"status_code": resp.status_code, "error": err.get("code") or err.get("type")},
            )
            raise UpstreamError(
                err.get("message") or f"Stripe HTTP {resp.status_code}",
                upstream=UPSTREAM,
                status_code=resp.status_code,
                body=data,
            )

        try:
            return CheckoutSession.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(
                "Unexpected checkout session payload",
                upstream=UPSTREAM,
                status_code=resp.status_code,
                body=data,
            ) from e
