"""
Upstream failure type shared by the Stripe and Supabase clients.
Callers decide the policy: verification fails closed, issuance reports the detail.
"""
from typing import Any


class UpstreamError(Exception):
    """Raised when an upstream call fails (transport, timeout, non-2xx, malformed payload)."""

    def __init__(
        self,
        message: str,
        *,
        upstream: str,
        status_code: int | None = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.upstream = upstream
        self.status_code = status_code
        self.body = body
