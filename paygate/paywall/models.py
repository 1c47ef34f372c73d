"""
DTO paywall: VerificationDecision (verify output), DownloadOutcome, DownloadResult (issue output).
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


# ----- Verification (never raises, only a boolean leaves it) -----


class VerificationDecision(BaseModel):
    """Result of PaymentVerifier.verify."""

    ok: bool
    from_cache: bool = Field(
        False,
        description="True = matched a purchase ledger record, the processor was not consulted",
    )

    model_config = {"frozen": True}


# ----- Issuance -----


class DownloadOutcome(str, Enum):
    REDIRECT = "redirect"
    DENIED = "denied"                  # payment not verified
    NOT_FOUND = "not_found"            # product has no file path
    MISCONFIGURED = "misconfigured"    # bucket or storage backend missing
    CATALOG_ERROR = "catalog_error"    # product lookup failed
    SIGNING_ERROR = "signing_error"    # storage did not return a signed URL


_STATUS_CODES = {
    DownloadOutcome.REDIRECT: 302,
    DownloadOutcome.DENIED: 403,
    DownloadOutcome.NOT_FOUND: 404,
    DownloadOutcome.MISCONFIGURED: 500,
    DownloadOutcome.CATALOG_ERROR: 500,
    DownloadOutcome.SIGNING_ERROR: 500,
}


class DownloadResult(BaseModel):
    """Result of DownloadLinkIssuer.issue: a redirect location or a rejection message."""

    outcome: DownloadOutcome
    location: str | None = Field(None, description="Signed URL with download marker (redirect only)")
    message: str = ""

    model_config = {"frozen": True}

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.outcome]
