"""
Payment-gated downloads (internal library).
Decision (verify) and execution (issue) are separate; the contract is VerificationDecision.
"""
from paygate.paywall.issuer import DownloadLinkIssuer
from paygate.paywall.models import (
    DownloadOutcome,
    DownloadResult,
    VerificationDecision,
)
from paygate.paywall.verifier import PaymentVerifier, link_matches

__all__ = [
    "DownloadLinkIssuer",
    "DownloadOutcome",
    "DownloadResult",
    "PaymentVerifier",
    "VerificationDecision",
    "link_matches",
]
