"""
Execution: DownloadLinkIssuer.issue(session_id, slug) -> DownloadResult.
Runs only after a positive verification; nothing else is touched for an unverified pair.
Failures after verification carry diagnostics (bucket, path, upstream body): the caller
already proved the purchase and none of it is secret.
"""
from __future__ import annotations

import json
import logging

from paygate.core.errors import UpstreamError
from paygate.paywall.models import DownloadOutcome, DownloadResult
from paygate.paywall.verifier import PaymentVerifier
from paygate.services.catalog.service import ProductCatalog
from paygate.services.storage.service import SigningError, StorageSigner
from paygate.utils.metrics import downloads_total

logger = logging.getLogger(__name__)


class DownloadLinkIssuer:
    def __init__(
        self,
        *,
        verifier: PaymentVerifier,
        catalog: ProductCatalog | None,
        signer: StorageSigner | None,
    ) -> None:
        self._verifier = verifier
        self._catalog = catalog
        self._signer = signer

    async def issue(self, session_id: str, slug: str) -> DownloadResult:
        decision = await self._verifier.verify(session_id, slug)
        if not decision.ok:
            return self._done(DownloadOutcome.DENIED, session_id, slug, message="Payment not verified.")

        file_path = ""
        if self._catalog is not None:
            try:
                product = await self._catalog.get_product(slug)
            except UpstreamError as e:
                logger.error("product_lookup_failed", extra={"slug": slug, "error": str(e)})
                return self._done(DownloadOutcome.CATALOG_ERROR, session_id, slug, message="Could not look up product.")
            file_path = product.file_path if product else ""

        if not file_path:
            return self._done(DownloadOutcome.NOT_FOUND, session_id, slug, message="Product file path not found.")

        if self._signer is None or not self._signer.bucket:
            return self._done(DownloadOutcome.MISCONFIGURED, session_id, slug, message="Storage bucket not configured.")

        try:
            location = await self._signer.create_download_url(file_path)
        except SigningError as e:
            body = json.dumps(e.body, default=str) if e.body is not None else "-"
            message = (
                f"Could not generate download link: {e} | response: {body} "
                f"| path: {e.encoded_path} | bucket: {e.bucket}"
            )
            logger.error(
                "download_signing_failed",
                extra={"slug": slug, "bucket": e.bucket, "file_path": e.encoded_path, "error": str(e)},
            )
            return self._done(DownloadOutcome.SIGNING_ERROR, session_id, slug, message=message)

        return self._done(DownloadOutcome.REDIRECT, session_id, slug, location=location)

    @staticmethod
    def _done(
        outcome: DownloadOutcome,
        session_id: str,
        slug: str,
        *,
        message: str = "",
        location: str | None = None,
    ) -> DownloadResult:
        downloads_total.labels(outcome=outcome.value).inc()
        if outcome is DownloadOutcome.REDIRECT:
            logger.info("download_issued", extra={"session_id": session_id, "slug": slug})
        elif outcome is not DownloadOutcome.DENIED:
            logger.warning("download_rejected", extra={"session_id": session_id, "slug": slug, "outcome": outcome.value})
        return DownloadResult(outcome=outcome, location=location, message=message)
